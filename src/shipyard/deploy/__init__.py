"""
shipyard.deploy - Simple NFT Marketplace Deployment
=====================================================

    - steps:     MarketplaceSteps (the step bodies)
    - pipeline:  build_marketplace_registry (their order and contracts)
"""

from shipyard.deploy.pipeline import build_marketplace_registry
from shipyard.deploy.steps import MarketplaceSteps

__all__ = ["MarketplaceSteps", "build_marketplace_registry"]
