"""
Shipyard - Resumable Deployment Pipeline
==========================================

Shipyard deploys the Simple NFT Marketplace sample as an ordered pipeline
of steps whose progress is saved in a settings document, so a deploy that
stops part way resumes where it left off:

    checkDependencies → createAccount → deployBlockchainNode
        → compileContract → promptForEther → waitForEther
        → deployContract → deployApi → writeFrontendConfig

Architecture Layers (top to bottom):
    1. Deploy Layer         - Marketplace step bodies and their order
    2. Orchestration Layer  - Pipeline, StepRegistry, SettingsStore
    3. Infrastructure Layer - Process runner, extraction, gates, outputs
    4. Core                 - Config, models, exceptions, logging

Quick Start:
    >>> from shipyard import Shipyard
    >>> report = await Shipyard().deploy()
"""

# =============================================================================
# Package Version
# =============================================================================
__version__ = "0.1.0"

# =============================================================================
# Package-Level Exports
# =============================================================================
# The Shipyard facade is the main entry point. For specific components,
# import from submodules directly:
#   from shipyard.orchestration import Pipeline, StepRegistry
#   from shipyard.core.enums import StepKind
# =============================================================================
from shipyard.facade import Shipyard

__all__ = ["Shipyard", "__version__"]
