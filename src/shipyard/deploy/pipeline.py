"""
shipyard.deploy.pipeline - Marketplace Step Sequence
======================================================

Registers the marketplace step bodies in deployment order. Marker names
are the step names, so a settings document written by an earlier release
of the deploy script resumes where it stopped.
"""

from __future__ import annotations

from shipyard.core.enums import StepKind
from shipyard.deploy.steps import MarketplaceSteps
from shipyard.orchestration.step_registry import StepRegistry


FRONTEND_KEYS = ("region", "nftApiEndpoint", "userPoolId", "userPoolClientId")


def build_marketplace_registry(steps: MarketplaceSteps) -> StepRegistry:
    """Create the nine-step marketplace registry.

    Args:
        steps: Bound step bodies.

    Returns:
        A validated StepRegistry, ready for a Pipeline.
    """
    registry = StepRegistry()
    once, always = StepKind.RUN_ONCE, StepKind.ALWAYS_RUN

    registry.step(
        "checkDependencies", kind=once, title="Checking dependencies",
    )(steps.check_dependencies)
    registry.step(
        "createAccount", kind=once, title="Create Account",
        produces=("address", "privateKey"),
    )(steps.create_account)
    registry.step(
        "deployBlockchainNode", kind=always,
        title="Deploy Amazon Managed Blockchain Node",
        produces=("ambEndpoint", "region"),
        description="Provisions the AMB node stack. Re-runs are no-op CDK deploys.",
    )(steps.deploy_blockchain_node)
    registry.step(
        "compileContract", kind=once, title="Compile Contract",
    )(steps.compile_contract)
    registry.step(
        "promptForEther", kind=always, title="Fund Account",
        requires=("address",),
    )(steps.prompt_for_ether)
    registry.step(
        "waitForEther", kind=always, title="Wait for Ether",
        requires=("address", "ambEndpoint"),
    )(steps.wait_for_ether)
    registry.step(
        "deployContract", kind=once, title="Deploy Contract",
        requires=("privateKey", "ambEndpoint"),
        produces=("contractAddress",),
    )(steps.deploy_contract)
    registry.step(
        "deployApi", kind=always, title="Deploy API",
        requires=("contractAddress", "ambEndpoint"),
        produces=("userPoolId", "userPoolClientId", "nftApiEndpoint"),
    )(steps.deploy_api)
    registry.step(
        "writeFrontendConfig", kind=always, title="Write UI Configuration",
        requires=FRONTEND_KEYS,
    )(steps.write_frontend_config)

    return registry
