"""
shipyard.deploy.steps - Simple NFT Marketplace Step Bodies
============================================================

The nine operations that take a fresh checkout of the marketplace sample
to a running deployment. Each body is a coroutine taking a StepContext and
returning its writes; none of them touches the settings store directly.

    checkDependencies      → (nothing)
    createAccount          → address, privateKey
    deployBlockchainNode   → ambEndpoint, region
    compileContract        → (nothing)
    promptForEther           (operator funds the account)
    waitForEther             (blocks until the balance arrives)
    deployContract         → contractAddress
    deployApi              → userPoolId, userPoolClientId, nftApiEndpoint
    writeFrontendConfig      (renders marketplace/.env.local)

The order and the RUN_ONCE / ALWAYS_RUN split live in
:mod:`shipyard.deploy.pipeline`.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from shipyard.core.config import ShipyardConfig
from shipyard.core.exceptions import ProcessFailedError
from shipyard.infrastructure.credentials import AwsCredentials
from shipyard.infrastructure.extraction import (
    CONTRACT_ADDRESS,
    ETHEREUM_ADDRESS,
    PRIVATE_KEY,
)
from shipyard.infrastructure.gate import InteractiveGate
from shipyard.infrastructure.materializer import (
    MARKETPLACE_ENV_TEMPLATE,
    ConfigMaterializer,
)
from shipyard.infrastructure.process_runner import ProcessRunner
from shipyard.infrastructure.stack_outputs import StackOutputs
from shipyard.orchestration.context import StepContext


logger = structlog.get_logger()


# =============================================================================
# Operator prompts
# =============================================================================
NODE_DEPLOY_PROMPT = (
    "Press any key to begin deploying AMB node. "
    "NOTE: This can take up to 30 minutes."
)
FUND_ACCOUNT_PROMPT = (
    "Navigate to {faucet_url} to add ETH to your address:\n"
    "{address}\n"
    "Then press any key to continue..."
)

# Stack output key → settings key
NODE_OUTPUTS = {
    "AmbHttpEndpoint": "ambEndpoint",
    "DeployRegion": "region",
}
API_OUTPUTS = {
    "UserPoolId": "userPoolId",
    "UserPoolClientId": "userPoolClientId",
    "NftApiEndpoint": "nftApiEndpoint",
}


class MarketplaceSteps:
    """Step bodies for the marketplace deployment.

    Args:
        config: Paths, stack names and the faucet URL.
        runner: Executes the external tools.
        gate: Operator checkpoints.
        credentials: AWS keys injected into the commands that call Amazon
            Managed Blockchain. Empty credentials inject nothing.
    """

    def __init__(
        self,
        config: ShipyardConfig,
        runner: ProcessRunner,
        gate: InteractiveGate,
        credentials: Optional[AwsCredentials] = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.gate = gate
        self.credentials = credentials or AwsCredentials()
        self.stack_outputs = StackOutputs(config.paths.stack_outputs_path)
        self.materializer = ConfigMaterializer(
            MARKETPLACE_ENV_TEMPLATE,
            config.paths.marketplace_env_path,
        )
        self._logger = logger.bind(component="marketplace_steps")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _cdk_deploy(self, stack: str) -> list[str]:
        return [
            "npx", "cdk", "deploy", stack,
            "--require-approval", "never",
            "--outputs-file", str(self.config.paths.stack_outputs_path),
        ]

    def _amb_env(self, endpoint: str, **extra: Any) -> dict[str, Any]:
        return {"AMB_HTTP_ENDPOINT": endpoint, **self.credentials.as_env(), **extra}

    # =========================================================================
    # Step bodies
    # =========================================================================

    async def check_dependencies(self, ctx: StepContext) -> None:
        """Install the CDK CLI globally unless it is already on PATH."""
        try:
            await self.runner.run(["cdk", "--version"])
            self._logger.info("dependency_found", binary="cdk")
        except ProcessFailedError:
            self._logger.info("dependency_missing", binary="cdk", install="npm install -g aws-cdk")
            await self.runner.run(["npm", "install", "-g", "aws-cdk"])

    async def create_account(self, ctx: StepContext) -> dict[str, Any]:
        """Generate an Ethereum account and keep its address and key."""
        result = await self.runner.run(
            ["npx", "hardhat", "account"],
            cwd=self.config.paths.contract_path,
        )
        address = ETHEREUM_ADDRESS.extract(result.stdout)
        private_key = PRIVATE_KEY.extract(result.stdout)
        self._logger.info("account_created", address=address)
        return {"address": address, "privateKey": private_key}

    async def deploy_blockchain_node(self, ctx: StepContext) -> dict[str, Any]:
        """Provision the Managed Blockchain node stack."""
        await self.gate.acknowledge(NODE_DEPLOY_PROMPT)
        provision = self.config.paths.provision_path
        await self.runner.run(["npx", "cdk", "bootstrap"], cwd=provision)
        await self.runner.run(
            self._cdk_deploy(self.config.stacks.blockchain_node),
            cwd=provision,
        )
        return self.stack_outputs.select(self.config.stacks.blockchain_node, NODE_OUTPUTS)

    async def compile_contract(self, ctx: StepContext) -> None:
        await self.runner.run(
            ["npx", "hardhat", "compile"],
            cwd=self.config.paths.contract_path,
        )

    async def prompt_for_ether(self, ctx: StepContext) -> None:
        """Ask the operator to fund the account from a faucet."""
        address = await ctx.require("address")
        await self.gate.acknowledge(
            FUND_ACCOUNT_PROMPT.format(faucet_url=self.config.faucet_url, address=address)
        )

    async def wait_for_ether(self, ctx: StepContext) -> None:
        """Block until the account balance is non-zero."""
        values = await ctx.require_all("address", "ambEndpoint")
        await self.runner.run(
            ["node", "scripts/wait-for-balance.js"],
            cwd=self.config.paths.contract_path,
            env=self._amb_env(values["ambEndpoint"], CONTRACT_ADDRESS=values["address"]),
        )

    async def deploy_contract(self, ctx: StepContext) -> dict[str, Any]:
        """Deploy the NFT contract and keep its address."""
        values = await ctx.require_all("privateKey", "ambEndpoint")
        result = await self.runner.run(
            ["npx", "hardhat", "run", "--network", "amb", "scripts/deploy-amb.js"],
            cwd=self.config.paths.contract_path,
            env=self._amb_env(values["ambEndpoint"], PRIVATE_KEY=values["privateKey"]),
        )
        contract_address = CONTRACT_ADDRESS.extract(result.stdout)
        self._logger.info("contract_deployed", contract_address=contract_address)
        return {"contractAddress": contract_address}

    async def deploy_api(self, ctx: StepContext) -> dict[str, Any]:
        """Provision the API stack wired to the deployed contract."""
        values = await ctx.require_all("contractAddress", "ambEndpoint")
        await self.runner.run(
            self._cdk_deploy(self.config.stacks.api),
            cwd=self.config.paths.provision_path,
            env={
                "AMB_HTTP_ENDPOINT": values["ambEndpoint"],
                "CONTRACT_ADDRESS": values["contractAddress"],
            },
        )
        return self.stack_outputs.select(self.config.stacks.api, API_OUTPUTS)

    async def write_frontend_config(self, ctx: StepContext) -> None:
        self.materializer.write(await ctx.snapshot())
