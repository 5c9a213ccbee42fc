"""
shipyard.facade - Shipyard Top-Level Facade
=============================================

The single entry point that wires configuration, the settings store, the
external collaborators and the marketplace steps into a runnable Pipeline.

Architecture Context:
    ┌──────────────────────────────────────────────────┐
    │               Shipyard (Facade)                  │
    │                                                  │
    │  ┌────────────────────────────────────────────┐  │
    │  │         Deploy Layer                       │  │
    │  │  MarketplaceSteps, build_marketplace_...   │  │
    │  └─────────────────────┬──────────────────────┘  │
    │                        │                         │
    │  ┌─────────────────────▼──────────────────────┐  │
    │  │         Orchestration Layer                │  │
    │  │  Pipeline, StepRegistry, SettingsStore     │  │
    │  └─────────────────────┬──────────────────────┘  │
    │                        │                         │
    │  ┌─────────────────────▼──────────────────────┐  │
    │  │         Infrastructure Layer               │  │
    │  │  ProcessRunner, InteractiveGate, ...       │  │
    │  └────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────┘

Usage:
    >>> from shipyard.facade import Shipyard
    >>> from shipyard.core.config import load_config
    >>>
    >>> shipyard = Shipyard(load_config())
    >>> report = await shipyard.deploy()
    >>> report.executed
"""

from __future__ import annotations

from typing import Optional

import structlog

from shipyard.core.config import ShipyardConfig
from shipyard.core.models import PipelineReport, StepDefinition
from shipyard.core.settings import MarketplaceSettings
from shipyard.deploy.pipeline import build_marketplace_registry
from shipyard.deploy.steps import MarketplaceSteps
from shipyard.infrastructure.credentials import AwsCredentials, load_shared_credentials
from shipyard.infrastructure.gate import InteractiveGate
from shipyard.infrastructure.process_runner import ProcessRunner
from shipyard.orchestration.pipeline import Pipeline
from shipyard.orchestration.progress import ProgressReporter
from shipyard.orchestration.settings_store import JsonFileSettingsStore, SettingsStore


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


class Shipyard:
    """Top-level facade for deploying the Simple NFT Marketplace.

    Every collaborator can be injected; anything left out is built from
    the configuration. Tests inject a scripted runner, a stub gate and an
    in-memory store.

    Attributes:
        _config: Shipyard configuration.
        _store: Settings document (defaults to the JSON file in paths).
        _runner: External command runner.
        _gate: Operator checkpoints.
        _reporter: Banner printer.
        _credentials: AWS keys for the blockchain commands. Loaded lazily
            from the shared credentials file on first build.
        _pipeline: The most recently built Pipeline.

    Example:
        >>> shipyard = Shipyard(config, store=InMemorySettingsStore())
        >>> report = await shipyard.deploy()
    """

    def __init__(
        self,
        config: Optional[ShipyardConfig] = None,
        *,
        store: Optional[SettingsStore] = None,
        runner: Optional[ProcessRunner] = None,
        gate: Optional[InteractiveGate] = None,
        reporter: Optional[ProgressReporter] = None,
        credentials: Optional[AwsCredentials] = None,
    ) -> None:
        self._config = config or ShipyardConfig()
        self._store = store or JsonFileSettingsStore(self._config.paths.settings_path)
        self._runner = runner or ProcessRunner()
        self._gate = gate or InteractiveGate()
        self._reporter = reporter or ProgressReporter()
        self._credentials = credentials
        self._pipeline: Optional[Pipeline] = None
        self._logger = logger.bind(component="shipyard")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> ShipyardConfig:
        return self._config

    @property
    def store(self) -> SettingsStore:
        return self._store

    @property
    def last_report(self) -> Optional[PipelineReport]:
        """Report of the latest run; None if no pipeline has been built."""
        return self._pipeline.last_report if self._pipeline else None

    @property
    def pipeline(self) -> Pipeline:
        """The marketplace Pipeline, built on first access."""
        if self._pipeline is None:
            self._pipeline = self.build_pipeline()
        return self._pipeline

    # =========================================================================
    # Wiring
    # =========================================================================

    def _load_credentials(self) -> AwsCredentials:
        if self._credentials is None:
            self._credentials = load_shared_credentials(
                path=self._config.aws_credentials_file,
                profile=self._config.aws_profile,
            )
        return self._credentials

    def build_pipeline(self) -> Pipeline:
        """Assemble the marketplace steps into a fresh Pipeline."""
        steps = MarketplaceSteps(
            config=self._config,
            runner=self._runner,
            gate=self._gate,
            credentials=self._load_credentials(),
        )
        registry = build_marketplace_registry(steps)
        return Pipeline(registry, self._store, reporter=self._reporter)

    # =========================================================================
    # Operations
    # =========================================================================

    async def deploy(self) -> PipelineReport:
        """Run the marketplace pipeline, resuming after completed steps.

        Returns:
            The report of a successful run.

        Raises:
            ShipyardError: Or whatever else the failing step raised.
                ``self.last_report`` holds the partial report.
        """
        self._logger.info(
            "deploy_starting",
            root=str(self._config.paths.root),
            settings=str(self._config.paths.settings_path),
        )
        report = await self.pipeline.run()
        self._logger.info("deploy_completed", run_id=report.run_id)
        return report

    async def status(self) -> list[tuple[StepDefinition, bool]]:
        """(step, completed) pairs in execution order."""
        return await self.pipeline.completion_status()

    async def settings(self) -> MarketplaceSettings:
        """Typed view of the current settings document."""
        return MarketplaceSettings.from_document(await self._store.snapshot())

    async def reset(self) -> bool:
        """Delete the settings document so the next deploy starts over.

        Only stores backed by a file can be reset.

        Returns:
            True if a document was deleted.
        """
        if not isinstance(self._store, JsonFileSettingsStore):
            raise TypeError("reset is only supported for file-backed settings")
        path = self._store.path
        if not path.exists():
            return False
        path.unlink()
        self._logger.warning("settings_reset", path=str(path))
        return True
