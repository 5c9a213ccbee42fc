"""
shipyard.orchestration.pipeline - Idempotent Step Execution
=============================================================

The Pipeline is the driver loop of Shipyard. It runs the registry's steps
strictly in order, skipping RUN_ONCE steps that an earlier invocation has
already completed, so a deploy interrupted at any point resumes from the
step that was running when it stopped.

Architecture Context:
    ┌──────────────────────────────────────────────────────────────────┐
    │                            Pipeline                              │
    │                                                                  │
    │  for step in registry:                                           │
    │    RUN_ONCE and marker set? ──yes──→ SKIPPED                     │
    │          │ no                                                    │
    │          ↓                                                       │
    │    requires present? ──no──→ MissingSettingError ──→ FAILED ──┐  │
    │          │ yes                                                │  │
    │          ↓                                                    │  │
    │    RUNNING: writes = await step.body(ctx) ──raises──→ FAILED ─┤  │
    │          │                                                    │  │
    │          ↓                                                    │  │
    │    writes == produces? ──no──→ StepContractError → FAILED ────┤  │
    │          │ yes                                                │  │
    │          ↓                                                    ↓  │
    │    store.update(writes [+ {name: true}])        re-raise, stop   │
    │    COMPLETED                                                     │
    └──────────────────────────────────────────────────────────────────┘

Commit Rule:
    A step body never writes to the store. Its writes and (for RUN_ONCE)
    its completion marker are committed in one document write after the
    body returns. A step that crashes therefore leaves nothing of its own
    behind, and re-running it starts from exactly the state it saw the
    first time.

Failure Rule:
    The first failure stops the pipeline. The original exception is
    re-raised unmodified, nothing is rolled back, and ``last_report``
    describes every step reached. Re-invoking ``run()`` skips the
    completed RUN_ONCE steps, re-runs ALWAYS_RUN steps, and retries the
    step that failed.

Usage:
    >>> pipeline = Pipeline(registry, JsonFileSettingsStore(path))
    >>> report = await pipeline.run()
    >>> report.executed, report.skipped
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import structlog

from shipyard.core.enums import StepStatus
from shipyard.core.exceptions import MissingSettingError, StepContractError
from shipyard.core.models import PipelineReport, StepDefinition, StepOutcome
from shipyard.orchestration.context import StepContext
from shipyard.orchestration.progress import ProgressReporter
from shipyard.orchestration.settings_store import SettingsStore
from shipyard.orchestration.step_registry import StepRegistry


# =============================================================================
# Logger Setup
# =============================================================================
logger = structlog.get_logger()


class Pipeline:
    """Sequential, resumable step executor.

    The Pipeline does NOT contain any deployment logic. It only decides
    which steps run, hands each one a StepContext, and commits what they
    return. The work is done by the step bodies.

    Attributes:
        _registry: Ordered steps to execute.
        _store: Durable settings document.
        _reporter: Operator banners (stdout).
        _last_report: Report of the most recent run, including failed runs.
        _logger: Structured logger with pipeline context.

    Example:
        >>> pipeline = Pipeline(registry, store)
        >>> try:
        ...     report = await pipeline.run()
        ... except ShipyardError:
        ...     print(pipeline.last_report.failed_step)
        ...     raise
    """

    def __init__(
        self,
        registry: StepRegistry,
        store: SettingsStore,
        reporter: Optional[ProgressReporter] = None,
    ) -> None:
        """Initialize the Pipeline.

        Args:
            registry: The validated, ordered steps.
            store: Where completion markers and step outputs are persisted.
            reporter: Banner printer. Defaults to a non-quiet reporter.
        """
        self._registry = registry
        self._store = store
        self._reporter = reporter or ProgressReporter()
        self._last_report: Optional[PipelineReport] = None
        self._logger = logger.bind(component="pipeline")

    @property
    def registry(self) -> StepRegistry:
        return self._registry

    @property
    def last_report(self) -> Optional[PipelineReport]:
        return self._last_report

    # =========================================================================
    # Main Entry Point
    # =========================================================================

    async def run(self) -> PipelineReport:
        """Execute every step in order, resuming after completed RUN_ONCE steps.

        Returns:
            The PipelineReport for this run (status COMPLETED).

        Raises:
            Exception: Whatever the failing step raised, unmodified. The
                partial report is available as ``last_report``.
        """
        report = PipelineReport()
        self._last_report = report
        log = self._logger.bind(run_id=report.run_id)

        await self._store.ensure_exists()
        log.info("pipeline_starting", steps=[s.name for s in self._registry])

        for step in self._registry:
            outcome = StepOutcome(name=step.name, kind=step.kind)
            report.outcomes.append(outcome)

            if step.run_once and await self._store.get(step.name):
                outcome.status = StepStatus.SKIPPED
                log.info("step_skipped", step=step.name)
                self._reporter.step_skipped(step)
                continue

            try:
                await self._execute_step(step, outcome, log)
            except BaseException as e:
                outcome.status = StepStatus.FAILED
                outcome.completed_at = datetime.now(timezone.utc)
                outcome.error_type = type(e).__name__
                outcome.error_message = str(e)
                report.status = StepStatus.FAILED
                report.completed_at = outcome.completed_at
                log.error(
                    "step_failed",
                    step=step.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

        report.status = StepStatus.COMPLETED
        report.completed_at = datetime.now(timezone.utc)
        log.info(
            "pipeline_completed",
            executed=report.executed,
            skipped=report.skipped,
        )
        return report

    # =========================================================================
    # Step Execution
    # =========================================================================

    async def _execute_step(
        self,
        step: StepDefinition,
        outcome: StepOutcome,
        log: Any,
    ) -> None:
        """Run one step body and commit its writes.

        Args:
            step: The step to run.
            outcome: Mutated in place as the step progresses.
            log: Run-bound logger.
        """
        await self._check_requirements(step)

        outcome.status = StepStatus.RUNNING
        outcome.started_at = datetime.now(timezone.utc)
        log.info("step_starting", step=step.name, kind=step.kind.value)
        self._reporter.step_started(step)

        writes = dict(await step.body(StepContext(step, self._store)) or {})
        self._check_writes(step, writes)

        commit = dict(writes)
        if step.run_once:
            commit[step.name] = True
        if commit:
            await self._store.update(commit)

        outcome.status = StepStatus.COMPLETED
        outcome.completed_at = datetime.now(timezone.utc)
        outcome.written_keys = sorted(writes)
        log.info(
            "step_completed",
            step=step.name,
            written=outcome.written_keys,
            duration_seconds=outcome.duration_seconds,
        )
        self._reporter.step_completed(step)

    async def _check_requirements(self, step: StepDefinition) -> None:
        """Fail before the body runs if any required key is absent.

        Raises:
            MissingSettingError: Listing every absent key.
        """
        if not step.requires:
            return
        document = await self._store.snapshot()
        missing = sorted(k for k in step.requires if document.get(k) is None)
        if missing:
            raise MissingSettingError(missing, step_name=step.name)

    @staticmethod
    def _check_writes(step: StepDefinition, writes: Mapping[str, Any]) -> None:
        """Verify the body returned exactly its declared outputs.

        Raises:
            StepContractError: On undeclared or missing outputs.
        """
        undeclared = sorted(set(writes) - step.produces)
        missing = sorted(step.produces - set(writes))
        if undeclared or missing:
            raise StepContractError(
                message=(
                    f"Step {step.name!r} returned writes that do not match its "
                    f"declared outputs (undeclared: {undeclared}, missing: {missing})"
                ),
                step_name=step.name,
                details={"undeclared": undeclared, "missing": missing},
            )

    # =========================================================================
    # Status
    # =========================================================================

    async def completion_status(self) -> list[tuple[StepDefinition, bool]]:
        """Report which RUN_ONCE steps carry a completion marker.

        ALWAYS_RUN steps are never marked and always report False.

        Returns:
            (step, completed) pairs in execution order.
        """
        document = await self._store.snapshot()
        return [
            (step, bool(step.run_once and document.get(step.name)))
            for step in self._registry
        ]
