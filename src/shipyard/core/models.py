"""
shipyard.core.models - Core Data Models
=========================================

Pydantic models that flow between the pipeline engine, the process runner
and the CLI.

Model Overview:
    StepDefinition  → What is a unit of work? (name, kind, contract, body)
    ProcessResult   → What did an external command do? (exit code, streams)
    StepOutcome     → What happened to one step in one run?
    PipelineReport  → What happened in one whole run?

Data Flow:
    ┌──────────────┐  StepDefinition   ┌──────────────┐
    │ StepRegistry │ ────────────────→ │   Pipeline   │
    └──────────────┘                   │  (driver)    │
                                       └──────┬───────┘
                        StepContext ↓         │ StepOutcome
                       ┌──────────────┐       ↓
                       │  step body   │  ┌──────────────┐
                       │ ProcessResult│  │PipelineReport│ → CLI summary
                       └──────────────┘  └──────────────┘

Design Principles:
    1. StepDefinition is frozen: steps are immutable once defined
    2. Step bodies never write to the store; they return their writes
    3. Reports are in-memory only; the settings document is the only
       durable state
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shipyard.core.enums import StepKind, StepStatus


# =============================================================================
# Helpers
# =============================================================================
def _generate_run_id() -> str:
    """Generate a unique pipeline run identifier."""
    return f"run-{uuid4()}"


def _now() -> datetime:
    """Get the current UTC timestamp."""
    return datetime.now(timezone.utc)


# A step body receives the StepContext for its step and returns the
# settings it wants committed (or None when it writes nothing). The context
# type lives in the orchestration layer, so it is left as Any here to keep
# core free of upward imports.
StepBody = Callable[[Any], Awaitable[Optional[Mapping[str, Any]]]]


# =============================================================================
# Step Definition
# =============================================================================
# A step descriptor: the data-driven replacement for "a closure wrapped in
# runOnce()". The explicit requires/produces contract lets StepRegistry check
# at startup that every value a step reads is written by an earlier step.
# =============================================================================
class StepDefinition(BaseModel):
    """Immutable description of one pipeline step.

    Attributes:
        name: Unique step name. Used as the log label and as the key of the
            step's completion marker in the settings document.
        kind: RUN_ONCE (skip on resume) or ALWAYS_RUN (execute every time).
        body: Async callable taking a StepContext and returning the step's
            writes (a mapping of settings key → JSON value) or None.
        requires: Settings keys the body reads. Checked against earlier
            steps' ``produces`` at registration, and against the store
            before the body runs.
        produces: Settings keys the body returns. The returned mapping must
            contain exactly these keys.
        title: Human-readable label for operator banners. Defaults to name.
        description: Longer explanation shown by ``shipyard status``.

    Example:
        >>> async def compile_contract(ctx):
        ...     await runner.run("npx hardhat compile", cwd=contract_dir)
        >>> step = StepDefinition(
        ...     name="compileContract",
        ...     kind=StepKind.RUN_ONCE,
        ...     body=compile_contract,
        ...     title="Compile Contract",
        ... )
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(min_length=1, description="Unique step name / marker key")
    kind: StepKind = Field(default=StepKind.RUN_ONCE, description="Idempotency class")
    body: StepBody = Field(description="Async step body")
    requires: frozenset[str] = Field(
        default_factory=frozenset,
        description="Settings keys read by the body",
    )
    produces: frozenset[str] = Field(
        default_factory=frozenset,
        description="Settings keys written by the body",
    )
    title: str = Field(default="", description="Banner label")
    description: str = Field(default="", description="Longer explanation")

    @model_validator(mode="after")
    def _check_contract(self) -> StepDefinition:
        if self.name in self.produces:
            raise ValueError(
                f"Step {self.name!r} cannot produce its own completion marker key"
            )
        overlap = self.requires & self.produces
        if overlap:
            raise ValueError(
                f"Step {self.name!r} both requires and produces: {sorted(overlap)}"
            )
        return self

    @property
    def label(self) -> str:
        """Banner label: the title if set, otherwise the name."""
        return self.title or self.name

    @property
    def run_once(self) -> bool:
        return self.kind == StepKind.RUN_ONCE


# =============================================================================
# Process Result
# =============================================================================
class ProcessResult(BaseModel):
    """Captured outcome of one external command.

    Ephemeral: only values extracted from ``stdout`` are ever persisted.

    Attributes:
        command: The argv that was executed.
        exit_code: Process exit status.
        stdout: Everything written to stdout, decoded as UTF-8.
        stderr: Everything written to stderr, decoded as UTF-8.
        duration_seconds: Wall-clock run time.
    """

    command: list[str] = Field(description="Executed argv")
    exit_code: int = Field(description="Process exit status")
    stdout: str = Field(default="", description="Captured stdout")
    stderr: str = Field(default="", description="Captured stderr")
    duration_seconds: float = Field(default=0.0, ge=0, description="Run time")

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


# =============================================================================
# Step Outcome
# =============================================================================
class StepOutcome(BaseModel):
    """What happened to one step during one pipeline run.

    Attributes:
        name: Step name.
        kind: Step idempotency class.
        status: Final status for this run (SKIPPED, COMPLETED or FAILED).
        written_keys: Settings keys committed by the step (values are not
            kept here; they may be secrets).
        error_type: Exception class name when FAILED.
        error_message: Exception message when FAILED.
        started_at: When the step started (None for skipped steps).
        completed_at: When the step finished.
    """

    name: str
    kind: StepKind
    status: StepStatus = StepStatus.PENDING
    written_keys: list[str] = Field(default_factory=list)
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


# =============================================================================
# Pipeline Report
# =============================================================================
class PipelineReport(BaseModel):
    """Summary of one pipeline run.

    Attributes:
        run_id: Unique identifier for log correlation.
        status: RUNNING while in progress, then COMPLETED or FAILED.
        outcomes: One StepOutcome per step reached, in order.
        started_at: When the run started.
        completed_at: When the run finished (success or failure).
    """

    run_id: str = Field(default_factory=_generate_run_id)
    status: StepStatus = StepStatus.RUNNING
    outcomes: list[StepOutcome] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_now)
    completed_at: Optional[datetime] = None

    def _names_with(self, status: StepStatus) -> list[str]:
        return [o.name for o in self.outcomes if o.status == status]

    @property
    def executed(self) -> list[str]:
        """Steps whose body ran to completion in this run."""
        return self._names_with(StepStatus.COMPLETED)

    @property
    def skipped(self) -> list[str]:
        """RUN_ONCE steps skipped because an earlier run completed them."""
        return self._names_with(StepStatus.SKIPPED)

    @property
    def failed_step(self) -> Optional[str]:
        failed = self._names_with(StepStatus.FAILED)
        return failed[0] if failed else None
