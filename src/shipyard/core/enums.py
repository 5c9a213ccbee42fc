"""
shipyard.core.enums - Type-Safe Enumerations
==============================================

Enumerations shared by the pipeline engine and the deploy steps.

Both enums inherit from ``str`` and ``Enum`` so they serialize to plain
strings in logs and reports, and compare equal to their string values:

    >>> StepKind.RUN_ONCE == "run_once"
    True
"""

from enum import Enum


# =============================================================================
# Step Kind
# =============================================================================
# The idempotency class of a step. It decides whether the pipeline consults
# and writes a completion marker for the step:
#
#   RUN_ONCE   → skipped on resume once its marker is in the settings file
#   ALWAYS_RUN → executed on every invocation, never marked
# =============================================================================
class StepKind(str, Enum):
    """Idempotency class of a pipeline step.

    ``RUN_ONCE`` steps are idempotent-by-skip: once they complete, the
    pipeline records a boolean marker under the step name and never runs
    them again. ``ALWAYS_RUN`` steps are idempotent at the target system
    (a provisioning tool that no-ops when nothing changed, a prompt, a
    config render) and run every time.
    """

    RUN_ONCE = "run_once"
    ALWAYS_RUN = "always_run"


# =============================================================================
# Step Status
# =============================================================================
# Per-step state machine, transitioned strictly in registration order:
#
#   PENDING → SKIPPED                  (RUN_ONCE with marker present)
#   PENDING → RUNNING → COMPLETED
#                     ↘ FAILED         (aborts the whole pipeline)
# =============================================================================
class StepStatus(str, Enum):
    """Lifecycle state of a step within one pipeline run."""

    PENDING = "pending"         # Not yet reached in this run
    SKIPPED = "skipped"         # RUN_ONCE step already completed in an earlier run
    RUNNING = "running"         # Body is executing
    COMPLETED = "completed"     # Body finished and its writes are committed
    FAILED = "failed"           # Body raised; the pipeline stops here

    @property
    def is_terminal(self) -> bool:
        """Whether the step has reached a final state for this run."""
        return self in (StepStatus.SKIPPED, StepStatus.COMPLETED, StepStatus.FAILED)
