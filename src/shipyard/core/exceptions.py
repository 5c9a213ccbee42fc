"""
shipyard.core.exceptions - Custom Exception Hierarchy
=======================================================

Structured exceptions for the deployment pipeline. Every error carries a
machine-readable ``error_code`` and a ``details`` dict so the CLI can print
a useful diagnosis and structlog can record it as key-value context.

Exception Hierarchy:
    ShipyardError (base)
        ├── ConfigurationError      - Invalid config file or values
        ├── SettingsError           - Settings document problems
        │     ├── SettingsReadError   (non-fatal: treated as an empty document)
        │     └── SettingsWriteError  (fatal: value could not be persisted)
        ├── ProcessFailedError      - External command exited non-zero
        ├── ExtractionError         - Required token missing from command output
        ├── MissingSettingError     - A step needed a value nothing produced
        ├── StackOutputError        - Provisioning outputs file unusable
        └── PipelineError           - Pipeline definition / step contract problems
              ├── PipelineDefinitionError
              └── StepContractError

Propagation:
    Everything except SettingsReadError is fatal. The pipeline re-raises
    the original exception unmodified; the CLI prints it and exits non-zero.
    There is no automatic retry: the operator re-runs the pipeline, which
    resumes after the last completed RUN_ONCE step.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


# =============================================================================
# Base Exception
# =============================================================================
# All Shipyard exceptions inherit from this base class. This allows the CLI
# to catch every framework-specific error with a single except clause:
#
#   try:
#       await shipyard.deploy()
#   except ShipyardError as e:
#       logger.error(e.message, error_code=e.error_code, details=e.details)
# =============================================================================
class ShipyardError(Exception):
    """Base exception for all Shipyard errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code. Convention: UPPER_SNAKE_CASE
            (e.g., "PROCESS_FAILED", "UNABLE_TO_PARSE_ETHEREUM_ADDRESS").
        details: Additional debugging context (command, key, path, ...).

    Example:
        >>> try:
        ...     run_pipeline()
        ... except ShipyardError as e:
        ...     print(f"[{e.error_code}] {e.message}")
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary for structured logging.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
class ConfigurationError(ShipyardError):
    """Raised when the Shipyard configuration is invalid.

    Common Causes:
        - Malformed YAML in shipyard.yaml
        - Values rejected by ShipyardConfig validation
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Settings Errors
# =============================================================================
# The settings document is the pipeline's only durable state. Reading it is
# deliberately forgiving (a half-written file from an interrupted run must
# not block a re-run), writing it is not.
# =============================================================================
class SettingsError(ShipyardError):
    """Base class for settings document failures.

    Attributes:
        path: Location of the settings document, if file-backed.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: str = "SETTINGS_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if path is not None:
            enriched_details["path"] = path

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.path = path


class SettingsReadError(SettingsError):
    """Raised when the settings document cannot be parsed.

    Never escapes the store: JsonFileSettingsStore logs it and treats the
    document as empty.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: str = "SETTINGS_UNREADABLE",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, path=path, error_code=error_code, details=details)


class SettingsWriteError(SettingsError):
    """Raised when a value cannot be written to the settings document."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: str = "SETTINGS_WRITE_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, path=path, error_code=error_code, details=details)


# =============================================================================
# Process Failed Error
# =============================================================================
# Raised by ProcessRunner when an external tool exits non-zero (or cannot be
# started at all). The captured streams ride along so the operator can see
# what the tool said without scrolling back through the mirrored output.
# =============================================================================
class ProcessFailedError(ShipyardError):
    """Raised when an external command exits with a non-zero status.

    Attributes:
        command: The argv that was executed.
        exit_code: The process exit status (127 if it could not be started).
        stdout: Everything the process wrote to stdout.
        stderr: Everything the process wrote to stderr.

    Example:
        >>> raise ProcessFailedError(
        ...     command=["npx", "hardhat", "compile"],
        ...     exit_code=1,
        ...     stderr="Error HH1: You are not inside a Hardhat project.",
        ... )
    """

    def __init__(
        self,
        command: Sequence[str],
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
        message: Optional[str] = None,
        error_code: str = "PROCESS_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["command"] = list(command)
        enriched_details["exit_code"] = exit_code

        super().__init__(
            message=message or f"Command failed with exit code {exit_code}: {' '.join(command)}",
            error_code=error_code,
            details=enriched_details,
        )

        self.command = list(command)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


# =============================================================================
# Extraction Error
# =============================================================================
class ExtractionError(ShipyardError):
    """Raised when a required token cannot be found in command output.

    The error code names the kind of token, e.g. a ``kind`` of
    "ethereum address" yields ``UNABLE_TO_PARSE_ETHEREUM_ADDRESS``.

    Attributes:
        kind: Human name of the token that was looked for.
        pattern: The regular expression that failed to match.
    """

    def __init__(
        self,
        kind: str,
        pattern: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["kind"] = kind
        enriched_details["pattern"] = pattern

        super().__init__(
            message=f"Unable to parse {kind}",
            error_code="UNABLE_TO_PARSE_" + "_".join(kind.upper().split()),
            details=enriched_details,
        )

        self.kind = kind
        self.pattern = pattern


# =============================================================================
# Missing Setting Error
# =============================================================================
class MissingSettingError(ShipyardError):
    """Raised when a step or renderer needs settings nothing has produced.

    Usually means a step ran out of order or the settings file was edited
    by hand between runs.

    Attributes:
        keys: The missing settings keys.
        step_name: The step that asked for them, if any.
    """

    def __init__(
        self,
        keys: Sequence[str],
        step_name: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["keys"] = list(keys)
        if step_name:
            enriched_details["step"] = step_name

        where = f" (needed by step {step_name!r})" if step_name else ""
        super().__init__(
            message=f"Missing required setting(s): {', '.join(keys)}{where}",
            error_code="MISSING_SETTING",
            details=enriched_details,
        )

        self.keys = list(keys)
        self.step_name = step_name


# =============================================================================
# Stack Output Error
# =============================================================================
class StackOutputError(ShipyardError):
    """Raised when the provisioning outputs document lacks a needed value.

    Attributes:
        path: Location of the stack outputs file.
        stack: Stack name that was looked up, if any.
        key: Output key that was looked up, if any.
    """

    def __init__(
        self,
        message: str,
        path: str,
        stack: Optional[str] = None,
        key: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["path"] = path
        if stack is not None:
            enriched_details["stack"] = stack
        if key is not None:
            enriched_details["key"] = key

        super().__init__(message=message, error_code="STACK_OUTPUT_ERROR", details=enriched_details)

        self.path = path
        self.stack = stack
        self.key = key


# =============================================================================
# Pipeline Errors
# =============================================================================
class PipelineError(ShipyardError):
    """Raised when the pipeline itself is misused.

    Attributes:
        step_name: The step involved, if any.
    """

    def __init__(
        self,
        message: str,
        step_name: Optional[str] = None,
        error_code: str = "PIPELINE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if step_name:
            enriched_details["step"] = step_name

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.step_name = step_name


class PipelineDefinitionError(PipelineError):
    """Raised at registration time when the step sequence is inconsistent.

    Common Causes:
        - Two steps with the same name
        - A step requiring a key that no earlier step produces
        - A produced key colliding with a step's completion marker
    """

    def __init__(
        self,
        message: str,
        step_name: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            step_name=step_name,
            error_code="INVALID_PIPELINE",
            details=details,
        )


class StepContractError(PipelineError):
    """Raised when a step's writes do not match its declared outputs."""

    def __init__(
        self,
        message: str,
        step_name: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            step_name=step_name,
            error_code="STEP_CONTRACT_VIOLATION",
            details=details,
        )
