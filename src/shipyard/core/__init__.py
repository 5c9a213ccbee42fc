"""
shipyard.core - Foundation Layer
==================================

Plain data structures and configuration shared by every other layer:

    - config:      ShipyardConfig, PathsConfig, StackNames, load_config
    - enums:       StepKind, StepStatus
    - models:      StepDefinition, ProcessResult, StepOutcome, PipelineReport
    - exceptions:  ShipyardError hierarchy
    - settings:    settings document codec and MarketplaceSettings view
    - log_setup:   structlog configuration

Dependency Rule:
    core/ depends on NOTHING else in the shipyard package.
"""

from shipyard.core.config import PathsConfig, ShipyardConfig, StackNames, load_config
from shipyard.core.enums import StepKind, StepStatus
from shipyard.core.exceptions import (
    ConfigurationError,
    ExtractionError,
    MissingSettingError,
    PipelineDefinitionError,
    PipelineError,
    ProcessFailedError,
    SettingsError,
    SettingsReadError,
    SettingsWriteError,
    ShipyardError,
    StackOutputError,
    StepContractError,
)
from shipyard.core.models import (
    PipelineReport,
    ProcessResult,
    StepDefinition,
    StepOutcome,
)
from shipyard.core.settings import MarketplaceSettings

__all__ = [
    # Config
    "ShipyardConfig",
    "PathsConfig",
    "StackNames",
    "load_config",
    # Enums
    "StepKind",
    "StepStatus",
    # Models
    "StepDefinition",
    "ProcessResult",
    "StepOutcome",
    "PipelineReport",
    "MarketplaceSettings",
    # Exceptions
    "ShipyardError",
    "ConfigurationError",
    "SettingsError",
    "SettingsReadError",
    "SettingsWriteError",
    "ProcessFailedError",
    "ExtractionError",
    "MissingSettingError",
    "StackOutputError",
    "PipelineError",
    "PipelineDefinitionError",
    "StepContractError",
]
