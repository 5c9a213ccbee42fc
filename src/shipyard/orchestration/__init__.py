"""
shipyard.orchestration - Pipeline Engine
==========================================

The idempotent pipeline engine:

    - settings_store:  SettingsStore ABC, JsonFileSettingsStore, InMemorySettingsStore
    - step_registry:   StepRegistry (ordered, contract-checked steps)
    - context:         StepContext (per-step read access to settings)
    - pipeline:        Pipeline (sequential, resumable driver loop)
    - progress:        ProgressReporter (operator banners)
"""

from shipyard.orchestration.context import StepContext
from shipyard.orchestration.pipeline import Pipeline
from shipyard.orchestration.progress import ProgressReporter
from shipyard.orchestration.settings_store import (
    InMemorySettingsStore,
    JsonFileSettingsStore,
    SettingsStore,
)
from shipyard.orchestration.step_registry import StepRegistry

__all__ = [
    "Pipeline",
    "StepRegistry",
    "StepContext",
    "ProgressReporter",
    "SettingsStore",
    "JsonFileSettingsStore",
    "InMemorySettingsStore",
]
