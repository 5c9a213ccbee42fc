"""
shipyard.orchestration.context - Per-Step Execution Context
=============================================================

A StepContext is handed to each step body. It is the body's only view of
the settings document: reads go through it (by key, always re-read from
the store), writes do not. Bodies return their writes and the pipeline
commits them together with the completion marker.
"""

from __future__ import annotations

from typing import Any

from shipyard.core.exceptions import MissingSettingError
from shipyard.core.models import StepDefinition
from shipyard.orchestration.settings_store import SettingsStore


_MISSING = object()


class StepContext:
    """Read access to the settings document for one running step.

    Example:
        >>> async def deploy_contract(ctx: StepContext):
        ...     values = await ctx.require_all("privateKey", "ambEndpoint")
        ...     ...
        ...     return {"contractAddress": address}
    """

    def __init__(self, step: StepDefinition, store: SettingsStore) -> None:
        self.step = step
        self._store = store

    @property
    def step_name(self) -> str:
        return self.step.name

    async def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for ``key``, or ``default`` if absent."""
        return await self._store.get(key, default)

    async def require(self, key: str) -> Any:
        """Return the stored value for ``key``.

        Raises:
            MissingSettingError: If the key is absent or None.
        """
        value = await self._store.get(key, _MISSING)
        if value is _MISSING or value is None:
            raise MissingSettingError([key], step_name=self.step.name)
        return value

    async def require_all(self, *keys: str) -> dict[str, Any]:
        """Return the stored values for all ``keys`` from one snapshot.

        Raises:
            MissingSettingError: Naming every absent key, not just the first.
        """
        document = await self._store.snapshot()
        missing = [k for k in keys if document.get(k) is None]
        if missing:
            raise MissingSettingError(missing, step_name=self.step.name)
        return {k: document[k] for k in keys}

    async def snapshot(self) -> dict[str, Any]:
        """Return a copy of the whole settings document."""
        return await self._store.snapshot()
