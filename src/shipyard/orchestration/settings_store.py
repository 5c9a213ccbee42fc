"""
shipyard.orchestration.settings_store - Persistent Settings Storage
=====================================================================

The settings store is the pipeline's only durable state: a flat JSON
document mapping string keys to JSON values. It holds two kinds of entry:

    - completion markers:  "<stepName>": true        (RUN_ONCE steps)
    - extracted values:    "address": "0x...", ...   (step outputs)

Architecture:
    ┌──────────────┐   get / update   ┌───────────────────┐    JSON    ┌──────────────────────┐
    │   Pipeline    │ ───────────────→ │   SettingsStore   │ ─────────→ │ deploy-settings.json │
    │  StepContext  │ ←─────────────── │                   │ ←───────── │                      │
    └──────────────┘      values       └───────────────────┘  re-read   └──────────────────────┘

Read Semantics:
    Every lookup re-reads the whole document. There is no in-memory cache,
    so edits made to the file between (or during) runs are always seen.
    A missing document, an empty file, or malformed content all read as
    the empty document; none of them is an error.

Write Semantics:
    Writes are read-modify-write of the whole document, committed through a
    temporary file and os.replace so an interrupted write never leaves a
    half-written document behind. They are not safe under concurrent
    writers; the pipeline guarantees a single writer by running steps
    sequentially.

Implementations:
    - SettingsStore (ABC):      Abstract interface
    - JsonFileSettingsStore:    JSON file on disk (production)
    - InMemorySettingsStore:    Dict-based for tests and dry runs
"""

from __future__ import annotations

import copy
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog

from shipyard.core.exceptions import SettingsReadError
from shipyard.core.settings import decode_settings, encode_settings


logger = structlog.get_logger()


# =============================================================================
# Abstract Base Class: SettingsStore
# =============================================================================
class SettingsStore(ABC):
    """Abstract base class for settings persistence.

    Components should type-hint against this ABC. All methods are async so
    the pipeline can await them the same way it awaits step bodies.

    Example:
        >>> async def remember_address(store: SettingsStore, address: str):
        ...     await store.set("address", address)
        ...     assert await store.get("address") == address
    """

    @abstractmethod
    async def ensure_exists(self) -> None:
        """Create an empty document if none exists yet."""

    @abstractmethod
    async def snapshot(self) -> dict[str, Any]:
        """Return a copy of the whole document.

        Returns:
            The current settings mapping. Empty if the document is missing
            or unreadable.
        """

    @abstractmethod
    async def update(self, values: Mapping[str, Any]) -> None:
        """Merge ``values`` into the document in a single write.

        Args:
            values: Keys to set. Existing keys not mentioned are preserved.

        Raises:
            SettingsWriteError: If a value is not JSON-serializable.
        """

    async def get(self, key: str, default: Any = None) -> Any:
        """Look up one key, re-reading the document.

        Args:
            key: Settings key.
            default: Returned when the key is absent.

        Returns:
            The stored value, or ``default``.
        """
        return (await self.snapshot()).get(key, default)

    async def contains(self, key: str) -> bool:
        return key in await self.snapshot()

    async def set(self, key: str, value: Any) -> None:
        """Set one key, preserving every other entry."""
        await self.update({key: value})


# =============================================================================
# JsonFileSettingsStore
# =============================================================================
class JsonFileSettingsStore(SettingsStore):
    """Settings store backed by a JSON file.

    Attributes:
        path: Location of the settings document.

    Example:
        >>> store = JsonFileSettingsStore(Path("deploy-settings.json"))
        >>> await store.set("region", "us-east-1")
        >>> await JsonFileSettingsStore(Path("deploy-settings.json")).get("region")
        'us-east-1'
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._logger = logger.bind(component="settings_store", path=str(self.path))

    async def ensure_exists(self) -> None:
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write_text(encode_settings({}, path=str(self.path)))
        self._logger.debug("settings_created")

    async def snapshot(self) -> dict[str, Any]:
        await self.ensure_exists()
        return self._load()

    async def update(self, values: Mapping[str, Any]) -> None:
        await self.ensure_exists()
        document = self._load()
        document.update(values)
        self._write_text(encode_settings(document, path=str(self.path)))
        self._logger.debug("settings_updated", keys=sorted(values))

    # -------------------------------------------------------------------------
    # Internal Helpers
    # -------------------------------------------------------------------------
    def _load(self) -> dict[str, Any]:
        """Read and decode the document, treating any failure as empty."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            self._logger.warning("settings_unreadable", error=str(e))
            return {}

        try:
            return decode_settings(text, path=str(self.path))
        except SettingsReadError as e:
            self._logger.warning(
                "settings_unreadable",
                error=e.message,
                error_code=e.error_code,
            )
            return {}

    def _write_text(self, text: str) -> None:
        """Atomically replace the document with ``text``."""
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            dir=str(self.path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


# =============================================================================
# InMemorySettingsStore
# =============================================================================
class InMemorySettingsStore(SettingsStore):
    """In-memory settings store for tests and dry runs.

    Values are deep-copied on the way in and out and checked for JSON
    serializability, so tests see the same behavior as the file store.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._document: dict[str, Any] = copy.deepcopy(dict(initial or {}))
        self.write_count = 0

    async def ensure_exists(self) -> None:
        return None

    async def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._document)

    async def update(self, values: Mapping[str, Any]) -> None:
        merged = {**self._document, **values}
        encode_settings(merged)
        self._document = copy.deepcopy(merged)
        self.write_count += 1
        logger.debug("settings_updated", component="settings_store", keys=sorted(values))
