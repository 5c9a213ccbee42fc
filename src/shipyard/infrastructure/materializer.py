"""
shipyard.infrastructure.materializer - Derived Configuration Output
=====================================================================

Renders final settings values into a configuration file for a downstream
system. For the marketplace that is the front end's ``.env.local``:

    VUE_APP_AWS_REGION=us-east-1
    VUE_APP_API_ENDPOINT=https://abc.execute-api.us-east-1.amazonaws.com/prod/
    VUE_APP_USER_POOL_ID=us-east-1_abc123
    VUE_APP_USER_POOL_WEB_CLIENT_ID=4example

Rendering is a pure function of the values. A value that is missing is an
error, never a blank line the front end would silently accept.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import structlog
from pydantic import BaseModel, ConfigDict, Field

from shipyard.core.exceptions import MissingSettingError
from shipyard.orchestration.settings_store import SettingsStore


logger = structlog.get_logger()


class EnvFileTemplate(BaseModel):
    """Ordered ``KEY=value`` template.

    Attributes:
        entries: (variable name, settings key) pairs, rendered in order.
    """

    model_config = ConfigDict(frozen=True)

    entries: tuple[tuple[str, str], ...] = Field(min_length=1)

    @property
    def settings_keys(self) -> list[str]:
        return [key for _, key in self.entries]


MARKETPLACE_ENV_TEMPLATE = EnvFileTemplate(
    entries=(
        ("VUE_APP_AWS_REGION", "region"),
        ("VUE_APP_API_ENDPOINT", "nftApiEndpoint"),
        ("VUE_APP_USER_POOL_ID", "userPoolId"),
        ("VUE_APP_USER_POOL_WEB_CLIENT_ID", "userPoolClientId"),
    )
)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigMaterializer:
    """Renders a template from settings values and writes it to ``target``."""

    def __init__(self, template: EnvFileTemplate, target: Path) -> None:
        self.template = template
        self.target = Path(target)

    def render(self, values: Mapping[str, Any]) -> str:
        """Render the template.

        Args:
            values: Settings key → value. Extra keys are ignored.

        Returns:
            The file content, one newline-terminated line per entry.

        Raises:
            MissingSettingError: Naming every key that is absent, None or empty.
        """
        missing = [
            key for key in self.template.settings_keys
            if values.get(key) is None or values.get(key) == ""
        ]
        if missing:
            raise MissingSettingError(missing)
        return "".join(
            f"{name}={_format_value(values[key])}\n"
            for name, key in self.template.entries
        )

    async def materialize(self, store: SettingsStore) -> Path:
        """Render from the store's current values and write the target file.

        Returns:
            The path written.
        """
        return self.write(await store.snapshot())

    def write(self, values: Mapping[str, Any]) -> Path:
        """Render ``values`` and write the target file, creating its directory."""
        content = self.render(values)
        self.target.parent.mkdir(parents=True, exist_ok=True)
        self.target.write_text(content, encoding="utf-8")
        logger.info(
            "config_materialized",
            component="config_materializer",
            target=str(self.target),
            keys=self.template.settings_keys,
        )
        return self.target
