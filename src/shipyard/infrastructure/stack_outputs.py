"""
shipyard.infrastructure.stack_outputs - CDK Stack Output Reader
=================================================================

``cdk deploy --outputs-file`` writes the outputs of every deployed stack:

    {
      "SimpleNftMarketplaceBlockchainNode": {
        "AmbHttpEndpoint": "nd-xxxx.ethereum.managedblockchain...",
        "DeployRegion": "us-east-1"
      },
      "SimpleNftMarketplaceStack": {
        "UserPoolId": "us-east-1_abc123", ...
      }
    }

The pipeline only reads this document. Selected values are copied into
the settings document by returning them as step writes.

Unlike the settings document, a missing or malformed outputs file is an
error: the provisioning command that should have written it just
reported success.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import structlog

from shipyard.core.exceptions import StackOutputError


logger = structlog.get_logger()


class StackOutputs:
    """Read-only accessor for a CDK outputs file.

    Args:
        path: Location of the outputs file. Re-read on every call.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> dict[str, Any]:
        """Load the whole outputs document.

        Raises:
            StackOutputError: If the file is missing, unreadable, or not a
                JSON object.
        """
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise StackOutputError(
                message=f"Stack outputs file not found: {self.path}",
                path=str(self.path),
            ) from e
        except (OSError, json.JSONDecodeError) as e:
            raise StackOutputError(
                message=f"Failed to read stack outputs from {self.path}: {e}",
                path=str(self.path),
            ) from e
        if not isinstance(data, dict):
            raise StackOutputError(
                message=f"Stack outputs file {self.path} must contain a JSON object",
                path=str(self.path),
            )
        return data

    def get(self, stack: str, key: str) -> Any:
        """Return one output value.

        Raises:
            StackOutputError: If the stack or the key is absent.
        """
        outputs = self.read()
        stack_outputs = outputs.get(stack)
        if not isinstance(stack_outputs, dict):
            raise StackOutputError(
                message=f"Stack {stack!r} not found in {self.path}",
                path=str(self.path),
                stack=stack,
            )
        if key not in stack_outputs:
            raise StackOutputError(
                message=f"Output {key!r} not found for stack {stack!r}",
                path=str(self.path),
                stack=stack,
                key=key,
            )
        return stack_outputs[key]

    def select(self, stack: str, mapping: Mapping[str, str]) -> dict[str, Any]:
        """Copy several outputs of one stack under new names.

        Args:
            stack: Stack name.
            mapping: Output key → settings key.

        Returns:
            Settings key → output value, ready to return as step writes.
        """
        selected = {
            settings_key: self.get(stack, output_key)
            for output_key, settings_key in mapping.items()
        }
        logger.debug(
            "stack_outputs_selected",
            component="stack_outputs",
            stack=stack,
            keys=sorted(selected),
        )
        return selected
