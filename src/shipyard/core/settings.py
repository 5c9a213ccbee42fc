"""
shipyard.core.settings - Settings Document Codec
==================================================

The settings document is a flat JSON object shared by every step:

    {
      "checkDependencies": true,          ← completion marker (RUN_ONCE step)
      "createAccount": true,
      "address": "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4",
      "privateKey": "0x...",
      "ambEndpoint": "nd-xxxx.ethereum.managedblockchain.us-east-1.amazonaws.com",
      "region": "us-east-1",
      ...
    }

All conversion between bytes on disk and Python values goes through
``decode_settings`` / ``encode_settings`` so that "absent" and "malformed"
collapse into one well-defined result: the empty document.

``MarketplaceSettings`` is a typed, read-only view over the same document
for code that wants attribute access instead of string keys. Every field is
optional because each one only exists once the step that produces it has
run; unknown keys (markers, values from custom steps) are preserved.
Values are not type-checked: a hand-edited document may hold any JSON
value under a known key, and the view shows it as it is.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from shipyard.core.exceptions import SettingsReadError, SettingsWriteError


def decode_settings(text: str, path: Optional[str] = None) -> dict[str, Any]:
    """Parse the raw settings document.

    Args:
        text: File contents. Blank content is an empty document.
        path: Source path, for error context only.

    Returns:
        The settings mapping.

    Raises:
        SettingsReadError: If the content is not a JSON object.
    """
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SettingsReadError(
            message=f"Settings document is not valid JSON: {e.msg}",
            path=path,
            details={"line": e.lineno, "column": e.colno},
        ) from e
    if not isinstance(data, dict):
        raise SettingsReadError(
            message=f"Settings document must be a JSON object, got {type(data).__name__}",
            path=path,
        )
    return data


def encode_settings(settings: Mapping[str, Any], path: Optional[str] = None) -> str:
    """Serialize the settings mapping.

    Raises:
        SettingsWriteError: If a value is not JSON-serializable, including NaN
            and infinite floats.
    """
    try:
        return json.dumps(dict(settings), indent=2, allow_nan=False) + "\n"
    except (TypeError, ValueError) as e:
        raise SettingsWriteError(
            message=f"Settings value is not JSON-serializable: {e}",
            path=path,
        ) from e


# =============================================================================
# Typed View
# =============================================================================
# Field aliases are the on-disk key names, which stay camelCase so settings
# files written by earlier versions of the deploy script keep working.
# =============================================================================
class MarketplaceSettings(BaseModel):
    """Typed view of the marketplace deployment settings.

    Attributes:
        address: Deploy account address (createAccount).
        private_key: Deploy account private key (createAccount).
        amb_endpoint: Managed blockchain HTTP endpoint (deployBlockchainNode).
        region: AWS region of the deployment (deployBlockchainNode).
        contract_address: Deployed NFT contract (deployContract).
        user_pool_id: Cognito user pool (deployApi).
        user_pool_client_id: Cognito web client (deployApi).
        nft_api_endpoint: API Gateway endpoint (deployApi).

    Example:
        >>> view = MarketplaceSettings.from_document({"region": "us-east-1"})
        >>> view.region
        'us-east-1'
        >>> view.contract_address is None
        True
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    address: Any = Field(default=None, alias="address")
    private_key: Any = Field(default=None, alias="privateKey", repr=False)
    amb_endpoint: Any = Field(default=None, alias="ambEndpoint")
    region: Any = Field(default=None, alias="region")
    contract_address: Any = Field(default=None, alias="contractAddress")
    user_pool_id: Any = Field(default=None, alias="userPoolId")
    user_pool_client_id: Any = Field(default=None, alias="userPoolClientId")
    nft_api_endpoint: Any = Field(default=None, alias="nftApiEndpoint")

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> MarketplaceSettings:
        return cls.model_validate(dict(document))

    def is_marked(self, step_name: str) -> bool:
        """Whether the document carries a completion marker for ``step_name``."""
        extra = self.model_extra or {}
        return bool(extra.get(step_name))
