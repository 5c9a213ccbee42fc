"""
shipyard.core.config - Configuration Management
==================================================

Configuration for the deployment pipeline. Values are loaded with the
following priority (highest first):

    1. Explicit arguments (including --log-level on the CLI)
    2. YAML configuration file (shipyard.yaml or --config)
    3. Environment variables (prefixed with SHIPYARD_)
    4. Default values defined in the models below

YAML values reach ShipyardConfig as constructor arguments, which
pydantic-settings ranks above the environment.

The defaults reproduce the layout of the NFT marketplace repository the
pipeline was written for, so running ``shipyard deploy`` from that
repository root needs no configuration at all:

    .
    ├── deploy-settings.json        ← settings document (created on first run)
    ├── contract/                   ← Hardhat project
    ├── provision/                  ← CDK app
    │   └── stack-outputs.json      ← written by `cdk deploy --outputs-file`
    └── marketplace/
        └── .env.local              ← rendered front-end configuration

Environment Variables:
    SHIPYARD_LOG_LEVEL=DEBUG
    SHIPYARD_LOG_FORMAT=json
    SHIPYARD_PATHS__ROOT=/srv/marketplace
    SHIPYARD_STACKS__API=MyMarketplaceStack
    SHIPYARD_AWS_PROFILE=deploy
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from shipyard.core.exceptions import ConfigurationError


# =============================================================================
# Paths Configuration
# =============================================================================
# Every file and directory the pipeline touches. Relative paths resolve
# against `root`, which itself resolves against the working directory.
# =============================================================================
class PathsConfig(BaseModel):
    """Locations of the project directories and pipeline documents.

    Attributes:
        root: Repository root. All relative paths below resolve against it.
        settings_file: The persisted settings document.
        contract_dir: Hardhat project (account, compile, contract deploy).
        provision_dir: CDK app (node and API stacks).
        marketplace_dir: Front-end project.
        stack_outputs_file: JSON written by ``cdk deploy --outputs-file``.
        marketplace_env_file: Rendered front-end ``.env`` file.
    """

    root: Path = Field(default=Path("."), description="Repository root")
    settings_file: Path = Field(
        default=Path("deploy-settings.json"),
        description="Persisted settings document",
    )
    contract_dir: Path = Field(default=Path("contract"), description="Hardhat project")
    provision_dir: Path = Field(default=Path("provision"), description="CDK app")
    marketplace_dir: Path = Field(default=Path("marketplace"), description="Front-end project")
    stack_outputs_file: Path = Field(
        default=Path("provision/stack-outputs.json"),
        description="CDK outputs file",
    )
    marketplace_env_file: Path = Field(
        default=Path("marketplace/.env.local"),
        description="Rendered front-end configuration",
    )

    def resolve(self, path: Path) -> Path:
        """Resolve ``path`` against the configured root.

        Args:
            path: Absolute or root-relative path.

        Returns:
            An absolute path.
        """
        if path.is_absolute():
            return path
        return (self.root / path).resolve()

    @property
    def settings_path(self) -> Path:
        return self.resolve(self.settings_file)

    @property
    def contract_path(self) -> Path:
        return self.resolve(self.contract_dir)

    @property
    def provision_path(self) -> Path:
        return self.resolve(self.provision_dir)

    @property
    def marketplace_path(self) -> Path:
        return self.resolve(self.marketplace_dir)

    @property
    def stack_outputs_path(self) -> Path:
        return self.resolve(self.stack_outputs_file)

    @property
    def marketplace_env_path(self) -> Path:
        return self.resolve(self.marketplace_env_file)


# =============================================================================
# Stack Names
# =============================================================================
class StackNames(BaseModel):
    """CDK stack names deployed by the pipeline."""

    blockchain_node: str = Field(
        default="SimpleNftMarketplaceBlockchainNode",
        description="Stack hosting the managed blockchain node",
    )
    api: str = Field(
        default="SimpleNftMarketplaceStack",
        description="Stack hosting the NFT API and user pool",
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   SHIPYARD_LOG_LEVEL        → config.log_level
#   SHIPYARD_PATHS__ROOT      → config.paths.root  (nested with double underscore)
#   SHIPYARD_STACKS__API      → config.stacks.api
# =============================================================================
class ShipyardConfig(BaseSettings):
    """Top-level configuration for Shipyard.

    Created once by the CLI (or a test) and handed to the facade, which
    passes the relevant pieces down to the store, the process runner and
    the deploy steps.

    Attributes:
        log_level: Logging level for structlog output.
        log_format: "console" for humans, "json" for log collectors.
        paths: Project directories and pipeline documents.
        stacks: CDK stack names.
        aws_profile: Profile to read from the shared credentials file.
            None falls back to AWS_PROFILE, then "default".
        aws_credentials_file: Shared credentials file. None falls back to
            AWS_SHARED_CREDENTIALS_FILE, then ~/.aws/credentials.
        faucet_url: Where the operator is sent to fund the new account.

    Example:
        >>> config = ShipyardConfig(log_level="DEBUG")
        >>> config.paths.settings_path.name
        'deploy-settings.json'
    """

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log renderer: 'console' or 'json'",
    )

    # -------------------------------------------------------------------------
    # Nested Configurations
    # -------------------------------------------------------------------------
    paths: PathsConfig = Field(default_factory=PathsConfig)
    stacks: StackNames = Field(default_factory=StackNames)

    # -------------------------------------------------------------------------
    # Credentials and operator prompts
    # -------------------------------------------------------------------------
    aws_profile: Optional[str] = Field(
        default=None,
        description="Shared credentials profile (None = AWS_PROFILE or 'default')",
    )
    aws_credentials_file: Optional[Path] = Field(
        default=None,
        description="Shared credentials file (None = AWS default location)",
    )
    faucet_url: str = Field(
        default="https://faucet.ropsten.be/",
        description="Faucet the operator uses to fund the deploy account",
    )

    model_config = {
        "env_prefix": "SHIPYARD_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None, **overrides: Any) -> ShipyardConfig:
    """Load Shipyard configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'shipyard.yaml' in the current directory and falls back to
            pure defaults + environment variables.
        **overrides: Explicit values that win over both YAML and environment.

    Returns:
        A fully validated ShipyardConfig instance.

    Raises:
        FileNotFoundError: If an explicit path is provided but doesn't exist.
        ConfigurationError: If the YAML is malformed or fails validation.
    """
    if path is None:
        default_path = Path("shipyard.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path) as f:
            try:
                raw_data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    message=f"Invalid YAML in {path}: {e}",
                    error_code="INVALID_YAML",
                    details={"path": str(path)},
                ) from e
        if raw_data is not None and not isinstance(raw_data, dict):
            raise ConfigurationError(
                message=f"Configuration file {path} must contain a mapping",
                error_code="INVALID_YAML",
                details={"path": str(path)},
            )
        yaml_data = raw_data or {}

    try:
        return ShipyardConfig(**{**yaml_data, **overrides})
    except ValidationError as e:
        raise ConfigurationError(
            message=f"Invalid configuration: {e}",
            details={"path": str(path) if path else None},
        ) from e


def get_default_config() -> ShipyardConfig:
    """Create a ShipyardConfig from defaults and environment variables only."""
    return ShipyardConfig()
