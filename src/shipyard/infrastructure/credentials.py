"""
shipyard.infrastructure.credentials - AWS Shared Credentials
==============================================================

The blockchain steps talk to Amazon Managed Blockchain through node
scripts that sign requests with AWS keys taken from their environment.
This module reads those keys from the shared credentials file so they can
be injected into the environment overlay of just those commands.
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, Field


logger = structlog.get_logger()


class AwsCredentials(BaseModel):
    """Static AWS credentials for one profile."""

    access_key_id: Optional[str] = Field(default=None, repr=False)
    secret_access_key: Optional[str] = Field(default=None, repr=False)
    session_token: Optional[str] = Field(default=None, repr=False)

    def as_env(self) -> dict[str, str]:
        """Environment overlay for a child process, omitting unset values."""
        env = {
            "AWS_ACCESS_KEY_ID": self.access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.secret_access_key,
            "AWS_SESSION_TOKEN": self.session_token,
        }
        return {k: v for k, v in env.items() if v}


def default_credentials_path() -> Path:
    override = os.environ.get("AWS_SHARED_CREDENTIALS_FILE")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".aws" / "credentials"


def load_shared_credentials(
    path: Optional[Path] = None,
    profile: Optional[str] = None,
) -> AwsCredentials:
    """Read one profile from the shared credentials file.

    Args:
        path: Credentials file. Defaults to AWS_SHARED_CREDENTIALS_FILE or
            ~/.aws/credentials.
        profile: Profile name. Defaults to AWS_PROFILE or "default".

    Returns:
        The profile's credentials. Empty if the file or profile does not
        exist, in which case child processes fall back to whatever AWS_*
        variables the ambient environment already carries.
    """
    path = Path(path).expanduser() if path else default_credentials_path()
    profile = profile or os.environ.get("AWS_PROFILE") or "default"

    parser = configparser.ConfigParser()
    try:
        read = parser.read(path, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError) as e:
        logger.warning(
            "aws_credentials_unreadable",
            component="credentials",
            path=str(path),
            error=str(e),
        )
        return AwsCredentials()

    if not read or not parser.has_section(profile):
        logger.debug(
            "aws_credentials_not_found",
            component="credentials",
            path=str(path),
            profile=profile,
        )
        return AwsCredentials()

    section = parser[profile]
    return AwsCredentials(
        access_key_id=section.get("aws_access_key_id"),
        secret_access_key=section.get("aws_secret_access_key"),
        session_token=section.get("aws_session_token"),
    )
