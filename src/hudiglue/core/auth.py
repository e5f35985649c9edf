"""Authentication helpers for AWS Glue.

This module centralizes creation of the boto3 Glue client and applies the
call-level settings (retries, timeouts) the sync relies on, so commands
never build clients ad hoc.
"""

import re

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 60


class AuthError(RuntimeError):
    """Raised when an AWS session or Glue client cannot be created."""


def _format_auth_error(message: str, profile: str | None) -> str:
    """Return a user-friendly auth error message."""
    if re.search(r"could not be found", message) and profile:
        return (
            f"AWS profile '{profile}' was not found.\n"
            "Configure it with:\n"
            f"  $ aws configure --profile {profile}"
        )
    if "region" in message.lower():
        return (
            "No AWS region configured. Pass --region, set AWS_REGION, "
            "or add a region to your AWS profile."
        )
    return f"AWS authentication failed: {message}"


def _client_config(max_attempts: int) -> Config:
    """
    Build the botocore client config.

    Standard retry mode backs off on throttling for individual calls;
    connect/read timeouts bound how long any single catalog call can block.
    """
    return Config(
        retries={"max_attempts": max_attempts, "mode": "standard"},
        connect_timeout=DEFAULT_CONNECT_TIMEOUT,
        read_timeout=DEFAULT_READ_TIMEOUT,
    )


def get_client(
    profile: str | None = None,
    region: str | None = None,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
):
    """
    Create and return a configured boto3 Glue client.

    If a profile is provided, credentials and default region are resolved
    from the shared AWS config (~/.aws/config, ~/.aws/credentials);
    otherwise the default credential chain is used.
    """
    try:
        session = boto3.Session(profile_name=profile, region_name=region)
        return session.client("glue", config=_client_config(max_attempts))
    except BotoCoreError as exc:
        raise AuthError(_format_auth_error(str(exc), profile)) from exc
