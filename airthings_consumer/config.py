"""Load Airthings client credentials from mappings or the environment."""

import logging
import os
from collections.abc import Mapping

from .api import AirthingsConfigurationError
from .const import (
    CONF_ACCOUNT_ID,
    CONF_CLIENT_ID,
    CONF_CLIENT_SECRET,
    ENV_ACCOUNT_ID,
    ENV_CLIENT_ID,
    ENV_CLIENT_SECRET,
)
from .models import Credentials

_LOGGER = logging.getLogger(__name__)


def _require(data: Mapping[str, str], key: str) -> str:
    value = (data.get(key) or "").strip()
    if not value:
        error_msg = f"Missing required configuration value: {key}"
        raise AirthingsConfigurationError(error_msg)
    return value


def credentials_from_mapping(data: Mapping[str, str]) -> Credentials:
    """Build credentials from a mapping with client_id, client_secret and
    an optional account_id.

    Raises:
        AirthingsConfigurationError: If client id or secret is missing.

    """
    account_id = (data.get(CONF_ACCOUNT_ID) or "").strip() or None
    return Credentials(
        client_id=_require(data, CONF_CLIENT_ID),
        client_secret=_require(data, CONF_CLIENT_SECRET),
        account_id=account_id,
    )


def credentials_from_env(environ: Mapping[str, str] | None = None) -> Credentials:
    """Build credentials from AIRTHINGS_* environment variables.

    Args:
        environ: Mapping to read instead of os.environ.

    Raises:
        AirthingsConfigurationError: If client id or secret is missing.

    """
    env = os.environ if environ is None else environ
    _LOGGER.debug("Loading Airthings credentials from environment")
    return credentials_from_mapping(
        {
            CONF_CLIENT_ID: env.get(ENV_CLIENT_ID, ""),
            CONF_CLIENT_SECRET: env.get(ENV_CLIENT_SECRET, ""),
            CONF_ACCOUNT_ID: env.get(ENV_ACCOUNT_ID, ""),
        }
    )
