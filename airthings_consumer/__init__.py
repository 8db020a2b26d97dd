from __future__ import annotations

from .api import (
    AirthingsApiError,
    AirthingsAuthenticationError,
    AirthingsConfigurationError,
    AirthingsRateLimitError,
    AirthingsRequestError,
    create_session_client,
)
from .client import AirthingsClient
from .config import credentials_from_env, credentials_from_mapping
from .models import (
    Account,
    Credentials,
    Device,
    RateLimitSnapshot,
    SensorReading,
    SensorResult,
    SensorResults,
    SensorUnit,
)

__all__ = [
    "Account",
    "AirthingsApiError",
    "AirthingsAuthenticationError",
    "AirthingsClient",
    "AirthingsConfigurationError",
    "AirthingsRateLimitError",
    "AirthingsRequestError",
    "Credentials",
    "Device",
    "RateLimitSnapshot",
    "SensorReading",
    "SensorResult",
    "SensorResults",
    "SensorUnit",
    "create_session_client",
    "credentials_from_env",
    "credentials_from_mapping",
]
