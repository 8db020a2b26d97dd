"""Data models for the Airthings Consumer API client."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

from .const import RATE_LIMIT_UNKNOWN


class SensorUnit(StrEnum):
    """Unit system the sensor values are returned in."""

    METRIC = "metric"
    IMPERIAL = "imperial"


@dataclass
class Credentials:
    """Client credentials created in the Airthings dashboard.

    The account id is optional. When missing it is resolved from the first
    account returned by the service and stored here.
    """

    client_id: str
    client_secret: str
    account_id: str | None = None

    def __repr__(self) -> str:
        return (
            f"Credentials(client_id={self.client_id!r}, client_secret='***', "
            f"account_id={self.account_id!r})"
        )


@dataclass(frozen=True)
class AccessToken:
    """Represents a bearer token with its expiration timestamp."""

    token: str
    scheme: str
    expires_at: datetime

    def needs_refresh(self, now: datetime, margin: timedelta) -> bool:
        """Return True once now is inside the margin before expiry."""
        return now > self.expires_at - margin

    @property
    def authorization(self) -> str:
        """Value for the Authorization header."""
        return f"{self.scheme} {self.token}"


@dataclass(frozen=True)
class Account:
    """An account the authenticated user is member of."""

    id: str


@dataclass(frozen=True)
class Device:
    """Represents an Airthings device and its sensor capabilities.

    Attributes:
        serial_number: Device serial number.
        home: Optional name of the home the device is placed in.
        name: Human-readable device name.
        type: Device type, e.g. "VIEW_PLUS".
        sensor_capabilities: Sensor types the device reports.

    """

    serial_number: str
    name: str
    type: str
    home: str | None = None
    sensor_capabilities: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SensorReading:
    """Latest value of a single sensor."""

    sensor_type: str
    value: float
    unit: str


@dataclass(frozen=True)
class SensorResult:
    """Latest sensor readings of one device."""

    serial_number: str
    sensor_readings: list[SensorReading] = field(default_factory=list)
    recorded_at: datetime | None = None
    battery_percentage: int | None = None


@dataclass(frozen=True)
class SensorResults:
    """One page of sensor results with its pagination flags."""

    results: list[SensorResult]
    has_next: bool = False
    total_pages: int = 1


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Rate limit counters reported by the last sensors request.

    A value of -1 means the counter is unknown or was never fetched.
    """

    limit: int = RATE_LIMIT_UNKNOWN
    remaining: int = RATE_LIMIT_UNKNOWN
    reset_at: int = RATE_LIMIT_UNKNOWN
