"""API client helpers for the Airthings Consumer API.

This module provides functions to interact with the Airthings Consumer API,
including the client-credentials token exchange, response validation and
extraction of accounts, devices and sensor readings.
"""

import base64
import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from .const import (
    BASE_URL,
    DEFAULT_TIMEOUT,
    GRANT_TYPE_CLIENT_CREDENTIALS,
    HEADER_RATE_LIMIT,
    HEADER_RATE_LIMIT_REMAINING,
    HEADER_RATE_LIMIT_RESET,
    HEADER_RATE_LIMIT_RETRY_AFTER,
    RATE_LIMIT_UNKNOWN,
    TOKEN_URL,
    USER_AGENT,
)
from .models import (
    AccessToken,
    Account,
    Device,
    RateLimitSnapshot,
    SensorReading,
    SensorResult,
    SensorResults,
    SensorUnit,
)

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_OK = 200
HTTP_MULTIPLE_CHOICES = 300
HTTP_TOO_MANY_REQUESTS = 429


class AirthingsApiError(Exception):
    """Base exception for Airthings API client errors."""


class AirthingsAuthenticationError(AirthingsApiError):
    """Exception raised when the token exchange fails.

    Attributes:
        status_code: HTTP status of the token endpoint, None on transport
            failures or malformed token responses.
        body: Response body text, if any.

    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AirthingsConfigurationError(AirthingsApiError):
    """Exception raised when the client cannot be configured.

    Raised when no account id can be resolved or required credentials are
    missing.
    """


class AirthingsRequestError(AirthingsApiError):
    """Exception raised for non-successful responses from a data endpoint."""

    def __init__(self, message: str, status_code: int, body: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AirthingsRateLimitError(AirthingsRequestError):
    """Exception raised when the sensors rate limit is exceeded."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message, status_code, body)
        self.retry_after = retry_after


def create_headers(access_token: AccessToken | None = None) -> dict[str, str]:
    """Create HTTP headers for Airthings API requests.

    Args:
        access_token: Optional access token to include as Authorization.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    headers = {
        "accept": "application/json",
        "user-agent": USER_AGENT,
    }
    if access_token:
        headers["Authorization"] = access_token.authorization
    return headers


def create_token_headers(client_id: str, client_secret: str) -> dict[str, str]:
    """Create HTTP headers for the client-credentials token exchange.

    Args:
        client_id: Client id created in the Airthings dashboard.
        client_secret: Matching client secret.

    Returns:
        Dictionary containing HTTP headers with Basic authentication.

    """
    basic = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode()
    headers = create_headers()
    headers["Authorization"] = f"Basic {basic}"
    headers["Content-Type"] = "application/json"
    return headers


def is_http_error(status: int) -> bool:
    """Check if HTTP status code is anything but a 2xx success.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is outside the 2xx range, False otherwise.

    """
    return not HTTP_OK <= status < HTTP_MULTIPLE_CHOICES


def is_rate_limit_error(status: int) -> bool:
    """Check if HTTP status code indicates an exceeded rate limit."""
    return status == HTTP_TOO_MANY_REQUESTS


def _parse_int_header(headers: Mapping[str, str], name: str) -> int:
    value = headers.get(name)
    if value is None:
        return RATE_LIMIT_UNKNOWN
    try:
        return int(value)
    except ValueError:
        _LOGGER.debug("Ignoring unparseable %s header: %r", name, value)
        return RATE_LIMIT_UNKNOWN


def _parse_reset_header(headers: Mapping[str, str]) -> int:
    """Read X-RateLimit-Reset as epoch seconds or an ISO-8601 timestamp."""
    value = headers.get(HEADER_RATE_LIMIT_RESET)
    if value is None:
        return RATE_LIMIT_UNKNOWN
    if value.lstrip("-").isdigit():
        return int(value)

    reset_at = _parse_timestamp(value)
    if reset_at is None:
        _LOGGER.debug(
            "Ignoring unparseable %s header: %r", HEADER_RATE_LIMIT_RESET, value
        )
        return RATE_LIMIT_UNKNOWN
    return int(reset_at.timestamp())


def extract_rate_limit(headers: Mapping[str, str]) -> RateLimitSnapshot:
    """Extract rate limit counters from sensors response headers.

    The reset header may be epoch seconds or an ISO-8601 timestamp. Missing
    or unparseable headers are reported as -1.

    Args:
        headers: Response headers.

    Returns:
        RateLimitSnapshot built from the three X-RateLimit headers.

    """
    return RateLimitSnapshot(
        limit=_parse_int_header(headers, HEADER_RATE_LIMIT),
        remaining=_parse_int_header(headers, HEADER_RATE_LIMIT_REMAINING),
        reset_at=_parse_reset_header(headers),
    )


def extract_retry_after(headers: Mapping[str, str]) -> int | None:
    """Extract seconds to wait from a rate-limited response, if reported."""
    retry_after = _parse_int_header(headers, HEADER_RATE_LIMIT_RETRY_AFTER)
    return None if retry_after == RATE_LIMIT_UNKNOWN else retry_after


def validate_response(response: httpx.Response) -> Any:
    """Validate HTTP response and return parsed JSON data.

    Args:
        response: HTTP response object to validate.

    Returns:
        Parsed JSON data from response.

    Raises:
        AirthingsRateLimitError: If the rate limit is exceeded.
        AirthingsRequestError: If the response status is not 2xx.

    """
    _validate_http_status(response)
    return response.json()


def _validate_http_status(response: httpx.Response) -> None:
    if not is_http_error(response.status_code):
        return

    body = response.text
    request_error = f"Request failed [{response.status_code}: {body}]"

    if is_rate_limit_error(response.status_code):
        raise AirthingsRateLimitError(
            request_error,
            response.status_code,
            body,
            retry_after=extract_retry_after(response.headers),
        )

    raise AirthingsRequestError(request_error, response.status_code, body)


def extract_access_token(data: dict[str, Any], now: datetime) -> AccessToken:
    """Create an AccessToken from a token endpoint response.

    Args:
        data: Token response data dictionary.
        now: Time the response was received.

    Returns:
        AccessToken expiring expires_in seconds after now.

    Raises:
        AirthingsAuthenticationError: If the response is missing fields.

    """
    try:
        return AccessToken(
            token=data["access_token"],
            scheme=data["token_type"],
            expires_at=now + timedelta(seconds=int(data["expires_in"])),
        )
    except (KeyError, TypeError, ValueError) as err:
        error_msg = f"Malformed token response: {err!r}"
        raise AirthingsAuthenticationError(error_msg) from err


def extract_accounts(data: dict[str, Any]) -> list[Account]:
    """Extract account list from API response.

    Args:
        data: API response data dictionary.

    Returns:
        List of Account objects.

    """
    return [Account(id=a["id"]) for a in data.get("accounts", [])]


def extract_devices(data: dict[str, Any]) -> list[Device]:
    """Extract device list from API response.

    Args:
        data: API response data dictionary.

    Returns:
        List of Device objects.

    """
    return [
        Device(
            serial_number=d["serialNumber"],
            name=d.get("name", ""),
            type=d.get("type", ""),
            home=d.get("home"),
            sensor_capabilities=list(d.get("sensors") or []),
        )
        for d in data.get("devices", [])
    ]


def _parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def _parse_recorded_at(recorded: str | None) -> datetime | None:
    if not recorded:
        return None
    recorded_at = _parse_timestamp(recorded)
    if recorded_at is None:
        _LOGGER.warning("Unparseable recorded timestamp: %r", recorded)
    return recorded_at


def _extract_sensor_result(result: dict[str, Any]) -> SensorResult:
    # The service may report null entries for sensors without a value
    readings = [
        SensorReading(
            sensor_type=s["sensorType"],
            value=float(s["value"]),
            unit=s.get("unit", ""),
        )
        for s in result.get("sensors") or []
        if s is not None
    ]
    return SensorResult(
        serial_number=result["serialNumber"],
        sensor_readings=readings,
        recorded_at=_parse_recorded_at(result.get("recorded")),
        battery_percentage=result.get("batteryPercentage"),
    )


def extract_sensor_results(data: dict[str, Any]) -> SensorResults:
    """Extract one page of sensor results from API response.

    Args:
        data: API response data dictionary.

    Returns:
        SensorResults with the page's results and pagination flags.

    """
    return SensorResults(
        results=[_extract_sensor_result(r) for r in data.get("results", [])],
        has_next=bool(data.get("hasNext", False)),
        total_pages=int(data.get("totalPages", 1)),
    )


def create_session_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create HTTP client for the Airthings API.

    Args:
        timeout: Connect/read/write/pool timeout in seconds.

    Returns:
        Configured httpx AsyncClient.

    """
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout))


async def async_request_token(
    session: httpx.AsyncClient,
    client_id: str,
    client_secret: str,
) -> AccessToken:
    """Exchange client credentials for a bearer token.

    Args:
        session: HTTP client session.
        client_id: Client id.
        client_secret: Client secret.

    Returns:
        New AccessToken.

    Raises:
        AirthingsAuthenticationError: If the exchange fails for any reason.

    """
    headers = create_token_headers(client_id, client_secret)
    payload = {"grant_type": GRANT_TYPE_CLIENT_CREDENTIALS}

    _LOGGER.debug("Requesting access token from Airthings API")
    try:
        response = await session.post(TOKEN_URL, headers=headers, json=payload)
    except httpx.RequestError as err:
        error_msg = f"Token request failed: {err}"
        raise AirthingsAuthenticationError(error_msg) from err

    if is_http_error(response.status_code):
        body = response.text
        auth_error = f"Authentication failed [{response.status_code}: {body}]"
        raise AirthingsAuthenticationError(auth_error, response.status_code, body)

    try:
        data = response.json()
    except ValueError as err:
        error_msg = "Token response is not valid JSON"
        raise AirthingsAuthenticationError(
            error_msg, response.status_code, response.text
        ) from err

    access_token = extract_access_token(data, datetime.now(UTC))
    _LOGGER.debug(
        "Obtained access token expiring at %s", access_token.expires_at.isoformat()
    )
    return access_token


async def async_get_accounts(
    session: httpx.AsyncClient,
    access_token: AccessToken,
) -> list[Account]:
    """Fetch the accounts the authenticated user is member of.

    Raises:
        AirthingsRequestError: If API request fails.

    """
    url = f"{BASE_URL}/accounts"

    _LOGGER.debug("Fetching accounts from Airthings API")
    response = await session.get(url, headers=create_headers(access_token))
    data = validate_response(response)
    accounts = extract_accounts(data)
    _LOGGER.debug("Retrieved %d accounts from Airthings API", len(accounts))
    return accounts


async def async_get_devices(
    session: httpx.AsyncClient,
    access_token: AccessToken,
    account_id: str,
) -> list[Device]:
    """Fetch all devices connected to an account.

    Args:
        session: HTTP client session.
        access_token: Valid access token.
        account_id: Account the devices are listed for.

    Returns:
        List of Device objects.

    Raises:
        AirthingsRequestError: If API request fails.

    """
    url = f"{BASE_URL}/accounts/{account_id}/devices"

    _LOGGER.debug("Fetching devices from Airthings API")
    response = await session.get(url, headers=create_headers(access_token))
    data = validate_response(response)
    devices = extract_devices(data)
    _LOGGER.debug("Retrieved %d devices from Airthings API", len(devices))
    return devices


def create_sensors_params(
    unit: SensorUnit | str,
    serial_numbers: Sequence[str] | None = None,
    page_number: int | None = None,
) -> dict[str, str | int]:
    """Build query parameters for the sensors endpoint.

    Args:
        unit: Unit system for the returned values.
        serial_numbers: Optional serial numbers to filter on, sent comma-joined.
        page_number: Optional page (of 50 records) to fetch.

    Returns:
        Dictionary of query parameters.

    Raises:
        ValueError: If unit is not a known unit system.

    """
    params: dict[str, str | int] = {"unit": SensorUnit(unit).value}
    if serial_numbers:
        params["sn"] = ",".join(serial_numbers)
    if page_number is not None:
        params["pageNumber"] = page_number
    return params


async def async_get_sensors(
    session: httpx.AsyncClient,
    access_token: AccessToken,
    account_id: str,
    unit: SensorUnit | str,
    serial_numbers: Sequence[str] | None = None,
    page_number: int | None = None,
) -> tuple[SensorResults, RateLimitSnapshot]:
    """Fetch the latest sensor values for the devices of an account.

    Args:
        session: HTTP client session.
        access_token: Valid access token.
        account_id: Account the sensors are listed for.
        unit: Unit system for the returned values.
        serial_numbers: Optional serial numbers to filter on.
        page_number: Optional page to fetch.

    Returns:
        Tuple of (SensorResults, RateLimitSnapshot) for this request.

    Raises:
        AirthingsRateLimitError: If the rate limit is exceeded.
        AirthingsRequestError: If API request fails.

    """
    url = f"{BASE_URL}/accounts/{account_id}/sensors"
    params = create_sensors_params(unit, serial_numbers, page_number)

    _LOGGER.debug("Fetching sensors from Airthings API with %s", params)
    response = await session.get(
        url, headers=create_headers(access_token), params=params
    )
    data = validate_response(response)
    results = extract_sensor_results(data)
    rate_limit = extract_rate_limit(response.headers)
    _LOGGER.debug(
        "Retrieved sensors for %d devices, %d requests remaining",
        len(results.results),
        rate_limit.remaining,
    )
    return results, rate_limit


async def async_get_health(session: httpx.AsyncClient) -> bool:
    """Check the health of the Airthings API.

    Returns:
        True if the API reports healthy.

    Raises:
        AirthingsRequestError: If the API reports an error.

    """
    url = f"{BASE_URL}/health"

    _LOGGER.debug("Checking Airthings API health")
    response = await session.get(url, headers=create_headers())
    _validate_http_status(response)
    return True
