"""Pytest configuration and fixtures for Airthings Consumer API tests."""

from datetime import UTC, datetime, timedelta

import pytest

from airthings_consumer.models import AccessToken, Credentials

CLIENT_ID = "cid"
CLIENT_SECRET = "secret"
ACCOUNT_ID = "acct-1"


def create_access_token(
    expires_in: timedelta = timedelta(hours=1),
    token: str = "tok0",
) -> AccessToken:
    """Create an access token expiring relative to now.

    Args:
        expires_in: Time until the token expires. Negative for expired tokens.
        token: Token string.

    Returns:
        A bearer AccessToken.

    """
    return AccessToken(
        token=token,
        scheme="Bearer",
        expires_at=datetime.now(UTC) + expires_in,
    )


@pytest.fixture
def credentials() -> Credentials:
    """Fixture providing credentials without an account override."""
    return Credentials(client_id=CLIENT_ID, client_secret=CLIENT_SECRET)


@pytest.fixture
def credentials_with_account() -> Credentials:
    """Fixture providing credentials with an explicit account id."""
    return Credentials(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        account_id=ACCOUNT_ID,
    )


@pytest.fixture
def sample_token_response() -> dict:
    """Fixture providing a sample token endpoint response."""
    return {"access_token": "tok1", "token_type": "Bearer", "expires_in": 3600}


@pytest.fixture
def sample_accounts_response() -> dict:
    """Fixture providing a sample accounts API response."""
    return {"accounts": [{"id": ACCOUNT_ID}]}


@pytest.fixture
def sample_devices_response() -> dict:
    """Fixture providing a sample devices API response."""
    return {
        "devices": [
            {
                "serialNumber": "2960000000",
                "name": "My Airthings",
                "type": "VIEW_PLUS",
                "sensors": ["temp", "humidity"],
            },
        ],
    }


@pytest.fixture
def sample_sensors_response() -> dict:
    """Fixture providing a sample sensors API response.

    Returns:
        A dictionary with one result of two readings and a null entry.

    """
    return {
        "results": [
            {
                "serialNumber": "2960000000",
                "sensors": [
                    {"sensorType": "temp", "value": 68.1, "unit": "f"},
                    {"sensorType": "humidity", "value": 40, "unit": "pct"},
                    None,
                ],
                "recorded": "2025-01-01T00:00:00",
                "batteryPercentage": 100,
            },
        ],
        "hasNext": False,
        "totalPages": 1,
    }
