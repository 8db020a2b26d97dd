"""Stateful client for the Airthings Consumer API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import httpx

from . import api
from .const import DEFAULT_TIMEOUT, TOKEN_EXPIRY_MARGIN
from .models import (
    AccessToken,
    Account,
    Credentials,
    Device,
    RateLimitSnapshot,
    SensorResults,
    SensorUnit,
)

if TYPE_CHECKING:
    from types import TracebackType

_LOGGER = logging.getLogger(__name__)


class AirthingsClient:
    """Client for the Airthings Consumer API.

    Every request first makes sure a bearer token is valid, refreshing it when
    it is within TOKEN_EXPIRY_MARGIN of expiring, then resolves the account id
    for account-scoped endpoints. Both are cached for the client's lifetime.
    """

    def __init__(
        self,
        credentials: Credentials,
        session: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Client credentials, optionally with an account id.
            session: Optional HTTP client session. When omitted the client
                creates one and closes it in async_close.
            timeout: Timeout in seconds for a session created by the client.

        """
        self.credentials = credentials
        self._owns_session = session is None
        self.session = session or api.create_session_client(timeout)
        self._access_token: AccessToken | None = None
        self._rate_limit = RateLimitSnapshot()
        self._token_lock = asyncio.Lock()
        self._account_lock = asyncio.Lock()

    async def __aenter__(self) -> AirthingsClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.async_close()

    async def async_close(self) -> None:
        """Close the HTTP session if it was created by this client."""
        if self._owns_session:
            await self.session.aclose()

    @property
    def account_id(self) -> str | None:
        """Account id in use, None until resolved."""
        return self.credentials.account_id

    async def async_ensure_valid_token(self) -> None:
        """Make sure a valid access token is cached, exchanging credentials
        when needed.

        Concurrent callers waiting on an expired token share one exchange.

        Raises:
            AirthingsAuthenticationError: If the token exchange fails. The
                previously cached token is kept.

        """
        if not self._token_needs_refresh():
            return

        async with self._token_lock:
            if not self._token_needs_refresh():
                return

            _LOGGER.debug("Access token missing or about to expire, refreshing")
            self._access_token = await api.async_request_token(
                self.session,
                self.credentials.client_id,
                self.credentials.client_secret,
            )
            _LOGGER.info("Successfully refreshed Airthings access token")

    def _token_needs_refresh(self) -> bool:
        if self._access_token is None:
            return True
        return self._access_token.needs_refresh(
            datetime.now(UTC), TOKEN_EXPIRY_MARGIN
        )

    async def async_ensure_account_id(self) -> str:
        """Return the account id, resolving it from the first account if unset.

        Raises:
            AirthingsConfigurationError: If no account is available.

        """
        if self.credentials.account_id:
            return self.credentials.account_id

        async with self._account_lock:
            if self.credentials.account_id:
                return self.credentials.account_id

            accounts = await self.async_list_accounts()
            if not accounts:
                error_msg = "No account available to resolve"
                _LOGGER.error(error_msg)
                raise api.AirthingsConfigurationError(error_msg)

            self.credentials.account_id = accounts[0].id
            _LOGGER.info("Resolved Airthings account id %s", accounts[0].id)
            return self.credentials.account_id

    async def _async_prepare(self, *, account_scoped: bool) -> tuple[AccessToken, str]:
        """Ensure token and, for account-scoped calls, the account id."""
        await self.async_ensure_valid_token()
        account_id = ""
        if account_scoped:
            account_id = await self.async_ensure_account_id()
        # Read after both steps, resolving the account may have refreshed it
        return self._access_token, account_id

    async def async_list_accounts(self) -> list[Account]:
        """List all accounts the current user is member of.

        Raises:
            AirthingsAuthenticationError: If the token exchange fails.
            AirthingsRequestError: If the request fails.

        """
        access_token, _ = await self._async_prepare(account_scoped=False)
        return await api.async_get_accounts(self.session, access_token)

    async def async_list_devices(self) -> list[Device]:
        """List all devices connected to the account.

        Raises:
            AirthingsAuthenticationError: If the token exchange fails.
            AirthingsConfigurationError: If no account id can be resolved.
            AirthingsRequestError: If the request fails.

        """
        access_token, account_id = await self._async_prepare(account_scoped=True)
        return await api.async_get_devices(self.session, access_token, account_id)

    async def async_list_sensors(
        self,
        unit: SensorUnit | str = SensorUnit.METRIC,
        serial_numbers: Sequence[str] | None = None,
        page_number: int | None = None,
    ) -> SensorResults:
        """Get the latest sensor values for the account's devices.

        The response is paginated with at most 50 records per page; use
        page_number to request a later page. The rate limit counters of the
        response are available from get_last_rate_limit_snapshot.

        Args:
            unit: Unit system for the returned values.
            serial_numbers: Optional serial numbers to filter the results.
            page_number: Optional page to fetch.

        Raises:
            AirthingsAuthenticationError: If the token exchange fails.
            AirthingsConfigurationError: If no account id can be resolved.
            AirthingsRateLimitError: If the rate limit is exceeded.
            AirthingsRequestError: If the request fails.

        """
        access_token, account_id = await self._async_prepare(account_scoped=True)
        results, rate_limit = await api.async_get_sensors(
            self.session,
            access_token,
            account_id,
            unit,
            serial_numbers,
            page_number,
        )
        self._rate_limit = rate_limit
        return results

    def get_last_rate_limit_snapshot(self) -> RateLimitSnapshot:
        """Rate limit counters of the last successful sensors request."""
        return self._rate_limit

    async def async_get_health(self) -> bool:
        """Check the health of the Airthings API."""
        return await api.async_get_health(self.session)
