"""Constants for the Airthings Consumer API client.

This module contains the constants used throughout the client,
including API endpoints, header names, configuration keys and timeouts.
"""

from datetime import timedelta

TOKEN_URL = "https://accounts-api.airthings.com/v1/token"
BASE_URL = "https://consumer-api.airthings.com/v1"
USER_AGENT = "airthings-consumer-python/1.0.0"

# Tokens are refreshed this long before they actually expire
TOKEN_EXPIRY_MARGIN = timedelta(minutes=5)
GRANT_TYPE_CLIENT_CREDENTIALS = "client_credentials"

DEFAULT_TIMEOUT = 10.0

HEADER_RATE_LIMIT = "X-RateLimit-Limit"
HEADER_RATE_LIMIT_REMAINING = "X-RateLimit-Remaining"
HEADER_RATE_LIMIT_RESET = "X-RateLimit-Reset"
HEADER_RATE_LIMIT_RETRY_AFTER = "X-RateLimit-Retry-After"

RATE_LIMIT_UNKNOWN = -1

CONF_CLIENT_ID = "client_id"
CONF_CLIENT_SECRET = "client_secret"
CONF_ACCOUNT_ID = "account_id"

ENV_CLIENT_ID = "AIRTHINGS_CLIENT_ID"
ENV_CLIENT_SECRET = "AIRTHINGS_CLIENT_SECRET"
ENV_ACCOUNT_ID = "AIRTHINGS_ACCOUNT_ID"
