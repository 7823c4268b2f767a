"""
Network Configuration Constants

Constants for the Battle.net HTTP client: hosts, retry and backoff defaults.
"""

from .http_codes import HTTPStatusCodes
from .system import BASE_SECOND


class NetworkConfig:
    """Network configuration constants."""

    # Timeout settings
    REQUEST_TIMEOUT = 30 * BASE_SECOND

    # Retry settings (milliseconds)
    MAX_FETCH_RETRIES = 2
    BASE_RETRY_DELAY_MS = 250
    MAX_RETRY_DELAY_MS = 2000
    RETRY_JITTER_MS = 100

    RETRYABLE_STATUS_CODES = frozenset(
        {
            HTTPStatusCodes.REQUEST_TIMEOUT,
            HTTPStatusCodes.TOO_EARLY,
            HTTPStatusCodes.TOO_MANY_REQUESTS,
            HTTPStatusCodes.INTERNAL_SERVER_ERROR,
            HTTPStatusCodes.BAD_GATEWAY,
            HTTPStatusCodes.SERVICE_UNAVAILABLE,
            HTTPStatusCodes.GATEWAY_TIMEOUT,
        }
    )

    USER_AGENT = "Armory/0.1.0"


class BattleNetConfig:
    """Battle.net endpoint constants."""

    OAUTH_URL_TEMPLATE = "https://{region}.battle.net/oauth/token"
    API_ORIGIN_TEMPLATE = "https://{region}.api.blizzard.com"
    GRANT_TYPE = "client_credentials"

    # Seconds subtracted from the declared token lifetime
    TOKEN_EXPIRY_BUFFER = 60
    MIN_TOKEN_LIFETIME = 1

    OPERATION_TOKEN = "token"  # noqa: S105  # nosec B105 - metric label
    OPERATION_FETCH = "fetch"
