"""
Cache Configuration Constants

TTL categories and store defaults. Category durations reflect how volatile
each kind of upstream data is.
"""

from .system import BASE_MINUTE_MS, BASE_SECOND


class CacheDurations:
    """Per-category cache durations in milliseconds."""

    PROFILE = "profile"
    EQUIPMENT = "equipment"
    MEDIA = "media"
    MYTHIC_PLUS = "mythic_plus"
    RAIDS = "raids"
    PVP = "pvp"
    REALMS = "realms"
    LEADERBOARDS = "leaderboards"

    DURATIONS_MS: dict[str, int] = {
        PROFILE: 25 * BASE_MINUTE_MS,
        EQUIPMENT: 45 * BASE_MINUTE_MS,
        MEDIA: 45 * BASE_MINUTE_MS,
        MYTHIC_PLUS: 12 * BASE_MINUTE_MS,
        RAIDS: 45 * BASE_MINUTE_MS,
        PVP: 10 * BASE_MINUTE_MS,
        REALMS: 45 * BASE_MINUTE_MS,
        LEADERBOARDS: 15 * BASE_MINUTE_MS,
    }

    DEFAULT_CATEGORY = PROFILE
    MIN_TTL_MS = 1000


class Cache:
    """Cache store defaults."""

    TABLE_NAME = "cache"
    DEFAULT_TTL_SECONDS = 300
    CLEANUP_INTERVAL_SECONDS = 60 * BASE_SECOND
    DEFAULT_LIST_LIMIT = 100
    MAX_LIST_LIMIT = 500
    KEY_SEPARATOR = ":"
    UNKNOWN_PREFIX = "unknown"
    KEY_LOG_LENGTH = 80


class Pagination:
    """Offset pagination defaults."""

    DEFAULT_LIMIT = 50
    MAX_LIMIT = 200
    CURSOR_PREFIX = "offset:"
