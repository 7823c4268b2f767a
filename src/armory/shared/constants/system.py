"""
System Configuration Constants

Base time units and application metadata shared by the other constant modules.
"""

# Base time units
BASE_MILLISECOND = 1
BASE_SECOND_MS = 1000 * BASE_MILLISECOND
BASE_MINUTE_MS = 60 * BASE_SECOND_MS

BASE_SECOND = 1
BASE_MINUTE = 60 * BASE_SECOND


class Application:
    """Application metadata constants."""

    NAME = "Armory"
    VERSION = "0.1.0"
    DESCRIPTION = "Battle.net game-data proxy core with leaderboard normalization"


class FileSystem:
    """File system locations used by the cache and configuration loader."""

    HOME_DIR = ".armory"
    CACHE_DIRECTORY = "cache"
    CACHE_DB_NAME = "armory_cache.db"
    ENV_FILE = ".env"
    DEFAULT_CONFIG_PATHS = ("config/config.toml", "config.toml")


class Logging:
    """Logging defaults."""

    DEFAULT_LEVEL = "INFO"
    LOGGER_NAME = "armory"
