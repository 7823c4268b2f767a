"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for the Settings instance
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from armory.config.models.settings import Settings
from armory.shared.constants import FileSystem
from armory.shared.errors import ApplicationError, ErrorCode, ErrorContext
from armory.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking so the common path takes no lock.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def get_config(self) -> Settings:
        """Return the global settings, loading them on first use."""
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings()

        return self._instance

    def reload_config(self) -> Settings:
        """Reload the global settings from the environment and config files."""
        with self._lock:
            self._instance = load_settings()

        return self._instance


def _load_env_file(env_file: Path | None = None) -> bool:
    """Load ``.env`` into the process environment if present.

    Variables already set in the environment are kept.
    """
    env_file = env_file or Path(FileSystem.ENV_FILE)
    if not env_file.exists():
        return False
    return load_dotenv(env_file, override=False)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML file or the environment.

    Args:
        config_path: Optional TOML file. Without it the default locations
            are tried, then the environment alone.

    Returns:
        A validated Settings instance

    Raises:
        FileNotFoundError: If ``config_path`` is given but missing
        ApplicationError: ``config:invalid`` if validation fails
    """
    _load_env_file()

    try:
        if config_path:
            return Settings.from_toml_file(config_path)

        for default_path in FileSystem.DEFAULT_CONFIG_PATHS:
            candidate = Path(default_path)
            if candidate.exists():
                return Settings.from_toml_file(candidate)

        return Settings()
    except ValidationError as e:
        error = ApplicationError(
            ErrorCode.CONFIG_INVALID,
            f"Invalid configuration: {e.error_count()} error(s)",
            ErrorContext(
                operation="load_settings",
                additional_data={"config_path": str(config_path) if config_path else None},
            ),
            original_error=e,
        )
        log_operation_error(logger, error)
        raise error from e


# Global loader instance
_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config() -> Settings:
    """Reload the global settings instance."""
    return _loader.reload_config()


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
]
