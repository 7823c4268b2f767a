"""Armory Settings Configuration Model.

Main Settings class that consolidates all configuration domains.
"""

from __future__ import annotations

import logging
from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from armory.config.models.api_settings import APISettings
from armory.config.models.app_settings import AppSettings, LoggingSettings
from armory.config.models.cache_settings import CacheSettings, PaginationSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Unified configuration.

    Environment variables use the ``ARMORY_`` prefix and ``__`` between
    nesting levels, e.g. ``ARMORY_API__BATTLENET__CLIENT_ID``.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARMORY_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: APISettings = Field(default_factory=APISettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from a TOML file.

        Values in the file win over environment variables; the environment
        fills in whatever the file leaves unset.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        logger.debug("Loaded configuration from %s", file_path)
        return cls(**raw_config)
