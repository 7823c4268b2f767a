"""Configuration domain models."""

from __future__ import annotations

from .api_settings import APISettings, BattleNetSettings
from .app_settings import AppSettings, LoggingSettings
from .cache_settings import CacheSettings, PaginationSettings
from .settings import Settings

__all__ = [
    "APISettings",
    "AppSettings",
    "BattleNetSettings",
    "CacheSettings",
    "LoggingSettings",
    "PaginationSettings",
    "Settings",
]
