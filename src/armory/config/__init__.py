"""Armory Configuration Module

Unified access to the settings models and the settings loader.
"""

from __future__ import annotations

from .loader import get_config, load_settings, reload_config
from .models import (
    APISettings,
    AppSettings,
    BattleNetSettings,
    CacheSettings,
    LoggingSettings,
    PaginationSettings,
)
from .models.settings import Settings

__all__ = [
    "APISettings",
    "AppSettings",
    "BattleNetSettings",
    "CacheSettings",
    "LoggingSettings",
    "PaginationSettings",
    "Settings",
    "get_config",
    "load_settings",
    "reload_config",
]
