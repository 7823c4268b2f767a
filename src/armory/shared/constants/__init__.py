"""
Armory Constants Module

Centralized constants for the Armory application. Magic values live here so
that the cache, client and leaderboard layers agree on a single definition.
"""

from .cache import Cache, CacheDurations, Pagination
from .http_codes import ContentTypes, HTTPHeaders, HTTPStatusCodes
from .metrics import MetricNames
from .network import BattleNetConfig, NetworkConfig
from .system import Application, FileSystem, Logging

__all__ = [
    "Application",
    "BattleNetConfig",
    "Cache",
    "CacheDurations",
    "ContentTypes",
    "FileSystem",
    "HTTPHeaders",
    "HTTPStatusCodes",
    "Logging",
    "MetricNames",
    "NetworkConfig",
    "Pagination",
]
