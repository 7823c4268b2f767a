"""Services module for Armory.

Cache store and orchestration, the Battle.net client, and the domain
services built on them.
"""

from .battlenet import BattleNetClient, HttpSessionManager, RetryPolicy, TokenManager
from .cache_orchestrator import CacheOrchestrator
from .cache_sweeper import CacheSweeper
from .character_pvp import CharacterPvpService
from .diagnostics import CacheDiagnostics
from .leaderboards import MythicPlusLeaderboardService, PvpLeaderboardService
from .memory_cache import InMemoryCacheStore
from .metrics import MetricsRegistry
from .realms import RealmService
from .sqlite_cache_db import SQLiteCacheDB
from .status import StatusService

__all__ = [
    "BattleNetClient",
    "CacheDiagnostics",
    "CacheOrchestrator",
    "CacheSweeper",
    "CharacterPvpService",
    "HttpSessionManager",
    "InMemoryCacheStore",
    "MetricsRegistry",
    "MythicPlusLeaderboardService",
    "PvpLeaderboardService",
    "RealmService",
    "RetryPolicy",
    "SQLiteCacheDB",
    "StatusService",
    "TokenManager",
]
