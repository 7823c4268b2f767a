"""Dependency Injection container for Armory.

The container manages:
- Settings (Singleton)
- Metrics registry and cache store (Singletons shared by every service)
- Cache orchestration layer and sweeper
- Battle.net session, retry policy, token manager and client
- Leaderboard, realm and character services, cache diagnostics and status
"""

from __future__ import annotations

from dependency_injector import containers, providers

from armory.config.loader import get_config
from armory.services import (
    BattleNetClient,
    CacheDiagnostics,
    CacheOrchestrator,
    CacheSweeper,
    CharacterPvpService,
    HttpSessionManager,
    MetricsRegistry,
    MythicPlusLeaderboardService,
    PvpLeaderboardService,
    RealmService,
    RetryPolicy,
    SQLiteCacheDB,
    StatusService,
    TokenManager,
)


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for Armory services.

    Every service shares one metrics registry, one cache store and one token
    manager, so token coalescing and cache counters span the whole process.

    Example:
        >>> container = Container()
        >>> service = container.pvp_leaderboard_service()
        >>> page = await service.get_leaderboard("retail", "us", "en_US", PvpLeaderboardOptions(bracket="3v3"))
    """

    # Configuration
    config = providers.Singleton(get_config)

    metrics = providers.Singleton(MetricsRegistry)

    # Cache services
    cache_store = providers.Singleton(
        SQLiteCacheDB,
        db_path=providers.Callable(lambda config: config.cache.db_path, config=config),
        metrics=metrics,
    )

    orchestrator = providers.Singleton(CacheOrchestrator, store=cache_store)

    cache_sweeper = providers.Factory(
        CacheSweeper,
        store=cache_store,
        metrics=metrics,
        interval_seconds=providers.Callable(lambda config: config.cache.cleanup_interval_seconds, config=config),
    )

    # Battle.net client
    session_manager = providers.Singleton(
        HttpSessionManager,
        request_timeout=providers.Callable(lambda config: config.api.battlenet.request_timeout, config=config),
    )

    retry_policy = providers.Singleton(
        RetryPolicy,
        max_retries=providers.Callable(lambda config: config.api.battlenet.max_retries, config=config),
        base_delay_ms=providers.Callable(lambda config: config.api.battlenet.base_retry_delay_ms, config=config),
        max_delay_ms=providers.Callable(lambda config: config.api.battlenet.max_retry_delay_ms, config=config),
        jitter_ms=providers.Callable(lambda config: config.api.battlenet.retry_jitter_ms, config=config),
    )

    token_manager = providers.Singleton(
        TokenManager,
        client_id=providers.Callable(lambda config: config.api.battlenet.client_id, config=config),
        client_secret=providers.Callable(lambda config: config.api.battlenet.client_secret, config=config),
        session_manager=session_manager,
        policy=retry_policy,
        metrics=metrics,
    )

    battlenet_client = providers.Singleton(
        BattleNetClient,
        token_manager=token_manager,
        session_manager=session_manager,
        policy=retry_policy,
        metrics=metrics,
    )

    # Domain services
    pagination_default = providers.Callable(lambda config: config.pagination.default_limit, config=config)
    pagination_max = providers.Callable(lambda config: config.pagination.max_limit, config=config)

    pvp_leaderboard_service = providers.Factory(
        PvpLeaderboardService,
        orchestrator=orchestrator,
        client=battlenet_client,
        default_limit=pagination_default,
        max_limit=pagination_max,
    )

    mythic_plus_leaderboard_service = providers.Factory(
        MythicPlusLeaderboardService,
        orchestrator=orchestrator,
        client=battlenet_client,
        default_limit=pagination_default,
        max_limit=pagination_max,
    )

    realm_service = providers.Factory(RealmService, orchestrator=orchestrator, client=battlenet_client)

    character_pvp_service = providers.Factory(
        CharacterPvpService,
        orchestrator=orchestrator,
        client=battlenet_client,
    )

    cache_diagnostics = providers.Factory(CacheDiagnostics, store=cache_store)

    status_service = providers.Singleton(
        StatusService,
        client=battlenet_client,
        store=cache_store,
        metrics=metrics,
    )
