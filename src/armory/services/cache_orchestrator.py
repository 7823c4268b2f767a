"""Cache orchestration layer.

Every upstream-backed value passes through ``CacheOrchestrator``: a hit is
served from the store with its provenance, a miss awaits the fetcher and
stores the result under the resolved TTL.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Awaitable, Callable, Iterable, TypeVar

from armory.services.cache_models import CachedResult, CacheEntry, CacheMeta
from armory.shared.constants import Cache, CacheDurations
from armory.shared.constants.system import BASE_SECOND_MS
from armory.shared.errors import ErrorCode, create_client_input_error
from armory.shared.protocols import CacheStore
from armory.shared.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _normalize_part(part: Any) -> str:
    if part is None:
        return ""
    text = str(part).strip().lower()
    return _NON_ALNUM.sub("-", text).strip("-")


def build_cache_key(parts: Iterable[Any]) -> str:
    """Build a normalized, colon-delimited cache key.

    Each part is trimmed and lower-cased, runs of non-alphanumerics collapse
    to ``-``, and parts that end up empty are dropped.

    Example:
        >>> build_cache_key(["Leaderboard", "PvP", "retail", "US", "Season 37", "3v3"])
        'leaderboard:pvp:retail:us:season-37:3v3'
    """
    normalized = (_normalize_part(part) for part in parts)
    return Cache.KEY_SEPARATOR.join(part for part in normalized if part)


def resolve_ttl(ttl_ms: int | None = None, category: str | None = None) -> int:
    """Resolve the TTL in milliseconds for a cache write.

    Precedence: explicit ``ttl_ms``, the category duration, then the
    ``profile`` duration. The result is floored at one second.

    Raises:
        ClientInputError: If ``category`` is not a known TTL category
    """
    if ttl_ms is not None:
        resolved = int(ttl_ms)
    elif category is not None:
        if category not in CacheDurations.DURATIONS_MS:
            raise create_client_input_error(
                ErrorCode.CACHE_UNKNOWN_CATEGORY,
                f"Unknown cache category: {category}",
                operation="resolve_ttl",
                details={"category": category, "allowed": sorted(CacheDurations.DURATIONS_MS)},
            )
        resolved = CacheDurations.DURATIONS_MS[category]
    else:
        resolved = CacheDurations.DURATIONS_MS[CacheDurations.DEFAULT_CATEGORY]
    return max(resolved, CacheDurations.MIN_TTL_MS)


def build_cache_meta(
    entry: CacheEntry,
    *,
    now: int,
    cached: bool,
    fallback_ttl_ms: int,
) -> CacheMeta:
    """Derive provenance for an entry from its stored TTL.

    Legacy rows written without a TTL (``ttl_ms == 0``) use ``fallback_ttl_ms``.
    """
    ttl = entry.ttl_ms if entry.ttl_ms > 0 else fallback_ttl_ms
    fetched_at = max(entry.expires_at - ttl, 0)
    return CacheMeta(
        key=entry.key,
        cached=cached,
        ttl_ms=ttl,
        expires_at=entry.expires_at,
        fetched_at=fetched_at,
        age_ms=max(now - fetched_at, 0) if cached else 0,
    )


class CacheOrchestrator:
    """Read-through cache in front of upstream fetchers.

    Errors raised by the fetcher propagate unchanged and nothing is cached.
    """

    def __init__(self, store: CacheStore, clock: Clock | None = None) -> None:
        self.store = store
        self.clock = clock or now_ms

    async def get_cached_value(
        self,
        key_parts: Iterable[Any],
        fetcher: Callable[[], Awaitable[T]],
        *,
        ttl_ms: int | None = None,
        category: str | None = None,
    ) -> CachedResult[T]:
        """Return the cached value for ``key_parts`` or fetch and store it.

        Args:
            key_parts: Semantic key parts, normalized by ``build_cache_key``
            fetcher: Coroutine factory producing the value on a miss
            ttl_ms: Explicit TTL, overrides ``category``
            category: TTL category (see ``CacheDurations``)

        Returns:
            The value with its cache metadata
        """
        key = build_cache_key(key_parts)
        ttl = resolve_ttl(ttl_ms, category)

        entry = self.store.get_entry(key)
        if entry is not None:
            meta = build_cache_meta(entry, now=self.clock(), cached=True, fallback_ttl_ms=ttl)
            logger.debug("Serving %s from cache (age %sms)", key, meta.age_ms)
            return CachedResult(value=entry.value, cache_meta=meta)

        value = await fetcher()
        stored = self.store.set(key, value, ttl_seconds=math.ceil(ttl / BASE_SECOND_MS))
        meta = build_cache_meta(stored, now=self.clock(), cached=False, fallback_ttl_ms=ttl)
        return CachedResult(value=value, cache_meta=meta)


__all__ = ["CacheOrchestrator", "build_cache_key", "build_cache_meta", "resolve_ttl"]
