"""In-memory cache store.

Same contract as ``SQLiteCacheDB`` without persistence.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from armory.services.cache_models import CacheEntry, CacheListing, CacheStats, extract_prefix
from armory.services.metrics import MetricsRegistry
from armory.services.sqlite_cache.operations.insert import serialize_value
from armory.shared.constants import Cache, MetricNames
from armory.shared.constants.system import BASE_SECOND_MS
from armory.shared.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)


class InMemoryCacheStore:
    """Dict-backed cache store.

    Values are kept as JSON text so callers get fresh copies and
    non-serializable values fail exactly as they would against SQLite.
    """

    def __init__(self, metrics: MetricsRegistry | None = None, clock: Clock | None = None) -> None:
        self.metrics = metrics or MetricsRegistry()
        self.clock = clock or now_ms
        self._rows: dict[str, tuple[str, int, int]] = {}

    def _record(self, metric: str, key: str) -> None:
        self.metrics.increment(metric, labels={"prefix": extract_prefix(key)})

    def get(self, key: str) -> Any | None:
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def get_entry(self, key: str) -> CacheEntry | None:
        row = self._rows.get(key)
        if row is None:
            self._record(MetricNames.CACHE_MISSES, key)
            return None

        serialized, expires_at, ttl_ms = row
        if self.clock() > expires_at:
            del self._rows[key]
            self._record(MetricNames.CACHE_MISSES, key)
            return None

        self._record(MetricNames.CACHE_HITS, key)
        return CacheEntry(key=key, value=json.loads(serialized), expires_at=expires_at, ttl_ms=ttl_ms)

    def peek(self, key: str) -> CacheEntry | None:
        row = self._rows.get(key)
        if row is None:
            return None
        serialized, expires_at, ttl_ms = row
        return CacheEntry(key=key, value=json.loads(serialized), expires_at=expires_at, ttl_ms=ttl_ms)

    def set(self, key: str, value: Any, ttl_seconds: int = Cache.DEFAULT_TTL_SECONDS) -> CacheEntry:
        serialized = serialize_value(key, value)
        ttl_ms = max(int(ttl_seconds), 1) * BASE_SECOND_MS
        expires_at = self.clock() + ttl_ms
        self._rows[key] = (serialized, expires_at, ttl_ms)
        return CacheEntry(key=key, value=value, expires_at=expires_at, ttl_ms=ttl_ms)

    def delete(self, key: str) -> bool:
        return self._rows.pop(key, None) is not None

    def list(
        self,
        prefix: str | None = None,
        limit: int = Cache.DEFAULT_LIST_LIMIT,
        include_value: bool = False,
    ) -> list[CacheListing]:
        matching = [
            (key, row) for key, row in self._rows.items() if not prefix or key.startswith(prefix)
        ]
        matching.sort(key=lambda item: item[1][1], reverse=True)
        return [
            CacheListing(
                key=key,
                expires_at=expires_at,
                ttl_ms=ttl_ms,
                size_bytes=len(serialized.encode("utf-8")),
                value=json.loads(serialized) if include_value else None,
            )
            for key, (serialized, expires_at, ttl_ms) in matching[:limit]
        ]

    def stats(self) -> CacheStats:
        now = self.clock()
        total = len(self._rows)
        expired = sum(1 for _, expires_at, _ in self._rows.values() if expires_at < now)
        return CacheStats(total=total, active=total - expired, expired=expired)

    def cleanup(self) -> int:
        now = self.clock()
        expired_keys = [key for key, (_, expires_at, _) in self._rows.items() if expires_at < now]
        for key in expired_keys:
            del self._rows[key]
        if expired_keys:
            logger.info("Purged %d expired cache entries", len(expired_keys))
        self.metrics.increment(MetricNames.CACHE_CLEANUP)
        return len(expired_keys)

    def clear(self) -> int:
        count = len(self._rows)
        self._rows.clear()
        return count

    def close(self) -> None:
        self._rows.clear()
