"""Query operations for SQLite cache.

Reads count hits and misses per key prefix; expired rows are dropped on read.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from armory.services.cache_models import CacheEntry, CacheListing, CacheStats, extract_prefix
from armory.services.sqlite_cache.operations.base import BaseOperation
from armory.shared.constants import Cache, MetricNames

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


def _deserialize_value(raw: str, key: str) -> Any:
    """Deserialize a stored JSON value, returning ``_MISSING`` on corruption."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(
            "Failed to deserialize cache data for key %s: %s",
            key[: Cache.KEY_LOG_LENGTH],
            str(e),
        )
        return _MISSING


class QueryOperations(BaseOperation):
    """Query operations for cache retrieval."""

    def _record(self, metric: str, key: str) -> None:
        self.metrics.increment(metric, labels={"prefix": extract_prefix(key)})

    def get_entry(self, key: str) -> CacheEntry | None:
        """Retrieve the live entry for ``key``.

        Expired and unreadable rows are deleted and counted as misses.

        Args:
            key: Cache key identifier

        Returns:
            CacheEntry if found and not expired, None otherwise
        """
        self._validate_connection()

        cursor = self.conn.execute(
            f"SELECT value, expires_at, ttl_ms FROM {Cache.TABLE_NAME} WHERE key = ?",
            (key,),
        )
        row = cursor.fetchone()

        if row is None:
            logger.debug("Cache miss: key=%s", self._key_for_log(key))
            self._record(MetricNames.CACHE_MISSES, key)
            return None

        raw_value, expires_at, ttl_ms = row
        if self.clock() > expires_at:
            self.conn.execute(f"DELETE FROM {Cache.TABLE_NAME} WHERE key = ?", (key,))
            logger.debug("Cache expired: key=%s", self._key_for_log(key))
            self._record(MetricNames.CACHE_MISSES, key)
            return None

        value = _deserialize_value(raw_value, key)
        if value is _MISSING:
            self.conn.execute(f"DELETE FROM {Cache.TABLE_NAME} WHERE key = ?", (key,))
            self._record(MetricNames.CACHE_MISSES, key)
            return None

        logger.debug("Cache hit: key=%s", self._key_for_log(key))
        self._record(MetricNames.CACHE_HITS, key)
        return CacheEntry(key=key, value=value, expires_at=expires_at, ttl_ms=ttl_ms)

    def peek(self, key: str) -> CacheEntry | None:
        """Return the stored row regardless of expiry, without touching metrics."""
        self._validate_connection()

        cursor = self.conn.execute(
            f"SELECT value, expires_at, ttl_ms FROM {Cache.TABLE_NAME} WHERE key = ?",
            (key,),
        )
        row = cursor.fetchone()
        if row is None:
            return None

        raw_value, expires_at, ttl_ms = row
        value = _deserialize_value(raw_value, key)
        return CacheEntry(
            key=key,
            value=None if value is _MISSING else value,
            expires_at=expires_at,
            ttl_ms=ttl_ms,
        )

    def list(
        self,
        prefix: str | None = None,
        limit: int = Cache.DEFAULT_LIST_LIMIT,
        include_value: bool = False,
    ) -> list[CacheListing]:
        """List rows whose key starts with ``prefix``, latest expiry first."""
        self._validate_connection()

        sql = (
            f"SELECT key, value, expires_at, ttl_ms FROM {Cache.TABLE_NAME} "
            "WHERE (? IS NULL OR key LIKE ? ESCAPE '\\') "
            "ORDER BY expires_at DESC LIMIT ?"
        )
        pattern = None
        if prefix:
            escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"{escaped}%"

        cursor = self.conn.execute(sql, (pattern, pattern, limit))

        listings: list[CacheListing] = []
        for key, raw_value, expires_at, ttl_ms in cursor.fetchall():
            value = None
            if include_value:
                decoded = _deserialize_value(raw_value, key)
                value = None if decoded is _MISSING else decoded
            listings.append(
                CacheListing(
                    key=key,
                    expires_at=expires_at,
                    ttl_ms=ttl_ms,
                    size_bytes=len(raw_value.encode("utf-8")),
                    value=value,
                )
            )
        return listings

    def stats(self) -> CacheStats:
        """Count total, active and expired rows at the current time."""
        self._validate_connection()

        cursor = self.conn.execute(
            f"SELECT COUNT(*), COALESCE(SUM(CASE WHEN expires_at < ? THEN 1 ELSE 0 END), 0) "
            f"FROM {Cache.TABLE_NAME}",
            (self.clock(),),
        )
        total, expired = cursor.fetchone()
        return CacheStats(total=total, active=total - expired, expired=expired)
