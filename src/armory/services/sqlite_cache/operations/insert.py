"""Insert operations for SQLite cache."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from armory.services.cache_models import CacheEntry
from armory.services.sqlite_cache.operations.base import BaseOperation
from armory.shared.constants import Cache
from armory.shared.constants.system import BASE_SECOND_MS
from armory.shared.errors import ErrorCode, create_cache_error

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def serialize_value(key: str, value: Any) -> str:
    """Serialize a cache value to JSON text.

    Raises:
        CacheError: If the value is not JSON-serializable
    """
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise create_cache_error(
            ErrorCode.CACHE_SERIALIZATION_FAILED,
            f"Cache value for {key[: Cache.KEY_LOG_LENGTH]} is not JSON-serializable",
            operation="cache_set",
            key=key,
            original_error=e,
        ) from e


class InsertOperations(BaseOperation):
    """Insert operations for cache storage."""

    def insert(
        self,
        key: str,
        value: Any,
        ttl_seconds: int = Cache.DEFAULT_TTL_SECONDS,
    ) -> CacheEntry:
        """Upsert ``value`` under ``key``.

        Both value and expiry are replaced; ``expires_at`` is derived from the
        recorded ``ttl_ms``.

        Args:
            key: Cache key identifier
            value: JSON-serializable value
            ttl_seconds: Time-to-live in seconds, floored at 1

        Returns:
            The entry as written

        Raises:
            CacheError: If the value cannot be serialized
        """
        self._validate_connection()

        serialized = serialize_value(key, value)
        ttl_ms = max(int(ttl_seconds), 1) * BASE_SECOND_MS
        expires_at = self.clock() + ttl_ms

        self.conn.execute(
            f"INSERT OR REPLACE INTO {Cache.TABLE_NAME} (key, value, expires_at, ttl_ms) "
            "VALUES (?, ?, ?, ?)",
            (key, serialized, expires_at, ttl_ms),
        )

        logger.debug(
            "Cache inserted: key=%s, size=%d bytes, ttl=%dms",
            self._key_for_log(key),
            len(serialized.encode("utf-8")),
            ttl_ms,
        )
        return CacheEntry(key=key, value=value, expires_at=expires_at, ttl_ms=ttl_ms)
