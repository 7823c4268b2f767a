"""SQLite cache database facade.

Key/value cache for normalized Battle.net responses. Values are stored as JSON
text with an absolute expiry; the TTL each row was written with is kept next
to it so readers can report provenance without recomputing it.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, TypeVar

from armory.services.cache_models import CacheEntry, CacheListing, CacheStats
from armory.services.metrics import MetricsRegistry
from armory.services.sqlite_cache.migration.manager import MigrationManager
from armory.services.sqlite_cache.operations.insert import InsertOperations
from armory.services.sqlite_cache.operations.query import QueryOperations
from armory.services.sqlite_cache.operations.update import UpdateOperations
from armory.shared.constants import Cache, MetricNames
from armory.shared.errors import (
    ArmoryError,
    CacheError,
    ErrorCode,
    ErrorContext,
)
from armory.shared.logging import log_operation_error, log_operation_success
from armory.shared.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

R = TypeVar("R")


class SQLiteCacheDB:
    """SQLite-backed cache store.

    Uses WAL mode and autocommit so a single connection serves the whole
    process without external locking. Expired rows are purged on startup,
    lazily on read, and by ``cleanup()``.

    Attributes:
        db_path: Path to SQLite database file
        metrics: Registry receiving cache counters
        conn: SQLite database connection

    Example:
        >>> cache = SQLiteCacheDB(Path("armory_cache.db"), metrics=MetricsRegistry())
        >>> cache.set("realms:retail:us:en-us", [{"slug": "area-52"}], ttl_seconds=2700)
        >>> cache.get("realms:retail:us:en-us")
        [{'slug': 'area-52'}]
        >>> cache.close()
    """

    def __init__(
        self,
        db_path: Path | str,
        metrics: MetricsRegistry | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize SQLite cache database.

        Args:
            db_path: Path to SQLite database file (``":memory:"`` is accepted)
            metrics: Registry for hit/miss/cleanup counters
            clock: Epoch-millisecond clock

        Raises:
            CacheError: If database initialization fails
        """
        self.db_path = Path(db_path) if str(db_path) != ":memory:" else None
        self._db_target = str(db_path)
        self.metrics = metrics or MetricsRegistry()
        self.clock = clock or now_ms
        self.conn: sqlite3.Connection | None = None
        self._initialize_db()

    def _initialize_db(self) -> None:
        """Initialize database with WAL mode and schema.

        Raises:
            CacheError: If database connection or schema creation fails
        """
        context = ErrorContext(
            operation="initialize_db",
            additional_data={"db_path": self._db_target},
        )

        try:
            if self.db_path is not None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.conn = sqlite3.connect(
                self._db_target,
                check_same_thread=False,
                isolation_level=None,  # Auto-commit mode
            )

            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")

            MigrationManager(self.conn).create_tables()

            self._query_ops = QueryOperations(self.conn, self.metrics, self.clock)
            self._insert_ops = InsertOperations(self.conn, self.metrics, self.clock)
            self._update_ops = UpdateOperations(self.conn, self.metrics, self.clock)

            purged_count = self._update_ops.purge_expired()
            if purged_count > 0:
                logger.info("Purged %d expired cache entries on startup", purged_count)

            log_operation_success(
                logger=logger,
                operation="initialize_db",
                duration_ms=0,
                context=context,
            )

        except (sqlite3.Error, OSError, RuntimeError) as e:
            error = CacheError(
                ErrorCode.CACHE_STORAGE_FAILED,
                f"Failed to initialize SQLite cache: {e!s}",
                context,
                e,
            )
            log_operation_error(logger=logger, error=error, operation="initialize_db")
            raise error from e

    def _run(self, operation: str, key: str | None, func: Callable[[], R]) -> R:
        """Run a store operation, wrapping driver failures in CacheError."""
        try:
            return func()
        except ArmoryError:
            raise
        except (sqlite3.Error, RuntimeError) as e:
            error = CacheError(
                ErrorCode.CACHE_STORAGE_FAILED,
                f"Cache {operation} failed: {e!s}",
                ErrorContext(operation=operation, additional_data={"key": key}),
                e,
            )
            log_operation_error(logger=logger, error=error, operation=operation)
            raise error from e

    def get(self, key: str) -> Any | None:
        """Retrieve a value from cache.

        Returns:
            Cached value if found and not expired, None otherwise

        Raises:
            CacheError: If database operation fails
        """
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def get_entry(self, key: str) -> CacheEntry | None:
        """Retrieve the live entry for ``key``, counting a hit or a miss."""
        return self._run("cache_get", key, lambda: self._query_ops.get_entry(key))

    def peek(self, key: str) -> CacheEntry | None:
        """Retrieve the stored row for ``key`` even if expired, without metrics."""
        return self._run("cache_peek", key, lambda: self._query_ops.peek(key))

    def set(self, key: str, value: Any, ttl_seconds: int = Cache.DEFAULT_TTL_SECONDS) -> CacheEntry:
        """Store a value in cache.

        Args:
            key: Cache key identifier
            value: JSON-serializable value
            ttl_seconds: Time-to-live in seconds

        Returns:
            The entry as written

        Raises:
            CacheError: If the value cannot be serialized or the write fails
        """
        return self._run("cache_set", key, lambda: self._insert_ops.insert(key, value, ttl_seconds))

    def delete(self, key: str) -> bool:
        """Delete cache entry by key.

        Returns:
            True if deleted, False if not found
        """
        return self._run("cache_delete", key, lambda: self._update_ops.delete(key))

    def list(
        self,
        prefix: str | None = None,
        limit: int = Cache.DEFAULT_LIST_LIMIT,
        include_value: bool = False,
    ) -> list[CacheListing]:
        """List rows by key prefix, latest expiry first."""
        return self._run(
            "cache_list",
            prefix,
            lambda: self._query_ops.list(prefix, limit, include_value),
        )

    def stats(self) -> CacheStats:
        """Count total, active and expired rows."""
        return self._run("cache_stats", None, self._query_ops.stats)

    def cleanup(self) -> int:
        """Purge expired cache entries and count the sweep.

        Returns:
            Number of purged entries
        """
        purged = self._run("cache_cleanup", None, self._update_ops.purge_expired)
        self.metrics.increment(MetricNames.CACHE_CLEANUP)
        return purged

    def clear(self) -> int:
        """Delete every cache entry."""
        return self._run("cache_clear", None, self._update_ops.clear)

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed SQLite cache connection: %s", self._db_target)
