"""Service protocols for dependency inversion.

The orchestration layer, diagnostics and sweeper depend on this interface
rather than on SQLite, so any key/value backend with the same operations can
be injected (the in-memory store is used in tests).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from armory.services.cache_models import CacheEntry, CacheListing, CacheStats


class CacheStore(Protocol):
    """Persistent key/value store with absolute expiry and TTL bookkeeping.

    Example:
        >>> store: CacheStore = InMemoryCacheStore(metrics=MetricsRegistry())
        >>> store.set("realms:retail:us", [], ttl_seconds=60)
        >>> store.get("realms:retail:us")
        []
    """

    def get(self, key: str) -> Any | None:
        """Return the value for ``key``, or None if absent or expired."""

    def get_entry(self, key: str) -> CacheEntry | None:
        """Return the live entry for ``key``; expired rows are dropped and count as a miss."""

    def peek(self, key: str) -> CacheEntry | None:
        """Return the stored row for ``key`` without expiry handling or metrics."""

    def set(self, key: str, value: Any, ttl_seconds: int = 300) -> CacheEntry:
        """Upsert ``value`` with a TTL; replaces both value and expiry."""

    def delete(self, key: str) -> bool:
        """Delete ``key``; True if a row was removed."""

    def list(
        self,
        prefix: str | None = None,
        limit: int = 100,
        include_value: bool = False,
    ) -> list[CacheListing]:
        """List rows by key prefix, latest expiry first."""

    def stats(self) -> CacheStats:
        """Count total, active and expired rows."""

    def cleanup(self) -> int:
        """Delete all expired rows and return how many were removed."""

    def clear(self) -> int:
        """Delete every row and return how many were removed."""

    def close(self) -> None:
        """Release underlying resources."""
