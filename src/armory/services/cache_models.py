"""Cache entry Dataclass models.

This module defines the records owned by the cache store and the provenance
metadata the orchestration layer attaches to every returned value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from armory.shared.constants import Cache
from armory.shared.types.base import BaseDataclass
from armory.shared.utils.clock import ms_to_iso

T = TypeVar("T")

__all__ = ["CacheEntry", "CacheListing", "CacheMeta", "CacheStats", "CachedResult", "extract_prefix"]


def extract_prefix(key: str) -> str:
    """Return the first colon-delimited segment of a cache key."""
    prefix, _, _ = key.partition(Cache.KEY_SEPARATOR)
    return prefix or Cache.UNKNOWN_PREFIX


@dataclass
class CacheEntry(BaseDataclass):
    """Cache store record.

    ``ttl_ms`` is the source of truth; ``expires_at`` is derived from it at
    write time (``expires_at = fetched_at + ttl_ms``).

    Attributes:
        key: Normalized cache key (e.g. "leaderboard:pvp:retail:us:season-37:3v3")
        value: Deserialized JSON value
        expires_at: Absolute expiry in epoch milliseconds
        ttl_ms: TTL the entry was written with (0 for legacy rows)

    Example:
        >>> entry = CacheEntry(key="realms:retail:us", value=[], expires_at=61_000, ttl_ms=60_000)
        >>> entry.fetched_at
        1000
    """

    key: str
    value: Any
    expires_at: int
    ttl_ms: int = 0

    def __post_init__(self) -> None:
        """Validate CacheEntry fields after initialization.

        Raises:
            ValueError: If the key is empty or the TTL negative
        """
        if not self.key or not self.key.strip():
            msg = "key must be non-empty"
            raise ValueError(msg)
        if self.ttl_ms < 0:
            msg = f"ttl_ms must be non-negative, got {self.ttl_ms}"
            raise ValueError(msg)

    @property
    def fetched_at(self) -> int | None:
        """Write time, or None for legacy rows without a recorded TTL."""
        if self.ttl_ms <= 0:
            return None
        return max(self.expires_at - self.ttl_ms, 0)

    def is_expired(self, now: int) -> bool:
        """Check if the entry is past its expiry at ``now`` (epoch ms)."""
        return now > self.expires_at

    def age_ms(self, now: int) -> int | None:
        """Milliseconds since the entry was written."""
        fetched_at = self.fetched_at
        if fetched_at is None:
            return None
        return max(now - fetched_at, 0)


@dataclass
class CacheListing(BaseDataclass):
    """Diagnostic view of a stored row."""

    key: str
    expires_at: int
    ttl_ms: int
    size_bytes: int
    value: Any = None


@dataclass
class CacheStats(BaseDataclass):
    """Row counts by liveness."""

    total: int = 0
    active: int = 0
    expired: int = 0


@dataclass
class CacheMeta(BaseDataclass):
    """Provenance of a value returned through the orchestration layer.

    Derived at read time, never persisted.
    """

    key: str
    cached: bool
    ttl_ms: int
    expires_at: int | None
    fetched_at: int | None
    age_ms: int | None

    def to_response(self) -> dict[str, Any]:
        """Caller-facing shape: key, ISO expiry, TTL and age."""
        return {
            "key": self.key,
            "expiresAt": ms_to_iso(self.expires_at),
            "ttlMs": self.ttl_ms,
            "ageMs": self.age_ms,
        }


@dataclass
class CachedResult(Generic[T]):
    """A value together with its cache provenance."""

    value: T
    cache_meta: CacheMeta
