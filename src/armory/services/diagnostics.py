"""Read-only cache diagnostics.

Diagnostics read rows with ``peek`` so inspecting the cache never shows up in
the hit/miss counters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from armory.services.cache_models import CacheMeta
from armory.shared.constants import Cache
from armory.shared.errors import DomainError, ErrorCode, ErrorContext, create_client_input_error
from armory.shared.protocols import CacheStore
from armory.shared.types.base import BaseDataclass
from armory.shared.utils.clock import Clock, ms_to_iso, now_ms

logger = logging.getLogger(__name__)


@dataclass
class CacheEntryReport(BaseDataclass):
    key: str
    expires_at: str | None
    ttl_ms: int
    age_ms: int | None
    expired: bool
    size_bytes: int
    value: Any = None


@dataclass
class CacheListingReport(BaseDataclass):
    entries: list[CacheEntryReport] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass
class CacheInspection(BaseDataclass):
    key: str
    value: Any
    cache_meta: CacheMeta


class CacheDiagnostics:
    """Lists and inspects cache rows with their expiry and age."""

    def __init__(self, store: CacheStore, clock: Clock | None = None) -> None:
        self.store = store
        self.clock = clock or now_ms

    def list_entries(
        self,
        prefix: str | None = None,
        limit: int = Cache.DEFAULT_LIST_LIMIT,
        include_value: bool = False,
    ) -> CacheListingReport:
        """List up to ``limit`` rows, latest expiry first, with store-wide counts.

        Raises:
            ClientInputError: ``cache:invalid_limit`` outside ``[1, 500]``
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= Cache.MAX_LIST_LIMIT:
            raise create_client_input_error(
                ErrorCode.CACHE_INVALID_LIMIT,
                f"The limit must be an integer between 1 and {Cache.MAX_LIST_LIMIT}",
                operation="list_cache_entries",
                details={"limit": str(limit)},
            )

        now = self.clock()
        entries = []
        for listing in self.store.list(prefix=prefix, limit=limit, include_value=include_value):
            fetched_at = max(listing.expires_at - listing.ttl_ms, 0) if listing.ttl_ms > 0 else None
            entries.append(
                CacheEntryReport(
                    key=listing.key,
                    expires_at=ms_to_iso(listing.expires_at),
                    ttl_ms=listing.ttl_ms,
                    age_ms=max(now - fetched_at, 0) if fetched_at is not None else None,
                    expired=listing.expires_at < now,
                    size_bytes=listing.size_bytes,
                    value=listing.value if include_value else None,
                )
            )

        stats = self.store.stats()
        return CacheListingReport(
            entries=entries,
            meta={
                "prefix": prefix,
                "limit": limit,
                "total": stats.total,
                "active": stats.active,
                "expired": stats.expired,
            },
        )

    def inspect(self, key: str, include_value: bool = True) -> CacheInspection:
        """Return one live row with its cache metadata.

        Raises:
            DomainError: ``cache:not_found`` if the key is absent or expired
        """
        now = self.clock()
        entry = self.store.peek(key)
        if entry is None or entry.is_expired(now):
            raise DomainError(
                ErrorCode.CACHE_NOT_FOUND,
                "Cache entry not found",
                ErrorContext(operation="inspect_cache_entry", additional_data={"key": key}),
            )

        return CacheInspection(
            key=key,
            value=entry.value if include_value else None,
            cache_meta=CacheMeta(
                key=key,
                cached=True,
                ttl_ms=entry.ttl_ms,
                expires_at=entry.expires_at,
                fetched_at=entry.fetched_at,
                age_ms=entry.age_ms(now),
            ),
        )


__all__ = ["CacheDiagnostics", "CacheEntryReport", "CacheInspection", "CacheListingReport"]
