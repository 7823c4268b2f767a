"""Tests for InMemoryCacheStore."""

from __future__ import annotations

import pytest

from armory.services.memory_cache import InMemoryCacheStore
from armory.services.metrics import MetricsRegistry
from armory.shared.constants import MetricNames
from armory.shared.errors import CacheError


class TestInMemoryCacheStore:
    """The in-memory store honours the same contract as SQLite."""

    def test_values_are_copies(self, memory_store: InMemoryCacheStore) -> None:
        """Mutating a returned value does not change the stored one."""
        # Given
        memory_store.set("realms:us", [{"slug": "area-52"}], ttl_seconds=60)

        # When
        first = memory_store.get("realms:us")
        first.append({"slug": "stormrage"})

        # Then
        assert memory_store.get("realms:us") == [{"slug": "area-52"}]

    def test_non_serializable_value_fails_like_sqlite(self, memory_store: InMemoryCacheStore) -> None:
        with pytest.raises(CacheError):
            memory_store.set("bad:key", {1, 2, 3})

    def test_expired_entry_is_a_miss(
        self, memory_store: InMemoryCacheStore, metrics: MetricsRegistry, clock
    ) -> None:
        # Given
        memory_store.set("pvp:a", 1, ttl_seconds=1)
        clock.advance(1_001)

        # When
        result = memory_store.get_entry("pvp:a")

        # Then
        assert result is None
        assert metrics.get_value(MetricNames.CACHE_MISSES, {"prefix": "pvp"}) == 1.0
        assert memory_store.stats().total == 0

    def test_list_stats_and_cleanup(self, memory_store: InMemoryCacheStore, clock) -> None:
        # Given
        memory_store.set("a:1", 1, ttl_seconds=1)
        memory_store.set("a:2", 2, ttl_seconds=50)
        memory_store.set("b:1", 3, ttl_seconds=100)
        clock.advance(2_000)

        # When
        listed = memory_store.list(prefix="a:")
        stats = memory_store.stats()
        purged = memory_store.cleanup()

        # Then
        assert [item.key for item in listed] == ["a:2", "a:1"]
        assert (stats.total, stats.active, stats.expired) == (3, 2, 1)
        assert purged == 1
        assert memory_store.clear() == 2
