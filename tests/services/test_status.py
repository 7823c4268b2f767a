"""Tests for the status snapshot."""

from __future__ import annotations

from armory.services.status import StatusService
from armory.shared.constants import MetricNames


class TestStatusService:
    """Snapshot contents."""

    def test_snapshot_without_tokens(self, fake_client, memory_store, metrics, clock) -> None:
        # Given
        memory_store.set("realms:retail:us", [], ttl_seconds=60)
        memory_store.get("character:missing")
        service = StatusService(fake_client, memory_store, metrics, clock=clock)

        # When
        snapshot = service.snapshot()

        # Then
        assert snapshot.status == "ok"
        assert snapshot.timestamp == "2023-11-14T22:13:20.000Z"
        assert snapshot.token_cached is False
        assert snapshot.tokens == []
        assert (snapshot.cache.total, snapshot.cache.active) == (1, 1)
        assert snapshot.uptime_seconds >= 0
        assert any(sample.metric == MetricNames.CACHE_MISSES for sample in snapshot.metrics)

    def test_tokens_are_listed_by_region(self, mocker, fake_client, memory_store, metrics, clock) -> None:
        mocker.patch.object(
            fake_client,
            "get_token_cache_meta",
            return_value={"us": clock.now + 3_600_000, "eu": clock.now + 60_000},
        )
        service = StatusService(fake_client, memory_store, metrics, clock=clock)

        snapshot = service.snapshot()

        assert snapshot.token_cached is True
        assert [token.region for token in snapshot.tokens] == ["eu", "us"]
        assert snapshot.tokens[0].expires_at == "2023-11-14T22:14:20.000Z"
