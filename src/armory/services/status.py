"""Service status snapshot."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from armory.services.cache_models import CacheStats
from armory.services.metrics import MetricSample, MetricsRegistry
from armory.shared.protocols import CacheStore
from armory.shared.types.base import BaseDataclass
from armory.shared.utils.clock import Clock, ms_to_iso, now_ms


@dataclass
class TokenStatus(BaseDataclass):
    region: str
    expires_at: str | None


@dataclass
class StatusSnapshot(BaseDataclass):
    status: str
    timestamp: str | None
    uptime_seconds: float
    token_cached: bool
    tokens: list[TokenStatus] = field(default_factory=list)
    cache: CacheStats = field(default_factory=CacheStats)
    metrics: list[MetricSample] = field(default_factory=list)


class StatusService:
    """Reports token cache state, cache counts and metric samples."""

    def __init__(
        self,
        client: Any,
        store: CacheStore,
        metrics: MetricsRegistry,
        clock: Clock | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.metrics = metrics
        self.clock = clock or now_ms
        self._started = time.monotonic()

    def snapshot(self) -> StatusSnapshot:
        tokens = [
            TokenStatus(region=region, expires_at=ms_to_iso(expires_at))
            for region, expires_at in sorted(self.client.get_token_cache_meta().items())
        ]
        return StatusSnapshot(
            status="ok",
            timestamp=ms_to_iso(self.clock()),
            uptime_seconds=round(time.monotonic() - self._started, 3),
            token_cached=any(token.expires_at for token in tokens),
            tokens=tokens,
            cache=self.store.stats(),
            metrics=self.metrics.list(),
        )


__all__ = ["StatusService", "StatusSnapshot", "TokenStatus"]
