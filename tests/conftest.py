"""
Pytest configuration and shared fixtures for Armory tests.

Time is controlled through a fake epoch-millisecond clock so TTL and token
expiry can be exercised without sleeping.
"""

from __future__ import annotations

import os
from typing import Any
from unittest.mock import AsyncMock

import pytest

from armory.services.cache_orchestrator import CacheOrchestrator
from armory.services.memory_cache import InMemoryCacheStore
from armory.services.metrics import MetricsRegistry

# Keep settings loading independent of the developer's environment
os.environ.setdefault("ARMORY_API__BATTLENET__CLIENT_ID", "test-client-id")
os.environ.setdefault("ARMORY_API__BATTLENET__CLIENT_SECRET", "test-client-secret")  # pragma: allowlist secret

START_MS = 1_700_000_000_000


class FakeClock:
    """Callable clock returning a settable epoch-millisecond time."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics(clock: FakeClock) -> MetricsRegistry:
    """A private metrics registry per test."""
    return MetricsRegistry(clock=clock)


@pytest.fixture
def memory_store(metrics: MetricsRegistry, clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(metrics=metrics, clock=clock)


@pytest.fixture
def orchestrator(memory_store: InMemoryCacheStore, clock: FakeClock) -> CacheOrchestrator:
    return CacheOrchestrator(memory_store, clock=clock)


@pytest.fixture
def fake_client() -> Any:
    """Stand-in for BattleNetClient whose ``fetch_json`` routes on the path.

    Tests fill ``fake_client.responses`` with ``{path_fragment: payload}``; a
    payload that is an exception instance is raised instead.
    """

    class FakeBattleNetClient:
        def __init__(self) -> None:
            self.responses: dict[str, Any] = {}
            self.fetch_json = AsyncMock(side_effect=self._respond)

        async def _respond(self, path: str, **kwargs: Any) -> Any:
            for fragment, payload in self.responses.items():
                if fragment in path:
                    if isinstance(payload, BaseException):
                        raise payload
                    return payload
            msg = f"unexpected path {path}"
            raise AssertionError(msg)

        def get_token_cache_meta(self) -> dict[str, int]:
            return {}

    return FakeBattleNetClient()
