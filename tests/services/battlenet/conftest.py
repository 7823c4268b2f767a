"""Fixtures for Battle.net client tests.

``FakeSession`` stands in for ``aiohttp.ClientSession``: responses are queued
per ``(method, url)`` and consumed in order, and every call is recorded.
"""

from __future__ import annotations

import json
from collections import defaultdict, deque
from typing import Any

import pytest

from armory.services.battlenet.session import HttpSessionManager


class FakeResponse:
    """Minimal async-context-manager response."""

    def __init__(self, status: int = 200, payload: Any = None, body: str | None = None) -> None:
        self.status = status
        self._payload = payload
        self._body = body if body is not None else json.dumps(payload)

    async def text(self) -> str:
        return self._body

    async def json(self, content_type: str | None = None) -> Any:
        if self._payload is None:
            return json.loads(self._body)
        return self._payload

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class FakeSession:
    """Records requests and replays queued responses."""

    def __init__(self) -> None:
        self.closed = False
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self._routes: dict[tuple[str, str], deque[FakeResponse]] = defaultdict(deque)

    def add(self, method: str, url: str, **response: Any) -> None:
        self._routes[(method, url)].append(FakeResponse(**response))

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("GET", url, kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("POST", url, kwargs)

    def requests(self, method: str) -> list[tuple[str, dict[str, Any]]]:
        return [(url, kwargs) for verb, url, kwargs in self.calls if verb == method]

    def _dispatch(self, method: str, url: str, kwargs: dict[str, Any]) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        queue = self._routes[(method, url)]
        if not queue:
            msg = f"no response queued for {method} {url}"
            raise AssertionError(msg)
        return queue.popleft()


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def session_manager(fake_session: FakeSession) -> HttpSessionManager:
    return HttpSessionManager(session=fake_session)  # type: ignore[arg-type]
