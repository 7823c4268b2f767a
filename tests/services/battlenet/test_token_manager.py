"""Tests for OAuth token caching and request coalescing."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from armory.services.battlenet.retry import RetryPolicy
from armory.services.battlenet.session import HttpSessionManager
from armory.services.battlenet.tokens import TokenManager, token_expiry
from armory.services.metrics import MetricsRegistry
from armory.shared.constants import MetricNames
from armory.shared.errors import CredentialsMissingError, TokenAcquisitionError

TOKEN_URL = "https://us.battle.net/oauth/token"
EU_TOKEN_URL = "https://eu.battle.net/oauth/token"


def _manager(session_manager: HttpSessionManager, metrics: MetricsRegistry, clock, **kwargs: Any) -> TokenManager:
    return TokenManager(
        kwargs.pop("client_id", "client"),
        kwargs.pop("client_secret", "secret"),
        session_manager,
        policy=RetryPolicy(max_retries=kwargs.pop("max_retries", 0), base_delay_ms=0, max_delay_ms=0, jitter_ms=0),
        metrics=metrics,
        clock=clock,
    )


class TestTokenExpiry:
    """Lifetime arithmetic."""

    def test_expiry_subtracts_safety_buffer(self) -> None:
        assert token_expiry(1_000, 3600) == 1_000 + 3540 * 1000

    def test_expiry_is_at_least_one_second(self) -> None:
        assert token_expiry(1_000, 30) == 2_000
        assert token_expiry(1_000, 0) == 2_000


class TestTokenManagerFailures:
    """Failure cases."""

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_without_a_request(
        self, fake_session, session_manager, metrics: MetricsRegistry, clock
    ) -> None:
        # Given
        manager = _manager(session_manager, metrics, clock, client_secret="")

        # When
        with pytest.raises(CredentialsMissingError):
            await manager.get_access_token("us")

        # Then
        assert fake_session.calls == []

    @pytest.mark.asyncio
    async def test_rejected_exchange_raises_token_error(
        self, fake_session, session_manager, metrics: MetricsRegistry, clock
    ) -> None:
        """A 401 is not retryable, so only one exchange is attempted."""
        # Given
        manager = _manager(session_manager, metrics, clock, max_retries=2)
        fake_session.add("POST", TOKEN_URL, status=401, body="invalid_client")

        # When
        with pytest.raises(TokenAcquisitionError) as exc_info:
            await manager.get_access_token("us")

        # Then
        assert exc_info.value.upstream_status == 401
        assert exc_info.value.details == {"region": "us", "body": "invalid_client"}
        assert len(fake_session.requests("POST")) == 1
        assert metrics.get_value(MetricNames.BNET_REQUESTS, {"status": "401", "operation": "token"}) == 1.0

    @pytest.mark.asyncio
    async def test_exchange_uses_client_credentials_grant(self, fake_session, session_manager, metrics, clock) -> None:
        manager = _manager(session_manager, metrics, clock)
        fake_session.add("POST", TOKEN_URL, payload={"access_token": "abc", "expires_in": 3600})

        await manager.get_access_token("us")

        [(url, kwargs)] = fake_session.requests("POST")
        assert url == TOKEN_URL
        assert kwargs["data"] == {"grant_type": "client_credentials"}
        assert (kwargs["auth"].login, kwargs["auth"].password) == ("client", "secret")

    @pytest.mark.asyncio
    async def test_payload_without_token_is_a_bad_gateway(self, fake_session, session_manager, metrics, clock) -> None:
        manager = _manager(session_manager, metrics, clock)
        fake_session.add("POST", TOKEN_URL, payload={"token_type": "bearer"})

        with pytest.raises(TokenAcquisitionError) as exc_info:
            await manager.get_access_token("us")

        assert exc_info.value.upstream_status == 502

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, fake_session, session_manager, metrics, clock) -> None:
        """The next caller after a failed exchange starts a new request."""
        # Given
        manager = _manager(session_manager, metrics, clock)
        fake_session.add("POST", TOKEN_URL, status=503, body="busy")
        fake_session.add("POST", TOKEN_URL, payload={"access_token": "fresh", "expires_in": 3600})

        # When
        with pytest.raises(TokenAcquisitionError):
            await manager.get_access_token("us")
        token = await manager.get_access_token("us")

        # Then
        assert token.token == "fresh"


class TestTokenManagerCaching:
    """Caching and coalescing."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_request(self, fake_session, session_manager, metrics, clock) -> None:
        # Given
        manager = _manager(session_manager, metrics, clock)
        fake_session.add("POST", TOKEN_URL, payload={"access_token": "abc", "expires_in": 3600})

        # When
        tokens = await asyncio.gather(*(manager.get_access_token("us") for _ in range(5)))

        # Then
        assert len(fake_session.requests("POST")) == 1
        assert {token.token for token in tokens} == {"abc"}
        assert tokens[0].expires_at == clock.now + 3540 * 1000

    @pytest.mark.asyncio
    async def test_token_is_reused_until_expiry(self, fake_session, session_manager, metrics, clock) -> None:
        # Given
        manager = _manager(session_manager, metrics, clock)
        fake_session.add("POST", TOKEN_URL, payload={"access_token": "first", "expires_in": 120})
        fake_session.add("POST", TOKEN_URL, payload={"access_token": "second", "expires_in": 120})

        # When
        first = await manager.get_access_token("us")
        clock.advance(59_999)
        reused = await manager.get_access_token("us")
        clock.advance(1)
        renewed = await manager.get_access_token("us")

        # Then
        assert first.token == reused.token == "first"
        assert renewed.token == "second"

    @pytest.mark.asyncio
    async def test_tokens_are_cached_per_region(self, fake_session, session_manager, metrics, clock) -> None:
        # Given
        manager = _manager(session_manager, metrics, clock)
        fake_session.add("POST", TOKEN_URL, payload={"access_token": "us-token", "expires_in": 3600})
        fake_session.add("POST", EU_TOKEN_URL, payload={"access_token": "eu-token", "expires_in": 7200})

        # When
        us_token = await manager.get_access_token("us")
        eu_token = await manager.get_access_token("eu")

        # Then
        assert (us_token.token, eu_token.token) == ("us-token", "eu-token")
        assert manager.get_token_cache_meta() == {
            "us": clock.now + 3540 * 1000,
            "eu": clock.now + 7140 * 1000,
        }

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_shared_request(
        self, fake_session, session_manager, metrics, clock
    ) -> None:
        # Given
        manager = _manager(session_manager, metrics, clock)
        fake_session.add("POST", TOKEN_URL, payload={"access_token": "shared", "expires_in": 3600})

        # When
        impatient = asyncio.ensure_future(manager.get_access_token("us"))
        patient = asyncio.ensure_future(manager.get_access_token("us"))
        await asyncio.sleep(0)
        impatient.cancel()
        token = await patient

        # Then
        assert impatient.cancelled()
        assert token.token == "shared"
        assert len(fake_session.requests("POST")) == 1
