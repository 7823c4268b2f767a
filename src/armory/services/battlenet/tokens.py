"""
Battle.net OAuth token management.

Client-credentials tokens are cached per region. Concurrent callers that find
no valid token share a single in-flight request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import aiohttp

from armory.services.battlenet.retry import RetryPolicy, run_with_retry
from armory.services.battlenet.session import HttpSessionManager
from armory.shared.constants import BattleNetConfig, HTTPStatusCodes
from armory.shared.constants.system import BASE_SECOND_MS
from armory.shared.errors import CredentialsMissingError, TokenAcquisitionError
from armory.shared.logging import log_api_call
from armory.shared.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    """Bearer token and its absolute expiry (epoch ms)."""

    token: str
    expires_at: int

    def is_valid(self, now: int) -> bool:
        return now < self.expires_at


def token_expiry(now: int, expires_in: int | float) -> int:
    """Expiry for a token issued at ``now`` with a lifetime of ``expires_in`` seconds.

    The lifetime is shortened by a safety buffer but never below one second.
    """
    lifetime = max(int(expires_in) - BattleNetConfig.TOKEN_EXPIRY_BUFFER, BattleNetConfig.MIN_TOKEN_LIFETIME)
    return now + lifetime * BASE_SECOND_MS


class TokenManager:
    """Per-region client-credentials token cache with request coalescing."""

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        session_manager: HttpSessionManager,
        policy: RetryPolicy | None = None,
        metrics: Any | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self.session_manager = session_manager
        self.policy = policy or RetryPolicy()
        self.metrics = metrics
        self.clock = clock or now_ms
        self._tokens: dict[str, AccessToken] = {}
        self._pending: dict[str, asyncio.Future[AccessToken]] = {}

    def require_credentials(self) -> tuple[str, str]:
        """Return the client id and secret.

        Raises:
            CredentialsMissingError: If either value is empty
        """
        client_id = self._client_id or ""
        client_secret = self._client_secret or ""
        missing = [name for name, value in (("client_id", client_id), ("client_secret", client_secret)) if not value]
        if missing:
            raise CredentialsMissingError(missing)
        return client_id, client_secret

    async def get_access_token(self, region: str) -> AccessToken:
        """Return a valid token for ``region``, requesting one if needed.

        Raises:
            CredentialsMissingError: If the client id or secret is not configured
            TokenAcquisitionError: If the token endpoint rejects the exchange
        """
        cached = self._tokens.get(region)
        if cached is not None and cached.is_valid(self.clock()):
            return cached

        pending = self._pending.get(region)
        if pending is None:
            pending = asyncio.ensure_future(self._request_token(region))
            self._pending[region] = pending
            pending.add_done_callback(lambda future: self._settle(region, future))

        # Shield so one cancelled waiter does not cancel the shared request
        return await asyncio.shield(pending)

    def _settle(self, region: str, future: asyncio.Future[AccessToken]) -> None:
        if self._pending.get(region) is future:
            del self._pending[region]
        if not future.cancelled() and future.exception() is not None:
            logger.debug("Token request for %s failed: %s", region, future.exception())

    async def _request_token(self, region: str) -> AccessToken:
        client_id, client_secret = self.require_credentials()
        url = BattleNetConfig.OAUTH_URL_TEMPLATE.format(region=region)

        async def attempt() -> dict[str, Any]:
            session = await self.session_manager.get_session()
            started = time.perf_counter()
            async with session.post(
                url,
                data={"grant_type": BattleNetConfig.GRANT_TYPE},
                auth=aiohttp.BasicAuth(client_id, client_secret),
            ) as response:
                log_api_call(
                    logger,
                    url,
                    method="POST",
                    status_code=response.status,
                    duration_ms=(time.perf_counter() - started) * 1000,
                    context={"region": region},
                )
                if not HTTPStatusCodes.is_success(response.status):
                    raise TokenAcquisitionError(region, response.status, await response.text())
                payload = await response.json(content_type=None)

            if not isinstance(payload, dict) or not payload.get("access_token"):
                raise TokenAcquisitionError(region, HTTPStatusCodes.BAD_GATEWAY, str(payload))
            return payload

        payload = await run_with_retry(
            attempt,
            policy=self.policy,
            operation=BattleNetConfig.OPERATION_TOKEN,
            metrics=self.metrics,
        )

        token = AccessToken(
            token=payload["access_token"],
            expires_at=token_expiry(self.clock(), payload.get("expires_in", 0)),
        )
        self._tokens[region] = token
        logger.info("Obtained Battle.net access token for region %s", region)
        return token

    def get_token_cache_meta(self) -> dict[str, int]:
        """Return the expiry (epoch ms) of every cached token, keyed by region."""
        return {region: token.expires_at for region, token in self._tokens.items()}


__all__ = ["AccessToken", "TokenManager", "token_expiry"]
