"""Battle.net API client.

``BattleNetClient`` fetches JSON documents from the game-data and profile
APIs with a cached bearer token, retrying transient failures and honouring a
caller-supplied cancellation event.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from armory.services.battlenet.retry import RetryPolicy, run_with_retry
from armory.services.battlenet.session import HttpSessionManager
from armory.services.battlenet.tokens import AccessToken, TokenManager
from armory.shared.constants import BattleNetConfig, HTTPHeaders, HTTPStatusCodes
from armory.shared.errors import (
    ErrorContext,
    RequestAbortedError,
    UpstreamNotFoundError,
    UpstreamRequestError,
)
from armory.shared.logging import log_api_call

logger = logging.getLogger(__name__)


def build_url(
    region: str,
    path: str,
    *,
    locale: str | None = None,
    namespace: str | None = None,
) -> str:
    """Resolve ``path`` against the regional API origin and add query defaults.

    Absolute ``http(s)`` URLs (e.g. hrefs returned by the API) are kept as-is.
    ``locale`` and ``namespace`` are only added when the URL lacks them.

    Example:
        >>> build_url("us", "/data/wow/realm/index", locale="en_US", namespace="dynamic-us")
        'https://us.api.blizzard.com/data/wow/realm/index?locale=en_US&namespace=dynamic-us'
    """
    if path.startswith(("http://", "https://")):
        url = path
    else:
        origin = BattleNetConfig.API_ORIGIN_TEMPLATE.format(region=region)
        url = origin + (path if path.startswith("/") else f"/{path}")

    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    present = {name for name, _ in query}
    if locale and "locale" not in present:
        query.append(("locale", locale))
    if namespace and "namespace" not in present:
        query.append(("namespace", namespace))

    return urlunsplit(parts._replace(query=urlencode(query)))


class BattleNetClient:
    """Resilient client for the Battle.net REST APIs.

    Example:
        >>> client = BattleNetClient(token_manager, session_manager, metrics=metrics)
        >>> index = await client.fetch_json(
        ...     "/data/wow/pvp-season/index", region="us", locale="en_US", namespace="dynamic-us"
        ... )
    """

    def __init__(
        self,
        token_manager: TokenManager,
        session_manager: HttpSessionManager,
        policy: RetryPolicy | None = None,
        metrics: Any | None = None,
    ) -> None:
        self.token_manager = token_manager
        self.session_manager = session_manager
        self.policy = policy or RetryPolicy()
        self.metrics = metrics

    async def get_access_token(self, region: str) -> AccessToken:
        """Return a valid bearer token for ``region``."""
        return await self.token_manager.get_access_token(region)

    def get_token_cache_meta(self) -> dict[str, int]:
        """Return cached token expiries (epoch ms) keyed by region."""
        return self.token_manager.get_token_cache_meta()

    async def fetch_json(
        self,
        path: str,
        *,
        region: str,
        locale: str | None = None,
        namespace: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> Any:
        """Fetch and decode a JSON document.

        Args:
            path: API path or absolute href
            region: Battle.net region (us, eu, kr, tw)
            locale: Locale query parameter, added if absent
            namespace: Namespace query parameter, added if absent
            cancel_event: Abort signal; setting it cancels the request

        Returns:
            The decoded JSON body

        Raises:
            UpstreamNotFoundError: If Battle.net answers 404
            UpstreamRequestError: For any other non-2xx answer after retries
            RequestAbortedError: If ``cancel_event`` is set
        """
        token = await self.get_access_token(region)
        url = build_url(region, path, locale=locale, namespace=namespace)
        headers = {HTTPHeaders.AUTHORIZATION: f"Bearer {token.token}"}

        async def request() -> Any:
            session = await self.session_manager.get_session()
            started = time.perf_counter()
            async with session.get(url, headers=headers) as response:
                log_api_call(
                    logger,
                    url,
                    status_code=response.status,
                    duration_ms=(time.perf_counter() - started) * 1000,
                    context={"region": region},
                )
                if response.status == HTTPStatusCodes.NOT_FOUND:
                    raise UpstreamNotFoundError(region, path, await response.text())
                if not HTTPStatusCodes.is_success(response.status):
                    raise UpstreamRequestError(region, path, response.status, await response.text())
                return await response.json(content_type=None)

        async def attempt() -> Any:
            if cancel_event is None:
                return await request()
            return await self._race_cancel(request(), cancel_event)

        return await run_with_retry(
            attempt,
            policy=self.policy,
            operation=BattleNetConfig.OPERATION_FETCH,
            metrics=self.metrics,
            cancel_event=cancel_event,
        )

    @staticmethod
    async def _race_cancel(coro: Any, cancel_event: asyncio.Event) -> Any:
        """Await ``coro`` unless ``cancel_event`` fires first."""
        task = asyncio.ensure_future(coro)
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # The caller was cancelled; do not leave the request running
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        raise RequestAbortedError(context=ErrorContext(operation="fetch_json"))


__all__ = ["BattleNetClient", "build_url"]
