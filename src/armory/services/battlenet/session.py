"""Async HTTP session manager.

Owns the ``aiohttp.ClientSession`` shared by the token manager and the API
client. The session is created lazily on first use so that construction
never needs a running event loop.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from armory.shared.constants import ContentTypes, HTTPHeaders, NetworkConfig

logger = logging.getLogger(__name__)


class HttpSessionManager:
    """Manages the aiohttp.ClientSession lifecycle.

    Example:
        >>> manager = HttpSessionManager(request_timeout=30)
        >>> session = await manager.get_session()
        >>> await manager.close_session()
    """

    def __init__(
        self,
        request_timeout: float = NetworkConfig.REQUEST_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the session manager.

        Args:
            request_timeout: Total per-request timeout in seconds
            session: Pre-built session (tests); it is not closed by this manager
        """
        self.request_timeout = request_timeout
        self._session = session
        self._owns_session = session is None
        self._session_lock: asyncio.Lock | None = None

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session_lock is None:
            self._session_lock = asyncio.Lock()
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = self._create_session()
                self._owns_session = True
            return self._session

    def _create_session(self) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        headers = {
            HTTPHeaders.USER_AGENT: NetworkConfig.USER_AGENT,
            HTTPHeaders.ACCEPT: ContentTypes.JSON,
        }
        logger.debug("Creating aiohttp.ClientSession (timeout=%ss)", self.request_timeout)
        return aiohttp.ClientSession(timeout=timeout, headers=headers)

    def is_session_ready(self) -> bool:
        """Check if a usable session exists."""
        return self._session is not None and not self._session.closed

    async def close_session(self) -> None:
        """Close the HTTP session if this manager created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("aiohttp.ClientSession closed")
        self._session = None
