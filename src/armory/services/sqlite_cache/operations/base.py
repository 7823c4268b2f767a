"""Base operation class for SQLite cache operations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from armory.shared.constants import Cache

if TYPE_CHECKING:
    import sqlite3

    from armory.services.metrics import MetricsRegistry
    from armory.shared.utils.clock import Clock

logger = logging.getLogger(__name__)


class BaseOperation:
    """Base class for cache operations with shared functionality."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        metrics: MetricsRegistry,
        clock: Clock,
    ) -> None:
        """Initialize base operation.

        Args:
            conn: SQLite database connection
            metrics: Registry receiving hit/miss/cleanup counters
            clock: Epoch-millisecond clock
        """
        self.conn = conn
        self.metrics = metrics
        self.clock = clock

    @staticmethod
    def _key_for_log(key: str) -> str:
        return key[: Cache.KEY_LOG_LENGTH]

    def _validate_connection(self) -> None:
        """Validate database connection is available.

        Raises:
            RuntimeError: If connection is not initialized
        """
        if self.conn is None:
            raise RuntimeError("Database connection not initialized")
