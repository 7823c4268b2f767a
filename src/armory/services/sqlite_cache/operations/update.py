"""Update operations for SQLite cache.

Delete, purge and clear.
"""

from __future__ import annotations

import logging

from armory.services.sqlite_cache.operations.base import BaseOperation
from armory.shared.constants import Cache

logger = logging.getLogger(__name__)


class UpdateOperations(BaseOperation):
    """Update/delete operations for cache management."""

    def delete(self, key: str) -> bool:
        """Delete cache entry by key.

        Returns:
            True if deleted, False if not found
        """
        self._validate_connection()

        cursor = self.conn.execute(f"DELETE FROM {Cache.TABLE_NAME} WHERE key = ?", (key,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.debug("Cache deleted: key=%s", self._key_for_log(key))
        return deleted

    def purge_expired(self) -> int:
        """Purge expired cache entries.

        Returns:
            Number of purged entries
        """
        self._validate_connection()

        cursor = self.conn.execute(
            f"DELETE FROM {Cache.TABLE_NAME} WHERE expires_at < ?",
            (self.clock(),),
        )
        purged_count = cursor.rowcount

        if purged_count > 0:
            logger.info("Purged %d expired cache entries", purged_count)

        return purged_count

    def clear(self) -> int:
        """Delete every cache entry.

        Returns:
            Number of cleared entries
        """
        self._validate_connection()

        cursor = self.conn.execute(f"DELETE FROM {Cache.TABLE_NAME}")
        logger.info("Cleared all cache entries")
        return cursor.rowcount
