"""Migration manager for SQLite cache.

Schema history:

- v1: ``cache(key, value, expires_at)`` with an index on ``expires_at``
- v2: adds ``ttl_ms`` so readers can report provenance from the stored TTL
"""

from __future__ import annotations

import logging
import sqlite3

from armory.shared.constants import Cache

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 2


class MigrationManager:
    """Database schema migration manager."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize migration manager.

        Args:
            conn: SQLite database connection
        """
        self.conn = conn
        self._current_version = self._get_current_version()

    def get_current_version(self) -> int:
        """Get current schema version."""
        return self._current_version

    def _get_current_version(self) -> int:
        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        if cursor.fetchone() is None:
            return 0

        cursor = self.conn.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        return row[0] if row and row[0] is not None else 0

    def _column_names(self) -> set[str]:
        cursor = self.conn.execute(f"PRAGMA table_info({Cache.TABLE_NAME})")
        return {row[1] for row in cursor.fetchall()}

    def create_tables(self) -> None:
        """Create the cache schema and bring legacy databases up to date."""
        schema_sql = f"""
        CREATE TABLE IF NOT EXISTS {Cache.TABLE_NAME} (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            expires_at INTEGER NOT NULL,
            ttl_ms INTEGER NOT NULL DEFAULT 0,

            CHECK (length(key) > 0)
        );

        CREATE INDEX IF NOT EXISTS idx_expires_at ON {Cache.TABLE_NAME}(expires_at);

        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL
        );
        """
        self.conn.executescript(schema_sql)

        # Databases written before ttl_ms existed keep their rows; the
        # column defaults to 0 and readers fall back to the resolved TTL.
        if "ttl_ms" not in self._column_names():
            self._apply_migration(2)

        self.conn.execute(
            "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
            (CURRENT_SCHEMA_VERSION,),
        )
        self._current_version = CURRENT_SCHEMA_VERSION
        logger.debug("Cache schema ready (v%d)", CURRENT_SCHEMA_VERSION)

    def _apply_migration(self, version: int) -> None:
        """Apply a single upgrade step.

        Raises:
            RuntimeError: If the step is unknown or fails
        """
        if version != 2:
            msg = f"Migration script for version {version} not found"
            raise RuntimeError(msg)

        try:
            self.conn.execute(
                f"ALTER TABLE {Cache.TABLE_NAME} ADD COLUMN ttl_ms INTEGER NOT NULL DEFAULT 0"
            )
        except sqlite3.Error as e:
            logger.exception("Failed to apply migration to version %d", version)
            error_msg = f"Migration to version {version} failed: {e!s}"
            raise RuntimeError(error_msg) from e

        logger.info("Applied migration v2 (ttl_ms column)")

    def get_migration_history(self) -> list[dict[str, int | str]]:
        """Get migration history as ``{version, applied_at}`` records."""
        cursor = self.conn.execute(
            "SELECT version, applied_at FROM schema_version ORDER BY version"
        )
        return [{"version": row[0], "applied_at": row[1]} for row in cursor.fetchall()]
