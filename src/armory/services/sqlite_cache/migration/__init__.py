"""SQLite cache migration module."""

from armory.services.sqlite_cache.migration.manager import MigrationManager

__all__ = ["MigrationManager"]
