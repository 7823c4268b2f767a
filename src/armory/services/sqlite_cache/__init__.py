"""SQLite cache module with modular operations.

The facade lives in ``armory.services.sqlite_cache_db``; this package holds
the schema migration and the separated query, insert and update operations
it delegates to.
"""

from armory.services.sqlite_cache.migration.manager import MigrationManager
from armory.services.sqlite_cache.operations import (
    InsertOperations,
    QueryOperations,
    UpdateOperations,
)

__all__ = ["InsertOperations", "MigrationManager", "QueryOperations", "UpdateOperations"]
