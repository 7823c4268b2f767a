"""SQLite cache operations module.

Separate operation classes for querying, inserting and updating cache rows.
"""

from armory.services.sqlite_cache.operations.insert import InsertOperations
from armory.services.sqlite_cache.operations.query import QueryOperations
from armory.services.sqlite_cache.operations.update import UpdateOperations

__all__ = ["InsertOperations", "QueryOperations", "UpdateOperations"]
