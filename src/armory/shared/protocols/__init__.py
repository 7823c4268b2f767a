"""Protocol interfaces for dependency inversion."""

from .services import CacheStore

__all__ = ["CacheStore"]
