"""Cache and pagination configuration models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from armory.shared.constants import Cache, FileSystem, Pagination


def _default_db_path() -> str:
    return str(Path.home() / FileSystem.HOME_DIR / FileSystem.CACHE_DIRECTORY / FileSystem.CACHE_DB_NAME)


class CacheSettings(BaseModel):
    """Cache store configuration.

    ``db_path`` may be ``":memory:"`` for a throwaway store.
    """

    db_path: str = Field(default_factory=_default_db_path, description="SQLite cache database path")
    cleanup_interval_seconds: float = Field(
        default=Cache.CLEANUP_INTERVAL_SECONDS,
        gt=0,
        description="Pause between expired-row sweeps",
    )


class PaginationSettings(BaseModel):
    """Leaderboard page size limits."""

    default_limit: int = Field(default=Pagination.DEFAULT_LIMIT, gt=0)
    max_limit: int = Field(default=Pagination.MAX_LIMIT, gt=0)


__all__ = ["CacheSettings", "PaginationSettings"]
