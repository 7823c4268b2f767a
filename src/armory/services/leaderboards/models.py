"""Normalized leaderboard models.

``*Dataset`` models are what the cache stores: the full normalized upstream
leaderboard before filtering. ``*View`` models are the paginated, enriched
page returned to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from armory.services.cache_models import CacheMeta
from armory.services.pagination import PaginationState
from armory.shared.types.base import BaseDataclass


@dataclass
class SeasonInfo(BaseDataclass):
    id: int
    name: str | None = None
    slug: str | None = None
    starts_at: str | None = None
    ends_at: str | None = None


@dataclass
class RealmRef(BaseDataclass):
    id: int | None = None
    name: str | None = None
    slug: str | None = None


@dataclass
class ClassRef(BaseDataclass):
    id: int | None = None
    name: str | None = None
    slug: str | None = None


# PvP


@dataclass
class PvpDatasetEntry(BaseDataclass):
    """One upstream PvP ladder row after field reconciliation and back-fill."""

    raw_rank: int | None = None
    rating: int | None = None
    character_id: int | None = None
    character_name: str | None = None
    realm_id: int | None = None
    realm_name: str | None = None
    realm_slug: str | None = None
    class_id: int | None = None
    class_name: str | None = None
    class_slug: str | None = None
    spec_id: int | None = None
    spec_name: str | None = None
    spec_slug: str | None = None
    faction: str | None = None
    won: int = 0
    lost: int = 0
    played: int = 0
    win_rate: float | None = None


@dataclass
class BracketInfo(BaseDataclass):
    id: str
    name: str | None = None


@dataclass
class PvpDataset(BaseDataclass):
    season: SeasonInfo
    bracket: BracketInfo
    entries: list[PvpDatasetEntry] = field(default_factory=list)
    updated_at: str | None = None


@dataclass
class PvpCharacter(BaseDataclass):
    id: int | None
    name: str | None
    realm: RealmRef
    playable_class: ClassRef
    spec: ClassRef | None
    faction: str | None


@dataclass
class PvpStatistics(BaseDataclass):
    won: int = 0
    lost: int = 0
    played: int = 0
    win_rate: float | None = None


@dataclass
class PvpLeaderboardEntry(BaseDataclass):
    rank: int | None
    rating: int | None
    percentile: float | None
    character: PvpCharacter
    statistics: PvpStatistics


@dataclass
class PvpLeaderboardView(BaseDataclass):
    season: SeasonInfo
    bracket: BracketInfo
    entries: list[PvpLeaderboardEntry]
    total: int
    pagination: PaginationState
    filters: dict[str, Any]
    updated_at: str | None
    available_brackets: list[str]
    cache_meta: CacheMeta | None = None


# Mythic+


@dataclass
class DungeonRef(BaseDataclass):
    id: int | None = None
    name: str | None = None
    slug: str | None = None


@dataclass
class Affix(BaseDataclass):
    id: int | None = None
    name: str | None = None
    description: str | None = None


@dataclass
class MythicMember(BaseDataclass):
    """A run member with class/spec back-filled from the reference table."""

    character_id: int | None = None
    name: str | None = None
    realm: RealmRef = field(default_factory=RealmRef)
    class_id: int | None = None
    class_name: str | None = None
    class_slug: str | None = None
    spec_id: int | None = None
    spec_name: str | None = None
    spec_slug: str | None = None
    faction: str | None = None
    role: str | None = None


@dataclass
class MythicDatasetEntry(BaseDataclass):
    rank: int | None = None
    rating: float | None = None
    keystone_level: int | None = None
    completed_at: str | None = None
    duration_ms: int | None = None
    dungeon: DungeonRef = field(default_factory=DungeonRef)
    affixes: list[Affix] = field(default_factory=list)
    members: list[MythicMember] = field(default_factory=list)


@dataclass
class LeaderboardInfo(BaseDataclass):
    id: str
    name: str | None = None


@dataclass
class MythicDataset(BaseDataclass):
    leaderboard: LeaderboardInfo
    entries: list[MythicDatasetEntry] = field(default_factory=list)
    updated_at: str | None = None


@dataclass
class RunTime(BaseDataclass):
    formatted: str | None = None
    seconds: int | None = None


@dataclass
class MythicLeaderboardEntry(BaseDataclass):
    rank: int | None
    percentile: float | None
    mythic_rating: float | None
    keystone_level: int | None
    completed_at: str | None
    duration_ms: int | None
    time: RunTime
    dungeon: DungeonRef
    affixes: list[Affix]
    members: list[MythicMember]


@dataclass
class MythicLeaderboardView(BaseDataclass):
    season: SeasonInfo
    mode: str
    leaderboard: LeaderboardInfo
    entries: list[MythicLeaderboardEntry]
    total: int
    pagination: PaginationState
    filters: dict[str, Any]
    updated_at: str | None
    available_classes: list[dict[str, Any]]
    cache_meta: CacheMeta | None = None
