"""Mythic+ keystone leaderboards (overall, class and dungeon modes)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from armory.services.cache_models import CachedResult
from armory.services.cache_orchestrator import CacheOrchestrator
from armory.services.games import get_game_config, validate_region
from armory.services.leaderboards.classes import (
    ClassSpecFields,
    available_classes,
    get_class_by_slug,
    get_spec_by_slugs,
)
from armory.services.leaderboards.fields import (
    compute_percentile,
    dig,
    duration_seconds,
    format_duration,
    normalize_faction,
    normalize_role,
    normalize_slug,
    pick_first_number,
    pick_first_record,
    pick_first_string,
    to_iso_string,
)
from armory.services.leaderboards.filters import (
    ClassSpecFilter,
    invalid_filter,
    resolve_class_spec_filter,
    validate_faction,
    validate_positive_int,
    validate_role,
)
from armory.services.leaderboards.models import (
    Affix,
    DungeonRef,
    LeaderboardInfo,
    MythicDataset,
    MythicDatasetEntry,
    MythicLeaderboardEntry,
    MythicLeaderboardView,
    MythicMember,
    RealmRef,
    RunTime,
)
from armory.services.leaderboards.season import resolve_season_info
from armory.services.pagination import apply_offset_pagination
from armory.shared.constants import CacheDurations, Pagination
from armory.shared.errors import ErrorCode, ErrorContext, NotSupportedError
from armory.shared.utils.dataclass_serialization import from_dict, to_dict

logger = logging.getLogger(__name__)

LEADERBOARD_MODES = ("overall", "class", "dungeon")

_OPERATION = "get_mythic_plus_leaderboard"


@dataclass
class MythicPlusLeaderboardOptions:
    """Request options of a Mythic+ leaderboard page."""

    mode: str = "overall"
    season_id: int | None = None
    cursor: str | None = None
    limit: int | None = None
    class_slug: str | None = None
    spec_slug: str | None = None
    connected_realm_id: Any = None
    dungeon_id: Any = None
    period_id: Any = None
    role: str | None = None
    faction: str | None = None
    cancel_event: asyncio.Event | None = None


@dataclass
class MythicFilters:
    """Validated Mythic+ filters.

    An entry matches when, for every active filter, at least one member
    satisfies it.
    """

    mode: str
    class_spec: ClassSpecFilter
    connected_realm_id: int | None = None
    dungeon_id: int | None = None
    period_id: int | None = None
    role: str | None = None
    faction: str | None = None

    def matches(self, entry: MythicDatasetEntry) -> bool:
        members = entry.members
        if self.role and not any(member.role == self.role for member in members):
            return False
        if self.faction and not any(member.faction == self.faction for member in members):
            return False
        if self.class_spec.class_id and not any(member.class_id == self.class_spec.class_id for member in members):
            return False
        if self.class_spec.spec_id and not any(member.spec_id == self.class_spec.spec_id for member in members):
            return False
        return True

    def cache_key_parts(self, region: str, season_id: int) -> list[str]:
        parts = ["leaderboard", "mythic-plus", self.mode, region, f"season-{season_id}"]
        if self.class_spec.class_slug:
            parts.append(f"class-{self.class_spec.class_slug}")
        if self.class_spec.spec_slug:
            parts.append(f"spec-{self.class_spec.spec_slug}")
        if self.connected_realm_id is not None:
            parts.append(f"cr-{self.connected_realm_id}")
        if self.dungeon_id is not None:
            parts.append(f"dungeon-{self.dungeon_id}")
        if self.period_id is not None:
            parts.append(f"period-{self.period_id}")
        return parts

    def upstream_path(self, season_id: int) -> str:
        if self.mode == "class":
            base = f"/data/wow/leaderboard/mythic-plus/season/{season_id}/class/{self.class_spec.class_id}"
            if self.class_spec.spec_id:
                return f"{base}/spec/{self.class_spec.spec_id}"
            return base
        if self.mode == "dungeon":
            return (
                f"/data/wow/connected-realm/{self.connected_realm_id}"
                f"/mythic-leaderboard/{self.dungeon_id}/period/{self.period_id}"
            )
        return f"/data/wow/leaderboard/mythic-plus/season/{season_id}"

    def describe(self, region: str, options: MythicPlusLeaderboardOptions) -> dict[str, Any]:
        described: dict[str, Any] = {
            "region": region,
            "class": self.class_spec.class_slug,
            "spec": self.class_spec.spec_slug,
            "connected_realm_id": self.connected_realm_id,
            "dungeon_id": self.dungeon_id,
            "period_id": self.period_id,
            "role": self.role,
            "faction": self.faction,
        }
        requested = {
            "class": options.class_slug,
            "spec": options.spec_slug,
            "connected_realm_id": options.connected_realm_id,
            "dungeon_id": options.dungeon_id,
            "period_id": options.period_id,
            "role": options.role,
            "faction": options.faction,
        }
        if any(value is not None for value in requested.values()):
            described["requested"] = requested
        return described


def normalize_mythic_filters(options: MythicPlusLeaderboardOptions) -> MythicFilters:
    """Validate filters and the requirements of the requested mode.

    Raises:
        ClientInputError: For an unknown mode, invalid filter values or a mode
            missing its required filters
    """
    mode = (options.mode or "").strip().lower()
    if mode not in LEADERBOARD_MODES:
        raise invalid_filter(
            ErrorCode.INVALID_MODE,
            f"Unsupported leaderboard mode: {options.mode}",
            _OPERATION,
            mode=str(options.mode),
        )

    filters = MythicFilters(
        mode=mode,
        class_spec=resolve_class_spec_filter(options.class_slug, options.spec_slug, _OPERATION),
        connected_realm_id=validate_positive_int(
            options.connected_realm_id, ErrorCode.INVALID_CONNECTED_REALM, "connected_realm_id", _OPERATION
        ),
        dungeon_id=validate_positive_int(options.dungeon_id, ErrorCode.INVALID_DUNGEON, "dungeon_id", _OPERATION),
        period_id=validate_positive_int(options.period_id, ErrorCode.INVALID_PERIOD, "period_id", _OPERATION),
        role=validate_role(options.role, _OPERATION),
        faction=validate_faction(options.faction, _OPERATION),
    )

    if mode == "dungeon":
        if filters.connected_realm_id is None or filters.dungeon_id is None:
            raise invalid_filter(
                ErrorCode.DUNGEON_FILTERS_REQUIRED,
                "connected_realm_id and dungeon_id are required for dungeon leaderboards",
                _OPERATION,
            )
        if filters.period_id is None:
            raise invalid_filter(
                ErrorCode.PERIOD_REQUIRED,
                "period_id is required for dungeon leaderboards",
                _OPERATION,
            )
    elif mode == "class" and filters.class_spec.class_id is None:
        raise invalid_filter(ErrorCode.CLASS_REQUIRED, "class filter is required for class leaderboards", _OPERATION)

    return filters


def _int_or_none(value: int | float | None) -> int | None:
    return int(value) if value is not None else None


def normalize_mythic_member(member: Any) -> MythicMember:
    """Reconcile one run member, back-filling class and spec."""
    if not isinstance(member, Mapping):
        member = {}
    profile = pick_first_record(member.get("profile"), member.get("character"), member.get("member")) or {}
    realm = pick_first_record(profile.get("realm"), profile.get("realmInfo")) or {}

    role_source = member.get("role")
    role = normalize_role(dig(role_source, "type") if isinstance(role_source, Mapping) else role_source)

    class_name = pick_first_string(
        dig(member, "character_class", "name"),
        member.get("class_name"),
        dig(member, "class", "name"),
    )
    spec_name = pick_first_string(
        dig(member, "specialization", "name"),
        dig(member, "class_specialization", "name"),
        member.get("spec_name"),
    )

    # Slugs fall back to the display names so name-only members still resolve ids
    fields = ClassSpecFields(
        class_id=_int_or_none(
            pick_first_number(
                dig(member, "character_class", "id"),
                member.get("class_id"),
                dig(member, "class", "id"),
                dig(profile, "playable_class", "id"),
            )
        ),
        class_slug=normalize_slug(
            pick_first_string(
                dig(member, "character_class", "slug"),
                member.get("class_slug"),
                dig(member, "class", "slug"),
                class_name,
            )
        ),
        class_name=class_name,
        spec_id=_int_or_none(
            pick_first_number(
                dig(member, "specialization", "id"),
                member.get("spec_id"),
                dig(member, "class_specialization", "id"),
            )
        ),
        spec_slug=normalize_slug(
            pick_first_string(
                dig(member, "specialization", "slug"),
                dig(member, "class_specialization", "slug"),
                member.get("spec_slug"),
                spec_name,
            )
        ),
        spec_name=spec_name,
    ).backfill()

    character_id = pick_first_number(profile.get("id"), member.get("id"))
    return MythicMember(
        character_id=_int_or_none(character_id),
        name=pick_first_string(profile.get("name"), member.get("name")),
        realm=RealmRef(
            id=_int_or_none(pick_first_number(realm.get("id"))),
            name=pick_first_string(realm.get("name"), realm.get("realmName")),
            slug=normalize_slug(pick_first_string(realm.get("slug"), realm.get("realmSlug"))),
        ),
        class_id=fields.class_id,
        class_name=fields.class_name,
        class_slug=fields.class_slug,
        spec_id=fields.spec_id,
        spec_name=fields.spec_name,
        spec_slug=fields.spec_slug,
        faction=normalize_faction(dig(member, "faction", "type") or dig(member, "faction", "name")),
        role=role,
    )


def _normalize_affix(affix: Any) -> Affix:
    if not isinstance(affix, Mapping):
        return Affix()
    return Affix(
        id=_int_or_none(pick_first_number(affix.get("id"), dig(affix, "keystone_affix", "id"))),
        name=pick_first_string(affix.get("name"), dig(affix, "keystone_affix", "name")),
        description=pick_first_string(affix.get("description")),
    )


def normalize_mythic_entry(entry: Any) -> MythicDatasetEntry:
    """Reconcile one leading group / run."""
    if not isinstance(entry, Mapping):
        entry = {}
    dungeon = pick_first_record(entry.get("map"), entry.get("dungeon"), entry.get("instance")) or {}

    duration = pick_first_number(
        entry.get("duration"),
        entry.get("dungeon_run_duration"),
        entry.get("keystone_run_duration"),
        dig(entry, "best_run", "duration"),
    )
    rating = pick_first_number(
        entry.get("rating"),
        dig(entry, "mythic_rating", "rating"),
        entry.get("mythic_plus_rating"),
        entry.get("keystone_rating"),
    )
    completed = next(
        (
            value
            for value in (
                entry.get("completed_timestamp"),
                entry.get("completion_timestamp"),
                dig(entry, "best_run", "completed_timestamp"),
            )
            if value is not None
        ),
        None,
    )

    members = entry.get("members") or entry.get("memberships") or []
    affixes = entry.get("keystone_affixes") or []

    return MythicDatasetEntry(
        rank=_int_or_none(pick_first_number(entry.get("rank"), dig(entry, "rating", "rank"), entry.get("position"))),
        rating=rating,
        keystone_level=_int_or_none(
            pick_first_number(entry.get("keystone_level"), entry.get("level"), dig(entry, "best_run", "keystone_level"))
        ),
        completed_at=to_iso_string(completed),
        duration_ms=_int_or_none(duration),
        dungeon=DungeonRef(
            id=_int_or_none(pick_first_number(dungeon.get("id"))),
            name=pick_first_string(dungeon.get("name")),
            slug=pick_first_string(dungeon.get("slug")),
        ),
        affixes=[_normalize_affix(affix) for affix in affixes],
        members=[normalize_mythic_member(member) for member in members],
    )


def class_leaderboard_name(class_slug: str | None, spec_slug: str | None) -> str | None:
    playable = get_class_by_slug(class_slug)
    if playable is None:
        return None
    match = get_spec_by_slugs(class_slug, spec_slug)
    if match is not None:
        return f"{match.spec.name} {playable.name} Leaderboard"
    return f"{playable.name} Leaderboard"


def normalize_mythic_leaderboard(response: Any, filters: MythicFilters) -> MythicDataset:
    """Normalize any of the upstream Mythic+ leaderboard shapes."""
    record: Mapping[str, Any] = response if isinstance(response, Mapping) else {}
    raw_entries = record.get("entries") or record.get("leading_groups") or record.get("runs") or []

    class_slug = filters.class_spec.class_slug
    spec_slug = filters.class_spec.spec_slug
    name = pick_first_string(dig(record, "leaderboard", "name"), record.get("name"))
    if name is None:
        if filters.mode == "class":
            name = class_leaderboard_name(class_slug, spec_slug)
        else:
            name = pick_first_string(dig(record, "map", "name"))

    leaderboard_id = next(
        (record[key] for key in ("leaderboard_id", "slug", "id") if record.get(key) is not None),
        None,
    )
    fallback_id = "-".join(part for part in (filters.mode, class_slug, spec_slug) if part)

    updated = next(
        (
            record[key]
            for key in ("last_updated_timestamp", "last_modified_timestamp", "modified", "updated")
            if record.get(key) is not None
        ),
        None,
    )
    return MythicDataset(
        leaderboard=LeaderboardInfo(
            id=str(leaderboard_id) if leaderboard_id is not None else (fallback_id or "mythic-plus"),
            name=name,
        ),
        entries=[normalize_mythic_entry(entry) for entry in raw_entries],
        updated_at=to_iso_string(updated),
    )


def enrich_mythic_entry(entry: MythicDatasetEntry, index: int, total: int) -> MythicLeaderboardEntry:
    return MythicLeaderboardEntry(
        rank=entry.rank,
        percentile=compute_percentile(index, total),
        mythic_rating=entry.rating,
        keystone_level=entry.keystone_level,
        completed_at=entry.completed_at,
        duration_ms=entry.duration_ms,
        time=RunTime(
            formatted=format_duration(entry.duration_ms) if entry.duration_ms is not None else None,
            seconds=duration_seconds(entry.duration_ms),
        ),
        dungeon=entry.dungeon,
        affixes=entry.affixes,
        members=entry.members,
    )


class MythicPlusLeaderboardService:
    """Serves filtered, paginated Mythic+ leaderboards."""

    def __init__(
        self,
        orchestrator: CacheOrchestrator,
        client: Any,
        default_limit: int = Pagination.DEFAULT_LIMIT,
        max_limit: int = Pagination.MAX_LIMIT,
    ) -> None:
        self.orchestrator = orchestrator
        self.client = client
        self.default_limit = default_limit
        self.max_limit = max_limit

    async def get_leaderboard(
        self,
        game: str,
        region: str,
        locale: str,
        options: MythicPlusLeaderboardOptions,
    ) -> CachedResult[MythicLeaderboardView]:
        """Return one page of a Mythic+ leaderboard.

        Filters are validated before any upstream request, so a malformed
        request never costs a season lookup.

        Raises:
            NotSupportedError: For any game but retail
            ClientInputError: For invalid modes, filters, cursors or limits
            SeasonUnavailableError: If no season can be determined
        """
        config = get_game_config(game)
        region = validate_region(region)
        if game != "retail":
            raise NotSupportedError(
                f"Mythic+ leaderboards are not yet supported for {game}",
                ErrorContext(operation=_OPERATION, additional_data={"game": game}),
            )

        filters = normalize_mythic_filters(options)
        namespace = config.dynamic_namespace(region)

        season = await resolve_season_info(
            self.orchestrator,
            self.client,
            key_prefix=["mythic-plus", region],
            current_key=["current-season"],
            index_path="/data/wow/mythic-keystone/season/index",
            details_path="/data/wow/mythic-keystone/season/{season_id}",
            region=region,
            locale=locale,
            namespace=namespace,
            label="Mythic+",
            season_id=options.season_id,
            cancel_event=options.cancel_event,
        )

        async def fetch_dataset() -> dict[str, Any]:
            response = await self.client.fetch_json(
                filters.upstream_path(season.id),
                region=region,
                locale=locale,
                namespace=namespace,
                cancel_event=options.cancel_event,
            )
            dataset = normalize_mythic_leaderboard(response, filters)
            logger.info(
                "Normalized Mythic+ %s leaderboard season %s (%d entries)",
                filters.mode,
                season.id,
                len(dataset.entries),
            )
            return to_dict(dataset)

        cached = await self.orchestrator.get_cached_value(
            filters.cache_key_parts(region, season.id),
            fetch_dataset,
            category=CacheDurations.LEADERBOARDS,
        )
        dataset: MythicDataset = from_dict(MythicDataset, cached.value)

        filtered = [entry for entry in dataset.entries if filters.matches(entry)]
        page = apply_offset_pagination(
            filtered,
            cursor=options.cursor,
            limit=options.limit,
            default_limit=self.default_limit,
            max_limit=self.max_limit,
        )

        view = MythicLeaderboardView(
            season=season,
            mode=filters.mode,
            leaderboard=dataset.leaderboard,
            entries=[
                enrich_mythic_entry(entry, page.state.offset + index, page.total)
                for index, entry in enumerate(page.results)
            ],
            total=page.total,
            pagination=page.state,
            filters=filters.describe(region, options),
            updated_at=dataset.updated_at,
            available_classes=available_classes(),
            cache_meta=cached.cache_meta,
        )
        return CachedResult(value=view, cache_meta=cached.cache_meta)


__all__ = [
    "LEADERBOARD_MODES",
    "MythicPlusLeaderboardOptions",
    "MythicPlusLeaderboardService",
    "normalize_mythic_entry",
    "normalize_mythic_filters",
    "normalize_mythic_leaderboard",
]
