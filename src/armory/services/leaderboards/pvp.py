"""PvP ladder leaderboards.

The full upstream ladder of a season and bracket is normalized once and
cached; filters, pagination and percentiles are applied per request.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import quote

from armory.services.cache_models import CachedResult
from armory.services.cache_orchestrator import CacheOrchestrator
from armory.services.games import get_game_config, validate_region
from armory.services.leaderboards.brackets import list_pvp_brackets, normalize_pvp_bracket
from armory.services.leaderboards.classes import ClassSpecFields
from armory.services.leaderboards.fields import (
    compute_percentile,
    compute_win_rate,
    dig,
    format_name_from_slug,
    normalize_faction,
    normalize_slug,
    pick_first_number,
    pick_first_record,
    pick_first_string,
    to_iso_string,
    to_slug,
)
from armory.services.leaderboards.filters import resolve_class_spec_filter, validate_faction
from armory.services.leaderboards.models import (
    BracketInfo,
    ClassRef,
    PvpCharacter,
    PvpDataset,
    PvpDatasetEntry,
    PvpLeaderboardEntry,
    PvpLeaderboardView,
    PvpStatistics,
    RealmRef,
    SeasonInfo,
)
from armory.services.leaderboards.season import resolve_season_info
from armory.services.pagination import apply_offset_pagination
from armory.shared.constants import CacheDurations, Pagination
from armory.shared.errors import ErrorContext, NotSupportedError
from armory.shared.utils.dataclass_serialization import from_dict, to_dict

logger = logging.getLogger(__name__)

SUPPORTED_PVP_LEADERBOARD_GAMES = ("retail", "classic-era")


@dataclass
class PvpLeaderboardOptions:
    """Request options of a PvP leaderboard page.

    Attributes:
        bracket: Bracket id or alias (e.g. "3v3", "solo-shuffle")
        season_id: Explicit season, defaults to the current one
        limit: Page size, 1..200
        cursor: ``offset:<n>`` cursor
        realm: Realm name or slug filter
        class_name: Class filter (slug or display name)
        spec: Specialization filter
        faction: alliance or horde
        cancel_event: Abort signal for upstream requests
    """

    bracket: str
    season_id: int | None = None
    limit: int | None = None
    cursor: str | None = None
    realm: str | None = None
    class_name: str | None = None
    spec: str | None = None
    faction: str | None = None
    cancel_event: asyncio.Event | None = None


@dataclass
class PvpFilters:
    """Validated PvP filters plus the raw values the caller asked for."""

    requested: dict[str, str | None]
    realm_slug: str | None = None
    class_id: int | None = None
    class_slug: str | None = None
    spec_id: int | None = None
    spec_slug: str | None = None
    faction: str | None = None

    def matches(self, entry: PvpDatasetEntry) -> bool:
        if self.realm_slug and entry.realm_slug != self.realm_slug:
            return False
        if self.class_id is not None and entry.class_id != self.class_id:
            return False
        if self.spec_id is not None and entry.spec_id != self.spec_id:
            return False
        if self.faction and entry.faction != self.faction:
            return False
        return True

    def describe(self, region: str) -> dict[str, Any]:
        described: dict[str, Any] = {
            "region": region,
            "realm": self.realm_slug,
            "class": self.class_slug,
            "spec": self.spec_slug,
            "faction": self.faction,
        }
        if any(value is not None for value in self.requested.values()):
            described["requested"] = dict(self.requested)
        return described


def normalize_pvp_filters(options: PvpLeaderboardOptions) -> PvpFilters:
    """Validate the realm, faction, class and spec filters.

    Raises:
        ClientInputError: For an unknown faction, class or spec, or an
            ambiguous spec without a class
    """
    faction = validate_faction(options.faction)
    class_spec = resolve_class_spec_filter(options.class_name, options.spec)

    requested: dict[str, str | None] = {
        "realm": options.realm or None,
        "class": options.class_name or class_spec.inferred_class_name,
        "spec": options.spec or None,
        "faction": faction,
    }
    return PvpFilters(
        requested=requested,
        realm_slug=to_slug(options.realm) if options.realm else None,
        class_id=class_spec.class_id,
        class_slug=class_spec.class_slug,
        spec_id=class_spec.spec_id,
        spec_slug=class_spec.spec_slug,
        faction=faction,
    )


def _int_or_none(value: int | float | None) -> int | None:
    return int(value) if value is not None else None


def _resolve_realm(raw_entry: Mapping[str, Any], raw_character: Mapping[str, Any]) -> RealmRef:
    source = pick_first_record(
        raw_character.get("realm"),
        raw_entry.get("realm"),
        raw_entry.get("character_realm"),
        raw_entry.get("connected_realm"),
    ) or {}

    slug_source = pick_first_string(
        source.get("slug"),
        source.get("realm_slug"),
        raw_character.get("realm_slug"),
        raw_entry.get("realm_slug"),
        raw_entry.get("connected_realm_slug"),
    )
    slug = normalize_slug(slug_source)
    name = pick_first_string(
        source.get("name"),
        source.get("realmName"),
        raw_character.get("realm_name"),
        raw_entry.get("realm_name"),
    ) or format_name_from_slug(slug_source) or format_name_from_slug(slug)

    realm_id = pick_first_number(source.get("id"), raw_character.get("realm_id"), raw_entry.get("realm_id"))
    return RealmRef(id=_int_or_none(realm_id), name=name, slug=slug)


def _resolve_class_spec(raw_entry: Mapping[str, Any], raw_character: Mapping[str, Any]) -> ClassSpecFields:
    class_source = pick_first_record(
        raw_entry.get("playable_class"),
        raw_entry.get("class"),
        raw_entry.get("class_info"),
        raw_entry.get("classInfo"),
        raw_entry.get("character_class"),
        raw_entry.get("characterClass"),
        raw_entry.get("pvp_class"),
        raw_entry.get("leaderboard_class"),
        raw_character.get("playable_class"),
        raw_character.get("class"),
        raw_character.get("class_info"),
        raw_character.get("character_class"),
    ) or {}
    spec_source = pick_first_record(
        raw_entry.get("spec"),
        raw_entry.get("specialization"),
        raw_entry.get("class_specialization"),
        raw_entry.get("spec_info"),
        raw_entry.get("pvp_specialization"),
        raw_entry.get("specialization_info"),
        raw_character.get("spec"),
        raw_character.get("specialization"),
        raw_character.get("active_spec"),
        raw_character.get("spec_info"),
    ) or {}

    fields = ClassSpecFields(
        class_id=_int_or_none(
            pick_first_number(
                class_source.get("id"),
                raw_entry.get("playable_class_id"),
                raw_entry.get("class_id"),
                raw_entry.get("classId"),
                raw_character.get("playable_class_id"),
                raw_character.get("class_id"),
            )
        ),
        class_slug=normalize_slug(
            pick_first_string(
                class_source.get("slug"),
                class_source.get("name"),
                raw_entry.get("class_slug"),
                raw_entry.get("classSlug"),
                raw_character.get("class_slug"),
            )
        ),
        class_name=pick_first_string(
            class_source.get("name"),
            raw_entry.get("class_name"),
            raw_entry.get("className"),
            raw_character.get("class_name"),
        ),
        spec_id=_int_or_none(
            pick_first_number(
                spec_source.get("id"),
                raw_entry.get("spec_id"),
                raw_entry.get("specId"),
                raw_entry.get("specialization_id"),
                raw_character.get("spec_id"),
            )
        ),
        spec_slug=normalize_slug(
            pick_first_string(
                spec_source.get("slug"),
                spec_source.get("name"),
                raw_entry.get("spec_slug"),
                raw_entry.get("specSlug"),
                raw_entry.get("specialization_slug"),
                raw_character.get("spec_slug"),
            )
        ),
        spec_name=pick_first_string(
            spec_source.get("name"),
            raw_entry.get("spec_name"),
            raw_entry.get("specName"),
            raw_entry.get("specialization_name"),
            raw_character.get("spec_name"),
        ),
    )
    return fields.backfill()


def _match_stat(raw_entry: Mapping[str, Any], name: str) -> Any:
    value = dig(raw_entry, "season_match_statistics", name)
    if value is None:
        value = dig(raw_entry, "match_statistics", name)
    return value


def normalize_pvp_entry(raw_entry: Any) -> PvpDatasetEntry:
    """Reconcile one upstream ladder row into a ``PvpDatasetEntry``."""
    if not isinstance(raw_entry, Mapping):
        raw_entry = {}
    raw_character = raw_entry.get("character") if isinstance(raw_entry.get("character"), Mapping) else {}

    faction_source = raw_entry.get("faction")
    faction = normalize_faction(dig(faction_source, "type") or dig(faction_source, "name"))

    won = _match_stat(raw_entry, "won") or 0
    lost = _match_stat(raw_entry, "lost") or 0
    played = _match_stat(raw_entry, "played")
    if played is None:
        played = max(won + lost, 0)

    rating = raw_entry.get("rating")
    if rating is None:
        rating = dig(raw_entry, "ranking", "rating")

    realm = _resolve_realm(raw_entry, raw_character)
    class_spec = _resolve_class_spec(raw_entry, raw_character)

    return PvpDatasetEntry(
        raw_rank=raw_entry.get("rank"),
        rating=rating,
        character_id=raw_character.get("id"),
        character_name=raw_character.get("name"),
        realm_id=realm.id,
        realm_name=realm.name,
        realm_slug=realm.slug,
        class_id=class_spec.class_id,
        class_name=class_spec.class_name,
        class_slug=class_spec.class_slug,
        spec_id=class_spec.spec_id,
        spec_name=class_spec.spec_name,
        spec_slug=class_spec.spec_slug,
        faction=faction,
        won=won,
        lost=lost,
        played=played,
        win_rate=compute_win_rate(won, lost),
    )


def normalize_pvp_leaderboard(response: Any, season: SeasonInfo, bracket: str) -> PvpDataset:
    """Normalize an upstream PvP leaderboard document."""
    record: Mapping[str, Any] = response if isinstance(response, Mapping) else {}
    raw_entries = record.get("entries") or []

    updated = None
    for key in ("last_updated_timestamp", "last_modified_timestamp", "modified", "modified_timestamp", "updated"):
        if record.get(key) is not None:
            updated = record[key]
            break

    return PvpDataset(
        season=season,
        bracket=BracketInfo(id=bracket, name=record.get("name") or dig(record, "bracket", "name")),
        entries=[normalize_pvp_entry(raw_entry) for raw_entry in raw_entries],
        updated_at=to_iso_string(updated),
    )


def enrich_pvp_entry(entry: PvpDatasetEntry, index: int, total: int) -> PvpLeaderboardEntry:
    """Shape a dataset entry for output with its percentile in the filtered set."""
    spec = (
        ClassRef(id=entry.spec_id, name=entry.spec_name, slug=entry.spec_slug) if entry.spec_id else None
    )
    return PvpLeaderboardEntry(
        rank=entry.raw_rank,
        rating=entry.rating,
        percentile=compute_percentile(index, total),
        character=PvpCharacter(
            id=entry.character_id,
            name=entry.character_name,
            realm=RealmRef(id=entry.realm_id, name=entry.realm_name, slug=entry.realm_slug),
            playable_class=ClassRef(id=entry.class_id, name=entry.class_name, slug=entry.class_slug),
            spec=spec,
            faction=entry.faction,
        ),
        statistics=PvpStatistics(won=entry.won, lost=entry.lost, played=entry.played, win_rate=entry.win_rate),
    )


class PvpLeaderboardService:
    """Serves filtered, paginated PvP ladders."""

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
        options: PvpLeaderboardOptions,
    ) -> CachedResult[PvpLeaderboardView]:
        """Return one page of the PvP ladder.

        Args:
            game: Game id (retail, classic-era)
            region: Battle.net region
            locale: Response locale
            options: Bracket, season, filters and pagination

        Returns:
            The page with the cache metadata of the underlying dataset

        Raises:
            NotSupportedError: For games without PvP ladders
            ClientInputError: For invalid brackets, filters, cursors or limits
            SeasonUnavailableError: If no season can be determined
        """
        config = get_game_config(game)
        region = validate_region(region)
        if game not in SUPPORTED_PVP_LEADERBOARD_GAMES:
            raise NotSupportedError(
                f"PvP leaderboards are not yet supported for {game}",
                ErrorContext(operation="get_pvp_leaderboard", additional_data={"game": game}),
            )

        namespace = config.dynamic_namespace(region)
        bracket = normalize_pvp_bracket(game, options.bracket)
        filters = normalize_pvp_filters(options)

        season = await resolve_season_info(
            self.orchestrator,
            self.client,
            key_prefix=["pvp-season", game, region],
            current_key=["current-id", "v2"],
            index_path="/data/wow/pvp-season/index",
            details_path="/data/wow/pvp-season/{season_id}",
            region=region,
            locale=locale,
            namespace=namespace,
            label="PvP",
            season_id=options.season_id,
            cancel_event=options.cancel_event,
        )
        season_segment = options.season_id if options.season_id is not None else season.id

        async def fetch_dataset() -> dict[str, Any]:
            path = f"/data/wow/pvp-season/{season_segment}/pvp-leaderboard/{quote(bracket, safe='')}"
            response = await self.client.fetch_json(
                path,
                region=region,
                locale=locale,
                namespace=namespace,
                cancel_event=options.cancel_event,
            )
            dataset = normalize_pvp_leaderboard(response, season, bracket)
            logger.info(
                "Normalized PvP leaderboard %s season %s (%d entries)", bracket, season.id, len(dataset.entries)
            )
            return to_dict(dataset)

        cached = await self.orchestrator.get_cached_value(
            ["leaderboard", "pvp", game, region, f"season-{season.id}", bracket],
            fetch_dataset,
            category=CacheDurations.LEADERBOARDS,
        )
        dataset: PvpDataset = from_dict(PvpDataset, cached.value)

        filtered = [entry for entry in dataset.entries if filters.matches(entry)]
        page = apply_offset_pagination(
            filtered,
            cursor=options.cursor,
            limit=options.limit,
            default_limit=self.default_limit,
            max_limit=self.max_limit,
        )

        view = PvpLeaderboardView(
            season=dataset.season,
            bracket=dataset.bracket,
            entries=[
                enrich_pvp_entry(entry, page.state.offset + index, page.total)
                for index, entry in enumerate(page.results)
            ],
            total=page.total,
            pagination=page.state,
            filters=filters.describe(region),
            updated_at=dataset.updated_at,
            available_brackets=list_pvp_brackets(game),
            cache_meta=cached.cache_meta,
        )
        return CachedResult(value=view, cache_meta=cached.cache_meta)


__all__ = [
    "PvpLeaderboardOptions",
    "PvpLeaderboardService",
    "normalize_pvp_entry",
    "normalize_pvp_filters",
    "normalize_pvp_leaderboard",
]
