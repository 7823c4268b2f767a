"""Current-season resolution shared by the leaderboard services.

The season id and the season details are cached under their own keys so
leaderboard pages do not pay for a season index lookup on every miss.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Sequence

from armory.services.cache_orchestrator import CacheOrchestrator
from armory.services.leaderboards.fields import (
    dig,
    pick_localized_string,
    resolve_timestamp,
    to_numeric_id,
    to_slug,
)
from armory.services.leaderboards.models import SeasonInfo
from armory.shared.constants import CacheDurations
from armory.shared.errors import ErrorContext, SeasonUnavailableError
from armory.shared.utils.dataclass_serialization import from_dict, to_dict

logger = logging.getLogger(__name__)

SEASON_TTL_MS = CacheDurations.DURATIONS_MS[CacheDurations.LEADERBOARDS]


def max_season_id(index: Any, label: str) -> int:
    """Pick the highest positive season id from a season index payload.

    Raises:
        SeasonUnavailableError: If the index lists no usable season
    """
    candidates = [dig(index, "current_season", "id")]
    seasons = index.get("seasons") if isinstance(index, Mapping) else None
    if isinstance(seasons, list):
        candidates.extend(dig(season, "id") for season in seasons)

    ids = [numeric for numeric in map(to_numeric_id, candidates) if numeric is not None and numeric > 0]
    if not ids:
        raise SeasonUnavailableError(
            f"Unable to determine active {label} season from Battle.net API",
            ErrorContext(operation="resolve_season"),
        )
    return int(max(ids))


def build_season_info(data: Any, fallback_id: int) -> SeasonInfo:
    """Normalize a season details payload."""
    record: Mapping[str, Any] = data if isinstance(data, Mapping) else {}
    name = pick_localized_string(
        record.get("name"),
        record.get("nameLocalized"),
        record.get("season_name"),
        dig(record, "season", "name"),
    )
    slug = pick_localized_string(
        record.get("slug"),
        record.get("slugLocalized"),
        record.get("season_slug"),
        dig(record, "season", "slug"),
    ) or (to_slug(name) if name else None)

    season_id = to_numeric_id(record.get("id"))
    return SeasonInfo(
        id=int(season_id) if season_id is not None else fallback_id,
        name=name,
        slug=slug,
        starts_at=resolve_timestamp(
            record.get("start_timestamp"),
            record.get("start_time"),
            record.get("start_date"),
            record.get("season_start_timestamp"),
            record.get("season_start_time"),
            record.get("season_start_date"),
        ),
        ends_at=resolve_timestamp(
            record.get("end_timestamp"),
            record.get("end_time"),
            record.get("end_date"),
            record.get("season_end_timestamp"),
            record.get("season_end_time"),
            record.get("season_end_date"),
        ),
    )


async def resolve_season_info(
    orchestrator: CacheOrchestrator,
    client: Any,
    *,
    key_prefix: Sequence[Any],
    current_key: Sequence[str],
    index_path: str,
    details_path: str,
    region: str,
    locale: str,
    namespace: str,
    label: str,
    season_id: int | None = None,
    cancel_event: asyncio.Event | None = None,
) -> SeasonInfo:
    """Resolve the requested (or current) season and its details.

    Args:
        orchestrator: Cache orchestration layer
        client: Battle.net client
        key_prefix: Cache key parts shared by the id and details entries
        current_key: Key parts appended to ``key_prefix`` for the current id
        index_path: Season index API path
        details_path: Season details API path with a ``{season_id}`` placeholder
        region: Battle.net region
        locale: Response locale
        namespace: Dynamic namespace
        label: Human label used in errors ("PvP", "Mythic+")
        season_id: Explicit season, skips the index lookup
        cancel_event: Abort signal forwarded to the client
    """
    if season_id is None:

        async def fetch_current_id() -> int:
            index = await client.fetch_json(
                index_path, region=region, locale=locale, namespace=namespace, cancel_event=cancel_event
            )
            return max_season_id(index, label)

        current = await orchestrator.get_cached_value(
            [*key_prefix, *current_key],
            fetch_current_id,
            ttl_ms=SEASON_TTL_MS,
        )
        season_id = int(current.value)

    resolved_id = season_id

    async def fetch_details() -> dict[str, Any]:
        data = await client.fetch_json(
            details_path.format(season_id=resolved_id),
            region=region,
            locale=locale,
            namespace=namespace,
            cancel_event=cancel_event,
        )
        return to_dict(build_season_info(data, resolved_id))

    details = await orchestrator.get_cached_value(
        [*key_prefix, str(resolved_id), "details"],
        fetch_details,
        ttl_ms=SEASON_TTL_MS,
    )
    logger.debug("Resolved %s season %d", label, resolved_id)
    return from_dict(SeasonInfo, details.value)
