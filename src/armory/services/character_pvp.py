"""Character PvP summary: per-bracket season statistics and honor."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from armory.services.cache_models import CachedResult
from armory.services.cache_orchestrator import CacheOrchestrator
from armory.services.games import get_game_config, validate_region
from armory.services.leaderboards.brackets import BRACKET_ALIASES
from armory.services.leaderboards.fields import compute_win_rate, dig
from armory.shared.constants import CacheDurations
from armory.shared.error_handling import map_exception_to_armory_error
from armory.shared.errors import ArmoryError, ErrorCode, UpstreamNotFoundError
from armory.shared.logging import log_operation_error
from armory.shared.types.base import BaseDataclass
from armory.shared.utils.dataclass_serialization import from_dict, to_dict

logger = logging.getLogger(__name__)

RETAIL_DEFAULT_BRACKETS = ("2v2", "3v3", "rbg", "shuffle-overall")
CLASSIC_DEFAULT_BRACKETS = ("2v2", "3v3", "rbg")

# Display ids; shuffle variants collapse into one bracket
DISPLAY_BRACKET_IDS = {
    "shuffle-3v3": "solo_shuffle",
    "shuffle-overall": "solo_shuffle",
    "shuffle": "solo_shuffle",
}

_BRACKET_HREF = re.compile(r"pvp-bracket/([^/?]+)")


@dataclass
class BracketStatistics(BaseDataclass):
    bracket: str
    rating: int | None = None
    won: int = 0
    lost: int = 0
    played: int = 0
    win_rate: float | None = None


@dataclass
class Honor(BaseDataclass):
    level: int | None = None
    honorable_kills: int | None = None


@dataclass
class CharacterPvpSummary(BaseDataclass):
    season: list[BracketStatistics] = field(default_factory=list)
    honor: Honor | None = None


def default_brackets(game: str) -> tuple[str, ...]:
    return RETAIL_DEFAULT_BRACKETS if game == "retail" else CLASSIC_DEFAULT_BRACKETS


def extract_bracket_id(href: str | None) -> str | None:
    """Read the bracket id out of a ``.../pvp-bracket/<id>?...`` href."""
    if not href:
        return None
    match = _BRACKET_HREF.search(href)
    return match.group(1).lower() if match else None


def resolve_bracket_id(value: str) -> str | None:
    normalized = value.strip().lower()
    if not normalized:
        return None
    return BRACKET_ALIASES.get(normalized, normalized)


def display_bracket_id(bracket_id: str) -> str:
    return DISPLAY_BRACKET_IDS.get(bracket_id, bracket_id)


def bracket_statistics(bracket_id: str, details: Any) -> BracketStatistics:
    won = dig(details, "season_match_statistics", "won") or 0
    lost = dig(details, "season_match_statistics", "lost") or 0
    played = dig(details, "season_match_statistics", "played")
    return BracketStatistics(
        bracket=display_bracket_id(bracket_id),
        rating=dig(details, "rating"),
        won=won,
        lost=lost,
        played=played if played is not None else won + lost,
        win_rate=compute_win_rate(won, lost),
    )


class CharacterPvpService:
    """Loads a character's PvP summary and the brackets it has played."""

    def __init__(self, orchestrator: CacheOrchestrator, client: Any) -> None:
        self.orchestrator = orchestrator
        self.client = client

    async def get_character_pvp(
        self,
        game: str,
        region: str,
        realm_slug: str,
        name: str,
        locale: str,
        brackets: Sequence[str] | None = None,
    ) -> CachedResult[CharacterPvpSummary]:
        """Return season statistics per bracket plus honor.

        Without ``brackets``, the game's default brackets and every bracket
        listed in the summary are loaded. A bracket the character never
        played (404) yields an empty entry.

        Raises:
            ClientInputError: For an unknown game or region
            UpstreamError: If the summary itself cannot be loaded
            ApplicationError: ``character:pvp_failed`` for any other failure
        """
        config = get_game_config(game)
        region = validate_region(region)
        namespace = config.profile_namespace(region)
        character_path = config.character_path(realm_slug, name)

        requested = [
            resolve_bracket_id(bracket) or bracket.strip().lower() for bracket in brackets or ()
        ]
        bracket_key = "|".join(bracket for bracket in requested if bracket) or "all"

        async def fetch_bracket(bracket_id: str, href: str) -> BracketStatistics:
            try:
                details = await self.client.fetch_json(href, region=region, locale=locale, namespace=namespace)
            except UpstreamNotFoundError:
                return BracketStatistics(bracket=display_bracket_id(bracket_id))
            return bracket_statistics(bracket_id, details)

        async def fetch_summary() -> dict[str, Any]:
            summary = await self.client.fetch_json(
                f"{character_path}/pvp-summary",
                region=region,
                locale=locale,
                namespace=namespace,
            )
            honor = None
            if isinstance(summary, Mapping):
                honor = Honor(level=summary.get("honor_level"), honorable_kills=summary.get("pvp_honorable_kills"))

            listed: dict[str, str] = {}
            listed_ids: list[str] = []
            for entry in dig(summary, "brackets") or []:
                href = dig(entry, "href")
                raw_id = extract_bracket_id(href)
                if raw_id is None:
                    continue
                listed_ids.append(raw_id)
                listed[raw_id] = href
                listed[resolve_bracket_id(raw_id) or raw_id] = href

            candidates = list(brackets) if brackets else [*default_brackets(game), *listed_ids]
            targets: list[str] = []
            for candidate in candidates:
                resolved = resolve_bracket_id(candidate)
                if resolved and resolved not in targets:
                    targets.append(resolved)

            season = await asyncio.gather(
                *(
                    fetch_bracket(bracket_id, listed.get(bracket_id, f"{character_path}/pvp-bracket/{bracket_id}"))
                    for bracket_id in targets
                )
            )
            return to_dict(CharacterPvpSummary(season=list(season), honor=honor))

        try:
            cached = await self.orchestrator.get_cached_value(
                ["character", game, region, locale, realm_slug, name, "pvp", bracket_key],
                fetch_summary,
                category=CacheDurations.PVP,
            )
        except ArmoryError:
            raise
        except Exception as e:
            error = map_exception_to_armory_error(
                e,
                "get_character_pvp",
                code=ErrorCode.CHARACTER_PVP_FAILED,
                message="Unable to load character PvP data from Battle.net API",
                additional_data={"game": game, "region": region, "realm": realm_slug, "name": name},
            )
            log_operation_error(logger, error)
            raise error from e

        return CachedResult(value=from_dict(CharacterPvpSummary, cached.value), cache_meta=cached.cache_meta)


__all__ = ["BracketStatistics", "CharacterPvpService", "CharacterPvpSummary", "Honor", "extract_bracket_id"]
