"""PvP bracket catalogue per game."""

from __future__ import annotations

from armory.services.leaderboards.classes import PLAYABLE_CLASSES
from armory.shared.errors import ErrorCode, create_client_input_error

BASE_PVP_BRACKETS = ("2v2", "3v3", "rbg")
CLASSIC_EXTRA_BRACKETS = ("5v5",)
RETAIL_EXTRA_BRACKETS = ("shuffle-overall",)

SHUFFLE_SPEC_BRACKETS = tuple(
    f"shuffle-{playable.slug}-{spec.slug}" for playable in PLAYABLE_CLASSES for spec in playable.specs
)

BRACKET_ALIASES = {
    "shuffle-3v3": "shuffle-overall",
    "solo-shuffle": "shuffle-overall",
    "solo_shuffle": "shuffle-overall",
    "shuffle": "shuffle-overall",
}


def list_pvp_brackets(game: str) -> list[str]:
    """Brackets with a leaderboard for ``game``."""
    if game == "retail":
        return [*BASE_PVP_BRACKETS, *RETAIL_EXTRA_BRACKETS, *SHUFFLE_SPEC_BRACKETS]
    if game == "classic-era":
        return [*BASE_PVP_BRACKETS, *CLASSIC_EXTRA_BRACKETS]
    return list(BASE_PVP_BRACKETS)


def normalize_pvp_bracket(game: str, bracket: str | None) -> str:
    """Resolve aliases and validate ``bracket`` for ``game``.

    Raises:
        ClientInputError: ``leaderboard:invalid_bracket`` for an empty bracket,
            ``leaderboard:unsupported_bracket`` for an unknown one
    """
    normalized = (bracket or "").strip().lower()
    if not normalized:
        raise create_client_input_error(
            ErrorCode.INVALID_BRACKET,
            "PvP bracket is required",
            operation="normalize_pvp_bracket",
        )

    canonical = BRACKET_ALIASES.get(normalized, normalized)
    if canonical in list_pvp_brackets(game):
        return canonical

    raise create_client_input_error(
        ErrorCode.UNSUPPORTED_BRACKET,
        f"Unsupported PvP bracket: {bracket}",
        operation="normalize_pvp_bracket",
        details={"bracket": bracket, "game": game},
    )
