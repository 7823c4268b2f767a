"""Supported games, regions and their Battle.net namespaces."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from armory.shared.errors import ErrorCode, create_client_input_error

SUPPORTED_GAMES = ("retail", "classic-era", "classic-wotlk", "classic-hc")
SUPPORTED_REGIONS = ("us", "eu", "kr", "tw")

DEFAULT_LOCALE: dict[str, str] = {
    "us": "en_US",
    "eu": "en_GB",
    "kr": "ko_KR",
    "tw": "zh_TW",
}


@dataclass(frozen=True)
class GameConfig:
    """Namespace scheme of one game flavour.

    Attributes:
        id: Game id (e.g. "classic-era")
        namespace_infix: Inserted between the namespace kind and the region
    """

    id: str
    namespace_infix: str = ""

    def profile_namespace(self, region: str) -> str:
        return f"profile-{self.namespace_infix}{region}"

    def dynamic_namespace(self, region: str) -> str:
        return f"dynamic-{self.namespace_infix}{region}"

    @staticmethod
    def character_path(realm_slug: str, character_name: str) -> str:
        """Profile API path of a character, lower-cased and URL-encoded."""
        realm = quote(realm_slug.lower(), safe="")
        name = quote(character_name.lower(), safe="")
        return f"/profile/wow/character/{realm}/{name}"


GAME_CONFIG: dict[str, GameConfig] = {
    "retail": GameConfig("retail"),
    "classic-era": GameConfig("classic-era", "classic-"),
    "classic-wotlk": GameConfig("classic-wotlk", "classic1x-"),
    "classic-hc": GameConfig("classic-hc", "classic-"),
}


def get_game_config(game: str) -> GameConfig:
    """Return the configuration of ``game``.

    Raises:
        ClientInputError: If the game is not supported
    """
    config = GAME_CONFIG.get(game)
    if config is None:
        raise create_client_input_error(
            ErrorCode.GAME_UNSUPPORTED,
            f"Unsupported game id: {game}",
            operation="get_game_config",
            details={"game": game, "supported": list(SUPPORTED_GAMES)},
        )
    return config


def validate_region(region: str) -> str:
    """Normalize and validate a region id.

    Raises:
        ClientInputError: If the region is not supported
    """
    normalized = (region or "").strip().lower()
    if normalized not in SUPPORTED_REGIONS:
        raise create_client_input_error(
            ErrorCode.REGION_UNSUPPORTED,
            f"Unsupported region: {region}",
            operation="validate_region",
            details={"region": region, "supported": list(SUPPORTED_REGIONS)},
        )
    return normalized


def default_locale(region: str) -> str:
    """Default locale of a supported region."""
    return DEFAULT_LOCALE[validate_region(region)]
