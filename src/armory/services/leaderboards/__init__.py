"""Leaderboard normalization: PvP ladders and Mythic+ keystone leaderboards."""

from armory.services.leaderboards.mythic_plus import (
    MythicPlusLeaderboardOptions,
    MythicPlusLeaderboardService,
)
from armory.services.leaderboards.pvp import PvpLeaderboardOptions, PvpLeaderboardService

__all__ = [
    "MythicPlusLeaderboardOptions",
    "MythicPlusLeaderboardService",
    "PvpLeaderboardOptions",
    "PvpLeaderboardService",
]
