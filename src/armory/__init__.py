"""
Armory - Battle.net game-data proxy core

A caching, retrying access layer for the Battle.net game-data API with
a leaderboard normalization engine for PvP and Mythic+ data.
"""

__version__ = "0.1.0"
__author__ = "Armory Team"

__all__ = ["__version__"]
