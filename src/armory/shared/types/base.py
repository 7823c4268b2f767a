"""
Base Dataclasses for Armory

Every normalized model (cache metadata, leaderboard entries, pagination state)
inherits from BaseDataclass so it can be stored as an opaque JSON payload via
``to_dict`` and rebuilt with ``from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class BaseDataclass:
    """Common base dataclass for all Armory types.

    Lenient by default: ``from_dict`` silently ignores unknown keys, which keeps
    cached payloads readable after a model gains or loses a field.

    Example:
        >>> @dataclass
        ... class Realm(BaseDataclass):
        ...     slug: str
        ...
        >>> from armory.shared.utils.dataclass_serialization import from_dict
        >>> from_dict(Realm, {"slug": "stormrage", "extra": 1}).slug
        'stormrage'
    """
