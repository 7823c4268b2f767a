"""Field reconciliation helpers for upstream leaderboard payloads.

Battle.net returns the same logical value under different keys depending on
the endpoint and game flavour. Normalizers read every value through an
ordered candidate list; the first usable candidate wins.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Mapping

from armory.shared.utils.clock import ms_to_iso

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SLUG_SEPARATORS = re.compile(r"[-_\s]+")
_DIGITS = re.compile(r"^\d+$")

# A numeric timestamp above this is already in milliseconds
MS_TIMESTAMP_THRESHOLD = 1e12

LOCALIZED_KEYS = (
    "en_US",
    "en_us",
    "en_GB",
    "en-gb",
    "en",
    "default",
    "value",
    "name",
    "display_string",
    "slug",
    "id",
)

FACTIONS = ("alliance", "horde")
ROLES = {"tank": "tank", "healer": "healer", "dps": "dps", "damage": "dps"}


def dig(value: Any, *path: str) -> Any:
    """Follow ``path`` through nested mappings, returning None on any gap.

    Example:
        >>> dig({"character": {"realm": {"slug": "area-52"}}}, "character", "realm", "slug")
        'area-52'
    """
    current = value
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def pick_first_record(*values: Any) -> Mapping[str, Any] | None:
    """Return the first candidate that is a mapping."""
    for value in values:
        if isinstance(value, Mapping):
            return value
    return None


def pick_first_string(*values: Any) -> str | None:
    """Return the first candidate that is a non-blank string, trimmed."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def to_numeric_id(value: Any) -> int | float | None:
    """Interpret a number or a digit-only string as a numeric id."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str) and _DIGITS.match(value.strip()):
        return int(value.strip())
    return None


def pick_first_number(*values: Any) -> int | float | None:
    """Return the first candidate usable as a numeric id."""
    for value in values:
        numeric = to_numeric_id(value)
        if numeric is not None:
            return numeric
    return None


def to_slug(value: str) -> str:
    """Slugify: lower-case, collapse non-alphanumerics to ``-`` and trim dashes."""
    return _NON_ALNUM.sub("-", value.strip().lower()).strip("-")


def normalize_slug(value: str | None) -> str | None:
    if not value:
        return None
    return to_slug(value)


def format_name_from_slug(value: str | None) -> str | None:
    """Turn ``"area-52"`` into ``"Area 52"``."""
    if not value or not value.strip():
        return None
    segments = [segment for segment in _SLUG_SEPARATORS.split(value.strip()) if segment]
    if not segments:
        return None
    return " ".join(segment[0].upper() + segment[1:] for segment in segments)


def normalize_faction(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    return normalized if normalized in FACTIONS else None


def normalize_role(value: Any) -> str | None:
    """Map a role to tank, healer or dps (``damage`` counts as dps)."""
    if not isinstance(value, str):
        return None
    return ROLES.get(value.strip().lower())


def _parse_iso(value: str) -> datetime | None:
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso_string(value: Any) -> str | None:
    """Render an upstream timestamp as ISO 8601 UTC.

    Numbers above 1e12 are epoch milliseconds, smaller ones epoch seconds.
    Numeric strings are treated as numbers, other strings parsed as ISO dates.

    Example:
        >>> to_iso_string(1700000000)
        '2023-11-14T22:13:20.000Z'
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        millis = value if value > MS_TIMESTAMP_THRESHOLD else value * 1000
        try:
            return ms_to_iso(int(millis))
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        try:
            numeric = float(trimmed)
        except ValueError:
            parsed = _parse_iso(trimmed)
            if parsed is None:
                return None
            return ms_to_iso(int(parsed.timestamp() * 1000))
        return to_iso_string(numeric)
    return None


def resolve_timestamp(*values: Any) -> str | None:
    """Return the first candidate that renders as an ISO timestamp."""
    for value in values:
        normalized = to_iso_string(value)
        if normalized:
            return normalized
    return None


def _extract_localized_string(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if not isinstance(value, Mapping):
        return None

    for key in LOCALIZED_KEYS:
        entry = value.get(key)
        if isinstance(entry, str) and entry.strip():
            return entry.strip()

    for key, entry in value.items():
        if key == "href":
            continue
        if isinstance(entry, str) and entry.strip():
            return entry.strip()
    return None


def pick_localized_string(*values: Any) -> str | None:
    """Return the first candidate that yields a string, preferring English locales."""
    for value in values:
        resolved = _extract_localized_string(value)
        if resolved:
            return resolved
    return None


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive values, like ``Math.round``."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def compute_percentile(index: int, total: int) -> float | None:
    """Share of the filtered set at or below position ``index`` (0-based), one decimal.

    Example:
        >>> compute_percentile(0, 4), compute_percentile(3, 4)
        (100.0, 25.0)
    """
    if total == 0:
        return None
    rank = index + 1
    return round_half_up(((total - rank + 1) / total) * 100, 1)


def compute_win_rate(won: int | float, lost: int | float) -> float | None:
    """Win percentage with one decimal, None when no games were played."""
    total = won + lost
    if not total:
        return None
    return round_half_up((won / total) * 100, 1)


def format_duration(duration_ms: int | float) -> str | None:
    """Format a run duration as ``m:ss.cc``.

    Example:
        >>> format_duration(1_834_567)
        '30:34.56'
    """
    if not isinstance(duration_ms, (int, float)) or not math.isfinite(duration_ms):
        return None
    minutes, seconds = divmod(int(duration_ms // 1000), 60)
    centis = math.floor((duration_ms % 1000) / 10)
    return f"{minutes}:{seconds:02d}.{centis:02d}"


def duration_seconds(duration_ms: int | float | None) -> int | None:
    if duration_ms is None:
        return None
    return int(round_half_up(duration_ms / 1000))
