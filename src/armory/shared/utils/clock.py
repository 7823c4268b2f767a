"""Wall-clock helpers.

All cache and token timestamps are integer epoch milliseconds. Components take
a ``Clock`` so tests can move time without sleeping.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Return the current time as epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_iso(value: int | None) -> str | None:
    """Render epoch milliseconds as an ISO 8601 UTC string (``...Z``)."""
    if not value:
        return None
    moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
