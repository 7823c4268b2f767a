"""Offset pagination over in-memory lists.

Cursors are opaque to callers but stateless: ``offset:<n>`` encodes the start
index of a page, so any node can serve any cursor.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Generic, Sequence, TypeVar

from armory.shared.constants import Pagination
from armory.shared.errors import ErrorCode, create_client_input_error
from armory.shared.types.base import BaseDataclass

T = TypeVar("T")

_CURSOR_PATTERN = re.compile(r"^offset:(\d+)$")


@dataclass
class PaginationState(BaseDataclass):
    """Position of a page within the full result set."""

    limit: int
    offset: int
    cursor: str
    next_cursor: str | None = None
    previous_cursor: str | None = None


@dataclass
class PaginatedResult(Generic[T]):
    """One page of results plus the total size of the set."""

    results: list[T]
    total: int
    state: PaginationState


def encode_cursor(offset: int) -> str:
    """Encode an offset as a cursor string."""
    return f"{Pagination.CURSOR_PREFIX}{max(int(offset), 0)}"


def normalize_limit(limit: Any, default_limit: int, max_limit: int) -> int:
    """Validate a page size.

    Raises:
        ClientInputError: If ``limit`` is not an integer in ``[1, max_limit]``
    """
    if limit is None:
        return default_limit

    value: int | None = None
    if isinstance(limit, bool):
        value = None
    elif isinstance(limit, int):
        value = limit
    elif isinstance(limit, float) and math.isfinite(limit) and limit.is_integer():
        value = int(limit)

    if value is None or value < 1 or value > max_limit:
        raise create_client_input_error(
            ErrorCode.INVALID_LIMIT,
            f"The limit must be an integer between 1 and {max_limit}",
            operation="paginate",
            details={"limit": str(limit), "max": max_limit},
        )
    return value


def decode_cursor(cursor: str | None, total: int) -> int:
    """Decode a cursor into an offset, clamped to the last index.

    Raises:
        ClientInputError: If the cursor is malformed
    """
    if not cursor:
        return 0

    match = _CURSOR_PATTERN.match(cursor)
    if match is None:
        raise create_client_input_error(
            ErrorCode.INVALID_CURSOR,
            "Cursor is invalid or malformed",
            operation="paginate",
            details={"cursor": cursor},
        )

    offset = int(match.group(1))
    if offset >= total:
        return max(total - 1, 0)
    return offset


def apply_offset_pagination(
    items: Sequence[T],
    cursor: str | None = None,
    limit: Any = None,
    default_limit: int = Pagination.DEFAULT_LIMIT,
    max_limit: int = Pagination.MAX_LIMIT,
) -> PaginatedResult[T]:
    """Slice ``items`` into a page.

    A cursor past the end is clamped to the last index, so the page is the
    final item (or empty for an empty set) rather than an error.

    Example:
        >>> page = apply_offset_pagination(list(range(5)), cursor="offset:2", limit=2)
        >>> page.results, page.state.next_cursor, page.state.previous_cursor
        ([2, 3], 'offset:4', 'offset:0')
    """
    total = len(items)
    page_size = normalize_limit(limit, default_limit, max_limit)
    offset = decode_cursor(cursor, total)

    next_offset = offset + page_size
    return PaginatedResult(
        results=list(items[offset:next_offset]),
        total=total,
        state=PaginationState(
            limit=page_size,
            offset=offset,
            cursor=encode_cursor(offset),
            next_cursor=encode_cursor(next_offset) if next_offset < total else None,
            previous_cursor=encode_cursor(max(offset - page_size, 0)) if offset > 0 else None,
        ),
    )


__all__ = [
    "PaginatedResult",
    "PaginationState",
    "apply_offset_pagination",
    "decode_cursor",
    "encode_cursor",
    "normalize_limit",
]
