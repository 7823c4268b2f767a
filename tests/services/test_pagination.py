"""Tests for offset pagination."""

from __future__ import annotations

import pytest

from armory.services.pagination import (
    apply_offset_pagination,
    decode_cursor,
    encode_cursor,
    normalize_limit,
)
from armory.shared.errors import ClientInputError, ErrorCode


class TestNormalizeLimit:
    """Page size validation."""

    @pytest.mark.parametrize("limit", [0, -1, 201, 2.5, "10", True, float("inf")])
    def test_invalid_limits_are_rejected(self, limit) -> None:
        with pytest.raises(ClientInputError) as exc_info:
            normalize_limit(limit, 50, 200)

        assert exc_info.value.code is ErrorCode.INVALID_LIMIT
        assert exc_info.value.details == {"limit": str(limit), "max": 200}

    def test_none_uses_default(self) -> None:
        assert normalize_limit(None, 50, 200) == 50

    def test_integral_float_is_accepted(self) -> None:
        assert normalize_limit(25.0, 50, 200) == 25

    def test_bounds_are_inclusive(self) -> None:
        assert normalize_limit(1, 50, 200) == 1
        assert normalize_limit(200, 50, 200) == 200


class TestCursor:
    """Cursor encoding."""

    def test_encode(self) -> None:
        assert encode_cursor(40) == "offset:40"
        assert encode_cursor(-3) == "offset:0"

    @pytest.mark.parametrize("cursor", ["offset:", "offset:-1", "page:2", "offset:1x", "OFFSET:1"])
    def test_malformed_cursor_is_rejected(self, cursor: str) -> None:
        with pytest.raises(ClientInputError) as exc_info:
            decode_cursor(cursor, 10)

        assert exc_info.value.code is ErrorCode.INVALID_CURSOR

    def test_missing_cursor_starts_at_zero(self) -> None:
        assert decode_cursor(None, 10) == 0
        assert decode_cursor("", 10) == 0

    def test_cursor_past_end_is_clamped_to_last_index(self) -> None:
        assert decode_cursor("offset:99", 10) == 9
        assert decode_cursor("offset:5", 0) == 0


class TestApplyOffsetPagination:
    """Slicing and cursor links."""

    def test_first_page(self) -> None:
        # When
        page = apply_offset_pagination(list(range(5)), limit=2)

        # Then
        assert page.results == [0, 1]
        assert page.total == 5
        assert page.state.cursor == "offset:0"
        assert page.state.next_cursor == "offset:2"
        assert page.state.previous_cursor is None

    def test_middle_page(self) -> None:
        page = apply_offset_pagination(list(range(5)), cursor="offset:2", limit=2)

        assert page.results == [2, 3]
        assert page.state.next_cursor == "offset:4"
        assert page.state.previous_cursor == "offset:0"

    def test_last_page_has_no_next_cursor(self) -> None:
        page = apply_offset_pagination(list(range(5)), cursor="offset:4", limit=2)

        assert page.results == [4]
        assert page.state.next_cursor is None
        assert page.state.previous_cursor == "offset:2"

    def test_cursor_past_end_returns_last_item(self) -> None:
        page = apply_offset_pagination(list(range(5)), cursor="offset:50", limit=2)

        assert page.results == [4]
        assert page.state.offset == 4

    def test_cursor_past_end_of_short_set(self) -> None:
        """offset:5 over three items is clamped to the last index, not an error."""
        # When
        page = apply_offset_pagination(["a", "b", "c"], cursor="offset:5", limit=10)

        # Then
        assert page.results == ["c"]
        assert page.total == 3
        assert page.state.offset == 2
        assert page.state.cursor == "offset:2"
        assert page.state.next_cursor is None
        assert page.state.previous_cursor == "offset:0"

    def test_empty_set(self) -> None:
        page = apply_offset_pagination([], cursor="offset:3")

        assert page.results == []
        assert page.total == 0
        assert page.state.next_cursor is None
        assert page.state.limit == 50

    def test_custom_bounds(self) -> None:
        with pytest.raises(ClientInputError):
            apply_offset_pagination(list(range(5)), limit=20, default_limit=5, max_limit=10)

        assert apply_offset_pagination(list(range(20)), default_limit=5, max_limit=10).state.limit == 5


class TestCursorWalk:
    """Following next cursors from the first page."""

    @pytest.mark.parametrize("total", [0, 1, 7, 10, 23])
    @pytest.mark.parametrize("limit", [1, 3, 10, 50])
    def test_every_index_is_visited_once(self, total: int, limit: int) -> None:
        # Given
        items = list(range(total))
        cursor: str | None = "offset:0"
        visited: list[int] = []
        pages = 0

        # When
        while cursor is not None:
            page = apply_offset_pagination(items, cursor=cursor, limit=limit)
            visited.extend(page.results)
            cursor = page.state.next_cursor
            pages += 1

        # Then
        assert visited == items
        assert pages == max(1, -(-total // limit))
