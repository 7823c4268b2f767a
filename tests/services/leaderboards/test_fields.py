"""Tests for upstream field reconciliation helpers."""

from __future__ import annotations

import pytest

from armory.services.leaderboards.fields import (
    compute_percentile,
    compute_win_rate,
    dig,
    duration_seconds,
    format_duration,
    format_name_from_slug,
    normalize_faction,
    normalize_role,
    pick_first_number,
    pick_first_record,
    pick_first_string,
    pick_localized_string,
    resolve_timestamp,
    to_iso_string,
    to_numeric_id,
    to_slug,
)

ISO = "2023-11-14T22:13:20.000Z"


class TestProbing:
    """First-usable-candidate helpers."""

    def test_dig_follows_nested_mappings(self) -> None:
        payload = {"character": {"realm": {"slug": "area-52"}}}

        assert dig(payload, "character", "realm", "slug") == "area-52"
        assert dig(payload, "character", "guild", "name") is None
        assert dig("not-a-mapping", "character") is None

    def test_pick_first_string_skips_blank_values(self) -> None:
        assert pick_first_string(None, "", "   ", 5, " Thrall ") == "Thrall"
        assert pick_first_string(None, 1) is None

    def test_pick_first_record(self) -> None:
        assert pick_first_record(None, "x", {"id": 1}, {"id": 2}) == {"id": 1}

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(42, 42), (" 17 ", 17), (3.5, 3.5), ("4.2", None), ("abc", None), (True, None), (float("nan"), None)],
    )
    def test_to_numeric_id(self, value, expected) -> None:
        assert to_numeric_id(value) == expected

    def test_pick_first_number(self) -> None:
        assert pick_first_number(None, "n/a", "7", 9) == 7


class TestSlugs:
    """Slug and display-name handling."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("Beast Mastery", "beast-mastery"), ("  Area 52 ", "area-52"), ("Mal'Ganis", "mal-ganis"), ("--x--", "x")],
    )
    def test_to_slug(self, value: str, expected: str) -> None:
        assert to_slug(value) == expected

    def test_format_name_from_slug(self) -> None:
        assert format_name_from_slug("area-52") == "Area 52"
        assert format_name_from_slug("burning_legion") == "Burning Legion"
        assert format_name_from_slug("   ") is None
        assert format_name_from_slug(None) is None


class TestEnumerations:
    """Faction and role normalization."""

    def test_faction(self) -> None:
        assert normalize_faction(" HORDE ") == "horde"
        assert normalize_faction("Alliance") == "alliance"
        assert normalize_faction("neutral") is None
        assert normalize_faction(1) is None

    def test_role_maps_damage_to_dps(self) -> None:
        assert normalize_role("Damage") == "dps"
        assert normalize_role("DPS") == "dps"
        assert normalize_role("healer") == "healer"
        assert normalize_role("support") is None


class TestTimestamps:
    """Epoch and ISO timestamp rendering."""

    @pytest.mark.parametrize(
        "value",
        [1_700_000_000, 1_700_000_000_000, "1700000000", "1700000000000", "2023-11-14T22:13:20Z"],
    )
    def test_equivalent_inputs_render_identically(self, value) -> None:
        assert to_iso_string(value) == ISO

    @pytest.mark.parametrize("value", [None, True, "", "yesterday", float("inf"), {"ts": 1}])
    def test_unusable_inputs(self, value) -> None:
        assert to_iso_string(value) is None

    def test_resolve_timestamp_takes_first_usable(self) -> None:
        assert resolve_timestamp(None, "soon", 1_700_000_000) == ISO


class TestLocalizedStrings:
    """Localized name extraction."""

    def test_prefers_english_locale(self) -> None:
        assert pick_localized_string({"fr_FR": "Arène", "en_US": "Arena"}) == "Arena"

    def test_falls_back_to_any_string_except_href(self) -> None:
        assert pick_localized_string({"href": "https://example.test", "de_DE": "Arena"}) == "Arena"

    def test_first_candidate_with_a_value_wins(self) -> None:
        assert pick_localized_string(None, {}, "  ", "Season 1", "Season 2") == "Season 1"


class TestDerivedStatistics:
    """Percentiles, win rates and run durations."""

    @pytest.mark.parametrize(
        ("index", "total", "expected"),
        [(0, 4, 100.0), (3, 4, 25.0), (1, 3, 66.7), (0, 1, 100.0)],
    )
    def test_percentile(self, index: int, total: int, expected: float) -> None:
        assert compute_percentile(index, total) == expected

    def test_percentile_of_empty_set(self) -> None:
        assert compute_percentile(0, 0) is None

    def test_win_rate(self) -> None:
        assert compute_win_rate(2, 1) == 66.7
        assert compute_win_rate(150, 50) == 75.0
        assert compute_win_rate(0, 0) is None

    def test_format_duration(self) -> None:
        assert format_duration(1_834_567) == "30:34.56"
        assert format_duration(65_000) == "1:05.00"

    def test_format_duration_does_not_round_seconds_up(self) -> None:
        """The fraction is shown as centiseconds, never folded into the seconds."""
        assert format_duration(59_999) == "0:59.99"
        assert format_duration(1_500) == "0:01.50"

    def test_duration_seconds(self) -> None:
        assert duration_seconds(1_834_567) == 1835
        assert duration_seconds(None) is None
