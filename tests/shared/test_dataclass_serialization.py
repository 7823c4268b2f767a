"""Tests for dataclass serialization used by cached payloads."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from armory.services.leaderboards.models import BracketInfo, PvpDataset, PvpDatasetEntry, SeasonInfo
from armory.shared.types.base import BaseDataclass
from armory.shared.utils.dataclass_serialization import from_dict, to_dict


@dataclass
class _Realm(BaseDataclass):
    slug: str
    id: int | None = None
    tags: list[str] = field(default_factory=list)


class TestToDict:
    """Test dataclass flattening."""

    def test_rejects_non_dataclass(self) -> None:
        with pytest.raises(TypeError):
            to_dict({"slug": "stormrage"})

    def test_flattens_nested_dataclasses(self) -> None:
        """Nested datasets become plain JSON-compatible dicts."""
        # Given
        dataset = PvpDataset(
            season=SeasonInfo(id=37, name="Season 37"),
            bracket=BracketInfo(id="3v3", name="3v3"),
            entries=[PvpDatasetEntry(raw_rank=1, rating=2900, character_name="Aeryn")],
        )

        # When
        data = to_dict(dataset)

        # Then
        assert data["season"]["id"] == 37
        assert data["bracket"] == {"id": "3v3", "name": "3v3"}
        assert data["entries"][0]["character_name"] == "Aeryn"
        assert data["entries"][0]["won"] == 0


class TestFromDict:
    """Test dataclass reconstruction."""

    def test_ignores_unknown_keys_by_default(self) -> None:
        realm = from_dict(_Realm, {"slug": "stormrage", "population": "high"})

        assert realm == _Realm(slug="stormrage")

    def test_forbid_mode_rejects_unknown_keys(self) -> None:
        with pytest.raises(TypeError):
            from_dict(_Realm, {"slug": "stormrage", "population": "high"}, extra="forbid")

    def test_missing_required_field_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            from_dict(_Realm, {"id": 60})

    def test_rebuilds_nested_lists_of_dataclasses(self) -> None:
        """A dataset read back from the cache has typed entries."""
        # Given
        data = {
            "season": {"id": 37},
            "bracket": {"id": "2v2"},
            "entries": [{"raw_rank": 5, "rating": 2100, "faction": "horde"}],
            "updated_at": "2024-05-01T00:00:00.000Z",
        }

        # When
        dataset = from_dict(PvpDataset, data)

        # Then
        assert isinstance(dataset.season, SeasonInfo)
        assert isinstance(dataset.entries[0], PvpDatasetEntry)
        assert dataset.entries[0].faction == "horde"
        assert dataset.bracket.name is None
