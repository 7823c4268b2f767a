"""Tests for Mythic+ normalization and the Mythic+ leaderboard service."""

from __future__ import annotations

import pytest

from armory.services.leaderboards.mythic_plus import (
    MythicPlusLeaderboardOptions,
    MythicPlusLeaderboardService,
    normalize_mythic_entry,
    normalize_mythic_filters,
    normalize_mythic_leaderboard,
    normalize_mythic_member,
)
from armory.shared.errors import ClientInputError, ErrorCode, NotSupportedError

RUBY_LIFE_POOLS = {"id": 399, "name": "Ruby Life Pools", "slug": "ruby-life-pools"}

LEADING_GROUPS = {
    "leading_groups": [
        {
            "rank": 1,
            "rating": 3512.5,
            "keystone_level": 20,
            "duration": 1_834_567,
            "completed_timestamp": 1_700_000_000_000,
            "map": RUBY_LIFE_POOLS,
            "keystone_affixes": [{"keystone_affix": {"id": 9, "name": "Tyrannical"}}],
            "members": [
                {
                    "profile": {"id": 11, "name": "Tanky", "realm": {"id": 3676, "slug": "area-52"}},
                    "faction": {"type": "HORDE"},
                    "specialization": {"id": 66},
                    "role": "TANK",
                },
                {
                    "profile": {"id": 12, "name": "Leafy"},
                    "faction": {"type": "HORDE"},
                    "specialization": {"id": 105},
                    "role": {"type": "HEALER"},
                },
            ],
        },
        {
            "rank": 2,
            "keystone_level": 19,
            "duration": 1_900_000,
            "completed_timestamp": 1_700_000_000,
            "map": RUBY_LIFE_POOLS,
            "members": [
                {
                    "profile": {"id": 21, "name": "Blinky"},
                    "faction": {"type": "ALLIANCE"},
                    "specialization": {"id": 62},
                    "role": "DAMAGE",
                },
            ],
        },
    ],
}


@pytest.fixture
def keystone_client(fake_client):
    fake_client.responses = {
        "leaderboard/mythic-plus": LEADING_GROUPS,
        "mythic-leaderboard": {"map": RUBY_LIFE_POOLS, **LEADING_GROUPS},
        "mythic-keystone/season/index": {"seasons": [{"id": 11}, {"id": 13}, {"id": 12}]},
        "mythic-keystone/season/13": {"id": 13, "name": "Dragonflight Season 4"},
    }
    return fake_client


@pytest.fixture
def service(orchestrator, keystone_client) -> MythicPlusLeaderboardService:
    return MythicPlusLeaderboardService(orchestrator, keystone_client)


def fetched_paths(client) -> list[str]:
    return [call.args[0] for call in client.fetch_json.await_args_list]


class TestNormalizeMythicEntry:
    """Run and member reconciliation."""

    def test_members_are_backfilled_and_roles_normalized(self) -> None:
        entry = normalize_mythic_entry(LEADING_GROUPS["leading_groups"][0])

        tank, healer = entry.members
        assert (tank.class_slug, tank.spec_slug, tank.role) == ("paladin", "protection", "tank")
        assert (healer.class_slug, healer.spec_slug, healer.role) == ("druid", "restoration", "healer")
        assert tank.realm.slug == "area-52"
        assert tank.faction == "horde"

    def test_run_fields(self) -> None:
        entry = normalize_mythic_entry(LEADING_GROUPS["leading_groups"][0])

        assert entry.rank == 1
        assert entry.rating == 3512.5
        assert entry.keystone_level == 20
        assert entry.duration_ms == 1_834_567
        assert entry.completed_at == "2023-11-14T22:13:20.000Z"
        assert entry.dungeon.name == "Ruby Life Pools"
        assert entry.affixes[0].name == "Tyrannical"

    def test_damage_role_counts_as_dps(self) -> None:
        entry = normalize_mythic_entry(LEADING_GROUPS["leading_groups"][1])

        assert entry.members[0].role == "dps"
        assert entry.completed_at == "2023-11-14T22:13:20.000Z"

    def test_member_with_names_only_gets_ids(self) -> None:
        # Given
        raw = {"character_class": {"name": "Rogue"}, "specialization": {"name": "Subtlety"}}

        # When
        member = normalize_mythic_member(raw)

        # Then
        assert (member.class_id, member.class_slug) == (4, "rogue")
        assert (member.spec_id, member.spec_slug) == (261, "subtlety")

    def test_multi_word_class_name_resolves(self) -> None:
        member = normalize_mythic_member({"character_class": {"name": "Death Knight"}})

        assert (member.class_id, member.class_slug) == (6, "death-knight")
        assert member.spec_id is None


class TestNormalizeMythicFilters:
    """Mode requirements and filter validation."""

    @pytest.mark.parametrize(
        ("options", "code"),
        [
            (MythicPlusLeaderboardOptions(mode="weekly"), ErrorCode.INVALID_MODE),
            (MythicPlusLeaderboardOptions(mode="class"), ErrorCode.CLASS_REQUIRED),
            (MythicPlusLeaderboardOptions(mode="dungeon", dungeon_id=399), ErrorCode.DUNGEON_FILTERS_REQUIRED),
            (
                MythicPlusLeaderboardOptions(mode="dungeon", connected_realm_id=11, dungeon_id=399),
                ErrorCode.PERIOD_REQUIRED,
            ),
            (MythicPlusLeaderboardOptions(connected_realm_id="eleven"), ErrorCode.INVALID_CONNECTED_REALM),
            (MythicPlusLeaderboardOptions(period_id=0), ErrorCode.INVALID_PERIOD),
            (MythicPlusLeaderboardOptions(role="bard"), ErrorCode.INVALID_ROLE),
        ],
    )
    def test_rejected(self, options: MythicPlusLeaderboardOptions, code: ErrorCode) -> None:
        with pytest.raises(ClientInputError) as exc_info:
            normalize_mythic_filters(options)

        assert exc_info.value.code is code

    def test_mode_is_case_insensitive(self) -> None:
        filters = normalize_mythic_filters(MythicPlusLeaderboardOptions(mode=" Class ", class_slug="Mage"))

        assert filters.mode == "class"
        assert filters.class_spec.class_id == 8

    def test_upstream_paths(self) -> None:
        class_filters = normalize_mythic_filters(
            MythicPlusLeaderboardOptions(mode="class", class_slug="mage", spec_slug="arcane")
        )
        dungeon_filters = normalize_mythic_filters(
            MythicPlusLeaderboardOptions(mode="dungeon", connected_realm_id="11", dungeon_id=399, period_id=900)
        )

        assert class_filters.upstream_path(13) == "/data/wow/leaderboard/mythic-plus/season/13/class/8/spec/62"
        assert dungeon_filters.upstream_path(13) == "/data/wow/connected-realm/11/mythic-leaderboard/399/period/900"

    def test_class_leaderboard_name_is_synthesized(self) -> None:
        filters = normalize_mythic_filters(
            MythicPlusLeaderboardOptions(mode="class", class_slug="mage", spec_slug="arcane")
        )

        dataset = normalize_mythic_leaderboard({"entries": []}, filters)

        assert dataset.leaderboard.name == "Arcane Mage Leaderboard"
        assert dataset.leaderboard.id == "class-mage-arcane"


class TestMythicPlusLeaderboardService:
    """End-to-end page assembly over a fake upstream."""

    @pytest.mark.asyncio
    async def test_overall_leaderboard_uses_highest_season(self, service, keystone_client) -> None:
        # When
        result = await service.get_leaderboard("retail", "us", "en_US", MythicPlusLeaderboardOptions())

        # Then
        view = result.value
        assert view.season.id == 13
        assert view.season.name == "Dragonflight Season 4"
        assert view.mode == "overall"
        assert view.leaderboard.id == "overall"
        assert view.total == 2
        assert [entry.percentile for entry in view.entries] == [100.0, 50.0]
        assert view.entries[0].time.formatted == "30:34.56"
        assert view.entries[0].time.seconds == 1835
        assert view.entries[0].mythic_rating == 3512.5
        assert "requested" not in view.filters
        assert {"class": "evoker", "specs": ["devastation", "preservation", "augmentation"]} in view.available_classes
        assert fetched_paths(keystone_client)[-1] == "/data/wow/leaderboard/mythic-plus/season/13"
        assert result.cache_meta.key == "leaderboard:mythic-plus:overall:us:season-13"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("options", "ranks"),
        [
            (MythicPlusLeaderboardOptions(role="healer"), [1]),
            (MythicPlusLeaderboardOptions(faction="alliance"), [2]),
            (MythicPlusLeaderboardOptions(class_slug="paladin"), [1]),
            (MythicPlusLeaderboardOptions(spec_slug="arcane"), [2]),
            (MythicPlusLeaderboardOptions(role="tank", faction="alliance"), []),
        ],
    )
    async def test_member_filters(self, service, options, ranks) -> None:
        """An entry matches when some member satisfies each active filter."""
        result = await service.get_leaderboard("retail", "us", "en_US", options)

        assert [entry.rank for entry in result.value.entries] == ranks
        assert result.value.total == len(ranks)

    @pytest.mark.asyncio
    async def test_rogue_subtlety_filter(self, service, keystone_client) -> None:
        # Given
        def run(rank: int, member: dict) -> dict:
            return {"rank": rank, "keystone_level": 20 - rank, "map": RUBY_LIFE_POOLS, "members": [member]}

        keystone_client.responses["leaderboard/mythic-plus"] = {
            "leading_groups": [
                run(1, {"character_class": {"name": "Rogue"}, "specialization": {"name": "Subtlety"}}),
                run(2, {"specialization": {"id": 259}}),
                run(3, {"specialization": {"id": 261}}),
                run(4, {"specialization": {"id": 64}}),
            ],
        }
        options = MythicPlusLeaderboardOptions(class_slug="rogue", spec_slug="subtlety")

        # When
        result = await service.get_leaderboard("retail", "us", "en_US", options)

        # Then
        assert [entry.rank for entry in result.value.entries] == [1, 3]
        assert result.value.total == 2

    @pytest.mark.asyncio
    async def test_dungeon_mode(self, service, keystone_client) -> None:
        # Given
        options = MythicPlusLeaderboardOptions(mode="dungeon", connected_realm_id=11, dungeon_id=399, period_id=900)

        # When
        result = await service.get_leaderboard("retail", "eu", "en_GB", options)

        # Then
        assert fetched_paths(keystone_client)[-1] == "/data/wow/connected-realm/11/mythic-leaderboard/399/period/900"
        assert result.value.leaderboard.name == "Ruby Life Pools"
        assert result.value.filters["requested"]["dungeon_id"] == 399
        assert result.cache_meta.key == "leaderboard:mythic-plus:dungeon:eu:season-13:cr-11:dungeon-399:period-900"

    @pytest.mark.asyncio
    async def test_invalid_filters_never_reach_upstream(self, service, keystone_client) -> None:
        with pytest.raises(ClientInputError):
            await service.get_leaderboard("retail", "us", "en_US", MythicPlusLeaderboardOptions(mode="class"))

        keystone_client.fetch_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_retail_is_supported(self, service, keystone_client) -> None:
        with pytest.raises(NotSupportedError):
            await service.get_leaderboard("classic-era", "us", "en_US", MythicPlusLeaderboardOptions())

        keystone_client.fetch_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_limit_above_maximum(self, orchestrator, keystone_client) -> None:
        service = MythicPlusLeaderboardService(orchestrator, keystone_client, default_limit=1, max_limit=1)

        first = await service.get_leaderboard("retail", "us", "en_US", MythicPlusLeaderboardOptions())
        with pytest.raises(ClientInputError) as exc_info:
            await service.get_leaderboard("retail", "us", "en_US", MythicPlusLeaderboardOptions(limit=2))

        assert len(first.value.entries) == 1
        assert first.value.pagination.next_cursor == "offset:1"
        assert exc_info.value.code is ErrorCode.INVALID_LIMIT
