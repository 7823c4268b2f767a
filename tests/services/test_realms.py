"""Tests for the realm index service."""

from __future__ import annotations

import pytest

from armory.services.realms import RealmService, normalize_realm
from armory.shared.errors import ApplicationError, ClientInputError, ErrorCode, UpstreamRequestError

REALM_INDEX = {
    "realms": [
        {
            "id": 60,
            "slug": "stormrage",
            "name": "Stormrage",
            "category": "United States",
            "timezone": "America/New_York",
            "type": {"type": "NORMAL", "name": "Normal"},
            "population": {"name": "High"},
        },
        {"id": 3676, "slug": "area-52", "name": "Area 52", "type": "PvE"},
    ],
}


class TestNormalizeRealm:
    """Realm index row shaping."""

    def test_named_objects_are_flattened(self) -> None:
        realm = normalize_realm(REALM_INDEX["realms"][0])

        assert realm.type == "Normal"
        assert realm.population == "High"
        assert realm.timezone == "America/New_York"

    def test_plain_strings_are_kept(self) -> None:
        realm = normalize_realm(REALM_INDEX["realms"][1])

        assert realm.type == "PvE"
        assert realm.population is None


class TestRealmService:
    """Cached realm listing."""

    @pytest.mark.asyncio
    async def test_realms_are_fetched_once_and_cached(self, orchestrator, fake_client) -> None:
        # Given
        fake_client.responses = {"realm/index": REALM_INDEX}
        service = RealmService(orchestrator, fake_client)

        # When
        first = await service.list_realms("retail", "us", "en_US")
        second = await service.list_realms("retail", "us", "en_US")

        # Then
        assert [realm.slug for realm in second.value] == ["stormrage", "area-52"]
        assert first.cache_meta.cached is False
        assert second.cache_meta.cached is True
        assert second.cache_meta.key == "realms:retail:us:en-us"
        fake_client.fetch_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_operation_start_and_success_are_logged(self, mocker, orchestrator, fake_client) -> None:
        fake_client.responses = {"realm/index": REALM_INDEX}
        log_start = mocker.patch("armory.services.realms.log_operation_start")
        log_success = mocker.patch("armory.services.realms.log_operation_success")
        service = RealmService(orchestrator, fake_client)

        await service.list_realms("retail", "us", "en_US")

        log_start.assert_called_once_with(
            mocker.ANY, "list_realms", {"game": "retail", "region": "us", "locale": "en_US"}
        )
        assert log_success.call_args.kwargs["result_info"] == {"count": 2, "cached": False}

    @pytest.mark.asyncio
    async def test_classic_uses_classic_namespace(self, orchestrator, fake_client) -> None:
        fake_client.responses = {"realm/index": {"realms": []}}
        service = RealmService(orchestrator, fake_client)

        result = await service.list_realms("classic-era", "EU", "en_GB")

        assert result.value == []
        assert fake_client.fetch_json.await_args.kwargs["namespace"] == "dynamic-classic-eu"
        assert fake_client.fetch_json.await_args.kwargs["region"] == "eu"

    @pytest.mark.asyncio
    async def test_upstream_errors_pass_through(self, orchestrator, fake_client) -> None:
        failure = UpstreamRequestError("us", "/data/wow/realm/index", 503, "unavailable")
        fake_client.responses = {"realm/index": failure}
        service = RealmService(orchestrator, fake_client)

        with pytest.raises(UpstreamRequestError) as exc_info:
            await service.list_realms("retail", "us", "en_US")

        assert exc_info.value is failure
        assert orchestrator.store.peek("realms:retail:us:en-us") is None

    @pytest.mark.asyncio
    async def test_malformed_payload_is_wrapped(self, orchestrator, fake_client) -> None:
        """A realm without an id cannot be normalized and fails the whole listing."""
        fake_client.responses = {"realm/index": {"realms": [{"slug": "nameless"}]}}
        service = RealmService(orchestrator, fake_client)

        with pytest.raises(ApplicationError) as exc_info:
            await service.list_realms("retail", "us", "en_US")

        assert exc_info.value.code is ErrorCode.REALM_LIST_FAILED
        assert isinstance(exc_info.value.original_error, KeyError)

    @pytest.mark.asyncio
    async def test_unknown_region(self, orchestrator, fake_client) -> None:
        service = RealmService(orchestrator, fake_client)

        with pytest.raises(ClientInputError) as exc_info:
            await service.list_realms("retail", "cn", "zh_CN")

        assert exc_info.value.code is ErrorCode.REGION_UNSUPPORTED
        fake_client.fetch_json.assert_not_awaited()
