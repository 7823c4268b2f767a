"""Realm index service."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping

from armory.services.cache_models import CachedResult
from armory.services.cache_orchestrator import CacheOrchestrator
from armory.services.games import get_game_config, validate_region
from armory.shared.constants import CacheDurations
from armory.shared.error_handling import map_exception_to_armory_error
from armory.shared.errors import ArmoryError, ErrorCode
from armory.shared.logging import log_operation_error, log_operation_start, log_operation_success
from armory.shared.types.base import BaseDataclass
from armory.shared.utils.dataclass_serialization import from_dict, to_dict

logger = logging.getLogger(__name__)


@dataclass
class RealmSummary(BaseDataclass):
    """A realm as listed in the regional realm index."""

    id: int
    slug: str
    name: str
    category: str | None = None
    locale_name: str | None = None
    timezone: str | None = None
    type: str | None = None
    population: str | None = None


def _named(value: Any) -> str | None:
    """``{"name": "Normal"}`` and ``"Normal"`` both read as ``"Normal"``."""
    if isinstance(value, Mapping):
        return value.get("name")
    return value


def normalize_realm(realm: Mapping[str, Any]) -> RealmSummary:
    return RealmSummary(
        id=realm["id"],
        slug=realm["slug"],
        name=realm["name"],
        category=realm.get("category"),
        locale_name=realm.get("nameLocalized"),
        timezone=realm.get("timezone"),
        type=_named(realm.get("type")),
        population=_named(realm.get("population")),
    )


class RealmService:
    """Lists the realms of a game and region."""

    def __init__(self, orchestrator: CacheOrchestrator, client: Any) -> None:
        self.orchestrator = orchestrator
        self.client = client

    async def list_realms(self, game: str, region: str, locale: str) -> CachedResult[list[RealmSummary]]:
        """Return every realm of ``game`` in ``region``.

        Raises:
            ClientInputError: For an unknown game or region
            UpstreamError: If Battle.net rejects the request
            ApplicationError: ``realm:list_failed`` for any other failure
        """
        config = get_game_config(game)
        region = validate_region(region)
        namespace = config.dynamic_namespace(region)
        log_operation_start(logger, "list_realms", {"game": game, "region": region, "locale": locale})
        started = time.perf_counter()

        async def fetch_realms() -> list[dict[str, Any]]:
            response = await self.client.fetch_json(
                "/data/wow/realm/index",
                region=region,
                locale=locale,
                namespace=namespace,
            )
            realms = (response.get("realms") or []) if isinstance(response, Mapping) else []
            return [to_dict(normalize_realm(realm)) for realm in realms]

        try:
            cached = await self.orchestrator.get_cached_value(
                ["realms", game, region, locale],
                fetch_realms,
                category=CacheDurations.REALMS,
            )
        except ArmoryError:
            raise
        except Exception as e:
            error = map_exception_to_armory_error(
                e,
                "list_realms",
                code=ErrorCode.REALM_LIST_FAILED,
                message="Unable to retrieve realms from Battle.net API",
                additional_data={"game": game, "region": region},
            )
            log_operation_error(logger, error)
            raise error from e

        realms = [from_dict(RealmSummary, realm) for realm in cached.value]
        log_operation_success(
            logger,
            "list_realms",
            (time.perf_counter() - started) * 1000,
            result_info={"count": len(realms), "cached": cached.cache_meta.cached},
        )
        return CachedResult(value=realms, cache_meta=cached.cache_meta)


__all__ = ["RealmService", "RealmSummary", "normalize_realm"]
