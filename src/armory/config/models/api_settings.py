"""Battle.net API configuration models.

Client credentials, transport timeout and the retry/backoff budget of the
Battle.net client.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from armory.shared.constants import NetworkConfig


class BattleNetSettings(BaseModel):
    """Battle.net client configuration.

    Security: client_id and client_secret are masked in __repr__ so the
    settings object can be logged.
    """

    client_id: str = Field(default="", repr=False, description="OAuth client id")
    client_secret: str = Field(default="", repr=False, description="OAuth client secret")

    request_timeout: float = Field(
        default=NetworkConfig.REQUEST_TIMEOUT,
        gt=0,
        description="Total per-request timeout in seconds",
    )

    max_retries: int = Field(
        default=NetworkConfig.MAX_FETCH_RETRIES,
        ge=0,
        description="Retries after the first attempt",
    )
    base_retry_delay_ms: int = Field(
        default=NetworkConfig.BASE_RETRY_DELAY_MS,
        ge=0,
        description="Backoff before the first retry",
    )
    max_retry_delay_ms: int = Field(
        default=NetworkConfig.MAX_RETRY_DELAY_MS,
        ge=0,
        description="Upper bound of the exponential backoff",
    )
    retry_jitter_ms: int = Field(
        default=NetworkConfig.RETRY_JITTER_MS,
        ge=0,
        description="Random jitter added to each backoff",
    )

    def __repr__(self) -> str:
        masked_id = "****" if self.client_id else "[empty]"
        masked_secret = "****" if self.client_secret else "[empty]"
        return (
            f"BattleNetSettings("
            f"client_id={masked_id}, "
            f"client_secret={masked_secret}, "
            f"request_timeout={self.request_timeout}, "
            f"max_retries={self.max_retries})"
        )


class APISettings(BaseModel):
    """Container for upstream API configurations."""

    battlenet: BattleNetSettings = Field(
        default_factory=BattleNetSettings,
        description="Battle.net API configuration",
    )


__all__ = ["APISettings", "BattleNetSettings"]
