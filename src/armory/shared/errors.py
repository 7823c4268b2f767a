"""Armory Error Handling Module

This module defines the error handling system for Armory, providing
structured error classes with context information, stable machine-readable
codes and HTTP-equivalent statuses.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext carries debugging information for logs
- Structured Details: ``details`` is the caller-visible diagnostic payload
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

from armory.shared.constants.http_codes import HTTPStatusCodes

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]

# Default keys to mask in safe_dict
SAFE_DICT_MASK_KEYS: tuple[str, ...] = ("client_secret",)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class ErrorCode(str, Enum):
    """Error codes for Armory.

    Values are the stable wire codes returned to callers, grouped by the
    resource family that raises them.
    """

    # Battle.net access
    CREDENTIALS_MISSING = "bnet:credentials_missing"
    TOKEN_FAILED = "bnet:token_failed"  # noqa: S105  # nosec B105 - error code constant
    NOT_FOUND = "bnet:not_found"
    REQUEST_FAILED = "bnet:request_failed"
    REQUEST_ABORTED = "request:aborted"

    # Game and region selection
    GAME_UNSUPPORTED = "game:unsupported"
    REGION_UNSUPPORTED = "region:unsupported"

    # Leaderboard input
    INVALID_LIMIT = "leaderboard:invalid_limit"
    INVALID_CURSOR = "leaderboard:invalid_cursor"
    INVALID_BRACKET = "leaderboard:invalid_bracket"
    UNSUPPORTED_BRACKET = "leaderboard:unsupported_bracket"
    INVALID_FACTION = "leaderboard:invalid_faction"
    INVALID_CLASS = "leaderboard:invalid_class"
    INVALID_SPEC = "leaderboard:invalid_spec"
    AMBIGUOUS_SPEC = "leaderboard:ambiguous_spec"
    INVALID_ROLE = "leaderboard:invalid_role"
    INVALID_CONNECTED_REALM = "leaderboard:invalid_connected_realm"
    INVALID_DUNGEON = "leaderboard:invalid_dungeon"
    INVALID_PERIOD = "leaderboard:invalid_period"
    INVALID_MODE = "leaderboard:invalid_mode"
    DUNGEON_FILTERS_REQUIRED = "leaderboard:dungeon_filters_required"
    PERIOD_REQUIRED = "leaderboard:period_required"
    CLASS_REQUIRED = "leaderboard:class_required"
    LEADERBOARD_NOT_SUPPORTED = "leaderboard:not_supported"
    SEASON_UNAVAILABLE = "leaderboard:season_unavailable"

    # Domain services
    REALM_LIST_FAILED = "realm:list_failed"
    CHARACTER_PVP_FAILED = "character:pvp_failed"

    # Cache
    CACHE_NOT_FOUND = "cache:not_found"
    CACHE_INVALID_LIMIT = "cache:invalid_limit"
    CACHE_UNKNOWN_CATEGORY = "cache:unknown_category"
    CACHE_SERIALIZATION_FAILED = "cache:serialization_failed"
    CACHE_STORAGE_FAILED = "cache:storage_failed"

    # Metrics
    METRICS_UNKNOWN_METRIC = "metrics:unknown_metric"
    METRICS_INVALID_OPERATION = "metrics:invalid_operation"

    # Configuration
    CONFIG_INVALID = "config:invalid"

    # Fallback
    UNEXPECTED = "server:unexpected"


_DEFAULT_STATUS: dict[ErrorCode, int] = {
    ErrorCode.CREDENTIALS_MISSING: HTTPStatusCodes.INTERNAL_SERVER_ERROR,
    ErrorCode.TOKEN_FAILED: HTTPStatusCodes.BAD_GATEWAY,
    ErrorCode.NOT_FOUND: HTTPStatusCodes.NOT_FOUND,
    ErrorCode.REQUEST_FAILED: HTTPStatusCodes.BAD_GATEWAY,
    ErrorCode.REQUEST_ABORTED: HTTPStatusCodes.CLIENT_CLOSED_REQUEST,
    ErrorCode.LEADERBOARD_NOT_SUPPORTED: HTTPStatusCodes.NOT_IMPLEMENTED,
    ErrorCode.SEASON_UNAVAILABLE: HTTPStatusCodes.BAD_GATEWAY,
    ErrorCode.CACHE_NOT_FOUND: HTTPStatusCodes.NOT_FOUND,
    ErrorCode.CACHE_SERIALIZATION_FAILED: HTTPStatusCodes.INTERNAL_SERVER_ERROR,
    ErrorCode.CACHE_STORAGE_FAILED: HTTPStatusCodes.INTERNAL_SERVER_ERROR,
    ErrorCode.METRICS_UNKNOWN_METRIC: HTTPStatusCodes.INTERNAL_SERVER_ERROR,
    ErrorCode.METRICS_INVALID_OPERATION: HTTPStatusCodes.INTERNAL_SERVER_ERROR,
    ErrorCode.CONFIG_INVALID: HTTPStatusCodes.INTERNAL_SERVER_ERROR,
    ErrorCode.REALM_LIST_FAILED: HTTPStatusCodes.INTERNAL_SERVER_ERROR,
    ErrorCode.CHARACTER_PVP_FAILED: HTTPStatusCodes.INTERNAL_SERVER_ERROR,
    ErrorCode.UNEXPECTED: HTTPStatusCodes.INTERNAL_SERVER_ERROR,
}


def default_status_for(code: ErrorCode) -> int:
    """Return the HTTP-equivalent status for an error code.

    Codes without an explicit mapping are client-input errors (400).
    """
    return _DEFAULT_STATUS.get(code, HTTPStatusCodes.BAD_REQUEST)


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types and drops None values.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if val is None:
            continue
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types are allowed in additional_data so that contexts
    serialize safely into structured logs.

    Attributes:
        operation: Operation name that raised the error
        additional_data: Optional dict with primitive values only
    """

    operation: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            object.__setattr__(self, "additional_data", _coerce_primitives(self.additional_data))

    def safe_dict(self, *, mask_keys: tuple[str, ...] | None = None) -> dict[str, Any]:
        """Export context as dict with sensitive keys removed.

        Args:
            mask_keys: Keys to drop from additional_data. Defaults to SAFE_DICT_MASK_KEYS.

        Returns:
            Dictionary that always contains an ``additional_data`` key.
        """
        if mask_keys is None:
            mask_keys = SAFE_DICT_MASK_KEYS

        data: dict[str, Any] = {}
        if self.operation is not None:
            data["operation"] = self.operation

        additional = self.additional_data or {}
        data["additional_data"] = {k: v for k, v in additional.items() if k not in mask_keys}
        return data


ErrorContext = ErrorContextModel


class ArmoryError(Exception):
    """Base exception class for all Armory errors.

    Every error carries a stable code, a human message, an HTTP-equivalent
    status and optional caller-visible details.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
        *,
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ) -> None:
        """Initialize ArmoryError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information for logs
            original_error: Original exception that caused this error
            details: Structured diagnostics safe to return to callers
            status: HTTP-equivalent status, defaults to the code's mapping
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error
        self.details = details
        self.status = status if status is not None else default_status_for(code)
        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "code": self.code.value,
            "message": self.message,
            "status": self.status,
            "details": self.details,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def to_response(self) -> dict[str, Any]:
        """Render the caller-facing error body.

        Returns:
            ``{"error": {"code", "message", "details"?}}`` with no stack trace.
        """
        body: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            body["details"] = self.details
        return {"error": body}


class DomainError(ArmoryError):
    """Domain rule violations (bad cursor, unsupported filter, unsupported game)."""


class ClientInputError(DomainError):
    """Caller supplied invalid input. Never retried, always a 4xx."""


class NotSupportedError(DomainError):
    """The requested game/feature combination is not implemented."""

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        super().__init__(ErrorCode.LEADERBOARD_NOT_SUPPORTED, message, context)


class InfrastructureError(ArmoryError):
    """Failures of external systems: Battle.net, SQLite, the network."""


class UpstreamError(InfrastructureError):
    """Non-2xx answer from Battle.net.

    Attributes:
        upstream_status: Status code returned by Battle.net
        body: Raw response body, kept for diagnostics
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        upstream_status: int,
        body: str | None = None,
        details: dict[str, Any] | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(code, message, context, details=details, status=upstream_status)
        self.upstream_status = upstream_status
        self.body = body


class TokenAcquisitionError(UpstreamError):
    """The OAuth token endpoint rejected the credential exchange."""

    def __init__(self, region: str, upstream_status: int, body: str | None = None) -> None:
        super().__init__(
            ErrorCode.TOKEN_FAILED,
            f"Failed to obtain Battle.net access token ({upstream_status})",
            upstream_status=upstream_status,
            body=body,
            details={"region": region, "body": body},
            context=ErrorContext(
                operation="get_access_token",
                additional_data={"region": region, "status": upstream_status},
            ),
        )


class UpstreamNotFoundError(UpstreamError):
    """Battle.net answered 404. Never retried."""

    def __init__(self, region: str, path: str, body: str | None = None) -> None:
        super().__init__(
            ErrorCode.NOT_FOUND,
            "Resource not found in Battle.net API",
            upstream_status=HTTPStatusCodes.NOT_FOUND,
            body=body,
            details={"region": region, "path": path},
            context=ErrorContext(
                operation="fetch_json",
                additional_data={"region": region, "path": path},
            ),
        )


class UpstreamRequestError(UpstreamError):
    """Any other non-2xx answer from Battle.net."""

    def __init__(self, region: str, path: str, upstream_status: int, body: str | None = None) -> None:
        super().__init__(
            ErrorCode.REQUEST_FAILED,
            f"Battle.net request failed with status {upstream_status}",
            upstream_status=upstream_status,
            body=body,
            details={"region": region, "path": path, "status": upstream_status, "body": body},
            context=ErrorContext(
                operation="fetch_json",
                additional_data={"region": region, "path": path, "status": upstream_status},
            ),
        )


class SeasonUnavailableError(InfrastructureError):
    """The season index was empty or malformed."""

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        super().__init__(ErrorCode.SEASON_UNAVAILABLE, message, context)


class RequestAbortedError(ArmoryError):
    """The caller's cancellation signal fired. Never retried."""

    def __init__(self, reason: str = "Request aborted", context: ErrorContext | None = None) -> None:
        super().__init__(ErrorCode.REQUEST_ABORTED, reason, context)


class CacheError(InfrastructureError):
    """Cache store failures (storage, serialization)."""


class ApplicationError(ArmoryError):
    """Application-level errors: configuration, wiring, unexpected failures."""


class MetricsError(ApplicationError):
    """Misuse of the metrics registry. A configuration bug, so fail fast."""


class SecurityError(ArmoryError):
    """Missing or invalid secrets."""


class CredentialsMissingError(SecurityError):
    """Battle.net client id or secret is not configured."""

    def __init__(self, missing: list[str] | None = None) -> None:
        missing = missing or ["client_id", "client_secret"]
        super().__init__(
            ErrorCode.CREDENTIALS_MISSING,
            "Battle.net client credentials are not configured",
            ErrorContext(
                operation="require_credentials",
                additional_data={"missing": ",".join(missing)},
            ),
        )


# Convenience functions for common error scenarios
def create_client_input_error(
    code: ErrorCode,
    message: str,
    *,
    operation: str | None = None,
    details: dict[str, Any] | None = None,
) -> ClientInputError:
    """Create a 400-class input error with context."""
    return ClientInputError(
        code,
        message,
        ErrorContext(operation=operation),
        details=details,
    )


def create_unexpected_error(
    original_error: BaseException,
    operation: str,
    additional_data: dict[str, Any] | None = None,
    code: ErrorCode = ErrorCode.UNEXPECTED,
    message: str = UNEXPECTED_ERROR_MESSAGE,
) -> ApplicationError:
    """Wrap an unclassified exception, keeping the original for logs only."""
    data = dict(additional_data or {})
    data["original_error_type"] = type(original_error).__name__
    return ApplicationError(
        code,
        message,
        ErrorContext(operation=operation, additional_data=data),
        original_error,
    )


def create_cache_error(
    code: ErrorCode,
    message: str,
    *,
    operation: str,
    key: str | None = None,
    original_error: BaseException | None = None,
) -> CacheError:
    """Create a cache store error with the offending key in context."""
    return CacheError(
        code,
        message,
        ErrorContext(operation=operation, additional_data={"key": key}),
        original_error,
    )
