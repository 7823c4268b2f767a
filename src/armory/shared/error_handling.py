"""Shared error handling utilities for Armory.

Structured errors pass through every layer unchanged; only exceptions that
are not ArmoryError instances get wrapped here, with the identifiers of the
failing operation attached for the logs.
"""

from __future__ import annotations

import logging
from typing import Any

from armory.shared.errors import (
    UNEXPECTED_ERROR_MESSAGE,
    ApplicationError,
    ArmoryError,
    DomainError,
    ErrorCode,
    InfrastructureError,
    create_unexpected_error,
)

logger = logging.getLogger(__name__)


def map_exception_to_armory_error(
    error: BaseException,
    operation: str,
    *,
    code: ErrorCode = ErrorCode.UNEXPECTED,
    message: str = UNEXPECTED_ERROR_MESSAGE,
    additional_data: dict[str, Any] | None = None,
) -> ArmoryError:
    """Map a generic exception to an ArmoryError.

    Args:
        error: The exception to map
        operation: Operation name where the error occurred
        code: Code to use for the wrapped error
        message: Caller-facing message for the wrapped error
        additional_data: Identifiers (game, region, ...) for the log context

    Returns:
        The error itself if it is already an ArmoryError, otherwise an
        ApplicationError that keeps the original exception for logging.

    Example:
        >>> try:
        ...     realms = parse(payload)
        ... except Exception as e:
        ...     raise map_exception_to_armory_error(e, "list_realms") from e
    """
    if isinstance(error, ArmoryError):
        return error

    return create_unexpected_error(
        error,
        operation,
        additional_data=additional_data,
        code=code,
        message=message,
    )


def log_error_with_context(
    error: ArmoryError,
    operation: str,
    additional_context: dict[str, Any] | None = None,
) -> None:
    """Log an ArmoryError at a level matching its category.

    Domain errors are caller mistakes and log at info, infrastructure errors
    at warning, anything else with the traceback.

    Args:
        error: Error to log
        operation: Operation name where the error occurred
        additional_context: Additional context data for logging
    """
    log_context: dict[str, Any] = {
        "operation": operation,
        "error_code": error.code.value,
        "error_type": type(error).__name__,
        "status": error.status,
    }
    if additional_context:
        log_context.update(additional_context)

    if isinstance(error, DomainError):
        logger.info(
            "Rejected input in %s: %s",
            operation,
            error.message,
            extra={"context": log_context},
        )
    elif isinstance(error, InfrastructureError):
        logger.warning(
            "Infrastructure error in %s: %s",
            operation,
            error.message,
            extra={"context": log_context},
        )
    elif isinstance(error, ApplicationError) and error.original_error is not None:
        logger.error(
            "Unexpected error in %s: %s",
            operation,
            error.message,
            extra={"context": log_context},
            exc_info=error.original_error,
        )
    else:
        logger.error(
            "Armory error in %s: %s",
            operation,
            error.message,
            extra={"context": log_context},
        )


def to_error_response(error: BaseException, operation: str = "request") -> tuple[int, dict[str, Any]]:
    """Convert any exception into an HTTP-equivalent status and error body.

    Unexpected exceptions are logged with their traceback and rendered as the
    generic ``server:unexpected`` body, so internals never reach the caller.

    Args:
        error: Exception raised while serving a request
        operation: Operation name for the log entry

    Returns:
        Tuple of (status, ``{"error": {...}}`` body)
    """
    mapped = map_exception_to_armory_error(error, operation)
    log_error_with_context(mapped, operation)
    return mapped.status, mapped.to_response()


__all__ = [
    "log_error_with_context",
    "map_exception_to_armory_error",
    "to_error_response",
]
