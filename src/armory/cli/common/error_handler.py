"""
CLI Error Handling Utilities

Maps exceptions raised by commands to an exit code, a log entry and either
a one-line message on stderr or a JSON error document on stdout.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from armory.cli.common.output import format_json_output, write_json
from armory.shared.errors import ArmoryError, DomainError
from armory.shared.error_handling import map_exception_to_armory_error

logger = logging.getLogger(__name__)

EXIT_DOMAIN_ERROR = 2
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def exit_code_for(error: BaseException) -> int:
    """Exit code for an exception: 2 for bad input, 130 for Ctrl+C, else 1."""
    if isinstance(error, KeyboardInterrupt):
        return EXIT_INTERRUPTED
    if isinstance(error, DomainError):
        return EXIT_DOMAIN_ERROR
    return EXIT_FAILURE


def handle_cli_error(error: BaseException, command: str, *, json_output: bool = False) -> int:
    """Handle a command failure with consistent formatting and logging.

    Args:
        error: The exception that occurred
        command: The CLI command being executed
        json_output: Whether to output JSON format

    Returns:
        Exit code for the CLI command
    """
    exit_code = exit_code_for(error)
    mapped = map_exception_to_armory_error(error, command)
    context: dict[str, Any] = {
        "command": command,
        "error_type": type(error).__name__,
        "exit_code": exit_code,
    }

    if isinstance(error, KeyboardInterrupt):
        logger.warning("Command interrupted: %s", command, extra={"context": context})
    elif isinstance(error, ArmoryError):
        logger.debug("Command %s failed: %s", command, error, extra={"context": context})
    else:
        logger.error("Unexpected error in %s", command, exc_info=error, extra={"context": context})

    if json_output:
        body = mapped.to_response()["error"]
        write_json(
            format_json_output(
                success=False,
                command=command,
                data={"error_code": body["code"], "details": body.get("details"), **context},
                errors=[body["message"]],
            )
        )
    else:
        sys.stderr.write(f"Error [{mapped.code.value}]: {mapped.message}\n")

    return exit_code


__all__ = ["exit_code_for", "handle_cli_error"]
