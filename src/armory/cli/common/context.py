"""
CLI Context Management Module

Global options parsed by the main callback are stored in a pydantic model
behind a ContextVar, so every sub-command reads the same validated state.
"""

from __future__ import annotations

import contextvars
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """
    Global CLI state.

    Attributes:
        verbose: Verbosity level (0 = normal, 1+ = verbose)
        log_level: Logging level
        json_output: Whether to output in JSON format
        config_path: Explicit TOML settings file
    """

    verbose: int = Field(default=0, ge=0, description="Verbosity level")
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Logging level")
    json_output: bool = Field(default=False, description="Whether to output in JSON format")
    config_path: Path | None = Field(default=None, description="Explicit settings file")

    def is_verbose(self) -> bool:
        return self.verbose > 0

    def get_effective_log_level(self) -> str:
        """Return DEBUG when verbose is enabled, otherwise the chosen level."""
        if self.is_verbose():
            return LogLevel.DEBUG.value
        return self.log_level.value


_cli_context: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar("armory_cli_context", default=None)


def set_cli_context(context: CliContext) -> None:
    _cli_context.set(context)


def get_cli_context() -> CliContext:
    """Return the current CLI context, or defaults when no callback ran."""
    context = _cli_context.get()
    if context is None:
        context = CliContext()
        _cli_context.set(context)
    return context


__all__ = ["CliContext", "LogLevel", "get_cli_context", "set_cli_context"]
