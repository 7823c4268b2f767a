"""
JSON and Rich output helpers shared by the commands.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Any

import orjson
from rich.console import Console
from rich.table import Table

from armory.cli.common.context import get_cli_context

console = Console()


def format_json_output(
    success: bool,
    command: str,
    data: Any | None = None,
    errors: list[str] | None = None,
) -> bytes:
    """
    Format command output as JSON.

    Dataclasses (views, cache reports, metric samples) are serialized by
    orjson directly.

    Args:
        success: Whether the command executed successfully
        command: The command name (e.g. "cache list")
        data: The command's output data
        errors: Error messages

    Returns:
        JSON-encoded bytes ready for output
    """
    errors = errors or []
    json_data = {
        "success": success and not errors,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "command": command,
        "data": data,
        "errors": errors,
    }
    return orjson.dumps(json_data, option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2, default=str)


def write_json(payload: bytes) -> None:
    sys.stdout.buffer.write(payload)
    sys.stdout.buffer.write(b"\n")
    sys.stdout.buffer.flush()


def emit(command: str, data: Any, render: Any) -> None:
    """Write ``data`` as JSON in ``--json`` mode, otherwise call ``render(data)``."""
    if get_cli_context().json_output:
        write_json(format_json_output(success=True, command=command, data=data))
    else:
        render(data)


def key_value_table(title: str, rows: list[tuple[str, Any]]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for name, value in rows:
        table.add_row(name, "-" if value is None else str(value))
    return table


def cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


__all__ = ["cell", "console", "emit", "format_json_output", "key_value_table", "write_json"]
