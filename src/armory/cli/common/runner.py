"""
Runs a command coroutine against a fully wired container.

Each CLI invocation gets its own container; the HTTP session and the SQLite
connection are closed when the command finishes, even on failure.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

import typer
from dependency_injector import providers

from armory.cli.common.context import get_cli_context
from armory.cli.common.error_handler import handle_cli_error
from armory.config.loader import load_settings
from armory.containers import Container
from armory.services import CacheSweeper

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_container() -> Container:
    """Create a container, honouring ``--config`` when given."""
    container = Container()
    config_path = get_cli_context().config_path
    if config_path is not None:
        container.config.override(providers.Object(load_settings(config_path)))
    return container


async def _close(container: Container) -> None:
    await container.session_manager().close_session()
    container.cache_store().close()


def run_command(
    command: str,
    handler: Callable[[Container], Awaitable[T]],
    *,
    needs_battlenet: bool = False,
) -> T:
    """Run ``handler`` on a fresh container and map failures to exit codes.

    Args:
        command: Command name used in error output
        handler: Coroutine function receiving the container
        needs_battlenet: Fail fast on missing client credentials and keep the
            cache sweeper running while the command talks to Battle.net

    Raises:
        typer.Exit: With the mapped exit code when the handler fails
    """
    json_output = get_cli_context().json_output

    async def runner() -> T:
        container = build_container()
        # Fail on invalid settings before any resource is opened
        container.config()
        sweeper: CacheSweeper | None = None
        if needs_battlenet:
            container.token_manager().require_credentials()
            sweeper = container.cache_sweeper()
            sweeper.start()
        try:
            return await handler(container)
        finally:
            if sweeper is not None:
                await sweeper.stop()
            await _close(container)

    try:
        return asyncio.run(runner())
    except typer.Exit:
        raise
    except (Exception, KeyboardInterrupt) as e:
        exit_code = handle_cli_error(e, command, json_output=json_output)
        raise typer.Exit(exit_code) from e


__all__ = ["build_container", "run_command"]
