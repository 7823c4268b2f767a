"""
Armory Typer CLI Application

Entry point of the ``armory`` command. Global options are parsed by the
main callback into the CLI context; sub-commands build their own service
container and render results as Rich tables or JSON.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer

from armory import __version__
from armory.cli.commands.cache import cache_app
from armory.cli.commands.data import character_pvp_command, realms_command
from armory.cli.commands.leaderboard import leaderboard_app
from armory.cli.commands.status import metrics_command, status_command
from armory.cli.common.context import CliContext, LogLevel, set_cli_context
from armory.cli.common.error_handler import handle_cli_error
from armory.cli.common.options import (
    config_option,
    json_output_option,
    log_level_option,
    verbose_option,
    version_option,
)
from armory.shared.constants import Application, Logging
from armory.shared.logging import setup_structured_logger

app = typer.Typer(
    name="armory",
    help=Application.DESCRIPTION,
    rich_markup_mode="rich",
    no_args_is_help=True,
    invoke_without_command=True,
)


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(f"{Application.NAME} {__version__}")
        raise typer.Exit


@app.callback()
def main_callback(
    verbose: Annotated[int, verbose_option] = 0,
    log_level: Annotated[LogLevel, log_level_option] = LogLevel.WARNING,
    json_output: Annotated[bool, json_output_option] = False,
    config: Annotated[Optional[Path], config_option] = None,
    version: Annotated[bool, version_option] = False,
) -> None:
    """Battle.net game-data proxy core."""
    if version:
        version_callback(value=True)

    context = CliContext(
        verbose=verbose,
        log_level=log_level,
        json_output=json_output,
        config_path=config,
    )
    set_cli_context(context)

    # JSON mode keeps stdout machine-readable, so logs go to stderr as JSON too
    setup_structured_logger(
        Logging.LOGGER_NAME,
        level=context.get_effective_log_level(),
        use_rich_console=not json_output,
    )


app.add_typer(cache_app, name="cache")
app.add_typer(leaderboard_app, name="leaderboard")
app.command("status")(status_command)
app.command("metrics")(metrics_command)
app.command("realms")(realms_command)
app.command("character-pvp")(character_pvp_command)


def main() -> None:
    """Console-script entry point."""
    try:
        app()
    except KeyboardInterrupt as e:
        logging.getLogger(__name__).info("Command interrupted by user")
        sys.exit(handle_cli_error(e, "armory"))


if __name__ == "__main__":
    main()
