"""
Reusable Typer options.

Global options live on the main callback; the game/region/locale options
are shared by every command that talks to Battle.net.
"""

from __future__ import annotations

import typer

verbose_option = typer.Option(
    "--verbose",
    "-v",
    count=True,
    help="Enable verbose output (equivalent to --log-level DEBUG).",
)

log_level_option = typer.Option(
    "--log-level",
    case_sensitive=False,
    help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: WARNING.",
)

json_output_option = typer.Option(
    "--json",
    help="Enable machine-readable JSON output instead of tables.",
)

config_option = typer.Option(
    "--config",
    "-c",
    exists=True,
    dir_okay=False,
    help="Path to a TOML settings file.",
)

version_option = typer.Option(
    "--version",
    "-V",
    help="Show version information and exit.",
    is_eager=True,
)

game_option = typer.Option("--game", "-g", help="Game flavor: retail, classic-era, classic-wotlk, classic-hc.")

region_option = typer.Option("--region", "-r", help="Battle.net region: us, eu, kr, tw.")

locale_option = typer.Option("--locale", "-l", help="Locale, defaults to the region's default locale.")
