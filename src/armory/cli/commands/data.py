"""Realm and character commands."""

from __future__ import annotations

from typing import Annotated, List, Optional

import typer
from rich.table import Table

from armory.cli.common.options import game_option, locale_option, region_option
from armory.cli.common.output import cell, console, emit
from armory.cli.common.runner import run_command
from armory.containers import Container
from armory.services.cache_models import CachedResult
from armory.services.character_pvp import CharacterPvpSummary
from armory.services.games import default_locale
from armory.services.realms import RealmSummary


def _render_realms(result: CachedResult[list[RealmSummary]]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right")
    table.add_column("Slug", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Type")
    table.add_column("Timezone")
    for realm in result.value:
        table.add_row(cell(realm.id), realm.slug, realm.name, cell(realm.type), cell(realm.timezone))
    console.print(table)
    console.print(f"[blue]{len(result.value)} realms ({'cached' if result.cache_meta.cached else 'fetched'})[/blue]")


def realms_command(
    game: Annotated[str, game_option] = "retail",
    region: Annotated[str, region_option] = "us",
    locale: Annotated[Optional[str], locale_option] = None,
) -> None:
    """List the realms of a region."""

    async def handler(container: Container) -> CachedResult[list[RealmSummary]]:
        return await container.realm_service().list_realms(game, region, locale or default_locale(region))

    emit("realms", run_command("realms", handler, needs_battlenet=True), _render_realms)


def _render_character(result: CachedResult[CharacterPvpSummary]) -> None:
    summary = result.value
    table = Table(title="PvP Brackets", show_header=True, header_style="bold magenta")
    table.add_column("Bracket", style="cyan")
    table.add_column("Rating", justify="right", style="green")
    table.add_column("Won", justify="right")
    table.add_column("Lost", justify="right")
    table.add_column("Played", justify="right")
    table.add_column("Win %", justify="right")
    for bracket in summary.season:
        table.add_row(
            bracket.bracket,
            cell(bracket.rating),
            cell(bracket.won),
            cell(bracket.lost),
            cell(bracket.played),
            cell(bracket.win_rate),
        )
    console.print(table)
    if summary.honor is not None:
        console.print(
            f"Honor level [green]{cell(summary.honor.level)}[/green], "
            f"honorable kills [green]{cell(summary.honor.honorable_kills)}[/green]"
        )


def character_pvp_command(
    realm: str = typer.Argument(..., help="Realm slug."),
    name: str = typer.Argument(..., help="Character name."),
    game: Annotated[str, game_option] = "retail",
    region: Annotated[str, region_option] = "us",
    locale: Annotated[Optional[str], locale_option] = None,
    brackets: Optional[List[str]] = typer.Option(None, "--bracket", "-b", help="Bracket to load (repeatable)."),
) -> None:
    """Show a character's PvP ratings and honor."""

    async def handler(container: Container) -> CachedResult[CharacterPvpSummary]:
        return await container.character_pvp_service().get_character_pvp(
            game,
            region,
            realm,
            name,
            locale or default_locale(region),
            brackets=brackets or None,
        )

    emit("character-pvp", run_command("character-pvp", handler, needs_battlenet=True), _render_character)


__all__ = ["character_pvp_command", "realms_command"]
