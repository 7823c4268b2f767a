"""Leaderboard commands: PvP ladders and Mythic+ keystone runs."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.table import Table

from armory.cli.common.options import game_option, locale_option, region_option
from armory.cli.common.output import cell, console, emit
from armory.cli.common.runner import run_command
from armory.containers import Container
from armory.services.cache_models import CachedResult
from armory.services.games import default_locale
from armory.services.leaderboards import (
    MythicPlusLeaderboardOptions,
    PvpLeaderboardOptions,
)
from armory.services.leaderboards.models import MythicLeaderboardView, PvpLeaderboardView
from armory.shared.constants import Pagination

leaderboard_app = typer.Typer(help="Normalized PvP and Mythic+ leaderboards.", no_args_is_help=True)

CursorOption = Annotated[Optional[str], typer.Option("--cursor", help="Page cursor (offset:<n>).")]
LimitOption = Annotated[
    Optional[int],
    typer.Option("--limit", "-n", help=f"Page size (1-{Pagination.MAX_LIMIT}), defaults to {Pagination.DEFAULT_LIMIT}."),
]
SeasonOption = Annotated[Optional[int], typer.Option("--season", "-s", help="Season id, defaults to the current season.")]
FactionOption = Annotated[Optional[str], typer.Option("--faction", help="alliance or horde.")]


def _print_pagination(total: int, next_cursor: str | None, cached: bool) -> None:
    source = "cached" if cached else "fetched"
    footer = f"[blue]{total} matching entries ({source})[/blue]"
    if next_cursor:
        footer += f"  next: [cyan]--cursor {next_cursor}[/cyan]"
    console.print(footer)


def _render_pvp(result: CachedResult[PvpLeaderboardView]) -> None:
    view = result.value
    title = f"{view.bracket.name or view.bracket.id} - {view.season.name or f'Season {view.season.id}'}"
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Rank", justify="right")
    table.add_column("Rating", justify="right", style="green")
    table.add_column("Character", style="cyan")
    table.add_column("Realm")
    table.add_column("Class")
    table.add_column("Spec")
    table.add_column("Faction")
    table.add_column("W-L", justify="right")
    table.add_column("Pct", justify="right")

    for entry in view.entries:
        character = entry.character
        table.add_row(
            cell(entry.rank),
            cell(entry.rating),
            cell(character.name),
            cell(character.realm.name),
            cell(character.playable_class.name),
            cell(character.spec.name if character.spec else None),
            cell(character.faction),
            f"{entry.statistics.won}-{entry.statistics.lost}",
            cell(entry.percentile),
        )

    console.print(table)
    _print_pagination(view.total, view.pagination.next_cursor, result.cache_meta.cached)


def _render_mythic(result: CachedResult[MythicLeaderboardView]) -> None:
    view = result.value
    title = f"{view.leaderboard.name or view.leaderboard.id} - {view.season.name or f'Season {view.season.id}'}"
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Rank", justify="right")
    table.add_column("Rating", justify="right", style="green")
    table.add_column("Key", justify="right")
    table.add_column("Dungeon", style="cyan")
    table.add_column("Time", justify="right")
    table.add_column("Members")
    table.add_column("Pct", justify="right")

    for entry in view.entries:
        members = ", ".join(
            f"{member.name} ({member.spec_name or member.class_name or '?'})" for member in entry.members
        )
        table.add_row(
            cell(entry.rank),
            cell(entry.mythic_rating),
            cell(entry.keystone_level),
            cell(entry.dungeon.name),
            cell(entry.time.formatted),
            members or "-",
            cell(entry.percentile),
        )

    console.print(table)
    _print_pagination(view.total, view.pagination.next_cursor, result.cache_meta.cached)


@leaderboard_app.command("pvp")
def pvp_command(
    bracket: str = typer.Argument(..., help="Bracket id or alias, e.g. 3v3, rbg, solo-shuffle."),
    game: Annotated[str, game_option] = "retail",
    region: Annotated[str, region_option] = "us",
    locale: Annotated[Optional[str], locale_option] = None,
    season: SeasonOption = None,
    cursor: CursorOption = None,
    limit: LimitOption = None,
    realm: Annotated[Optional[str], typer.Option("--realm", help="Realm name or slug.")] = None,
    class_name: Annotated[Optional[str], typer.Option("--class", help="Class slug or name.")] = None,
    spec: Annotated[Optional[str], typer.Option("--spec", help="Specialization slug or name.")] = None,
    faction: FactionOption = None,
) -> None:
    """Show a page of a PvP ladder."""
    options = PvpLeaderboardOptions(
        bracket=bracket,
        season_id=season,
        limit=limit,
        cursor=cursor,
        realm=realm,
        class_name=class_name,
        spec=spec,
        faction=faction,
    )

    async def handler(container: Container) -> CachedResult[PvpLeaderboardView]:
        return await container.pvp_leaderboard_service().get_leaderboard(
            game, region, locale or default_locale(region), options
        )

    emit("leaderboard pvp", run_command("leaderboard pvp", handler, needs_battlenet=True), _render_pvp)


@leaderboard_app.command("mythic-plus")
def mythic_plus_command(
    mode: Annotated[str, typer.Option("--mode", "-m", help="overall, class or dungeon.")] = "overall",
    game: Annotated[str, game_option] = "retail",
    region: Annotated[str, region_option] = "us",
    locale: Annotated[Optional[str], locale_option] = None,
    season: SeasonOption = None,
    cursor: CursorOption = None,
    limit: LimitOption = None,
    class_slug: Annotated[Optional[str], typer.Option("--class", help="Class slug (required in class mode).")] = None,
    spec_slug: Annotated[Optional[str], typer.Option("--spec", help="Specialization slug.")] = None,
    connected_realm: Annotated[Optional[int], typer.Option("--connected-realm", help="Connected realm id.")] = None,
    dungeon: Annotated[Optional[int], typer.Option("--dungeon", help="Dungeon id.")] = None,
    period: Annotated[Optional[int], typer.Option("--period", help="Weekly period id.")] = None,
    role: Annotated[Optional[str], typer.Option("--role", help="tank, healer or dps.")] = None,
    faction: FactionOption = None,
) -> None:
    """Show a page of a Mythic+ leaderboard."""
    options = MythicPlusLeaderboardOptions(
        mode=mode,
        season_id=season,
        cursor=cursor,
        limit=limit,
        class_slug=class_slug,
        spec_slug=spec_slug,
        connected_realm_id=connected_realm,
        dungeon_id=dungeon,
        period_id=period,
        role=role,
        faction=faction,
    )

    async def handler(container: Container) -> CachedResult[MythicLeaderboardView]:
        return await container.mythic_plus_leaderboard_service().get_leaderboard(
            game, region, locale or default_locale(region), options
        )

    emit(
        "leaderboard mythic-plus",
        run_command("leaderboard mythic-plus", handler, needs_battlenet=True),
        _render_mythic,
    )


__all__ = ["leaderboard_app"]
