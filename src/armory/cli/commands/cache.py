"""Cache command implementation.

Lists, inspects and maintains the SQLite response cache without touching
the hit/miss counters.
"""

from __future__ import annotations

from typing import Any, Optional

import orjson
import typer
from rich.table import Table

from armory.cli.common.output import cell, console, emit, key_value_table
from armory.cli.common.runner import run_command
from armory.containers import Container
from armory.services.cache_models import CacheStats
from armory.services.diagnostics import CacheInspection, CacheListingReport
from armory.shared.constants import Cache
from armory.shared.utils.clock import ms_to_iso

cache_app = typer.Typer(help="Inspect and maintain the response cache.", no_args_is_help=True)


def _render_listing(report: CacheListingReport) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key", style="cyan", overflow="fold")
    table.add_column("Expires", style="green")
    table.add_column("TTL (ms)", justify="right")
    table.add_column("Age (ms)", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Expired")

    for entry in report.entries:
        table.add_row(
            entry.key,
            cell(entry.expires_at),
            cell(entry.ttl_ms),
            cell(entry.age_ms),
            cell(entry.size_bytes),
            "[red]yes[/red]" if entry.expired else "no",
        )

    console.print(table)
    meta = report.meta
    console.print(f"[blue]{meta['total']} entries ({meta['active']} active, {meta['expired']} expired)[/blue]")


def _render_inspection(inspection: CacheInspection) -> None:
    meta = inspection.cache_meta
    console.print(
        key_value_table(
            "Cache Entry",
            [
                ("Key", inspection.key),
                ("Expires", ms_to_iso(meta.expires_at)),
                ("Fetched", ms_to_iso(meta.fetched_at)),
                ("TTL (ms)", meta.ttl_ms),
                ("Age (ms)", meta.age_ms),
            ],
        )
    )
    if inspection.value is not None:
        console.print_json(orjson.dumps(inspection.value).decode("utf-8"))


def _render_stats(stats: CacheStats) -> None:
    console.print(
        key_value_table(
            "Cache Statistics",
            [("Total Entries", stats.total), ("Active Entries", stats.active), ("Expired Entries", stats.expired)],
        )
    )


@cache_app.command("list")
def list_command(
    prefix: Optional[str] = typer.Option(None, "--prefix", "-p", help="Only keys starting with this prefix."),
    limit: int = typer.Option(Cache.DEFAULT_LIST_LIMIT, "--limit", "-n", help="Maximum rows to list (1-500)."),
    include_values: bool = typer.Option(False, "--values", help="Include cached values."),
) -> None:
    """List cache rows, latest expiry first."""

    async def handler(container: Container) -> CacheListingReport:
        return container.cache_diagnostics().list_entries(prefix=prefix, limit=limit, include_value=include_values)

    emit("cache list", run_command("cache list", handler), _render_listing)


@cache_app.command("show")
def show_command(
    key: str = typer.Argument(..., help="Full cache key."),
    include_value: bool = typer.Option(True, "--value/--no-value", help="Include the cached value."),
) -> None:
    """Show one live cache row with its expiry and age."""

    async def handler(container: Container) -> CacheInspection:
        return container.cache_diagnostics().inspect(key, include_value=include_value)

    emit("cache show", run_command("cache show", handler), _render_inspection)


@cache_app.command("stats")
def stats_command() -> None:
    """Show total, active and expired row counts."""

    async def handler(container: Container) -> CacheStats:
        return container.cache_store().stats()

    emit("cache stats", run_command("cache stats", handler), _render_stats)


@cache_app.command("purge")
def purge_command() -> None:
    """Delete expired rows and refresh the cache gauges."""

    async def handler(container: Container) -> dict[str, Any]:
        purged = container.cache_sweeper().sweep_once()
        return {"purged": purged, "stats": container.cache_store().stats()}

    def render(result: dict[str, Any]) -> None:
        console.print(f"[green]Purged {result['purged']} expired entries[/green]")
        _render_stats(result["stats"])

    emit("cache purge", run_command("cache purge", handler), render)


@cache_app.command("clear")
def clear_command(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete every cache row."""
    if not yes:
        typer.confirm("Delete every cached response?", abort=True)

    async def handler(container: Container) -> dict[str, int]:
        return {"deleted": container.cache_store().clear()}

    emit(
        "cache clear",
        run_command("cache clear", handler),
        lambda result: console.print(f"[green]Deleted {result['deleted']} entries[/green]"),
    )


__all__ = ["cache_app"]
