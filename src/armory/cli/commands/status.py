"""Status and metrics commands."""

from __future__ import annotations

import sys

import typer
from rich.table import Table

from armory.cli.common.context import get_cli_context
from armory.cli.common.output import cell, console, emit, key_value_table
from armory.cli.common.runner import run_command
from armory.containers import Container
from armory.services.metrics import MetricSample
from armory.services.status import StatusSnapshot
from armory.shared.utils.clock import ms_to_iso


def _metrics_table(samples: list[MetricSample]) -> Table:
    table = Table(title="Metrics", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Labels")
    table.add_column("Value", justify="right", style="green")
    table.add_column("Updated")
    for sample in samples:
        labels = ", ".join(f"{name}={value}" for name, value in sorted(sample.labels.items()))
        table.add_row(sample.metric, labels or "-", cell(sample.value), cell(ms_to_iso(sample.updated_at)))
    return table


def _render_status(snapshot: StatusSnapshot) -> None:
    console.print(
        key_value_table(
            "Armory Status",
            [
                ("Status", snapshot.status),
                ("Timestamp", snapshot.timestamp),
                ("Token Cached", "yes" if snapshot.token_cached else "no"),
                ("Cache Entries", snapshot.cache.total),
                ("Active Entries", snapshot.cache.active),
                ("Expired Entries", snapshot.cache.expired),
            ],
        )
    )
    for token in snapshot.tokens:
        console.print(f"[cyan]{token.region}[/cyan] token expires at {token.expires_at}")
    if snapshot.metrics:
        console.print(_metrics_table(snapshot.metrics))


def status_command() -> None:
    """Show token cache state, cache counts and metrics."""

    async def handler(container: Container) -> StatusSnapshot:
        # Refresh the entry gauges so the snapshot reflects the store
        container.cache_sweeper().publish_counts()
        return container.status_service().snapshot()

    emit("status", run_command("status", handler), _render_status)


def metrics_command(
    prometheus: bool = typer.Option(False, "--prometheus", help="Print the Prometheus text exposition format."),
) -> None:
    """Show the metric samples of this process."""

    async def handler(container: Container) -> tuple[list[MetricSample], bytes]:
        container.cache_sweeper().publish_counts()
        metrics = container.metrics()
        return metrics.list(), metrics.render()

    samples, exposition = run_command("metrics", handler)
    if prometheus and not get_cli_context().json_output:
        sys.stdout.write(exposition.decode("utf-8"))
        return
    emit("metrics", samples, lambda data: console.print(_metrics_table(data)))


__all__ = ["metrics_command", "status_command"]
