"""``strain run``: generate load against a URL with live terminal output."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from strain._internal.config import load_settings
from strain._internal.errors import StrainError
from strain.engine.load_config import LoadConfig
from strain.engine.session import run_load
from strain.metrics.export import write_json_report

if TYPE_CHECKING:
    from strain.engine.runner import RunResult
    from strain.metrics.models import RunStats

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Option parsing helpers
# ---------------------------------------------------------------------------


def _parse_headers(raw_headers: list[str]) -> dict[str, str]:
    """Turn repeated ``"Name: value"`` options into a header mapping.

    Raises:
        typer.BadParameter: If an entry has no colon or an empty name.
    """
    headers: dict[str, str] = {}
    for raw in raw_headers:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            msg = f"Header must look like 'Name: value', got: {raw!r}"
            raise typer.BadParameter(msg)
        headers[name.strip()] = value.strip()
    return headers


def _parse_data(data: str | None) -> object:
    """Decode the ``--data`` JSON payload.

    Raises:
        typer.BadParameter: If the payload is not valid JSON.
    """
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        msg = f"--data must be valid JSON: {exc}"
        raise typer.BadParameter(msg) from exc


# ---------------------------------------------------------------------------
# Rich live display
# ---------------------------------------------------------------------------


def _make_live_table(stats: RunStats | None) -> Table:
    """Build a Rich table with the latest totals."""
    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    if stats is None:
        table.add_row("Status", "Starting...")
        return table

    table.add_row("Elapsed", f"{stats.elapsed_seconds:.0f}s")
    table.add_row("Requests", str(stats.total_requests))
    table.add_row("Requests/sec", f"{stats.requests_per_second:.1f}")
    table.add_row("HTTP 2xx", str(stats.success))
    table.add_row("HTTP other", str(stats.fail))
    table.add_row("No response", str(stats.other_fail))
    table.add_row("p50 Latency", f"{stats.latency.p50 / 1000:.1f}ms")
    table.add_row("p95 Latency", f"{stats.latency.p95 / 1000:.1f}ms")
    return table


def _print_summary(result: RunResult) -> None:
    stats = result.final_stats
    table = Table(
        title="Run Complete",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Run", result.run_id)
    table.add_row("Target", f"{result.config.method} {result.config.url}")
    table.add_row("Clients", str(result.config.clients))
    table.add_row("Duration", f"{result.duration_seconds:.1f}s")
    table.add_row("State", result.state.name.lower())

    if stats is not None:
        table.add_row("Total Requests", str(stats.total_requests))
        table.add_row("Avg Requests/sec", f"{stats.requests_per_second:.1f}")
        table.add_row("HTTP 2xx", str(stats.success))
        table.add_row("HTTP other", str(stats.fail))
        table.add_row("No response", str(stats.other_fail))
        table.add_row("p50 Latency", f"{stats.latency.p50 / 1000:.1f}ms")
        table.add_row("p95 Latency", f"{stats.latency.p95 / 1000:.1f}ms")
        table.add_row("p99 Latency", f"{stats.latency.p99 / 1000:.1f}ms")
        table.add_row("Error Rate", f"{stats.error_rate * 100:.2f}%")

    console.print(table)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def run_cmd(
    url: str = typer.Argument(..., help="Target URL, e.g. http://localhost:8080/health."),
    method: str = typer.Option("GET", "--method", "-m", help="HTTP method."),
    clients: int = typer.Option(
        10,
        "--clients",
        "-c",
        help="Number of concurrent workers.",
        min=1,
    ),
    header: list[str] | None = typer.Option(
        None,
        "--header",
        "-H",
        help="Request header as 'Name: value'. Repeatable.",
    ),
    data: str | None = typer.Option(
        None,
        "--data",
        "-d",
        help="JSON payload sent with non-GET requests.",
    ),
    duration: float | None = typer.Option(
        None,
        "--duration",
        "-t",
        help="Stop after this many seconds (default: run until Ctrl-C).",
        min=0.1,
    ),
    run_id: str | None = typer.Option(None, "--run-id", help="Run identifier."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write a JSON report to this path.",
    ),
    capture_body: bool = typer.Option(
        False,
        "--capture-body",
        help="Read response bodies into memory instead of discarding them.",
    ),
    fail_on_error_rate: float | None = typer.Option(
        None,
        "--fail-on-error-rate",
        help="Exit non-zero if the error rate exceeds this threshold (e.g., 0.05).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines."),
) -> None:
    """Generate load against URL with live terminal output."""
    headers = _parse_headers(header or [])
    payload = _parse_data(data)

    try:
        settings = load_settings()
        config = LoadConfig(
            url=url,
            method=method,
            clients=clients,
            headers=headers,
            post_data=payload,
        )
    except StrainError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(
        Panel(
            f"[bold]Target:[/bold]   {config.method} {config.url}\n"
            f"[bold]Clients:[/bold]  {config.clients}\n"
            f"[bold]Duration:[/bold] {f'{duration}s' if duration else 'until Ctrl-C'}",
            title="Strain",
            border_style="cyan",
        )
    )

    log_level = logging.DEBUG if verbose else logging.INFO

    try:
        with Live(
            _make_live_table(None),
            console=console,
            refresh_per_second=2,
            transient=True,
        ) as live:

            def _on_snapshot(stats: RunStats) -> None:
                live.update(_make_live_table(stats))

            result = run_load(
                config,
                duration,
                run_id=run_id,
                settings=settings,
                capture_body=capture_body,
                on_snapshot=_on_snapshot,
                log_level=log_level,
                json_logs=json_logs,
            )
    except StrainError as exc:
        console.print(f"[red]Run failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _print_summary(result)

    if output is not None:
        path = write_json_report(result, output)
        console.print(f"Report written to [bold]{path}[/bold]")

    stats = result.final_stats
    if fail_on_error_rate is not None and stats is not None and stats.error_rate > fail_on_error_rate:
        console.print(
            f"[red]FAIL:[/red] Error rate {stats.error_rate * 100:.2f}% "
            f"exceeds threshold {fail_on_error_rate * 100:.2f}%"
        )
        raise typer.Exit(code=1)

    console.print("[green]Run finished.[/green]")
