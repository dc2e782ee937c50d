# src/cli/runner.py

"""Headless CLI commands: one-shot snapshot, health check, server."""

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.models.feed import Feed, FeedOrigin
from src.services.feed_pipeline import FeedPipeline, RefreshResult
from src.storage.snapshot_writer import SnapshotWriter

logger = logging.getLogger("dealfeed.cli")

# Stderr console for status messages so stdout stays clean
_err = Console(stderr=True)


def _print_summary(result: RefreshResult) -> None:
    """Render a Rich table of per-source contributions to stdout."""
    feed = result.feed
    table = Table(
        title=f"Feed ({feed.origin.value})",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Source", style="magenta")
    table.add_column("Live", justify="right")
    table.add_column("In feed", justify="right", style="green")

    counts = feed.counts_by_source
    for source_id in sorted(set(counts) | set(result.per_source)):
        table.add_row(
            source_id,
            str(result.per_source.get(source_id, 0)),
            str(counts.get(source_id, 0)),
        )
    table.add_row("[bold]total[/bold]", "", f"[bold]{feed.total_count}[/bold]")
    Console().print(table)


def _print_records(feed: Feed, limit: int = 10) -> None:
    table = Table(title="Sample", show_lines=False, title_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Discount", justify="center")
    table.add_column("Source", style="magenta")
    for idx, r in enumerate(feed.records[:limit], 1):
        table.add_row(
            str(idx), r.title[:60], r.price, r.discount or "—", r.source
        )
    Console().print(table)


async def run_snapshot(output: str | None = None) -> int:
    """Refresh once and write the snapshot file.

    Returns 0 when live data made it into the feed, 1 otherwise so a
    scheduled job can tell a degraded run apart.
    """
    path = Path(output) if output else Settings.SNAPSHOT_PATH
    _err.print("[bold]Scraping all sources...[/bold]")

    result = await FeedPipeline().refresh()
    for error_msg in result.errors:
        _err.print(f"[red]Error: {error_msg}[/red]")

    try:
        written = SnapshotWriter(path).write(result.feed)
    except OSError as exc:
        logger.error("Snapshot write failed: %s", exc, exc_info=True)
        _err.print(f"[red]Snapshot write failed: {exc}[/red]")
        return 1

    _print_summary(result)
    _print_records(result.feed)
    _err.print(
        f"[green]✓ {result.feed.total_count} products saved → {written}[/green]"
    )
    _err.print(f"[dim]Last update: {result.feed.generated_at}[/dim]")

    if result.feed.origin in (FeedOrigin.LIVE, FeedOrigin.LIVE_FALLBACK):
        return 0
    _err.print("[yellow]No live products, fallback catalog used.[/yellow]")
    return 1


async def run_health_check() -> int:
    """Run connectivity health check on all sources."""
    from src.services.health_checker import HealthChecker

    _err.print("[bold]Running source health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Source Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Source", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            r.source_id, status, latency, r.message,
        )

    Console().print(table)
    return 1 if any_down else 0


def run_server(host: str, port: int) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    logger.info("Serving on %s:%d", host, port)
    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        log_level="info",
    )
