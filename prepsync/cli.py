"""
prepsync CLI.

Commands:
- prepsync path        - Generate a goal-specific learning path
- prepsync review      - Compute the next schedule for a rating
- prepsync due         - List reviews the server considers due
- prepsync streak      - Record today's visit and show the streak
- prepsync cache show  - List cached keys
- prepsync cache clear - Drop cached aggregates
"""
from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from config import get_settings
from prepsync.cache.keys import AGGREGATE_PREFIXES, PREFIX
from prepsync.cache.store import SqliteCacheStore
from prepsync.client import CurriculumApiClient
from prepsync.curriculum.rules import ExperienceLevel, GoalId
from prepsync.curriculum.scheduler import CurriculumScheduler
from prepsync.exceptions import CurriculumConfigError, ReviewValidationError
from prepsync.logging_setup import configure_logging
from prepsync.models import Node
from prepsync.profile.streak import StreakTracker, streak_message
from prepsync.review.scheduler import ReviewScheduler, difficulty_label, due_items, queue_stats
from prepsync.sync.service import ProgressSync

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="prepsync",
    help="Learning path and review scheduling tools",
    no_args_is_help=True,
)
cache_app = typer.Typer(
    name="cache",
    help="Local aggregate cache commands",
    no_args_is_help=True,
)
app.add_typer(cache_app, name="cache")

console = Console()


def _open_cache() -> SqliteCacheStore:
    settings = get_settings()
    return SqliteCacheStore(settings.cache_db_path, settings.cache_max_payload_bytes)


def _load_catalog_file(path: Path) -> list[Node]:
    data = json.loads(path.read_text(encoding="utf-8"))
    items = data.get("topics", []) if isinstance(data, dict) else data
    return [Node.from_dict(item) for item in items]


async def _fetch_path(goal: Optional[str], level: str) -> list[Node]:
    async with CurriculumApiClient() as client:
        sync = ProgressSync(client, _open_cache())
        return await sync.personalized_path(goal, level)


async def _fetch_due() -> list:
    async with CurriculumApiClient() as client:
        sync = ProgressSync(client, _open_cache())
        return await sync.load_due_reviews()


# =============================================================================
# Commands
# =============================================================================


@app.command()
def path(
    goal: Optional[str] = typer.Option(
        None,
        "--goal", "-g",
        help="Goal id (e.g. mern-fullstack); omit for the full catalog",
    ),
    level: Optional[str] = typer.Option(
        None,
        "--level", "-l",
        help="Experience level: 0-1_year, 1-3_years, 3-5_years",
    ),
    catalog: Optional[Path] = typer.Option(
        None,
        "--catalog", "-c",
        help="Read the catalog from a JSON file instead of the API",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Generate an ordered learning path for a goal."""
    level = level or get_settings().default_experience_level
    scheduler = CurriculumScheduler()
    try:
        scheduler.graph.validate()
    except CurriculumConfigError as e:
        console.print(f"[yellow]Warning:[/yellow] {e}")

    if goal and GoalId.parse(goal) is None:
        console.print(f"[yellow]Unknown goal '{goal}', showing the full catalog[/yellow]")

    if catalog is not None:
        nodes = scheduler.generate_path(_load_catalog_file(catalog), goal, level)
    else:
        nodes = asyncio.run(_fetch_path(goal, level))

    table = Table(title=f"Path: {goal or 'all'} ({ExperienceLevel.parse(level).value})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Topic", style="bold")
    table.add_column("Slug", style="cyan")
    table.add_column("Progress", justify="right")
    for index, node in enumerate(nodes, start=1):
        table.add_row(str(index), node.name, node.slug, f"{node.progress}%")
    console.print(table)

    nxt = scheduler.next_recommendation(nodes)
    if nxt:
        console.print(f"\n[green]Next up:[/green] {nxt.name}")


@app.command()
def review(
    quality: int = typer.Argument(..., help="Recall quality 1-5"),
    interval: int = typer.Option(1, "--interval", "-i", help="Current interval (days)"),
    ease: float = typer.Option(2.5, "--ease", "-e", help="Current ease factor"),
    count: int = typer.Option(0, "--count", "-n", help="Successful reviews so far"),
) -> None:
    """Show the next schedule for a rating."""
    try:
        result = ReviewScheduler().schedule(quality, interval, ease, count)
    except ReviewValidationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value", style="bold")
    table.add_row("Rating", difficulty_label(quality))
    table.add_row("Interval", f"{result.interval} days")
    table.add_row("Ease factor", f"{result.ease_factor:.2f}")
    table.add_row("Review count", str(result.review_count))
    table.add_row("Next review", result.next_review_at.strftime("%Y-%m-%d %H:%M UTC"))
    console.print(table)


@app.command()
def due() -> None:
    """List reviews that are due now."""
    reviews = due_items(asyncio.run(_fetch_due()))
    if not reviews:
        console.print("[green]All caught up! Nothing is due.[/green]")
        return

    stats = queue_stats(reviews, datetime.now(UTC))
    table = Table(title=f"Due reviews ({stats['total']} total, {stats['overdue']} overdue)")
    table.add_column("Section", style="bold")
    table.add_column("Due", style="cyan")
    table.add_column("Interval", justify="right")
    table.add_column("Ease", justify="right")
    for item in reviews:
        table.add_row(
            item.section_name or item.item_id,
            item.next_review_at.strftime("%Y-%m-%d"),
            str(item.review.interval),
            f"{item.review.ease_factor:.2f}",
        )
    console.print(table)


@app.command()
def streak() -> None:
    """Record today's visit and show the streak."""
    record = StreakTracker(_open_cache()).record_visit()
    console.print(
        f"[bold]{record.current_streak}[/bold] day streak "
        f"(longest {record.longest_streak}) - {streak_message(record.current_streak)}"
    )


@cache_app.command("show")
def cache_show(
    prefix: str = typer.Option(PREFIX, "--prefix", "-p", help="Only keys with this prefix"),
) -> None:
    """List cached keys."""
    keys = _open_cache().keys(prefix)
    for key in keys:
        console.print(key)
    console.print(f"[dim]{len(keys)} keys[/dim]")


@cache_app.command("clear")
def cache_clear(
    everything: bool = typer.Option(
        False,
        "--all", "-a",
        help="Also drop profile state (streak, bookmarks, onboarding)",
    ),
) -> None:
    """Drop cached aggregates so the next read refetches them."""
    store = _open_cache()
    if everything:
        removed = store.clear(PREFIX)
    else:
        removed = sum(store.clear(prefix) for prefix in AGGREGATE_PREFIXES)
    console.print(f"[green]Removed {removed} cache entries[/green]")


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_file)
    app()


if __name__ == "__main__":
    main()
