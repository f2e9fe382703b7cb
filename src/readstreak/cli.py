"""Command-line interface for readstreak.

Built with Typer for commands and Rich for beautiful output.
"""

import logging
from datetime import date, datetime
from typing import Optional, Union

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import get_config
from .days import day_bounds_utc, resolve_timezone
from .db import get_db
from .exceptions import NotFoundError, ValidationError
from .progress.service import ProgressService
from .streaks import StreakManager

# Create the main app
app = typer.Typer(
    name="readstreak",
    help="Track your daily reading streak.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else get_config().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def get_manager() -> StreakManager:
    return StreakManager(get_db())


def parse_when(value: str, tz_name: str) -> datetime:
    """Parse a --date option in the user's timezone.

    A bare date means midnight that day; a datetime without an offset is
    local time in ``tz_name``.
    """
    try:
        if "T" not in value and " " not in value:
            start, _ = day_bounds_utc(date.fromisoformat(value), tz_name)
            return start
        moment = datetime.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date: {value}. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM.")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=resolve_timezone(tz_name))
    return moment


def format_streak_panel(streak) -> Panel:
    """Create a rich panel summarizing a streak."""
    flame = "🔥 " if streak.current_streak > 0 else ""
    lines = [
        f"[bold]Current streak:[/bold] {flame}{streak.current_streak} day(s)",
        f"[bold]Longest streak:[/bold] {streak.longest_streak} day(s)",
        f"[bold]Days active:[/bold] {streak.total_days_active}",
        f"[bold]Daily goal:[/bold] {streak.daily_threshold} page(s)",
        f"[bold]Timezone:[/bold] {streak.user_timezone}",
        f"[bold]Hours left today:[/bold] {streak.hours_remaining_today}",
    ]
    if not streak.streak_enabled:
        lines.append("[yellow]Streak tracking is disabled[/yellow]")
    return Panel("\n".join(lines), title="Reading Streak", border_style="cyan")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Track your daily reading streak."""
    configure_logging(verbose)
    for problem in get_config().validate():
        print_warning(problem)


# ============================================================================
# Progress Commands
# ============================================================================


@app.command()
def log(
    pages: int = typer.Argument(..., help="Pages read"),
    when: Optional[str] = typer.Option(
        None, "--date", "-d", help="When you read (YYYY-MM-DD or YYYY-MM-DDTHH:MM)"
    ),
    book: Optional[str] = typer.Option(None, "--book", "-b", help="Book reference"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Notes"),
) -> None:
    """Log pages read and update your streak."""
    manager = get_manager()
    service = ProgressService(manager.db, streak_manager=manager)

    progress_date = None
    if when:
        progress_date = parse_when(when, manager.get_streak_basic().user_timezone)

    try:
        service.log_progress(pages, progress_date=progress_date, book_id=book, notes=notes)
    except ValidationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Logged {pages} page(s)")
    console.print(format_streak_panel(manager.get_streak()))


@app.command("delete-progress")
def delete_progress(
    log_id: str = typer.Argument(..., help="Progress entry ID"),
) -> None:
    """Delete a progress entry and rebuild your streak."""
    manager = get_manager()
    service = ProgressService(manager.db, streak_manager=manager)

    try:
        service.delete_progress(log_id)
    except NotFoundError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success("Progress entry deleted")


@app.command("edit-progress")
def edit_progress(
    log_id: str = typer.Argument(..., help="Progress entry ID"),
    pages: Optional[int] = typer.Option(None, "--pages", "-p", help="New page count"),
    when: Optional[str] = typer.Option(
        None, "--date", "-d", help="New date (YYYY-MM-DD or YYYY-MM-DDTHH:MM)"
    ),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="New notes"),
) -> None:
    """Change a progress entry and rebuild your streak."""
    manager = get_manager()
    service = ProgressService(manager.db, streak_manager=manager)

    progress_date = None
    if when:
        progress_date = parse_when(when, manager.get_streak_basic().user_timezone)

    try:
        service.edit_progress(log_id, pages_read=pages, progress_date=progress_date, notes=notes)
    except (NotFoundError, ValidationError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success("Progress entry updated")
    console.print(format_streak_panel(manager.get_streak()))


# ============================================================================
# Streak Commands
# ============================================================================


@app.command()
def status() -> None:
    """Show your current streak."""
    manager = get_manager()
    if manager.check_and_reset_if_needed():
        print_info("Your streak was reset after a missed day.")
    console.print(format_streak_panel(manager.get_streak()))


@app.command()
def rebuild() -> None:
    """Recompute your streak from all recorded progress."""
    manager = get_manager()
    manager.rebuild_streak()
    print_success("Streak rebuilt")
    console.print(format_streak_panel(manager.get_streak()))


@app.command()
def threshold(
    pages: int = typer.Argument(..., help="Pages per day needed to count a day"),
) -> None:
    """Set your daily page goal (re-evaluates past days)."""
    manager = get_manager()
    try:
        record = manager.update_threshold(None, pages)
    except ValidationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Daily goal set to {record.daily_threshold} page(s)")
    console.print(format_streak_panel(manager.get_streak()))


@app.command()
def timezone(
    name: str = typer.Argument(..., help="IANA timezone, e.g. Europe/Berlin"),
) -> None:
    """Set the timezone your reading days are counted in."""
    manager = get_manager()
    try:
        record = manager.set_timezone(None, name)
    except ValidationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Timezone set to {record.user_timezone}")


@app.command()
def enable(
    pages: Optional[int] = typer.Option(None, "--threshold", "-t", help="Daily page goal"),
) -> None:
    """Turn streak tracking on."""
    manager = get_manager()
    try:
        manager.set_streak_enabled(None, True, pages)
    except ValidationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success("Streak tracking enabled")
    console.print(format_streak_panel(manager.get_streak()))


@app.command()
def disable() -> None:
    """Turn streak tracking off. Your history is kept."""
    get_manager().set_streak_enabled(None, False)
    print_success("Streak tracking disabled")


@app.command()
def history(
    days: str = typer.Option(
        "14", "--days", "-d", help="How many days to show, 'this-year' or 'all-time'"
    ),
) -> None:
    """Show pages read per day."""
    manager = get_manager()
    window: Union[int, str] = int(days) if days.lstrip("-").isdigit() else days
    try:
        activity = manager.get_activity_history(days=window)
    except ValidationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    table = Table(title="Reading History", show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Pages", justify="right")
    table.add_column("Goal", justify="center")

    for day in activity:
        table.add_row(
            day.day.isoformat(),
            str(day.pages_read),
            "[green]✓[/green]" if day.threshold_met else "[dim]-[/dim]",
        )

    console.print(table)


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"readstreak version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
