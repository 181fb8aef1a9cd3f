"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.mock_store import MockStore
from ..adapters.postgrest_client import PostgrestClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import (
    AvailabilityError,
    EventNotFoundError,
    EventValidationError,
    InvalidDateError,
)
from ..domain.models import AvailabilityResponse
from ..services.availability_finder import AvailabilityFinderService
from ..services.events import EventService

app = typer.Typer(
    name="rep-availability",
    help="Compute sales-rep appointment availability and manage events",
    add_completion=False
)
events_app = typer.Typer(help="Create, read, update and delete appointment events")
app.add_typer(events_app, name="events")

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use the in-memory fixture store instead of Supabase.")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the response envelope as JSON.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]
AsOfOption = Annotated[Optional[str], typer.Option("--as-of", help="Pretend the current instant is this ISO 8601 timestamp.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    """Load the config file; mock mode runs on defaults when there is none."""
    config_path = config_file or get_default_config_path()
    if mock and not config_path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _build_store(config: AppConfig, mock: bool):
    if mock:
        return MockStore(data_file=config.mock_data_file)
    return PostgrestClient(
        config=config.require_supabase(),
        tables=config.tables,
        timezone_setting_key=config.timezone_setting_key,
    )


def _parse_as_of(as_of: Optional[str]):
    if as_of is None:
        return None
    try:
        return pendulum.parse(as_of)
    except ValueError as e:
        raise InvalidDateError(f"Invalid --as-of value '{as_of}': {e}") from e


def _fail(exc: Exception, as_json: bool, code: int = 1) -> None:
    """Report an error and exit with ``code``."""
    if as_json:
        message = str(exc) if code == 2 else "Server error"
        typer.echo(json.dumps({"success": False, "message": message, "error": str(exc)}, indent=2))
    else:
        console.print(f"[bold red]Error:[/bold red] {exc}")
    raise typer.Exit(code)


def _print_availability(response: AvailabilityResponse) -> None:
    """Render availability as one table per staff member."""
    console.print()
    if not response.data:
        console.print(f"[yellow]⚠ {response.message}[/yellow]\n")
        return

    colour = "green" if response.message == AvailabilityResponse.FOUND_MESSAGE else "yellow"
    console.print(f"[bold {colour}]{response.message}[/bold {colour}]\n")

    for staff in response.data:
        capabilities = ", ".join(staff.capabilities) or "-"
        table = Table(
            title=f"{staff.staff_name} ({capabilities})",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Day", style="bold yellow")
        table.add_column("Free slots")

        if not staff.availability:
            table.add_row("-", "[dim]no qualifying days[/dim]")
        for day in staff.availability:
            table.add_row(day.day.isoformat(), ", ".join(day.slots) or "[dim]none[/dim]")

        console.print(table)
        console.print()


def _run_availability(
    *,
    config_file: Optional[Path],
    mock: bool,
    as_json: bool,
    verbose: bool,
    day: Optional[str],
    as_of: Optional[str],
) -> None:
    _configure_logging(verbose)
    try:
        config = _load_config(config_file, mock)
        store = _build_store(config, mock)
        service = AvailabilityFinderService(store=store, fallback_timezone=config.fallback_timezone)
        as_of_instant = _parse_as_of(as_of)

        if day is None:
            response = asyncio.run(service.current_week(as_of=as_of_instant))
        else:
            response = asyncio.run(service.for_day(day))
    except InvalidDateError as e:
        _fail(e, as_json, code=2)
    except (AvailabilityError, FileNotFoundError, ValueError) as e:
        logger.debug("Availability request failed", exc_info=True)
        _fail(e, as_json)

    if as_json:
        typer.echo(json.dumps(response.to_dict(), indent=2))
    else:
        _print_availability(response)


@app.command("current-week")
def current_week(
    config_file: ConfigOption = None,
    mock: MockOption = False,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
    as_of: AsOfOption = None,
):
    """
    Show free slots for every sales rep for the current Monday-Sunday week.

    Examples:

        rep-availability current-week
        rep-availability current-week --mock --json
    """
    _run_availability(
        config_file=config_file, mock=mock, as_json=as_json, verbose=verbose, day=None, as_of=as_of
    )


@app.command("day")
def for_day(
    day: Annotated[str, typer.Argument(help="Date in YYYY-MM-DD format")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    Show free slots for every sales rep on one explicit date.

    Example:

        rep-availability day 2025-06-12 --mock
    """
    _run_availability(
        config_file=config_file, mock=mock, as_json=as_json, verbose=verbose, day=day, as_of=None
    )


def _event_service(config_file: Optional[Path], mock: bool) -> EventService:
    config = _load_config(config_file, mock)
    return EventService(store=_build_store(config, mock))


def _parse_payload(data: str) -> Dict[str, Any]:
    try:
        payload = json.loads(data)
    except ValueError as e:
        raise EventValidationError(f"Invalid JSON payload: {e}") from e
    if not isinstance(payload, dict):
        raise EventValidationError("Event payload must be a JSON object")
    return payload


def _run_event_operation(operation, config_file: Optional[Path], mock: bool, verbose: bool) -> None:
    """Run an async EventService operation and print its result as JSON."""
    _configure_logging(verbose)
    try:
        service = _event_service(config_file, mock)
        result = asyncio.run(operation(service))
    except EventValidationError as e:
        _fail(e, as_json=False, code=2)
    except EventNotFoundError as e:
        _fail(e, as_json=False, code=4)
    except (AvailabilityError, FileNotFoundError, ValueError) as e:
        _fail(e, as_json=False)

    typer.echo(json.dumps(result, indent=2, default=str))


@events_app.command("list")
def list_events(config_file: ConfigOption = None, mock: MockOption = False, verbose: VerboseOption = False):
    """List all events."""
    _run_event_operation(lambda service: service.list(), config_file, mock, verbose)


@events_app.command("get")
def get_event(
    event_id: Annotated[str, typer.Argument(help="Event Id")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """Show one event."""
    _run_event_operation(lambda service: service.get(event_id), config_file, mock, verbose)


@events_app.command("create")
def create_event(
    data: Annotated[str, typer.Option("--data", "-d", help="Event as a JSON object")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Create an event. Event_Type, Scheduled_Time and Status are required.

    Example:

        rep-availability events create --mock -d '{"Event_Type": "Sales Appointment",
            "Scheduled_Time": "2025-01-20T14:00:00Z", "Status": "Scheduled"}'
    """
    _run_event_operation(lambda service: service.create(_parse_payload(data)), config_file, mock, verbose)


@events_app.command("update")
def update_event(
    event_id: Annotated[str, typer.Argument(help="Event Id")],
    data: Annotated[str, typer.Option("--data", "-d", help="Changed fields as a JSON object")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """Update an event."""
    _run_event_operation(
        lambda service: service.update(event_id, _parse_payload(data)), config_file, mock, verbose
    )


@events_app.command("delete")
def delete_event(
    event_id: Annotated[str, typer.Argument(help="Event Id")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """Delete an event."""
    _run_event_operation(lambda service: service.delete(event_id), config_file, mock, verbose)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]rep-availability[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
