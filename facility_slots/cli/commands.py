"""CLI commands for Facility Slots."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from facility_slots.config import get_settings
from facility_slots.scheduling.models import ApiResponse, BookingRequest, Patient

app = typer.Typer(
    name="facility-slots",
    help="Weekly appointment-slot availability and booking",
    add_completion=False,
)
console = Console()


def get_service():
    """Get a SlotService wired from settings."""
    from facility_slots.engine import create_service_from_settings

    return create_service_from_settings()


async def _call(method: str, *args) -> ApiResponse:
    service = get_service()
    try:
        return await getattr(service, method)(*args)
    finally:
        await service.source.aclose()


def _print_failure(result: ApiResponse) -> None:
    console.print(f"[red]{result.message}[/red]")
    for error in result.errors or []:
        console.print(f"  [dim]{error}[/dim]")


@app.command()
def availability(
    monday: str = typer.Argument(..., help="Week start as yyyyMMdd (must be a Monday)"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show the bookable slots for a week."""
    result = asyncio.run(_call("get_weekly_availability", monday))

    if output_json:
        console.print_json(result.model_dump_json(by_alias=True, exclude_none=True))
        if not result.success:
            raise typer.Exit(1)
        return

    if not result.success:
        _print_failure(result)
        raise typer.Exit(1)

    table = Table(title=f"Facility {result.facility_id}: week of {monday}")
    table.add_column("Day", style="cyan")
    table.add_column("Start")
    table.add_column("End")
    for slot in result.data or []:
        table.add_row(
            slot.day_of_week,
            slot.start.strftime("%Y-%m-%d %H:%M"),
            slot.end.strftime("%H:%M"),
        )

    console.print(table)
    console.print(f"[green]{result.message}[/green]")


@app.command()
def book(
    start: str = typer.Option(..., "--start", "-s", help="Slot start, yyyy-MM-dd HH:mm:ss"),
    end: str = typer.Option(..., "--end", "-e", help="Slot end, yyyy-MM-dd HH:mm:ss"),
    facility: str = typer.Option("", "--facility", "-f", help="Facility ID"),
    name: str = typer.Option(..., "--name", help="Patient first name"),
    second_name: str = typer.Option(..., "--second-name", help="Patient last name"),
    email: str = typer.Option(..., "--email", help="Patient email"),
    phone: str = typer.Option("", "--phone", help="Patient phone"),
    comments: str = typer.Option("", "--comments", "-c", help="Free-text comment"),
):
    """Book a slot for a patient."""
    request = BookingRequest(
        facility_id=facility,
        start=start,
        end=end,
        comments=comments,
        patient=Patient(name=name, second_name=second_name, email=email, phone=phone),
    )
    result = asyncio.run(_call("book_slot", request))

    if not result.success:
        _print_failure(result)
        raise typer.Exit(1)

    console.print(f"[green]Booked {start} - {end}[/green]")
    if result.message:
        console.print(result.message)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the REST API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"Starting Facility Slots API server on {host}:{port}")
    uvicorn.run(
        "facility_slots.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version():
    """Show version information."""
    from facility_slots import __version__

    console.print(f"Facility Slots v{__version__}")


if __name__ == "__main__":
    app()
