"""
Main CLI application using Typer.
"""

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Annotated, List, NoReturn, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..adapters.mock_client import MockDataClient
from ..adapters.rest_client import RestDataClient
from ..config import AppConfig
from ..domain.calendar import (
    CalendarState,
    CalendarView,
    DaySchedule,
    MonthCell,
    MonthGrid,
    WeekSchedule,
    describe_range,
)
from ..domain.exceptions import ClinicScheduleError
from ..domain.models import Appointment, AppointmentStatus, TimeOfDay, format_time_range
from ..domain.slot_calculator import generate_time_slots
from ..services.scheduling import SchedulingService

app = typer.Typer(
    name="clinicschedule",
    help="Doctor availability and appointment calendar for the clinic dashboard",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    AppointmentStatus.SCHEDULED: "blue",
    AppointmentStatus.COMPLETED: "green",
    AppointmentStatus.CANCELLED: "red",
    AppointmentStatus.NO_SHOW: "dark_orange",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use the bundled sample data instead of the data store.")
]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config = AppConfig.load(config_file)
    _configure_logging(config.log_level)
    return config


def _build_service(config: AppConfig, mock: bool) -> SchedulingService:
    if mock:
        client = MockDataClient(strict_schedules=config.strict_schedules)
    else:
        if not config.data_store.url:
            raise ValueError("data_store.url is not configured. Set it in config.yaml or use --mock.")
        client = RestDataClient(
            url=config.data_store.url,
            api_key=config.data_store.api_key,
            timeout=config.data_store.timeout_seconds,
            strict_schedules=config.strict_schedules
        )

    return SchedulingService(
        client=client,
        slot_calculator=config.build_slot_calculator(),
        composer=config.build_composer()
    )


def _parse_day(value: Optional[str], tz: str) -> date:
    """Parse ``YYYY-MM-DD``; no value means today in the configured timezone."""
    if not value:
        return pendulum.today(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as exc:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _format_appointment(appointment: Appointment) -> str:
    style = STATUS_STYLES.get(appointment.status, "white")
    return f"[{style}]{escape(appointment.format_display())}[/{style}]"


def _render_day(day: DaySchedule) -> Table:
    title = describe_range(CalendarView.DAY, day.date)
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Time", style="dim", width=6)
    table.add_column("Appointments")

    for time, appointments in day.slots.items():
        table.add_row(time, "\n".join(_format_appointment(apt) for apt in appointments))

    return table


def _render_week(week: WeekSchedule) -> Table:
    title = describe_range(CalendarView.WEEK, week.start)
    table = Table(title=title, show_header=True, header_style="bold cyan", show_lines=True)
    table.add_column("Time", style="dim", width=6)

    for day in week.days:
        table.add_column(_day_header(day))

    times: List[str] = []
    for day in week.days:
        for time in day.slots:
            if time not in times:
                times.append(time)
    times.sort(key=TimeOfDay.parse)

    for time in times:
        table.add_row(
            time,
            *("\n".join(_format_appointment(apt) for apt in day.slots.get(time, ())) for day in week.days)
        )

    return table


def _day_header(day: DaySchedule) -> str:
    label = f"{day.date.strftime('%a')} {day.date.day}"
    return f"[bold blue]{label}[/bold blue]" if day.is_today else label


def _render_month_cell(cell: MonthCell) -> str:
    number = str(cell.date.day)
    if cell.is_today:
        number = f"[bold blue]{number}[/bold blue]"
    elif not cell.in_month:
        number = f"[dim]{number}[/dim]"

    lines = [number]
    lines.extend(_format_appointment(apt) for apt in cell.visible)
    if cell.overflow:
        lines.append(f"[dim]{cell.overflow_label}[/dim]")
    return "\n".join(lines)


def _render_month(grid: MonthGrid) -> Table:
    title = describe_range(CalendarView.MONTH, grid.month)
    table = Table(title=title, show_header=True, header_style="bold cyan", show_lines=True)
    for name in ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"):
        table.add_column(name)

    for week in grid.weeks:
        table.add_row(*(_render_month_cell(cell) for cell in week))

    return table


@app.command()
def slots(
    doctor_id: Annotated[str, typer.Argument(help="Doctor id as stored in the data store")],
    day: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD), defaults to today")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", help="Slot duration in minutes")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show the open appointment slots of a doctor for one day.

    Examples:

        clinicschedule slots d-1 --date 2024-11-25 --mock
        clinicschedule slots d-1 --duration 45
    """
    try:
        config = _load_config(config_file)
        target_day = _parse_day(day, config.timezone)
        service = _build_service(config, mock)

        open_slots = asyncio.run(service.available_slots(
            doctor_id=doctor_id,
            day=target_day,
            duration_minutes=duration
        ))
    except (FileNotFoundError, ValueError, ClinicScheduleError) as e:
        _fail(e)

    label = describe_range(CalendarView.DAY, target_day)
    if not open_slots:
        console.print(f"[yellow]⚠ No open slots for {doctor_id} on {label}.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(open_slots)} open slot(s) for {doctor_id} on {label}:[/bold green]\n")
    for slot in open_slots:
        console.print(f"  {slot}")


@app.command()
def calendar(
    view: Annotated[Optional[CalendarView], typer.Option("--view", "-v", help="Calendar view")] = None,
    day: Annotated[Optional[str], typer.Option("--date", "-d", help="Anchor date (YYYY-MM-DD), defaults to today")] = None,
    doctor_id: Annotated[Optional[str], typer.Option("--doctor", help="Only show this doctor's appointments")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show appointments as a day, week or month calendar.

    Examples:

        clinicschedule calendar --mock --date 2024-11-25
        clinicschedule calendar --view month --doctor d-1
    """
    try:
        config = _load_config(config_file)
        state = CalendarState(
            anchor=_parse_day(day, config.timezone),
            view=view or config.calendar.default_view,
            doctor_id=doctor_id
        )
        service = _build_service(config, mock)
        layout = asyncio.run(service.calendar(state))
    except (FileNotFoundError, ValueError, ClinicScheduleError) as e:
        _fail(e)

    if isinstance(layout, DaySchedule):
        table = _render_day(layout)
    elif isinstance(layout, WeekSchedule):
        table = _render_week(layout)
    else:
        table = _render_month(layout)

    console.print()
    console.print(table)
    console.print()


@app.command()
def check_schedules(
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Validate the working-hours ranges of every doctor.

    Exits with code 1 when any schedule has problems.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock)
        report = asyncio.run(service.schedule_report())
    except (FileNotFoundError, ValueError, ClinicScheduleError) as e:
        _fail(e)

    table = Table(title="Doctor schedules", show_header=True, header_style="bold cyan")
    table.add_column("Doctor", style="bold yellow")
    table.add_column("Working days")
    table.add_column("Problems")

    problem_count = 0
    for entry in report:
        problem_count += len(entry.issues)
        days = ", ".join(d.value.capitalize()[:3] for d in entry.working_days) or "-"
        problems = "\n".join(f"[red]{escape(str(issue))}[/red]" for issue in entry.issues) or "[green]none[/green]"
        table.add_row(escape(entry.name), days, problems)

    console.print()
    console.print(table)
    console.print()

    if problem_count:
        console.print(f"[yellow]⚠ {problem_count} schedule problem(s) found.[/yellow]")
        raise typer.Exit(1)


@app.command()
def doctors(
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List doctors with their working hours per weekday.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock)
        doctor_list = asyncio.run(service.doctors())
    except (FileNotFoundError, ValueError, ClinicScheduleError) as e:
        _fail(e)

    if not doctor_list:
        console.print("[yellow]⚠ No doctors found.[/yellow]")
        return

    table = Table(title="Doctors", show_header=True, header_style="bold cyan")
    table.add_column("Doctor", style="bold yellow")
    table.add_column("Day")
    table.add_column("Hours")

    for doctor in doctor_list:
        name = escape(doctor.full_name or doctor.id)
        working_days = doctor.schedule.working_days() if doctor.schedule else []
        if not working_days:
            table.add_row(name, "-", "[dim]no working hours[/dim]")
            continue

        for index, weekday in enumerate(working_days):
            hours = ", ".join(format_time_range(r) for r in doctor.schedule.ranges_for(weekday))
            table.add_row(name if index == 0 else "", weekday.value.capitalize(), hours)

    console.print()
    console.print(table)
    console.print()


@app.command()
def time_grid(
    start_hour: Annotated[int, typer.Option("--start-hour", help="First hour of the grid")] = 8,
    end_hour: Annotated[int, typer.Option("--end-hour", help="Hour the grid stops before")] = 20,
    interval: Annotated[int, typer.Option("--interval", help="Minutes between rows")] = 30,
):
    """
    Print the calendar time grid.
    """
    try:
        grid = generate_time_slots(start_hour, end_hour, interval)
    except ValueError as e:
        _fail(e)

    for slot in grid:
        console.print(slot)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]clinicschedule[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
