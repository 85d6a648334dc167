"""
Calendar view composition: day, week and month groupings of appointments.

Views are rebuilt from scratch on every call; navigation produces a new
CalendarState instead of patching a previous layout.
"""

from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

import pendulum

from .models import Appointment, TimeOfDay, appointments_for_doctor, as_date, as_time_of_day
from .slot_calculator import generate_time_slots

Clock = Callable[[], date]

MONTH_PADDING_DAYS = 7
DEFAULT_MONTH_DISPLAY_LIMIT = 3
DATE_CLICK_TIME = "09:00"


class CalendarView(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def system_clock(timezone: str = "UTC") -> Clock:
    """Clock returning the current date in the given timezone."""
    return lambda: pendulum.today(timezone).date()


def _to_pendulum(day: date) -> pendulum.Date:
    day = as_date(day)
    return pendulum.date(day.year, day.month, day.day)


def week_start(day: date) -> pendulum.Date:
    """Monday of the week containing ``day``."""
    day = _to_pendulum(day)
    return day.subtract(days=day.weekday())


def shift_anchor(view: CalendarView, anchor: date, steps: int) -> pendulum.Date:
    """
    Move the anchor by whole units of the view.

    Month steps clamp to the last valid day (Jan 31 + 1 month -> Feb 28/29).
    """
    anchor = _to_pendulum(anchor)
    if view == CalendarView.DAY:
        return anchor.add(days=steps)
    if view == CalendarView.WEEK:
        return anchor.add(weeks=steps)
    return anchor.add(months=steps)


def visible_range(view: CalendarView, anchor: date) -> Tuple[pendulum.Date, pendulum.Date]:
    """
    Inclusive date range of appointments a view needs.

    The month range is padded by a week on each side to cover the
    leading and trailing days of the grid.
    """
    anchor = _to_pendulum(anchor)
    if view == CalendarView.DAY:
        return anchor, anchor
    if view == CalendarView.WEEK:
        start = week_start(anchor)
        return start, start.add(days=6)

    first = anchor.start_of("month")
    last = anchor.end_of("month")
    return first.subtract(days=MONTH_PADDING_DAYS), last.add(days=MONTH_PADDING_DAYS)


def describe_range(view: CalendarView, anchor: date) -> str:
    """
    Header label for a view.

    Examples: "October 17, 2026", "Oct 12 - Oct 18, 2026", "October 2026"
    """
    anchor = _to_pendulum(anchor)
    if view == CalendarView.DAY:
        return anchor.format("MMMM D, YYYY", locale="en")
    if view == CalendarView.WEEK:
        start = week_start(anchor)
        end = start.add(days=6)
        return f"{start.format('MMM D', locale='en')} - {end.format('MMM D, YYYY', locale='en')}"
    return anchor.format("MMMM YYYY", locale="en")


@dataclass(frozen=True)
class DaySchedule:
    """
    One day of a day or week view.

    ``slots`` maps ``HH:MM`` keys, in time order, to every appointment
    booked at that time.
    """
    date: date
    is_today: bool
    slots: Dict[str, Tuple[Appointment, ...]]

    @property
    def appointments(self) -> List[Appointment]:
        return [apt for bucket in self.slots.values() for apt in bucket]


@dataclass(frozen=True)
class WeekSchedule:
    days: Tuple[DaySchedule, ...]

    @property
    def start(self) -> date:
        return self.days[0].date

    @property
    def end(self) -> date:
        return self.days[-1].date


@dataclass(frozen=True)
class MonthCell:
    """A day cell of the month grid, capped at a few visible entries."""
    date: date
    in_month: bool
    is_today: bool
    appointments: Tuple[Appointment, ...]
    visible: Tuple[Appointment, ...]
    overflow: int

    @property
    def overflow_label(self) -> str:
        return f"+{self.overflow} more" if self.overflow else ""


@dataclass(frozen=True)
class MonthGrid:
    month: date
    weeks: Tuple[Tuple[MonthCell, ...], ...]

    @property
    def cells(self) -> List[MonthCell]:
        return [cell for week in self.weeks for cell in week]


CalendarLayout = Union[DaySchedule, WeekSchedule, MonthGrid]


class CalendarComposer:
    """
    Buckets appointments into calendar views.

    The time grid of day and week views comes from generate_time_slots;
    appointments booked off the grid get their own key so none are hidden.
    """

    def __init__(
        self,
        start_hour: int = 8,
        end_hour: int = 20,
        interval_minutes: int = 30,
        month_display_limit: int = DEFAULT_MONTH_DISPLAY_LIMIT,
        clock: Optional[Clock] = None
    ):
        self.time_grid = generate_time_slots(start_hour, end_hour, interval_minutes)
        self.month_display_limit = month_display_limit
        self.clock = clock or system_clock()

    def compose(
        self,
        view: CalendarView,
        anchor: date,
        appointments: Optional[Iterable[Appointment]]
    ) -> CalendarLayout:
        view = CalendarView(view)
        if view == CalendarView.DAY:
            return self.compose_day(anchor, appointments)
        if view == CalendarView.WEEK:
            return self.compose_week(anchor, appointments)
        return self.compose_month(anchor, appointments)

    def compose_day(self, anchor: date, appointments: Optional[Iterable[Appointment]]) -> DaySchedule:
        by_date = self._group_by_date(appointments)
        return self._day_schedule(_to_pendulum(anchor), by_date, self.clock())

    def compose_week(self, anchor: date, appointments: Optional[Iterable[Appointment]]) -> WeekSchedule:
        by_date = self._group_by_date(appointments)
        today = self.clock()
        monday = week_start(anchor)

        return WeekSchedule(days=tuple(
            self._day_schedule(monday.add(days=offset), by_date, today)
            for offset in range(7)
        ))

    def compose_month(self, anchor: date, appointments: Optional[Iterable[Appointment]]) -> MonthGrid:
        """
        Build the Monday-start grid for the anchor's month.

        Leading and trailing days of the neighbouring months complete the
        first and last weeks; their appointments are shown as well.
        """
        by_date = self._group_by_date(appointments)
        today = self.clock()

        first = _to_pendulum(anchor).start_of("month")
        last = first.end_of("month")
        grid_start = first.subtract(days=first.weekday())
        grid_end = last.add(days=6 - last.weekday())

        cells: List[MonthCell] = []
        current = grid_start
        while current <= grid_end:
            day_appointments = tuple(
                sorted(by_date.get(current, []), key=lambda apt: apt.appointment_time)
            )
            overflow = max(0, len(day_appointments) - self.month_display_limit)
            cells.append(MonthCell(
                date=current,
                in_month=current.month == first.month,
                is_today=current == today,
                appointments=day_appointments,
                visible=day_appointments[:self.month_display_limit],
                overflow=overflow
            ))
            current = current.add(days=1)

        weeks = tuple(tuple(cells[i:i + 7]) for i in range(0, len(cells), 7))
        return MonthGrid(month=first, weeks=weeks)

    def _day_schedule(
        self,
        day: date,
        by_date: Dict[date, List[Appointment]],
        today: date
    ) -> DaySchedule:
        buckets: Dict[str, List[Appointment]] = defaultdict(list)
        for apt in by_date.get(day, []):
            buckets[str(apt.appointment_time)].append(apt)

        keys = sorted(set(self.time_grid) | set(buckets), key=TimeOfDay.parse)

        return DaySchedule(
            date=day,
            is_today=day == today,
            slots={key: tuple(buckets.get(key, ())) for key in keys}
        )

    @staticmethod
    def _group_by_date(appointments: Optional[Iterable[Appointment]]) -> Dict[date, List[Appointment]]:
        grouped: Dict[date, List[Appointment]] = defaultdict(list)
        for apt in appointments or []:
            grouped[apt.appointment_date].append(apt)
        return grouped


@dataclass(frozen=True)
class CalendarState:
    """The view mode, anchor date and doctor filter currently shown."""
    anchor: date
    view: CalendarView = CalendarView.WEEK
    doctor_id: Optional[str] = None

    def previous(self) -> "CalendarState":
        return replace(self, anchor=shift_anchor(self.view, self.anchor, -1))

    def next(self) -> "CalendarState":
        return replace(self, anchor=shift_anchor(self.view, self.anchor, 1))

    def today(self, clock: Clock) -> "CalendarState":
        return replace(self, anchor=_to_pendulum(clock()))

    def with_view(self, view: CalendarView) -> "CalendarState":
        return replace(self, view=CalendarView(view))

    def with_doctor(self, doctor_id: Optional[str]) -> "CalendarState":
        return replace(self, doctor_id=doctor_id)


@dataclass(frozen=True)
class SlotClick:
    """An empty slot was selected; carries the doctor context in effect."""
    date: date
    time: str
    doctor_id: Optional[str]


@dataclass(frozen=True)
class AppointmentClick:
    appointment: Appointment
    doctor_id: Optional[str]


class CalendarController:
    """
    Holds the calendar state and loaded appointments, and turns user
    actions into new layouts or click events.
    """

    def __init__(
        self,
        composer: CalendarComposer,
        state: CalendarState,
        appointments: Optional[Iterable[Appointment]] = None
    ):
        self.composer = composer
        self.state = state
        self.appointments: List[Appointment] = list(appointments or [])

    def load(self, appointments: Optional[Iterable[Appointment]]) -> CalendarLayout:
        self.appointments = list(appointments or [])
        return self.render()

    def render(self) -> CalendarLayout:
        visible = appointments_for_doctor(self.appointments, self.state.doctor_id)
        return self.composer.compose(self.state.view, self.state.anchor, visible)

    def previous(self) -> CalendarLayout:
        self.state = self.state.previous()
        return self.render()

    def next(self) -> CalendarLayout:
        self.state = self.state.next()
        return self.render()

    def today(self) -> CalendarLayout:
        self.state = self.state.today(self.composer.clock)
        return self.render()

    def set_view(self, view: CalendarView) -> CalendarLayout:
        self.state = self.state.with_view(view)
        return self.render()

    def set_doctor(self, doctor_id: Optional[str]) -> CalendarLayout:
        self.state = self.state.with_doctor(doctor_id)
        return self.render()

    def click_slot(self, day: date, time: "TimeOfDay | str", doctor_id: Optional[str] = None) -> SlotClick:
        """
        Select an empty slot. A column-level ``doctor_id`` wins over the
        active filter.
        """
        return SlotClick(
            date=as_date(day),
            time=str(as_time_of_day(time)),
            doctor_id=doctor_id if doctor_id is not None else self.state.doctor_id
        )

    def click_date(self, day: date) -> SlotClick:
        """Month cells open a slot at the start of the working morning."""
        return self.click_slot(day, DATE_CLICK_TIME)

    def click_appointment(self, appointment: Appointment) -> AppointmentClick:
        return AppointmentClick(appointment=appointment, doctor_id=self.state.doctor_id)
