"""
Domain models for doctor schedules, appointments and wall-clock times.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pendulum

from .exceptions import ScheduleFormatError

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    A wall-clock time stored as minutes since midnight.

    Invariant: 0 <= minutes < 1440.
    """
    minutes: int

    def __post_init__(self):
        if not 0 <= self.minutes < MINUTES_PER_DAY:
            raise ScheduleFormatError(f"Time out of range: {self.minutes} minutes since midnight")

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """
        Parse ``HH:MM`` (or ``HH:MM:SS``, seconds are dropped).

        A single-digit hour such as ``9:00`` is accepted; schedule
        validation reports it separately.
        """
        match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
        if not match:
            raise ScheduleFormatError(f"Invalid time '{value}', expected HH:MM")

        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            raise ScheduleFormatError(f"Invalid time '{value}', hour or minute out of range")

        return cls(hour * 60 + minute)

    @classmethod
    def of(cls, hour: int, minute: int = 0) -> "TimeOfDay":
        return cls(hour * 60 + minute)

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def format_12h(self) -> str:
        """Display form such as ``9:00 AM``; midnight is ``12:00 AM``."""
        suffix = "PM" if self.hour >= 12 else "AM"
        return f"{self.hour % 12 or 12}:{self.minute:02d} {suffix}"

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def as_time_of_day(value: "TimeOfDay | str") -> TimeOfDay:
    """Accept either a TimeOfDay or its ``HH:MM`` string form."""
    if isinstance(value, TimeOfDay):
        return value
    return TimeOfDay.parse(value)


def as_date(value: "date | str") -> date:
    """
    Reduce a datetime to its calendar date; plain dates pass through.

    Strings are read as ``YYYY-MM-DD``.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        try:
            return pendulum.from_format(value, "YYYY-MM-DD").date()
        except ValueError as exc:
            raise ScheduleFormatError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc
    return value


@dataclass(frozen=True)
class TimeRange:
    """
    One contiguous working window within a day.

    Invariant: start must be before end.
    """
    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self):
        if self.start >= self.end:
            raise ScheduleFormatError(f"Start time {self.start} must be before end time {self.end}")

    @classmethod
    def parse(cls, value: str) -> "TimeRange":
        """Parse a ``HH:MM-HH:MM`` range."""
        if not isinstance(value, str) or value.count("-") != 1:
            raise ScheduleFormatError(f"Invalid time range '{value}', expected HH:MM-HH:MM")

        start, end = value.split("-")
        return cls(start=TimeOfDay.parse(start), end=TimeOfDay.parse(end))

    def contains(self, moment: TimeOfDay) -> bool:
        """Check whether a time lies in the range, both bounds included."""
        return self.start <= moment <= self.end

    def duration_minutes(self) -> int:
        return self.end.minutes - self.start.minutes

    def format_12h(self) -> str:
        return f"{self.start.format_12h()} - {self.end.format_12h()}"

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def format_time(value: "TimeOfDay | str") -> str:
    """``"14:30"`` -> ``"2:30 PM"``"""
    return as_time_of_day(value).format_12h()


def format_time_range(value: "TimeRange | str") -> str:
    """``"09:00-12:00"`` -> ``"9:00 AM - 12:00 PM"``"""
    if isinstance(value, TimeRange):
        return value.format_12h()
    return TimeRange.parse(value).format_12h()


class Weekday(str, Enum):
    """Weekday keys as stored in doctor schedule records."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, day: date) -> "Weekday":
        """Weekday of a calendar date (Monday first)."""
        return _WEEKDAYS[day.weekday()]


_WEEKDAYS: Tuple[Weekday, ...] = tuple(Weekday)


@dataclass(frozen=True)
class ScheduleIssue:
    """A problem found while validating a raw schedule record."""
    weekday: str
    value: str
    message: str

    def __str__(self) -> str:
        return f"{self.weekday}: '{self.value}' {self.message}"


@dataclass(frozen=True)
class WeeklySchedule:
    """
    A doctor's recurring working hours for all seven weekdays.

    Every weekday is present; a day with no ranges is a day off.
    Range order is preserved as given.
    """
    days: Mapping[Weekday, Tuple[TimeRange, ...]] = field(default_factory=dict)

    def __post_init__(self):
        complete = {weekday: tuple(self.days.get(weekday, ())) for weekday in Weekday}
        object.__setattr__(self, "days", complete)

    @classmethod
    def from_record(
        cls,
        raw: Optional[Mapping[str, Optional[Sequence[str]]]],
        strict: bool = False,
    ) -> "WeeklySchedule":
        """
        Build a schedule from the data store's ``{weekday: ["HH:MM-HH:MM"]}`` shape.

        Malformed ranges are skipped with a warning, or raise
        ScheduleFormatError when ``strict`` is set.
        """
        days: Dict[Weekday, List[TimeRange]] = {}

        if raw is not None and not isinstance(raw, Mapping):
            if strict:
                raise ScheduleFormatError(f"Schedule must map weekdays to ranges, got {raw!r}")
            logger.warning("Ignoring schedule that is not a weekday mapping: %r", raw)
            return cls()

        for key, ranges in (raw or {}).items():
            try:
                weekday = Weekday(str(key).lower())
            except ValueError:
                if strict:
                    raise ScheduleFormatError(f"Unknown weekday '{key}' in schedule")
                logger.warning("Ignoring unknown weekday %r in schedule", key)
                continue

            ranges = _range_values(ranges)
            if ranges is None:
                if strict:
                    raise ScheduleFormatError(f"Ranges for {weekday.value} must be a list, got {raw[key]!r}")
                logger.warning("Skipping %s: %r is not a list of ranges", weekday.value, raw[key])
                continue

            parsed: List[TimeRange] = []
            for value in ranges:
                try:
                    parsed.append(TimeRange.parse(value))
                except ScheduleFormatError as exc:
                    if strict:
                        raise
                    logger.warning("Skipping %s range %r: %s", weekday.value, value, exc)
            days[weekday] = parsed

        return cls(days={weekday: tuple(ranges) for weekday, ranges in days.items()})

    def ranges_for(self, weekday: Weekday) -> Tuple[TimeRange, ...]:
        return self.days[weekday]

    def ranges_on(self, day: date) -> Tuple[TimeRange, ...]:
        """Working ranges for the weekday of a calendar date."""
        return self.days[Weekday.of(day)]

    def working_days(self) -> List[Weekday]:
        return [weekday for weekday in Weekday if self.days[weekday]]

    def to_record(self) -> Dict[str, List[str]]:
        return {weekday.value: [str(r) for r in ranges] for weekday, ranges in self.days.items()}


def _range_values(ranges) -> Optional[List]:
    """A day's stored value as a list; ``None`` when it has no list shape."""
    if ranges is None:
        return []
    if isinstance(ranges, str):
        return [ranges]
    if isinstance(ranges, (list, tuple)):
        return list(ranges)
    return None


def validate_schedule_record(raw: Optional[Mapping[str, Optional[Sequence[str]]]]) -> List[ScheduleIssue]:
    """
    Report every problem in a raw schedule record without raising.

    Ranges like ``9:00-17:00`` parse fine but are flagged because the
    stored value is not zero-padded.
    """
    issues: List[ScheduleIssue] = []

    if raw is not None and not isinstance(raw, Mapping):
        return [ScheduleIssue("schedule", str(raw), "is not a mapping of weekdays to ranges")]

    for key, ranges in (raw or {}).items():
        if str(key).lower() not in {weekday.value for weekday in Weekday}:
            issues.append(ScheduleIssue(str(key), "", "is not a weekday"))
            continue

        values = _range_values(ranges)
        if values is None:
            issues.append(ScheduleIssue(str(key), str(ranges), "is not a list of HH:MM-HH:MM ranges"))
            continue

        for value in values:
            try:
                parsed = TimeRange.parse(value)
            except ScheduleFormatError as exc:
                issues.append(ScheduleIssue(str(key), str(value), str(exc)))
                continue

            if str(parsed) != value.replace(" ", ""):
                issues.append(ScheduleIssue(str(key), value, f"is not in zero-padded HH:MM form (read as {parsed})"))

    return issues


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


@dataclass(frozen=True)
class Doctor:
    """A doctor and their optional weekly schedule."""
    id: str
    full_name: str = ""
    specialization: str = ""
    schedule: Optional[WeeklySchedule] = None

    def __post_init__(self):
        if self.schedule is not None and not isinstance(self.schedule, WeeklySchedule):
            object.__setattr__(self, "schedule", WeeklySchedule.from_record(self.schedule))


@dataclass(frozen=True)
class Appointment:
    """
    A booked appointment as read from the data store.

    ``appointment_date`` may be given as ``YYYY-MM-DD`` and
    ``appointment_time`` as ``HH:MM``; both are normalized.
    """
    id: str
    doctor_id: str
    appointment_date: date
    appointment_time: TimeOfDay
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    patient_id: str = ""
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None
    service_name: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "appointment_date", as_date(self.appointment_date))
        object.__setattr__(self, "appointment_time", as_time_of_day(self.appointment_time))
        object.__setattr__(self, "status", AppointmentStatus(self.status))

    def format_display(self) -> str:
        """
        Format for a calendar entry.
        Format: HH:MM - Patient (Doctor)
        """
        text = f"{self.appointment_time} - {self.patient_name or self.patient_id or 'Unknown patient'}"
        if self.doctor_name:
            text += f" ({self.doctor_name})"
        return text


def appointments_for_doctor(appointments: Optional[Iterable[Appointment]], doctor_id: Optional[str]) -> List[Appointment]:
    """Keep the appointments of one doctor; ``None`` keeps everyone's."""
    if doctor_id is None:
        return list(appointments or [])
    return [apt for apt in appointments or [] if apt.doctor_id == doctor_id]
