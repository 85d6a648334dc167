"""
Core business logic for doctor availability and bookable time slots.

Pure domain logic without any external dependencies (no API calls,
no database, no I/O). Every call recomputes from its arguments.
"""

from datetime import date
from typing import Iterable, List, Optional, Set

from .models import Appointment, Doctor, TimeOfDay, TimeRange, as_date, as_time_of_day

DEFAULT_SLOT_MINUTES = 30


def generate_time_slots(
    start_hour: int = 8,
    end_hour: int = 20,
    interval_minutes: int = 30
) -> List[str]:
    """
    Generate the ``HH:MM`` grid from ``start_hour:00`` up to, but not
    including, ``end_hour:00``.

    Example: generate_time_slots(9, 11, 30) -> ["09:00", "09:30", "10:00", "10:30"]
    """
    if interval_minutes <= 0:
        raise ValueError(f"interval_minutes must be greater than zero, got {interval_minutes}")

    end = end_hour * 60
    return [
        str(TimeOfDay(minutes))
        for minutes in range(start_hour * 60, end, interval_minutes)
    ]


class SlotCalculator:
    """
    Evaluates a doctor's weekly schedule against booked appointments.

    Algorithm for open slots:
    1. Resolve the weekday of the requested date
    2. Walk every working range of that weekday in fixed steps
    3. Drop the slots already taken by the doctor's appointments that day
    """

    def __init__(self, slot_minutes: int = DEFAULT_SLOT_MINUTES):
        if slot_minutes <= 0:
            raise ValueError(f"slot_minutes must be greater than zero, got {slot_minutes}")
        self.slot_minutes = slot_minutes

    def is_available(self, doctor: Doctor, day: date, moment: "TimeOfDay | str") -> bool:
        """
        Check if the doctor works at the given date and time.

        Range bounds are inclusive on both ends.
        """
        moment = as_time_of_day(moment)
        return any(time_range.contains(moment) for time_range in self._ranges_for(doctor, day))

    def available_slots(
        self,
        doctor: Doctor,
        day: date,
        existing_appointments: Optional[Iterable[Appointment]] = None,
        duration_minutes: Optional[int] = None
    ) -> List[str]:
        """
        Find the open ``HH:MM`` slots for one doctor on one day.

        Args:
            doctor: Doctor whose schedule is evaluated
            day: Calendar date to resolve
            existing_appointments: Appointments that may occupy slots
            duration_minutes: Step between slots, defaults to ``slot_minutes``

        Returns:
            Slot start times in schedule order
        """
        step = self.slot_minutes if duration_minutes is None else duration_minutes
        if step <= 0:
            raise ValueError(f"duration_minutes must be greater than zero, got {step}")

        ranges = self._ranges_for(doctor, day)
        if not ranges:
            return []

        candidates: List[TimeOfDay] = []
        for time_range in ranges:
            candidates.extend(self._walk_range(time_range, step))

        booked = self._booked_times(doctor, day, existing_appointments)

        return [str(slot) for slot in candidates if slot not in booked]

    @staticmethod
    def _ranges_for(doctor: Doctor, day: date) -> "tuple[TimeRange, ...]":
        if doctor.schedule is None:
            return ()
        return doctor.schedule.ranges_on(day)

    @staticmethod
    def _walk_range(time_range: TimeRange, step: int) -> List[TimeOfDay]:
        """
        Step from the range start while the cursor is before the end.

        A slot starting before the end is kept even when start + step
        runs past it; nothing starts at or after the end.
        """
        return [
            TimeOfDay(minutes)
            for minutes in range(time_range.start.minutes, time_range.end.minutes, step)
        ]

    @staticmethod
    def _booked_times(
        doctor: Doctor,
        day: date,
        appointments: Optional[Iterable[Appointment]]
    ) -> Set[TimeOfDay]:
        """Times taken by this doctor's appointments on this exact date."""
        return {
            apt.appointment_time
            for apt in appointments or []
            if apt.doctor_id == doctor.id and apt.appointment_date == as_date(day)
        }


_default_calculator = SlotCalculator()


def is_doctor_available(doctor: Doctor, day: date, moment: "TimeOfDay | str") -> bool:
    """Module-level shortcut for SlotCalculator.is_available."""
    return _default_calculator.is_available(doctor, day, moment)


def get_available_time_slots(
    doctor: Doctor,
    day: date,
    existing_appointments: Optional[Iterable[Appointment]] = None,
    duration_minutes: int = DEFAULT_SLOT_MINUTES
) -> List[str]:
    """Module-level shortcut for SlotCalculator.available_slots."""
    return _default_calculator.available_slots(doctor, day, existing_appointments, duration_minutes)
