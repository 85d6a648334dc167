"""
Domain layer - Pure business logic without external dependencies.
"""

from .calendar import CalendarComposer, CalendarController, CalendarState, CalendarView
from .models import (
    Appointment,
    AppointmentStatus,
    Doctor,
    TimeOfDay,
    TimeRange,
    Weekday,
    WeeklySchedule,
    format_time,
    format_time_range,
)
from .slot_calculator import SlotCalculator, generate_time_slots, get_available_time_slots, is_doctor_available

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "CalendarComposer",
    "CalendarController",
    "CalendarState",
    "CalendarView",
    "Doctor",
    "SlotCalculator",
    "TimeOfDay",
    "TimeRange",
    "Weekday",
    "WeeklySchedule",
    "format_time",
    "format_time_range",
    "generate_time_slots",
    "get_available_time_slots",
    "is_doctor_available",
]
