"""
Application services for doctor availability and calendar views.

The service coordinates fetching doctors and appointments via a data-store
client adapter and delegates the actual rules to the domain-level
``SlotCalculator`` and ``CalendarComposer``. This keeps the CLI thin and
improves testability by allowing the data store to be mocked via a simple
protocol.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from ..domain.calendar import CalendarComposer, CalendarLayout, CalendarState, visible_range
from ..domain.models import (
    Appointment,
    Doctor,
    ScheduleIssue,
    TimeOfDay,
    Weekday,
    WeeklySchedule,
    appointments_for_doctor,
    validate_schedule_record,
)
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleReport:
    """Validation result for one doctor's stored schedule."""
    doctor_id: str
    name: str
    working_days: List[Weekday]
    issues: List[ScheduleIssue]


class DataStoreProtocol(Protocol):
    """Protocol describing the data-store behaviour needed by the service."""

    async def get_doctor_records(self) -> List[Dict[str, Any]]:
        """Return raw doctor rows as stored."""

    async def get_doctors(self) -> List[Doctor]:
        """Return all doctors."""

    async def get_doctor(self, doctor_id: str) -> Doctor:
        """Return one doctor or raise DoctorNotFoundError."""

    async def get_appointments_by_date_range(self, start_date: date, end_date: date) -> List[Appointment]:
        """Return appointments within the inclusive date range."""


class SchedulingService:
    """
    Orchestrates data retrieval, slot resolution and calendar composition.

    Dependency inversion toward a protocol makes it easy to plug in the
    REST adapter or the mock implementation in tests.
    """

    def __init__(
        self,
        client: DataStoreProtocol,
        slot_calculator: SlotCalculator,
        composer: CalendarComposer,
    ) -> None:
        self._client = client
        self._slot_calculator = slot_calculator
        self._composer = composer

    async def available_slots(
        self,
        *,
        doctor_id: str,
        day: date,
        duration_minutes: Optional[int] = None,
    ) -> List[str]:
        """
        Fetch the doctor and that day's appointments, then resolve open slots.
        """
        doctor = await self._client.get_doctor(doctor_id)
        appointments = await self._client.get_appointments_by_date_range(day, day)

        slots = self._slot_calculator.available_slots(
            doctor,
            day,
            appointments,
            duration_minutes,
        )
        logger.debug("Doctor %s has %d open slots on %s", doctor_id, len(slots), day)
        return slots

    async def check_availability(
        self,
        *,
        doctor_id: str,
        day: date,
        time: "TimeOfDay | str",
    ) -> bool:
        """Check a doctor's weekly schedule for one date and time."""
        doctor = await self._client.get_doctor(doctor_id)
        return self._slot_calculator.is_available(doctor, day, time)

    async def fetch_appointments(self, state: CalendarState) -> List[Appointment]:
        """Fetch the appointments a view shows, filtered by the state's doctor."""
        start_date, end_date = visible_range(state.view, state.anchor)
        appointments = await self._client.get_appointments_by_date_range(start_date, end_date)

        filtered = appointments_for_doctor(appointments, state.doctor_id)
        logger.debug(
            "Loaded %d appointments from %s to %s (%d after doctor filter)",
            len(appointments), start_date, end_date, len(filtered),
        )
        return filtered

    async def calendar(self, state: CalendarState) -> CalendarLayout:
        """Compose the view described by ``state`` from fresh data."""
        appointments = await self.fetch_appointments(state)
        return self._composer.compose(state.view, state.anchor, appointments)

    async def doctors(self) -> List[Doctor]:
        return await self._client.get_doctors()

    async def schedule_report(self) -> List[ScheduleReport]:
        """
        Validate every stored schedule; problems are reported, not raised.
        """
        report: List[ScheduleReport] = []

        for record in await self._client.get_doctor_records():
            raw_schedule = record.get("schedule")
            schedule = WeeklySchedule.from_record(raw_schedule)
            report.append(ScheduleReport(
                doctor_id=str(record.get("id", "")),
                name=record.get("full_name") or str(record.get("id", "")),
                working_days=schedule.working_days(),
                issues=validate_schedule_record(raw_schedule),
            ))

        return report
