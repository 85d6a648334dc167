"""
Conversion of data-store rows into domain objects.
"""

from typing import Any, Dict, Mapping, Optional

import pendulum
from pendulum import Date

from ..domain.exceptions import DataStoreError, ScheduleFormatError
from ..domain.models import Appointment, AppointmentStatus, Doctor, TimeOfDay, WeeklySchedule


def parse_date(value: str) -> Date:
    """Parse a ``YYYY-MM-DD`` column value."""
    try:
        return pendulum.from_format(str(value), "YYYY-MM-DD").date()
    except ValueError as exc:
        raise DataStoreError(f"Invalid date '{value}': {exc}") from exc


def parse_doctor(record: Mapping[str, Any], strict: bool = False) -> Doctor:
    """
    Build a Doctor from a ``doctors`` row.

    A missing or null ``schedule`` column means the doctor is never
    available.
    """
    try:
        doctor_id = str(record["id"])
    except KeyError as exc:
        raise DataStoreError(f"Doctor record without id: {dict(record)}") from exc

    raw_schedule = record.get("schedule")
    try:
        schedule = WeeklySchedule.from_record(raw_schedule, strict=strict) if raw_schedule is not None else None
    except ScheduleFormatError as exc:
        raise DataStoreError(f"Invalid schedule for doctor {doctor_id}: {exc}") from exc

    return Doctor(
        id=doctor_id,
        full_name=record.get("full_name") or "",
        specialization=record.get("specialization") or "",
        schedule=schedule
    )


def parse_appointment(record: Mapping[str, Any]) -> Appointment:
    """
    Build an Appointment from an ``appointments`` row.

    Embedded ``patient``/``doctor``/``service`` objects only contribute
    their display names.
    """
    try:
        appointment_id = str(record["id"])
        doctor_id = str(record["doctor_id"])
        raw_date = record["appointment_date"]
        raw_time = record["appointment_time"]
    except KeyError as exc:
        raise DataStoreError(f"Appointment record is missing {exc}") from exc

    try:
        appointment_time = TimeOfDay.parse(raw_time)
    except ScheduleFormatError as exc:
        raise DataStoreError(f"Appointment {appointment_id}: {exc}") from exc

    try:
        status = AppointmentStatus(record.get("status") or AppointmentStatus.SCHEDULED.value)
    except ValueError as exc:
        raise DataStoreError(f"Appointment {appointment_id} has unknown status {record.get('status')!r}") from exc

    return Appointment(
        id=appointment_id,
        doctor_id=doctor_id,
        appointment_date=parse_date(raw_date),
        appointment_time=appointment_time,
        status=status,
        patient_id=str(record.get("patient_id") or ""),
        patient_name=_embedded(record, "patient", "full_name"),
        doctor_name=_embedded(record, "doctor", "full_name"),
        service_name=_embedded(record, "service", "name"),
        notes=record.get("notes")
    )


def _embedded(record: Mapping[str, Any], relation: str, column: str) -> Optional[str]:
    related: Optional[Dict[str, Any]] = record.get(relation)
    if isinstance(related, Mapping):
        return related.get(column)
    return None
