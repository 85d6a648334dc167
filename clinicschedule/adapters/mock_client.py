"""
Mock data-store client for running without a hosted database.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..domain.exceptions import DataStoreError, DoctorNotFoundError
from ..domain.models import Appointment, Doctor
from .records import parse_appointment, parse_doctor

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_clinic_data.json"


class MockDataClient:
    """
    Client that serves doctors and appointments from a JSON file.

    The file holds ``{"doctors": [...], "appointments": [...]}`` rows in
    the same shape the REST API returns, so the same record parsing
    applies.
    """

    def __init__(self, data_file: Optional[Path] = None, strict_schedules: bool = False):
        """
        Initialize the mock client.

        Args:
            data_file: JSON file to read, defaults to the bundled sample data
            strict_schedules: Reject doctors with malformed schedule ranges
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.strict_schedules = strict_schedules
        self._data = self._load_data()

    def _load_data(self) -> Dict[str, List[Dict[str, Any]]]:
        """Load mock clinic data from the JSON file."""
        if not self.data_file.exists():
            return {"doctors": [], "appointments": []}

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise DataStoreError(f"Invalid JSON in {self.data_file}: {exc}") from exc

        return {
            "doctors": data.get("doctors", []),
            "appointments": data.get("appointments", [])
        }

    async def get_doctor_records(self) -> List[Dict[str, Any]]:
        return list(self._data["doctors"])

    async def get_doctors(self) -> List[Doctor]:
        return [parse_doctor(row, strict=self.strict_schedules) for row in self._data["doctors"]]

    async def get_doctor(self, doctor_id: str) -> Doctor:
        for row in self._data["doctors"]:
            if str(row.get("id")) == doctor_id:
                return parse_doctor(row, strict=self.strict_schedules)
        raise DoctorNotFoundError(f"Doctor not found: {doctor_id}")

    async def get_appointments_by_date_range(self, start_date: date, end_date: date) -> List[Appointment]:
        appointments = [
            apt for apt in (parse_appointment(row) for row in self._data["appointments"])
            if start_date <= apt.appointment_date <= end_date
        ]
        logger.debug("Mock data has %d appointments from %s to %s", len(appointments), start_date, end_date)
        return sorted(appointments, key=lambda apt: (apt.appointment_date, apt.appointment_time))
