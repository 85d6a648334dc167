"""
REST client for the hosted clinic data store (PostgREST / Supabase API).
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Sequence, Tuple

import requests

from ..domain.exceptions import DataStoreError, DoctorNotFoundError
from ..domain.models import Appointment, Doctor
from .records import parse_appointment, parse_doctor

logger = logging.getLogger(__name__)

APPOINTMENT_SELECT = (
    "*,patient:patients(full_name),doctor:doctors(full_name),service:services(name)"
)


class RestDataClient:
    """
    Client for the clinic tables exposed through a PostgREST endpoint.

    Blocking HTTP calls run in a worker thread so the client satisfies
    the async DataStoreProtocol.
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = 30,
        strict_schedules: bool = False
    ):
        """
        Initialize the data-store client.

        Args:
            url: Base URL of the project, e.g. https://xyz.supabase.co
            api_key: Key sent as ``apikey`` and bearer token
            timeout: Request timeout in seconds
            strict_schedules: Reject doctors with malformed schedule ranges
        """
        self.base_url = url.rstrip("/") + self.REST_PATH
        self.timeout = timeout
        self.strict_schedules = strict_schedules
        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json"
        }
        if api_key:
            self.headers["apikey"] = api_key
            self.headers["Authorization"] = f"Bearer {api_key}"

    async def get_doctor_records(self) -> List[Dict[str, Any]]:
        """Raw ``doctors`` rows, ordered by name."""
        return await asyncio.to_thread(
            self._get, "doctors", [("select", "*"), ("order", "full_name.asc")]
        )

    async def get_doctors(self) -> List[Doctor]:
        rows = await self.get_doctor_records()
        return [parse_doctor(row, strict=self.strict_schedules) for row in rows]

    async def get_doctor(self, doctor_id: str) -> Doctor:
        rows = await asyncio.to_thread(
            self._get, "doctors", [("select", "*"), ("id", f"eq.{doctor_id}")]
        )
        if not rows:
            raise DoctorNotFoundError(f"Doctor not found: {doctor_id}")
        return parse_doctor(rows[0], strict=self.strict_schedules)

    async def get_appointments_by_date_range(self, start_date: date, end_date: date) -> List[Appointment]:
        """
        Get appointments with ``start_date <= appointment_date <= end_date``,
        ordered by date then time.
        """
        logger.debug("Fetching appointments from %s to %s", start_date, end_date)

        rows = await asyncio.to_thread(
            self._get,
            "appointments",
            [
                ("select", APPOINTMENT_SELECT),
                ("appointment_date", f"gte.{start_date.isoformat()}"),
                ("appointment_date", f"lte.{end_date.isoformat()}"),
                ("order", "appointment_date.asc,appointment_time.asc"),
            ]
        )

        logger.debug("Fetched %d appointments", len(rows))
        return [parse_appointment(row) for row in rows]

    def _get(self, table: str, params: Sequence[Tuple[str, str]]) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{table}"

        try:
            response = requests.get(
                url,
                headers=self.headers,
                params=list(params),
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise DataStoreError(f"Failed to fetch {table} from data store: {e}") from e
        except ValueError as e:
            raise DataStoreError(f"Data store returned invalid JSON for {table}: {e}") from e

        if not isinstance(data, list):
            raise DataStoreError(f"Unexpected response for {table}: expected a list of rows")

        return data
