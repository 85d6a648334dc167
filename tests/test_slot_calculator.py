"""
Tests for slot calculator.
"""

import pendulum
import pytest

from clinicschedule.domain.models import Appointment, AppointmentStatus, Doctor, TimeOfDay, WeeklySchedule
from clinicschedule.domain.slot_calculator import (
    SlotCalculator,
    generate_time_slots,
    get_available_time_slots,
    is_doctor_available,
)

MONDAY = pendulum.date(2024, 11, 25)
TUESDAY = pendulum.date(2024, 11, 26)


def _doctor(schedule=None, doctor_id="d-1") -> Doctor:
    if schedule is None:
        schedule = {
            "monday": ["09:00-12:00", "14:00-17:00"],
            "tuesday": [],
            "wednesday": [],
            "thursday": [],
            "friday": [],
            "saturday": [],
            "sunday": [],
        }
    return Doctor(id=doctor_id, full_name="Dr. Test", schedule=WeeklySchedule.from_record(schedule))


def _appointment(time, day=MONDAY, doctor_id="d-1", status=AppointmentStatus.SCHEDULED) -> Appointment:
    return Appointment(
        id=f"{doctor_id}-{day}-{time}",
        doctor_id=doctor_id,
        appointment_date=day,
        appointment_time=TimeOfDay.parse(time),
        status=status
    )


class TestGenerateTimeSlots:
    """Tests for the calendar time grid."""

    def test_default_grid(self):
        """Test the 08:00-20:00 grid in 30 minute steps."""
        slots = generate_time_slots(8, 20, 30)

        assert len(slots) == 24
        assert slots[0] == "08:00"
        assert slots[-1] == "19:30"

    def test_defaults_match_explicit_arguments(self):
        assert generate_time_slots() == generate_time_slots(8, 20, 30)

    def test_empty_when_start_not_before_end(self):
        assert generate_time_slots(9, 9, 30) == []
        assert generate_time_slots(12, 9, 30) == []

    def test_uneven_interval_stops_before_end(self):
        assert generate_time_slots(9, 10, 25) == ["09:00", "09:25", "09:50"]

    def test_grid_may_run_to_midnight(self):
        assert generate_time_slots(23, 24, 30) == ["23:00", "23:30"]

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValueError):
            generate_time_slots(8, 20, 0)


class TestIsDoctorAvailable:
    """Tests for the availability evaluator."""

    def test_inside_range(self):
        assert is_doctor_available(_doctor(), MONDAY, "10:00")

    def test_between_ranges(self):
        assert not is_doctor_available(_doctor(), MONDAY, "13:00")

    def test_day_off(self):
        assert not is_doctor_available(_doctor(), TUESDAY, "10:00")

    def test_range_bounds_are_inclusive(self):
        doctor = _doctor()

        assert is_doctor_available(doctor, MONDAY, "09:00")
        assert is_doctor_available(doctor, MONDAY, "12:00")
        assert not is_doctor_available(doctor, MONDAY, "12:01")

    def test_no_schedule(self):
        doctor = Doctor(id="d-9", schedule=None)

        assert not is_doctor_available(doctor, MONDAY, "10:00")

    def test_accepts_time_of_day(self):
        assert is_doctor_available(_doctor(), MONDAY, TimeOfDay.of(15, 45))

    def test_accepts_datetime(self):
        moment = pendulum.datetime(2024, 11, 25, 18, 0, tz="Europe/Berlin")

        assert is_doctor_available(_doctor(), moment, "10:00")

    def test_unpadded_range_compares_numerically(self):
        """'9:00-17:00' covers 10:00 once parsed into minutes."""
        doctor = _doctor({"monday": ["9:00-17:00"]})

        assert is_doctor_available(doctor, MONDAY, "10:00")


class TestAvailableTimeSlots:
    """Tests for the slot availability resolver."""

    EXPECTED_MONDAY = [
        "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
        "14:00", "14:30", "15:00", "15:30", "16:00", "16:30",
    ]

    def test_slots_without_appointments(self):
        """Two ranges, no slot touching the end boundary."""
        slots = get_available_time_slots(_doctor(), MONDAY, [], duration_minutes=30)

        assert slots == self.EXPECTED_MONDAY

    def test_booked_slot_removed(self):
        """Test that only the booked time disappears."""
        slots = get_available_time_slots(_doctor(), MONDAY, [_appointment("10:00")])

        expected = [s for s in self.EXPECTED_MONDAY if s != "10:00"]
        assert slots == expected

    def test_other_doctor_and_other_day_ignored(self):
        appointments = [
            _appointment("10:00", doctor_id="d-2"),
            _appointment("10:30", day=TUESDAY),
            _appointment("11:00", day=pendulum.date(2024, 12, 2)),
        ]

        assert get_available_time_slots(_doctor(), MONDAY, appointments) == self.EXPECTED_MONDAY

    def test_any_status_occupies_slot(self):
        appointments = [_appointment("09:00", status=AppointmentStatus.CANCELLED)]

        assert "09:00" not in get_available_time_slots(_doctor(), MONDAY, appointments)

    def test_off_grid_appointment_blocks_nothing(self):
        slots = get_available_time_slots(_doctor(), MONDAY, [_appointment("10:15")])

        assert slots == self.EXPECTED_MONDAY

    def test_day_off_ignores_appointments(self):
        assert get_available_time_slots(_doctor(), TUESDAY, [_appointment("10:00", day=TUESDAY)]) == []

    def test_no_schedule(self):
        assert get_available_time_slots(Doctor(id="d-1"), MONDAY, []) == []

    def test_none_appointments_treated_as_empty(self):
        assert get_available_time_slots(_doctor(), MONDAY, None) == self.EXPECTED_MONDAY

    def test_last_slot_may_overrun_range(self):
        """A slot starting before the end is offered even if it does not fit."""
        doctor = _doctor({"monday": ["09:00-10:00"]})

        assert get_available_time_slots(doctor, MONDAY, [], duration_minutes=40) == ["09:00", "09:40"]

    def test_no_slot_starts_at_range_end(self):
        doctor = _doctor({"monday": ["09:00-10:00"]})

        assert get_available_time_slots(doctor, MONDAY, [], duration_minutes=60) == ["09:00"]

    def test_ranges_keep_schedule_order(self):
        doctor = _doctor({"monday": ["14:00-15:00", "09:00-10:00"]})

        assert get_available_time_slots(doctor, MONDAY, []) == ["14:00", "14:30", "09:00", "09:30"]

    def test_malformed_range_yields_nothing_for_it(self):
        doctor = _doctor({"monday": ["09:00-10:00", "14:00"]})

        assert get_available_time_slots(doctor, MONDAY, []) == ["09:00", "09:30"]

    def test_record_shaped_appointment_blocks_slot(self):
        """Date and time given as stored strings still occupy the slot."""
        doctor = _doctor({"monday": ["09:00-12:00"]})
        booked = Appointment(id="a", doctor_id="d-1", appointment_date="2024-11-25", appointment_time="10:00")

        assert get_available_time_slots(doctor, MONDAY, [booked]) == [
            "09:00", "09:30", "10:30", "11:00", "11:30",
        ]

    def test_doctor_with_raw_schedule_mapping(self):
        doctor = Doctor(id="d-1", schedule={"monday": ["09:00-10:00"]})

        assert get_available_time_slots(doctor, MONDAY, []) == ["09:00", "09:30"]
        assert is_doctor_available(doctor, MONDAY, "09:45")

    def test_non_positive_duration_rejected(self):
        with pytest.raises(ValueError):
            get_available_time_slots(_doctor(), MONDAY, [], duration_minutes=0)


class TestSlotCalculator:
    """Tests for SlotCalculator configuration and purity."""

    def test_default_duration_from_constructor(self):
        calculator = SlotCalculator(slot_minutes=60)

        assert calculator.available_slots(_doctor(), MONDAY) == [
            "09:00", "10:00", "11:00", "14:00", "15:00", "16:00",
        ]

    def test_explicit_duration_overrides_default(self):
        calculator = SlotCalculator(slot_minutes=60)

        assert len(calculator.available_slots(_doctor(), MONDAY, [], duration_minutes=30)) == 12

    def test_invalid_constructor_duration(self):
        with pytest.raises(ValueError):
            SlotCalculator(slot_minutes=-15)

    def test_repeated_calls_are_identical(self):
        """Evaluation holds no state between calls."""
        calculator = SlotCalculator()
        doctor = _doctor()
        appointments = [_appointment("10:00")]

        first = calculator.available_slots(doctor, MONDAY, appointments)
        second = calculator.available_slots(doctor, MONDAY, appointments)

        assert first == second
        assert calculator.is_available(doctor, MONDAY, "10:00") == calculator.is_available(doctor, MONDAY, "10:00")
        assert len(appointments) == 1
