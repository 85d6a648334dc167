"""
Domain-specific exception hierarchy for the clinic scheduling core.
"""


class ClinicScheduleError(Exception):
    """Base class for all application-level errors."""


class ScheduleFormatError(ClinicScheduleError, ValueError):
    """Raised when a wall-clock time or working-hours range cannot be parsed."""


class DataStoreError(ClinicScheduleError):
    """Raised when clinic data cannot be fetched or parsed."""


class DoctorNotFoundError(DataStoreError):
    """Raised when a doctor id does not resolve to a record."""
