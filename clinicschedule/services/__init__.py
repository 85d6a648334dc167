"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .scheduling import DataStoreProtocol, ScheduleReport, SchedulingService

__all__ = ["DataStoreProtocol", "ScheduleReport", "SchedulingService"]
