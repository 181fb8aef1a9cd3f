"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_finder import AvailabilityFinderService, SchedulingStoreProtocol
from .events import EventService, EventStoreProtocol

__all__ = ["AvailabilityFinderService", "SchedulingStoreProtocol", "EventService", "EventStoreProtocol"]
