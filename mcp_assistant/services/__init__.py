"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .free_slot_service import BusyIntervalSource, FreeSlotService

__all__ = ["BusyIntervalSource", "FreeSlotService"]
