"""
Domain layer - Pure business logic without external dependencies.
"""

from .documents import DocumentSessions, LoadedDocument
from .free_slot import find_free_slot
from .messages import build_raw_message
from .models import BusyInterval, FreeSlotRequest, FreeSlotResult, SearchWindow

__all__ = [
    "BusyInterval",
    "DocumentSessions",
    "FreeSlotRequest",
    "FreeSlotResult",
    "LoadedDocument",
    "SearchWindow",
    "build_raw_message",
    "find_free_slot",
]
