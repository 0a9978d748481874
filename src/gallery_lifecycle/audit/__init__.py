"""Deletion audit log"""

from .schemas import DeletionAction, DeletionEventResponse
from .service import list_deletion_events, log_deletion_event

__all__ = ["DeletionAction", "DeletionEventResponse", "list_deletion_events", "log_deletion_event"]
