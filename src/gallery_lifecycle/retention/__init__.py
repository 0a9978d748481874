"""Event retention: trash sweep, permanent-delete sweep and restore.

This module provides:
- Trash sweep for events whose download window ended or free events over a year old
- Permanent deletion after the 30 day grace period, including object storage cleanup
- Owner-only restore from the trash
- Audit logging for every transition
"""

from .restore import restore_event_from_trash
from .schemas import LifecycleStatus, RestoreResult, ScheduledDeletionReport, SweepResult
from .service import RetentionSweepService

# Tasks are imported lazily to keep Celery out of plain library use
# Use: from gallery_lifecycle.retention.tasks import scheduled_deletion_task

__all__ = [
    "LifecycleStatus",
    "RestoreResult",
    "RetentionSweepService",
    "ScheduledDeletionReport",
    "SweepResult",
    "restore_event_from_trash",
]
