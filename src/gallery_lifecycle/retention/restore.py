"""Restore an event from the trash.

Restore is the only way back from trashed to active. It is owner-only:
organization members sharing the event cannot restore it.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..audit.schemas import DeletionAction
from ..audit.service import log_deletion_event
from ..domain.lifecycle import EventStatus, ensure_utc, is_restorable
from ..models import Event
from ..models.base import utcnow
from ..observability.metrics import events_restored_total
from .schemas import RestoreResult

logger = logging.getLogger(__name__)


def restore_event_from_trash(
    db: Session,
    event_id: str,
    user_id: str,
    now: Optional[datetime] = None,
) -> RestoreResult:
    """Move a trashed event back to active.

    Rejections leave the event untouched:
    - "Event not found": no row (never existed or already permanently deleted)
    - "Event is not in trash": the event is active
    - "Access denied": the requester is not the owning user

    Args:
        db: Database session (committed on success, rolled back on failure)
        event_id: Event to restore
        user_id: Requesting user
        now: Restore time (defaults to now)

    Returns:
        RestoreResult: success flag and error message
    """
    now = ensure_utc(now) if now else utcnow()

    try:
        event = db.get(Event, event_id, populate_existing=True, with_for_update=True)
        if event is None:
            db.rollback()
            return RestoreResult(success=False, error="Event not found")

        if not is_restorable(event.status):
            db.rollback()
            return RestoreResult(success=False, error="Event is not in trash")

        if event.user_id != user_id:
            db.rollback()
            logger.warning(
                f"User {user_id} denied restore of event {event_id}",
                extra={"event_id": event_id, "user_id": user_id},
            )
            return RestoreResult(success=False, error="Access denied")

        event.status = EventStatus.ACTIVE.value
        event.trashed_at = None
        event.delete_at = None
        event.updated_at = now

        log_deletion_event(
            db,
            event_id=event_id,
            action=DeletionAction.RESTORED,
            reason="manual",
            executed_at=now,
            metadata={"eventName": event.name, "restoredBy": user_id},
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.error(
            f"Failed to restore event {event_id}",
            exc_info=True,
            extra={"event_id": event_id, "user_id": user_id},
        )
        return RestoreResult(success=False, error="Failed to restore event")

    events_restored_total.inc()
    logger.info(f"Restored event {event_id} from trash", extra={"event_id": event_id, "user_id": user_id})
    return RestoreResult(success=True)
