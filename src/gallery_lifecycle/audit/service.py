"""Audit logging service for event lifecycle transitions.

Every trash, restore and permanent deletion writes exactly one immutable
DeletionEvent through this module, inside the same transaction as the
transition itself. Records are created and read here, never updated or
deleted.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..models.base import utcnow
from ..models.deletion_event import DeletionEvent
from .schemas import DeletionAction


def log_deletion_event(
    db: Session,
    event_id: str,
    action: DeletionAction,
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    executed_at: Optional[datetime] = None,
) -> DeletionEvent:
    """Append a deletion audit record.

    The caller owns the transaction; this only adds and flushes.

    Args:
        db: Database session
        event_id: Event the transition applies to
        action: trashed, restored or deleted
        reason: Reason code (e.g. "expired_download", "manual", "scheduled_cleanup")
        metadata: Additional context as JSON
        executed_at: Transition time (defaults to now)

    Returns:
        DeletionEvent: The created audit record

    Example:
        log_deletion_event(
            db=db,
            event_id=event.id,
            action=DeletionAction.RESTORED,
            reason="manual",
            metadata={"eventName": event.name, "restoredBy": user_id},
        )
    """
    # event_id is copied into metadata so it survives the FK being nulled
    payload = {"eventId": event_id}
    payload.update(metadata or {})

    entry = DeletionEvent(
        event_id=event_id,
        action=DeletionAction(action).value,
        reason=reason,
        executed_at=executed_at or utcnow(),
        metadata_json=payload,
    )

    db.add(entry)
    db.flush()  # Get ID without committing transaction

    return entry


def list_deletion_events(
    db: Session,
    event_id: Optional[str] = None,
    action: Optional[DeletionAction] = None,
) -> List[DeletionEvent]:
    """Return audit records, oldest first, optionally filtered.

    Filtering by event_id also matches records whose FK was nulled after
    the event row was removed, through the eventId kept in metadata.
    """
    stmt = select(DeletionEvent).order_by(DeletionEvent.executed_at, DeletionEvent.id)
    if action is not None:
        stmt = stmt.where(DeletionEvent.action == DeletionAction(action).value)

    if event_id is not None:
        stmt = stmt.where(
            or_(
                DeletionEvent.event_id == event_id,
                DeletionEvent.metadata_json["eventId"].as_string() == event_id,
            )
        )

    return list(db.scalars(stmt))
