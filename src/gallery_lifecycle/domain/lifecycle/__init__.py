"""Event lifecycle domain logic"""

from .event_status import (
    ALLOWED_TRANSITIONS,
    EventStatus,
    TrashDecision,
    TrashReason,
    can_transition,
    compute_delete_at,
    ensure_utc,
    evaluate_trash,
    get_allowed_transitions,
    is_due_for_deletion,
    is_restorable,
    one_year_before,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "EventStatus",
    "TrashDecision",
    "TrashReason",
    "can_transition",
    "compute_delete_at",
    "ensure_utc",
    "evaluate_trash",
    "get_allowed_transitions",
    "is_due_for_deletion",
    "is_restorable",
    "one_year_before",
]
