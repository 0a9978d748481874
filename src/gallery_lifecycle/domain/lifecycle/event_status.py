"""EventStatus state machine for the gallery lifecycle

State flow:
ACTIVE → TRASHED (download window over, or free event older than a year)
TRASHED → DELETED (grace period over; the row is removed)
TRASHED → ACTIVE (explicit restore by the owner)

Everything here is a pure function of stored event fields plus "now".
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, List, Optional


class EventStatus(str, Enum):
    """Event lifecycle status enum

    DELETED is terminal and never stored: it is represented by row absence.
    """
    ACTIVE = "active"
    TRASHED = "trashed"
    DELETED = "deleted"


class TrashReason(str, Enum):
    """Reason code recorded on the 'trashed' audit record"""
    EXPIRED_DOWNLOAD = "expired_download"
    FREE_EVENT_OLD = "free_event_old"
    EXPIRED_DOWNLOAD_AND_FREE_OLD = "expired_download_and_free_old"


TRASH_REASON_DESCRIPTIONS: Dict[TrashReason, str] = {
    TrashReason.EXPIRED_DOWNLOAD: "Download window expired",
    TrashReason.FREE_EVENT_OLD: "Free event over 1 year old",
    TrashReason.EXPIRED_DOWNLOAD_AND_FREE_OLD: "Download window expired AND free event over 1 year old",
}

# State transition rules
ALLOWED_TRANSITIONS: Dict[EventStatus, List[EventStatus]] = {
    EventStatus.ACTIVE: [EventStatus.TRASHED],
    EventStatus.TRASHED: [EventStatus.DELETED, EventStatus.ACTIVE],
    EventStatus.DELETED: [],  # Terminal state
}

DEFAULT_GRACE_PERIOD_DAYS = 30
DEFAULT_FREE_PLAN = "free"


def can_transition(from_status: EventStatus, to_status: EventStatus) -> bool:
    """Validate if status transition is allowed

    Example:
        >>> can_transition(EventStatus.ACTIVE, EventStatus.TRASHED)
        True
        >>> can_transition(EventStatus.ACTIVE, EventStatus.DELETED)
        False
    """
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def get_allowed_transitions(from_status: EventStatus) -> List[EventStatus]:
    """Get list of allowed transitions from current status"""
    return ALLOWED_TRANSITIONS.get(from_status, [])


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def one_year_before(now: datetime) -> datetime:
    """Same calendar instant one year earlier; Feb 29 clamps to Feb 28."""
    try:
        return now.replace(year=now.year - 1)
    except ValueError:
        return now.replace(year=now.year - 1, day=28)


def compute_delete_at(trashed_at: datetime, grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS) -> datetime:
    """Deadline after which a trashed event may be permanently deleted."""
    if grace_period_days < DEFAULT_GRACE_PERIOD_DAYS:
        raise ValueError(
            f"Grace period must be at least {DEFAULT_GRACE_PERIOD_DAYS} days, got {grace_period_days}"
        )
    return trashed_at + timedelta(days=grace_period_days)


@dataclass(frozen=True)
class TrashDecision:
    """Outcome of evaluating the active → trashed predicate for one event.

    Both conditions are evaluated independently so the audit reason can
    record when both applied.
    """
    download_expired: bool
    free_event_old: bool

    @property
    def is_due(self) -> bool:
        return self.download_expired or self.free_event_old

    @property
    def reason(self) -> Optional[TrashReason]:
        if self.download_expired and self.free_event_old:
            return TrashReason.EXPIRED_DOWNLOAD_AND_FREE_OLD
        if self.download_expired:
            return TrashReason.EXPIRED_DOWNLOAD
        if self.free_event_old:
            return TrashReason.FREE_EVENT_OLD
        return None

    @property
    def description(self) -> str:
        reason = self.reason
        return TRASH_REASON_DESCRIPTIONS[reason] if reason else ""


def evaluate_trash(
    is_published: bool,
    download_window_end: Optional[datetime],
    plan: str,
    created_at: Optional[datetime],
    now: datetime,
    free_plan: str = DEFAULT_FREE_PLAN,
) -> TrashDecision:
    """Decide whether an active event is due to move to the trash.

    Fires when either:
    (a) the event is published and now > download_window_end, or
    (b) the event is on the free plan and was created more than one
        calendar year before now.

    Only the current plan is considered: an event upgraded away from the
    free plan is never caught by (b).
    """
    now = ensure_utc(now)
    window_end = ensure_utc(download_window_end)
    created = ensure_utc(created_at)

    download_expired = bool(is_published) and window_end is not None and now > window_end
    free_event_old = plan == free_plan and created is not None and created < one_year_before(now)

    return TrashDecision(download_expired=download_expired, free_event_old=free_event_old)


def is_due_for_deletion(status: str, delete_at: Optional[datetime], now: datetime) -> bool:
    """trashed → deleted fires once now is past delete_at."""
    if status != EventStatus.TRASHED.value:
        return False
    deadline = ensure_utc(delete_at)
    return deadline is not None and ensure_utc(now) > deadline


def is_restorable(status: str) -> bool:
    """Only trashed events can be restored; active or deleted ones cannot."""
    try:
        current = EventStatus(status)
    except ValueError:
        return False
    return can_transition(current, EventStatus.ACTIVE)
