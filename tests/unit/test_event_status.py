"""Unit tests for the event lifecycle state machine.

Tests state transitions, the trash predicate and the deletion deadline.
"""

import pytest
from datetime import datetime, timedelta, timezone

from gallery_lifecycle.domain.lifecycle import (
    EventStatus,
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

NOW = datetime(2026, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


class TestEventStatusTransitions:
    """Test allowed and forbidden transitions."""

    def test_active_can_only_be_trashed(self):
        assert can_transition(EventStatus.ACTIVE, EventStatus.TRASHED)
        assert not can_transition(EventStatus.ACTIVE, EventStatus.DELETED)
        assert get_allowed_transitions(EventStatus.ACTIVE) == [EventStatus.TRASHED]

    def test_trashed_can_be_deleted_or_restored(self):
        assert can_transition(EventStatus.TRASHED, EventStatus.DELETED)
        assert can_transition(EventStatus.TRASHED, EventStatus.ACTIVE)

    def test_deleted_is_terminal(self):
        assert get_allowed_transitions(EventStatus.DELETED) == []
        assert not can_transition(EventStatus.DELETED, EventStatus.ACTIVE)

    def test_only_trashed_is_restorable(self):
        assert is_restorable("trashed")
        assert not is_restorable("active")
        assert not is_restorable("deleted")
        assert not is_restorable("archived")


class TestEvaluateTrash:
    """Test the active → trashed predicate."""

    def test_published_event_past_download_window(self):
        decision = evaluate_trash(
            is_published=True,
            download_window_end=NOW - timedelta(seconds=1),
            plan="premium",
            created_at=NOW - timedelta(days=30),
            now=NOW,
        )

        assert decision.is_due
        assert decision.reason == TrashReason.EXPIRED_DOWNLOAD
        assert decision.description == "Download window expired"

    def test_unpublished_event_past_window_is_kept(self):
        decision = evaluate_trash(
            is_published=False,
            download_window_end=NOW - timedelta(days=10),
            plan="premium",
            created_at=NOW - timedelta(days=30),
            now=NOW,
        )

        assert not decision.is_due
        assert decision.reason is None

    def test_window_ending_exactly_now_is_kept(self):
        decision = evaluate_trash(
            is_published=True,
            download_window_end=NOW,
            plan="premium",
            created_at=NOW - timedelta(days=30),
            now=NOW,
        )

        assert not decision.is_due

    def test_free_event_older_than_a_year(self):
        decision = evaluate_trash(
            is_published=False,
            download_window_end=NOW + timedelta(days=30),
            plan="free",
            created_at=NOW - timedelta(days=366),
            now=NOW,
        )

        assert decision.is_due
        assert decision.reason == TrashReason.FREE_EVENT_OLD

    def test_free_event_just_under_a_year_is_kept(self):
        decision = evaluate_trash(
            is_published=False,
            download_window_end=NOW + timedelta(days=30),
            plan="free",
            created_at=one_year_before(NOW) + timedelta(minutes=1),
            now=NOW,
        )

        assert not decision.is_due

    def test_upgraded_event_is_exempt_from_age_rule(self):
        decision = evaluate_trash(
            is_published=False,
            download_window_end=NOW + timedelta(days=30),
            plan="premium",
            created_at=NOW - timedelta(days=800),
            now=NOW,
        )

        assert not decision.is_due

    def test_both_conditions_recorded_in_reason(self):
        decision = evaluate_trash(
            is_published=True,
            download_window_end=NOW - timedelta(days=1),
            plan="free",
            created_at=NOW - timedelta(days=400),
            now=NOW,
        )

        assert decision.download_expired
        assert decision.free_event_old
        assert decision.reason == TrashReason.EXPIRED_DOWNLOAD_AND_FREE_OLD

    def test_custom_free_plan_name(self):
        decision = evaluate_trash(
            is_published=False,
            download_window_end=NOW + timedelta(days=30),
            plan="starter",
            created_at=NOW - timedelta(days=400),
            now=NOW,
            free_plan="starter",
        )

        assert decision.reason == TrashReason.FREE_EVENT_OLD

    def test_naive_timestamps_are_treated_as_utc(self):
        decision = evaluate_trash(
            is_published=True,
            download_window_end=datetime(2026, 6, 15, 11, 59, 0),
            plan="premium",
            created_at=datetime(2026, 1, 1),
            now=NOW,
        )

        assert decision.download_expired


class TestOneYearBefore:
    """Calendar-year arithmetic."""

    def test_same_calendar_date(self):
        assert one_year_before(NOW) == datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)

    def test_leap_day_clamps_to_feb_28(self):
        leap_day = datetime(2028, 2, 29, 8, 30, tzinfo=timezone.utc)

        assert one_year_before(leap_day) == datetime(2027, 2, 28, 8, 30, tzinfo=timezone.utc)


class TestDeletionDeadline:
    """Test grace period and trashed → deleted predicate."""

    def test_delete_at_is_thirty_days_after_trash(self):
        assert compute_delete_at(NOW) == NOW + timedelta(days=30)

    def test_longer_grace_period_allowed(self):
        assert compute_delete_at(NOW, 45) == NOW + timedelta(days=45)

    def test_grace_period_below_floor_rejected(self):
        with pytest.raises(ValueError) as exc:
            compute_delete_at(NOW, 29)

        assert "at least 30 days" in str(exc.value)

    def test_due_once_delete_at_has_passed(self):
        assert is_due_for_deletion("trashed", NOW - timedelta(seconds=1), NOW)

    def test_not_due_before_or_at_delete_at(self):
        assert not is_due_for_deletion("trashed", NOW + timedelta(days=1), NOW)
        assert not is_due_for_deletion("trashed", NOW, NOW)

    def test_active_event_never_due_for_deletion(self):
        assert not is_due_for_deletion("active", NOW - timedelta(days=100), NOW)

    def test_missing_delete_at_never_due(self):
        assert not is_due_for_deletion("trashed", None, NOW)


def test_ensure_utc_keeps_aware_values():
    assert ensure_utc(NOW) is NOW
    assert ensure_utc(None) is None
    assert ensure_utc(datetime(2026, 1, 1)).tzinfo == timezone.utc
