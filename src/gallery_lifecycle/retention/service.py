"""Retention service for the event lifecycle.

This service implements the two retention sweeps:
- Trash sweep: move active events whose download window is over, or free
  events older than a year, into the trash with a 30 day grace period
- Permanent-delete sweep: once the grace period is over, remove the event's
  files from object storage and its rows from the database
- Audit logging for every transition

Each event is its own unit of work: one relational transaction, committed or
rolled back on its own. A failing event is recorded in the sweep result and
the sweep moves on. Both sweeps re-check the current status of every
candidate, so re-running them (or an accidental overlap) finds nothing left
to do for events already transitioned.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.orm import Session

from ..audit.schemas import DeletionAction
from ..audit.service import log_deletion_event
from ..domain.lifecycle import (
    EventStatus,
    TrashReason,
    compute_delete_at,
    ensure_utc,
    evaluate_trash,
    is_due_for_deletion,
    one_year_before,
)
from ..domain.lifecycle.event_status import DEFAULT_FREE_PLAN, DEFAULT_GRACE_PERIOD_DAYS
from ..domain.storage.ports import ObjectStoragePort, StorageError, storage_key_from_url
from ..models import Album, Event, GuestbookEntry, Upload
from ..models.base import utcnow
from ..observability import job_run
from ..observability.metrics import (
    events_deleted_total,
    events_trashed_total,
    storage_delete_failures_total,
    sweep_duration_seconds,
    sweep_failures_total,
)
from .restore import restore_event_from_trash
from .schemas import LifecycleStatus, RestoreResult, ScheduledDeletionReport, SweepResult

logger = logging.getLogger(__name__)


@dataclass
class StorageCleanupOutcome:
    """What happened in object storage for one permanently deleted event."""
    skipped: bool = False
    deleted_by_prefix: int = 0
    deleted_by_url: int = 0
    errors: List[str] = field(default_factory=list)

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "skipped": self.skipped,
            "deletedByPrefix": self.deleted_by_prefix,
            "deletedByUrl": self.deleted_by_url,
            "errorCount": len(self.errors),
        }


class RetentionSweepService:
    """Service for executing the event retention sweeps.

    Dependencies are injected: the database session and an optional object
    storage port. Without storage, file cleanup is skipped and logged while
    the relational transitions still run.
    """

    def __init__(
        self,
        db: Session,
        storage: Optional[ObjectStoragePort] = None,
        grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS,
        free_plan: str = DEFAULT_FREE_PLAN,
    ):
        """Initialize retention service.

        Args:
            db: Database session
            storage: Object storage port for file deletion (optional)
            grace_period_days: Days between trash and permanent deletion (>= 30)
            free_plan: Plan name subject to the one year age rule

        Raises:
            ValueError: If grace_period_days is below the 30 day floor
        """
        if grace_period_days < DEFAULT_GRACE_PERIOD_DAYS:
            raise ValueError(
                f"Grace period must be at least {DEFAULT_GRACE_PERIOD_DAYS} days"
            )
        self.db = db
        self.storage = storage
        self.grace_period_days = grace_period_days
        self.free_plan = free_plan

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _trash_predicate(self, now: datetime):
        return and_(
            Event.status == EventStatus.ACTIVE.value,
            or_(
                and_(Event.is_published.is_(True), Event.download_window_end < now),
                and_(Event.plan == self.free_plan, Event.created_at < one_year_before(now)),
            ),
        )

    def _deletion_predicate(self, now: datetime):
        return and_(
            Event.status == EventStatus.TRASHED.value,
            Event.delete_at.is_not(None),
            Event.delete_at < now,
        )

    def find_trash_candidates(self, now: datetime) -> List[str]:
        """IDs of active events matching the active → trashed predicate."""
        stmt = select(Event.id).where(self._trash_predicate(now)).order_by(Event.created_at)
        return list(self.db.scalars(stmt))

    def find_deletion_candidates(self, now: datetime) -> List[str]:
        """IDs of trashed events whose grace period is over."""
        stmt = select(Event.id).where(self._deletion_predicate(now)).order_by(Event.delete_at)
        return list(self.db.scalars(stmt))

    # ------------------------------------------------------------------
    # Trash sweep
    # ------------------------------------------------------------------

    def trash_event(self, event_id: str, now: datetime) -> Optional[TrashReason]:
        """Move one event to the trash in its own transaction.

        Returns:
            The reason code, or None when the event is gone, no longer
            active, or no longer matches the predicate.
        """
        event = self.db.get(Event, event_id, populate_existing=True, with_for_update=True)
        if event is None or event.status != EventStatus.ACTIVE.value:
            self.db.rollback()
            return None

        decision = evaluate_trash(
            is_published=event.is_published,
            download_window_end=event.download_window_end,
            plan=event.plan,
            created_at=event.created_at,
            now=now,
            free_plan=self.free_plan,
        )
        if not decision.is_due:
            self.db.rollback()
            return None

        delete_at = compute_delete_at(now, self.grace_period_days)
        event.status = EventStatus.TRASHED.value
        event.trashed_at = now
        event.delete_at = delete_at
        event.updated_at = now

        log_deletion_event(
            self.db,
            event_id=event.id,
            action=DeletionAction.TRASHED,
            reason=decision.reason.value,
            executed_at=now,
            metadata={
                "eventName": event.name,
                "plan": event.plan,
                "downloadWindowEnd": _isoformat(event.download_window_end),
                "createdAt": _isoformat(event.created_at),
                "scheduledDeletion": delete_at.isoformat(),
                "reasonDescription": decision.description,
            },
        )
        self.db.commit()

        events_trashed_total.labels(reason=decision.reason.value).inc()
        logger.info(
            f"Moved event {event_id} to trash ({decision.reason.value})",
            extra={"event_id": event_id},
        )
        return decision.reason

    def run_trash_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """Move every expired active event to the trash.

        Idempotent: a second run with no time passing processes nothing.
        """
        now = ensure_utc(now) if now else utcnow()
        result = SweepResult()

        with job_run(), sweep_duration_seconds.labels(sweep="trash").time():
            logger.info("Starting trash sweep", extra={"sweep": "trash"})
            try:
                candidates = self.find_trash_candidates(now)
            except Exception as e:
                self.db.rollback()
                logger.error("Failed to select expired events", exc_info=True, extra={"sweep": "trash"})
                result.record_failure(f"Failed to process expired events: {e}")
                return result

            for event_id in candidates:
                try:
                    if self.trash_event(event_id, now) is not None:
                        result.processed_count += 1
                        result.processed_event_ids.append(event_id)
                except Exception as e:
                    self.db.rollback()
                    sweep_failures_total.labels(sweep="trash").inc()
                    logger.error(
                        f"Failed to trash event {event_id}",
                        exc_info=True,
                        extra={"event_id": event_id, "sweep": "trash"},
                    )
                    result.record_failure(f"Failed to trash event {event_id}: {e}")

            logger.info(
                "Trash sweep completed",
                extra={
                    "sweep": "trash",
                    "processed_count": result.processed_count,
                    "error_count": len(result.errors),
                },
            )
        return result

    # ------------------------------------------------------------------
    # Permanent-delete sweep
    # ------------------------------------------------------------------

    def delete_event_files(
        self,
        event_id: str,
        prefix: str,
        file_urls: Sequence[str],
    ) -> StorageCleanupOutcome:
        """Remove an event's objects from storage, best-effort.

        First pass lists the event prefix and batch-deletes it. Second pass
        deletes each upload's URL-derived key individually, in case the
        listing missed something. Failures are collected, never raised.
        """
        outcome = StorageCleanupOutcome()
        if self.storage is None:
            logger.warning(
                f"No storage configured, skipping file deletion for event {event_id}",
                extra={"event_id": event_id},
            )
            outcome.skipped = True
            return outcome

        try:
            batch = self.storage.delete_prefix(prefix)
            outcome.deleted_by_prefix = batch.deleted
            outcome.errors.extend(batch.errors)
            if batch.errors:
                storage_delete_failures_total.labels(operation="prefix").inc(len(batch.errors))
        except StorageError as e:
            storage_delete_failures_total.labels(operation="prefix").inc()
            logger.error(
                f"Failed to delete files under {prefix}",
                exc_info=True,
                extra={"event_id": event_id},
            )
            outcome.errors.append(f"Failed to delete files under {prefix}: {e}")

        for file_url in file_urls:
            key = storage_key_from_url(file_url)
            if key is None:
                logger.warning(f"Could not parse file URL: {file_url}", extra={"event_id": event_id})
                outcome.errors.append(f"Could not resolve storage key for {file_url}")
                continue
            try:
                self.storage.delete_object(key)
                outcome.deleted_by_url += 1
            except StorageError as e:
                storage_delete_failures_total.labels(operation="url").inc()
                logger.error(f"Failed to delete file {file_url}: {e}", extra={"event_id": event_id})
                outcome.errors.append(f"Failed to delete file {file_url}: {e}")

        return outcome

    def permanently_delete_event(
        self,
        event_id: str,
        now: datetime,
    ) -> Optional[StorageCleanupOutcome]:
        """Permanently delete one trashed event whose grace period is over.

        Storage cleanup runs first and is best-effort; the relational
        transaction (audit record, then guestbook entries, uploads, albums
        and finally the event) runs regardless of its outcome.

        The event row stays locked (SELECT ... FOR UPDATE) while storage is
        cleaned, so a concurrent restore blocks until the event is gone and
        then fails with "Event not found" instead of reviving an event whose
        files were already removed. The transaction is therefore held open
        across the storage calls.

        Returns:
            The storage outcome, or None when the event is gone or not due.
        """
        event = self.db.get(Event, event_id, populate_existing=True, with_for_update=True)
        if event is None or not is_due_for_deletion(event.status, event.delete_at, now):
            self.db.rollback()
            return None

        event_name = event.name
        file_urls = list(self.db.scalars(select(Upload.file_url).where(Upload.event_id == event_id)))

        storage_outcome = self.delete_event_files(event_id, event.storage_prefix, file_urls)

        log_deletion_event(
            self.db,
            event_id=event_id,
            action=DeletionAction.DELETED,
            reason="scheduled_cleanup",
            executed_at=now,
            metadata={
                "eventName": event_name,
                "deletionMethod": "scheduled",
                "trashedAt": _isoformat(event.trashed_at),
                "storage": storage_outcome.to_metadata(),
            },
        )

        # Dependency order: children before the event row
        self.db.execute(delete(GuestbookEntry).where(GuestbookEntry.event_id == event_id))
        self.db.execute(delete(Upload).where(Upload.event_id == event_id))
        self.db.execute(delete(Album).where(Album.event_id == event_id))
        self.db.execute(delete(Event).where(Event.id == event_id))
        self.db.commit()

        events_deleted_total.inc()
        logger.info(
            f"Permanently deleted event {event_id}",
            extra={"event_id": event_id},
        )
        return storage_outcome

    def run_permanent_delete_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """Permanently delete every trashed event past its delete_at.

        Storage failures are reported in storage_errors and do not fail the
        event: the row deletion is the authoritative outcome.
        """
        now = ensure_utc(now) if now else utcnow()
        result = SweepResult()

        with job_run(), sweep_duration_seconds.labels(sweep="permanent_delete").time():
            logger.info("Starting permanent-delete sweep", extra={"sweep": "permanent_delete"})
            try:
                candidates = self.find_deletion_candidates(now)
            except Exception as e:
                self.db.rollback()
                logger.error(
                    "Failed to select trashed events",
                    exc_info=True,
                    extra={"sweep": "permanent_delete"},
                )
                result.record_failure(f"Failed to process trashed events: {e}")
                return result

            for event_id in candidates:
                try:
                    outcome = self.permanently_delete_event(event_id, now)
                except Exception as e:
                    self.db.rollback()
                    sweep_failures_total.labels(sweep="permanent_delete").inc()
                    logger.error(
                        f"Failed to permanently delete event {event_id}",
                        exc_info=True,
                        extra={"event_id": event_id, "sweep": "permanent_delete"},
                    )
                    result.record_failure(f"Failed to permanently delete event {event_id}: {e}")
                    continue

                if outcome is None:
                    continue
                result.processed_count += 1
                result.processed_event_ids.append(event_id)
                for err in outcome.errors:
                    result.record_storage_error(f"Event {event_id}: {err}")

            logger.info(
                "Permanent-delete sweep completed",
                extra={
                    "sweep": "permanent_delete",
                    "processed_count": result.processed_count,
                    "error_count": len(result.errors),
                },
            )
            if result.storage_errors:
                logger.warning(
                    f"Permanent-delete sweep left {len(result.storage_errors)} storage errors",
                    extra={"sweep": "permanent_delete"},
                )
        return result

    # ------------------------------------------------------------------
    # Status and restore
    # ------------------------------------------------------------------

    def get_lifecycle_status(self, now: Optional[datetime] = None) -> LifecycleStatus:
        """Count events per lifecycle stage without changing anything."""
        now = ensure_utc(now) if now else utcnow()

        def count(*criteria) -> int:
            return self.db.scalar(select(func.count()).select_from(Event).where(*criteria)) or 0

        status = LifecycleStatus(
            active_events=count(Event.status == EventStatus.ACTIVE.value),
            trashed_events=count(Event.status == EventStatus.TRASHED.value),
            events_due_for_trash=count(self._trash_predicate(now)),
            events_ready_for_deletion=count(self._deletion_predicate(now)),
            last_checked=now,
        )
        self.db.rollback()
        return status

    def run_scheduled_deletion(self, now: Optional[datetime] = None) -> ScheduledDeletionReport:
        """Run the full scheduled pass: trash sweep, then permanent-delete sweep.

        Events trashed by the first sweep are never deleted by the second in
        the same run, since their delete_at lies 30 days ahead.
        """
        now = ensure_utc(now) if now else utcnow()

        with job_run():
            status_before = self.get_lifecycle_status(now)
            logger.info("Starting scheduled deletion job", extra={"sweep": "scheduled"})

            trash_results = self.run_trash_sweep(now)
            delete_results = self.run_permanent_delete_sweep(now)
            status_after = self.get_lifecycle_status(now)

            report = ScheduledDeletionReport(
                timestamp=now,
                status_before=status_before,
                trash_results=trash_results,
                delete_results=delete_results,
                status_after=status_after,
                total_processed=trash_results.processed_count + delete_results.processed_count,
                errors=trash_results.errors + delete_results.errors,
            )

            if not report.success:
                logger.error(
                    f"Scheduled deletion completed with {len(report.errors)} errors",
                    extra={"sweep": "scheduled", "error_count": len(report.errors)},
                )
            else:
                logger.info(
                    "Scheduled deletion job completed",
                    extra={"sweep": "scheduled", "processed_count": report.total_processed},
                )
        return report

    def restore_event(self, event_id: str, user_id: str, now: Optional[datetime] = None) -> RestoreResult:
        return restore_event_from_trash(self.db, event_id, user_id, now=now)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    value = ensure_utc(value)
    return value.isoformat() if value else None
