"""Pydantic schemas for retention sweep results and lifecycle status.

This module defines:
- SweepResult: Outcome of one trash or permanent-delete sweep
- LifecycleStatus: Counts of events per lifecycle stage
- ScheduledDeletionReport: The combined cron pass (status, both sweeps, status)
- RestoreResult: Outcome of restoring one event from the trash
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SweepResult(BaseModel):
    """Aggregate result of one sweep.

    success is False when at least one event failed its relational
    transaction. Storage problems are appended to errors and also listed in
    storage_errors, but never flip success: the relational outcome is
    authoritative.
    """

    success: bool = True
    processed_count: int = Field(default=0, ge=0)
    errors: List[str] = Field(default_factory=list)
    storage_errors: List[str] = Field(default_factory=list)
    processed_event_ids: List[str] = Field(default_factory=list)

    def record_failure(self, message: str) -> None:
        self.errors.append(message)
        self.success = False

    def record_storage_error(self, message: str) -> None:
        self.errors.append(message)
        self.storage_errors.append(message)

    @property
    def has_storage_errors(self) -> bool:
        return bool(self.storage_errors)


class LifecycleStatus(BaseModel):
    """Snapshot of how many events sit in each lifecycle stage."""

    active_events: int = Field(default=0, ge=0)
    trashed_events: int = Field(default=0, ge=0)
    events_due_for_trash: int = Field(default=0, ge=0)
    events_ready_for_deletion: int = Field(default=0, ge=0)
    last_checked: datetime


class ScheduledDeletionReport(BaseModel):
    """Result of the combined scheduled deletion pass.

    errors merges both sweeps, storage problems included; success only
    reflects relational failures.
    """

    timestamp: datetime
    status_before: LifecycleStatus
    trash_results: SweepResult
    delete_results: SweepResult
    status_after: LifecycleStatus
    total_processed: int = Field(default=0, ge=0)
    errors: List[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.trash_results.success and self.delete_results.success


class RestoreResult(BaseModel):
    """Outcome of restoring one event from the trash."""

    success: bool
    error: Optional[str] = None
