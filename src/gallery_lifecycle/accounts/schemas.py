"""Pydantic schemas for account teardown.

This module defines:
- DeletionPreview: Everything a user deletion would remove (read-only)
- DeletionResult: Outcome of deleting a user, with per-entity counts
- DeepCleanupResult: Outcome of the email-keyed residual cleanup
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class PreviewUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: str = "No name"
    created_at: Optional[datetime] = None


class PreviewEvent(BaseModel):
    id: str
    name: str
    couple_names: str = ""
    status: str
    created_at: Optional[datetime] = None


class PreviewEvents(BaseModel):
    count: int = Field(default=0, ge=0)
    list: List[PreviewEvent] = Field(default_factory=list)


class PreviewUploads(BaseModel):
    count: int = Field(default=0, ge=0)
    total_size_bytes: int = Field(default=0, ge=0)
    storage_files_to_delete: List[str] = Field(
        default_factory=list,
        description="Storage keys resolved from the upload URLs",
    )


class PreviewCount(BaseModel):
    count: int = Field(default=0, ge=0)


class IdentityDataCounts(BaseModel):
    """Rows owned by the auth provider for this user."""

    sessions: int = Field(default=0, ge=0)
    accounts: int = Field(default=0, ge=0)
    verifications: int = Field(default=0, ge=0, description="Pending verifications matched by email")
    memberships: int = Field(default=0, ge=0)
    invitations: int = Field(default=0, ge=0, description="Invitations sent by the user")


class DeletionPreview(BaseModel):
    """Read-only summary of what deleting a user removes.

    Safe to compute repeatedly, e.g. for a confirmation screen.
    """

    user: PreviewUser
    events: PreviewEvents
    uploads: PreviewUploads
    albums: PreviewCount
    guestbook_entries: PreviewCount
    identity_data: IdentityDataCounts


class DeletedUser(BaseModel):
    id: str
    email: Optional[str] = None


class DeletionSummary(BaseModel):
    """Rows removed per entity kind, taken from the delete row counts."""

    events_deleted: int = 0
    uploads_deleted: int = 0
    albums_deleted: int = 0
    guestbook_entries_deleted: int = 0
    storage_files_deleted: int = 0
    sessions_revoked: int = 0
    accounts_deleted: int = 0
    verifications_deleted: int = 0
    memberships_deleted: int = 0
    invitations_deleted: int = 0


class DeletionResult(BaseModel):
    """Outcome of deleting a user.

    success stays True when only storage cleanup or session revocation
    failed; those failures are listed in errors.
    """

    success: bool
    deleted_user: Optional[DeletedUser] = None
    summary: DeletionSummary = Field(default_factory=DeletionSummary)
    errors: List[str] = Field(default_factory=list)


class UserCleanupOutcome(BaseModel):
    user_id: str
    method: Literal["provider", "manual"]
    provider_error: Optional[str] = None


class DeepCleanupResult(BaseModel):
    """Outcome of the email-keyed deep cleanup.

    Event rows are never touched here: events still pointing at a removed
    user are listed in orphaned_event_ids for follow-up.
    """

    email: str
    steps: List[str] = Field(default_factory=list)
    users_found: int = 0
    user_outcomes: List[UserCleanupOutcome] = Field(default_factory=list)
    verifications_deleted: int = 0
    invitations_deleted: int = 0
    remaining_users: int = 0
    remaining_verifications: int = 0
    remaining_invitations: int = 0
    orphaned_event_ids: List[str] = Field(default_factory=list)

    @property
    def clean(self) -> bool:
        return (
            self.remaining_users == 0
            and self.remaining_verifications == 0
            and self.remaining_invitations == 0
        )
