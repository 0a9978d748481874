"""Account teardown service.

Removes a user and everything they own:
- Preview: read-only counts, byte totals and storage keys for a confirmation step
- Delete: best-effort session revocation and storage cleanup, then one
  relational transaction removing gallery rows, auth provider rows and the user
- Deep cleanup: email-keyed removal of residual records (e.g. a half-created
  account blocking re-signup), through the identity provider first with a
  manual fallback

Relational deletion is the authoritative outcome. Storage and identity
provider failures are collected as non-fatal errors.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..domain.identity.ports import IdentityProviderError, IdentityProviderPort
from ..domain.storage.ports import ObjectStoragePort, StorageError, storage_key_from_url
from ..models import (
    Account,
    Album,
    Event,
    GuestbookEntry,
    Invitation,
    Member,
    Upload,
    User,
    UserSession,
    Verification,
)
from ..observability import job_run
from ..observability.metrics import storage_delete_failures_total, users_deleted_total
from .schemas import (
    DeepCleanupResult,
    DeletedUser,
    DeletionPreview,
    DeletionResult,
    DeletionSummary,
    IdentityDataCounts,
    PreviewCount,
    PreviewEvent,
    PreviewEvents,
    PreviewUploads,
    PreviewUser,
    UserCleanupOutcome,
)

logger = logging.getLogger(__name__)

_NO_SYNC = {"synchronize_session": False}


class UserNotFoundError(Exception):
    """Raised when previewing the deletion of a user that does not exist."""
    pass


class AccountDeletionError(Exception):
    """Raised when the relational teardown transaction fails and is rolled back."""
    pass


class AccountTeardownService:
    """Service for deleting user accounts and their galleries."""

    def __init__(
        self,
        db: Session,
        storage: Optional[ObjectStoragePort] = None,
        identity_provider: Optional[IdentityProviderPort] = None,
    ):
        """Initialize teardown service.

        Args:
            db: Database session
            storage: Object storage port for media deletion (optional)
            identity_provider: Auth provider admin API (optional)
        """
        self.db = db
        self.storage = storage
        self.identity_provider = identity_provider

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def _count(self, model, *criteria) -> int:
        return self.db.scalar(select(func.count()).select_from(model).where(*criteria)) or 0

    def _owned_event_ids(self, user_id: str):
        return select(Event.id).where(Event.user_id == user_id)

    def _build_preview(self, user: User) -> DeletionPreview:
        owned = self._owned_event_ids(user.id)

        events = list(
            self.db.scalars(select(Event).where(Event.user_id == user.id).order_by(Event.created_at))
        )
        uploads = self.db.execute(
            select(Upload.file_url, Upload.file_size).where(Upload.event_id.in_(owned))
        ).all()

        storage_keys: List[str] = []
        total_size = 0
        for file_url, file_size in uploads:
            total_size += file_size or 0
            key = storage_key_from_url(file_url)
            if key:
                storage_keys.append(key)
            else:
                logger.warning(f"Could not parse file URL: {file_url}", extra={"user_id": user.id})

        identity = IdentityDataCounts(
            sessions=self._count(UserSession, UserSession.user_id == user.id),
            accounts=self._count(Account, Account.user_id == user.id),
            verifications=(
                self._count(Verification, Verification.identifier == user.email) if user.email else 0
            ),
            memberships=self._count(Member, Member.user_id == user.id),
            invitations=self._count(Invitation, Invitation.inviter_id == user.id),
        )

        return DeletionPreview(
            user=PreviewUser(
                id=user.id,
                email=user.email,
                name=user.name or "No name",
                created_at=user.created_at,
            ),
            events=PreviewEvents(
                count=len(events),
                list=[
                    PreviewEvent(
                        id=event.id,
                        name=event.name,
                        couple_names=event.couple_names or "",
                        status=event.status,
                        created_at=event.created_at,
                    )
                    for event in events
                ],
            ),
            uploads=PreviewUploads(
                count=len(uploads),
                total_size_bytes=total_size,
                storage_files_to_delete=storage_keys,
            ),
            albums=PreviewCount(count=self._count(Album, Album.event_id.in_(owned))),
            guestbook_entries=PreviewCount(
                count=self._count(GuestbookEntry, GuestbookEntry.event_id.in_(owned))
            ),
            identity_data=identity,
        )

    def preview_deletion(self, user_id: str) -> DeletionPreview:
        """Compute what deleting a user would remove, without mutating anything.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        try:
            user = self.db.get(User, user_id)
            if user is None:
                raise UserNotFoundError(f"User {user_id} not found")
            return self._build_preview(user)
        finally:
            self.db.rollback()

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def _revoke_sessions(self, user_id: str, errors: List[str]) -> None:
        if self.identity_provider is None:
            logger.info(
                "No identity provider configured, sessions are removed in the database only",
                extra={"user_id": user_id},
            )
            return
        try:
            self.identity_provider.revoke_user_sessions(user_id)
        except IdentityProviderError as e:
            logger.warning(f"Session revocation failed for user {user_id}: {e}", extra={"user_id": user_id})
            errors.append(f"Session revocation failed: {e}")

    def _delete_storage_files(self, user_id: str, keys: List[str], errors: List[str]) -> int:
        if not keys:
            return 0
        if self.storage is None:
            logger.warning(
                f"No storage configured, skipping deletion of {len(keys)} files",
                extra={"user_id": user_id},
            )
            return 0
        try:
            batch = self.storage.delete_objects(keys)
        except StorageError as e:
            storage_delete_failures_total.labels(operation="teardown").inc()
            logger.error(f"Storage cleanup failed for user {user_id}", exc_info=True, extra={"user_id": user_id})
            errors.append(f"Storage cleanup failed: {e}")
            return 0

        if batch.errors:
            storage_delete_failures_total.labels(operation="teardown").inc(len(batch.errors))
            errors.extend(f"Storage cleanup failed: {err}" for err in batch.errors)
        return batch.deleted

    def _delete_rows(self, user: User) -> DeletionSummary:
        """Delete every owned row in dependency order; caller commits."""
        owned = self._owned_event_ids(user.id)

        def run(stmt) -> int:
            return self.db.execute(stmt, execution_options=_NO_SYNC).rowcount or 0

        summary = DeletionSummary()
        summary.guestbook_entries_deleted = run(
            delete(GuestbookEntry).where(GuestbookEntry.event_id.in_(owned))
        )
        summary.uploads_deleted = run(delete(Upload).where(Upload.event_id.in_(owned)))
        summary.albums_deleted = run(delete(Album).where(Album.event_id.in_(owned)))
        summary.events_deleted = run(delete(Event).where(Event.user_id == user.id))

        if user.email:
            summary.verifications_deleted = run(
                delete(Verification).where(Verification.identifier == user.email)
            )
        summary.invitations_deleted = run(delete(Invitation).where(Invitation.inviter_id == user.id))
        summary.memberships_deleted = run(delete(Member).where(Member.user_id == user.id))
        summary.accounts_deleted = run(delete(Account).where(Account.user_id == user.id))
        summary.sessions_revoked = run(delete(UserSession).where(UserSession.user_id == user.id))

        run(delete(User).where(User.id == user.id))
        return summary

    def delete_user(self, user_id: str) -> DeletionResult:
        """Delete a user and everything they own.

        Steps:
        1. Re-derive the preview (event ids, storage keys)
        2. Revoke live sessions at the identity provider (best-effort)
        3. Delete the resolved storage keys (best-effort)
        4. One transaction: guestbook entries, uploads, albums, events,
           verifications, invitations, memberships, accounts, sessions, user

        Returns:
            DeletionResult: success=False with "User not found" for unknown
            users; otherwise success=True, with non-fatal errors listed

        Raises:
            AccountDeletionError: If the relational transaction fails
        """
        with job_run():
            user = self.db.get(User, user_id)
            if user is None:
                self.db.rollback()
                logger.warning(f"Cannot delete unknown user {user_id}", extra={"user_id": user_id})
                return DeletionResult(success=False, errors=["User not found"])

            deleted_user = DeletedUser(id=user.id, email=user.email)
            preview = self._build_preview(user)
            errors: List[str] = []

            logger.info(
                f"Deleting user {user_id} with {preview.events.count} events "
                f"and {preview.uploads.count} uploads",
                extra={"user_id": user_id, "email": user.email},
            )

            self._revoke_sessions(user_id, errors)
            files_deleted = self._delete_storage_files(
                user_id, preview.uploads.storage_files_to_delete, errors
            )

            try:
                summary = self._delete_rows(user)
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.error(f"User deletion failed for {user_id}", exc_info=True, extra={"user_id": user_id})
                message = f"User deletion failed: {e}"
                if files_deleted:
                    message += f" ({files_deleted} storage files were already deleted)"
                raise AccountDeletionError(message) from e

            summary.storage_files_deleted = files_deleted
            users_deleted_total.labels(method="teardown").inc()
            logger.info(
                f"User {user_id} deletion completed",
                extra={"user_id": user_id, "error_count": len(errors)},
            )
            return DeletionResult(
                success=True,
                deleted_user=deleted_user,
                summary=summary,
                errors=errors,
            )

    # ------------------------------------------------------------------
    # Deep cleanup
    # ------------------------------------------------------------------

    def _manual_user_cleanup(self, user_id: str) -> None:
        for stmt in (
            delete(Member).where(Member.user_id == user_id),
            delete(Invitation).where(Invitation.inviter_id == user_id),
            delete(Account).where(Account.user_id == user_id),
            delete(UserSession).where(UserSession.user_id == user_id),
            delete(User).where(User.id == user_id),
        ):
            self.db.execute(stmt, execution_options=_NO_SYNC)
        self.db.commit()

    def _remove_user(self, user_id: str, steps: List[str]) -> UserCleanupOutcome:
        provider_error: Optional[str] = None
        if self.identity_provider is not None:
            steps.append(f"Removing user via identity provider: {user_id}")
            try:
                self.identity_provider.remove_user(user_id)
                steps.append(f"Identity provider removal successful for user {user_id}")
                users_deleted_total.labels(method="deep_cleanup_provider").inc()
                return UserCleanupOutcome(user_id=user_id, method="provider")
            except IdentityProviderError as e:
                provider_error = str(e)
                steps.append(f"Identity provider failed: {e}")
                logger.warning(
                    f"Identity provider removal failed for user {user_id}, falling back to manual cleanup",
                    extra={"user_id": user_id},
                )

        self._manual_user_cleanup(user_id)
        steps.append(f"Manual cleanup completed for user {user_id}")
        users_deleted_total.labels(method="deep_cleanup_manual").inc()
        return UserCleanupOutcome(user_id=user_id, method="manual", provider_error=provider_error)

    def _scan(self, email: str, user_ids: List[str]) -> Tuple[int, int, int, int, int, int]:
        users = self._count(User, User.email == email)
        verifications = self._count(Verification, Verification.identifier == email)
        invitations = self._count(Invitation, Invitation.email == email)
        if not user_ids:
            return users, verifications, invitations, 0, 0, 0
        accounts = self._count(Account, Account.user_id.in_(user_ids))
        sessions = self._count(UserSession, UserSession.user_id.in_(user_ids))
        members = self._count(Member, Member.user_id.in_(user_ids))
        return users, verifications, invitations, accounts, sessions, members

    def deep_cleanup_by_email(self, email: str) -> DeepCleanupResult:
        """Remove every residual auth record for an email address.

        More permissive than delete_user: it works from the email alone,
        removes verifications and invitations addressed to it, and removes
        each matching user through the identity provider, falling back to
        direct deletes when the provider errors or is not configured.
        Event rows are left in place and reported as orphaned.
        """
        target = email.strip().lower()
        result = DeepCleanupResult(email=target)
        steps = result.steps

        with job_run():
            logger.info(f"Deep cleanup started for {target}", extra={"email": target})
            steps.append(f"Performing deep scan for: {target}")

            user_ids = list(self.db.scalars(select(User.id).where(User.email == target)))
            result.users_found = len(user_ids)
            users, verifications, invitations, accounts, sessions, members = self._scan(target, user_ids)
            steps.append(f"Users table: {users} records")
            steps.append(f"Verifications table: {verifications} records")
            steps.append(f"Invitations table: {invitations} records")
            steps.append(f"Accounts table: {accounts} records")
            steps.append(f"Sessions table: {sessions} records")
            steps.append(f"Members table: {members} records")

            steps.append("Starting cleanup")
            try:
                result.verifications_deleted = self.db.execute(
                    delete(Verification).where(Verification.identifier == target),
                    execution_options=_NO_SYNC,
                ).rowcount or 0
                result.invitations_deleted = self.db.execute(
                    delete(Invitation).where(Invitation.email == target),
                    execution_options=_NO_SYNC,
                ).rowcount or 0
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Deep cleanup failed for {target}", exc_info=True, extra={"email": target})
                steps.append(f"Cleanup error: {e}")
                raise
            steps.append(f"Deleted {result.verifications_deleted} verifications")
            steps.append(f"Deleted {result.invitations_deleted} invitations")

            for user_id in user_ids:
                try:
                    result.user_outcomes.append(self._remove_user(user_id, steps))
                except Exception as e:
                    self.db.rollback()
                    logger.error(
                        f"Deep cleanup of user {user_id} failed",
                        exc_info=True,
                        extra={"user_id": user_id, "email": target},
                    )
                    steps.append(f"Cleanup error for user {user_id}: {e}")

            # Catch verifications created while the users were being removed
            stragglers = self.db.execute(
                delete(Verification).where(Verification.identifier == target),
                execution_options=_NO_SYNC,
            ).rowcount or 0
            self.db.commit()
            result.verifications_deleted += stragglers
            steps.append("Final verification cleanup")

            steps.append("Final verification scan")
            result.remaining_users = self._count(User, User.email == target)
            result.remaining_verifications = self._count(Verification, Verification.identifier == target)
            result.remaining_invitations = self._count(Invitation, Invitation.email == target)
            if user_ids:
                result.orphaned_event_ids = list(
                    self.db.scalars(
                        select(Event.id)
                        .where(Event.user_id.in_(user_ids))
                        .order_by(Event.created_at)
                    )
                )
            self.db.rollback()

            steps.append(
                f"Final counts - Users: {result.remaining_users}, "
                f"Verifications: {result.remaining_verifications}, "
                f"Invitations: {result.remaining_invitations}"
            )
            if result.clean:
                steps.append(f"Deep cleanup successful, {target} is available again")
            else:
                steps.append("Some records still remain")
            if result.orphaned_event_ids:
                logger.warning(
                    f"{len(result.orphaned_event_ids)} events still reference removed users",
                    extra={"email": target},
                )

            logger.info(
                f"Deep cleanup completed for {target}",
                extra={"email": target, "processed_count": len(result.user_outcomes)},
            )
        return result
