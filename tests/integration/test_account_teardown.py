"""Integration tests for account teardown: preview and delete."""

from dataclasses import dataclass
from typing import List

import pytest

from gallery_lifecycle.accounts import (
    AccountDeletionError,
    AccountTeardownService,
    UserNotFoundError,
)
from gallery_lifecycle.models import (
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

OWNED_MODELS = (Event, Upload, Album, GuestbookEntry, UserSession, Account, Member, Invitation, Verification, User)


@dataclass
class Household:
    user_id: str
    email: str
    event_ids: List[str]
    storage_keys: List[str]
    bystander_id: str
    bystander_event_id: str


@pytest.fixture
def household(factory, fake_storage, now) -> Household:
    """A user with two galleries and auth rows, plus an unrelated bystander."""
    user = factory.user(email="Jordan@Example.com", name="Jordan")
    bystander = factory.user(email="casey@example.com")
    org = factory.organization()

    wedding = factory.event(user, name="Jordan & Riley", couple_names="Jordan & Riley")
    party = factory.trashed_event(user, delete_at=now, name="Engagement party")
    album = factory.album(wedding)
    uploads = [
        factory.upload(wedding, "a.jpg", file_size=100, album=album),
        factory.upload(wedding, "b.jpg", file_size=250),
        factory.upload(party, "c.mp4", file_size=50),
    ]
    factory.album(party)
    factory.guestbook_entry(wedding)
    factory.guestbook_entry(wedding, guest_name="Uncle Bob")
    factory.guestbook_entry(party)

    factory.session(user)
    factory.session(user)
    factory.account(user)
    factory.verification("jordan@example.com")
    factory.member(user, org)
    factory.invitation(user, org, email="friend@example.com")

    bystander_event = factory.event(bystander)
    factory.upload(bystander_event, "keep.jpg")
    factory.session(bystander)
    factory.member(bystander, org)
    factory.verification("casey@example.com")
    # Invitation addressed to the user but sent by someone else is not the user's
    factory.invitation(bystander, org, email="jordan@example.com")

    keys = [f"events/{u.event_id}/{u.file_name}" for u in uploads]
    fake_storage.put(*keys, f"events/{bystander_event.id}/keep.jpg")

    return Household(
        user_id=user.id,
        email=user.email,
        event_ids=[wedding.id, party.id],
        storage_keys=keys,
        bystander_id=bystander.id,
        bystander_event_id=bystander_event.id,
    )


def _row_counts(db):
    return {model.__tablename__: db.query(model).count() for model in OWNED_MODELS}


class TestPreview:

    def test_counts_everything_owned(self, db_session, household):
        preview = AccountTeardownService(db_session).preview_deletion(household.user_id)

        assert preview.user.id == household.user_id
        assert preview.user.email == "jordan@example.com"
        assert preview.user.name == "Jordan"
        assert preview.events.count == 2
        assert {e.id for e in preview.events.list} == set(household.event_ids)
        assert preview.uploads.count == 3
        assert preview.uploads.total_size_bytes == 400
        assert sorted(preview.uploads.storage_files_to_delete) == sorted(household.storage_keys)
        assert preview.albums.count == 2
        assert preview.guestbook_entries.count == 3
        assert preview.identity_data.sessions == 2
        assert preview.identity_data.accounts == 1
        assert preview.identity_data.verifications == 1
        assert preview.identity_data.memberships == 1
        assert preview.identity_data.invitations == 1

    def test_preview_is_read_only_and_repeatable(self, db_session, household):
        service = AccountTeardownService(db_session)
        before = _row_counts(db_session)

        first = service.preview_deletion(household.user_id)
        second = service.preview_deletion(household.user_id)

        assert first == second
        assert _row_counts(db_session) == before

    def test_unknown_user_raises(self, db_session):
        with pytest.raises(UserNotFoundError):
            AccountTeardownService(db_session).preview_deletion("missing-user")

    def test_user_without_name_or_data(self, db_session, factory):
        user = factory.user(name=None)

        preview = AccountTeardownService(db_session).preview_deletion(user.id)

        assert preview.user.name == "No name"
        assert preview.events.count == 0
        assert preview.uploads.storage_files_to_delete == []


class TestDeleteUser:

    def test_summary_matches_preview(self, db_session, fake_storage, fake_identity_provider, household):
        service = AccountTeardownService(db_session, fake_storage, fake_identity_provider)
        preview = service.preview_deletion(household.user_id)

        result = service.delete_user(household.user_id)

        assert result.success
        assert result.errors == []
        assert result.deleted_user.id == household.user_id
        assert result.deleted_user.email == "jordan@example.com"
        summary = result.summary
        assert summary.events_deleted == preview.events.count
        assert summary.uploads_deleted == preview.uploads.count
        assert summary.albums_deleted == preview.albums.count
        assert summary.guestbook_entries_deleted == preview.guestbook_entries.count
        assert summary.sessions_revoked == preview.identity_data.sessions
        assert summary.accounts_deleted == preview.identity_data.accounts
        assert summary.verifications_deleted == preview.identity_data.verifications
        assert summary.memberships_deleted == preview.identity_data.memberships
        assert summary.invitations_deleted == preview.identity_data.invitations
        assert summary.storage_files_deleted == len(preview.uploads.storage_files_to_delete)

    def test_no_owned_rows_remain(self, db_session, fake_storage, household):
        AccountTeardownService(db_session, fake_storage).delete_user(household.user_id)

        uid = household.user_id
        assert db_session.get(User, uid) is None
        assert db_session.query(Event).filter(Event.user_id == uid).count() == 0
        for event_id in household.event_ids:
            for model in (Upload, Album, GuestbookEntry):
                assert db_session.query(model).filter(model.event_id == event_id).count() == 0
        assert db_session.query(UserSession).filter(UserSession.user_id == uid).count() == 0
        assert db_session.query(Account).filter(Account.user_id == uid).count() == 0
        assert db_session.query(Member).filter(Member.user_id == uid).count() == 0
        assert db_session.query(Invitation).filter(Invitation.inviter_id == uid).count() == 0
        assert db_session.query(Verification).filter(Verification.identifier == household.email).count() == 0

    def test_bystander_untouched(self, db_session, fake_storage, household):
        AccountTeardownService(db_session, fake_storage).delete_user(household.user_id)

        bid = household.bystander_id
        assert db_session.get(User, bid) is not None
        assert db_session.get(Event, household.bystander_event_id) is not None
        assert db_session.query(Upload).filter(Upload.event_id == household.bystander_event_id).count() == 1
        assert db_session.query(UserSession).filter(UserSession.user_id == bid).count() == 1
        assert db_session.query(Member).filter(Member.user_id == bid).count() == 1
        assert db_session.query(Invitation).filter(Invitation.inviter_id == bid).count() == 1
        assert f"events/{household.bystander_event_id}/keep.jpg" in fake_storage.objects

    def test_storage_files_removed_in_one_batch(self, db_session, fake_storage, household):
        AccountTeardownService(db_session, fake_storage).delete_user(household.user_id)

        assert len(fake_storage.batch_calls) == 1
        assert sorted(fake_storage.batch_calls[0]) == sorted(household.storage_keys)
        assert not set(household.storage_keys) & fake_storage.objects

    def test_sessions_revoked_at_provider(self, db_session, fake_identity_provider, household):
        AccountTeardownService(db_session, identity_provider=fake_identity_provider).delete_user(household.user_id)

        assert fake_identity_provider.revoked == [household.user_id]

    def test_unknown_user_returns_failure(self, db_session, household):
        before = _row_counts(db_session)

        result = AccountTeardownService(db_session).delete_user("missing-user")

        assert not result.success
        assert result.errors == ["User not found"]
        assert result.deleted_user is None
        assert _row_counts(db_session) == before


class TestNonFatalFailures:

    def test_partial_storage_failure_still_succeeds(self, db_session, fake_storage, household):
        fake_storage.failing_keys.add(household.storage_keys[0])

        result = AccountTeardownService(db_session, fake_storage).delete_user(household.user_id)

        assert result.success
        assert result.summary.storage_files_deleted == 2
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Storage cleanup failed")
        assert db_session.get(User, household.user_id) is None

    def test_missing_storage_skips_file_cleanup(self, db_session, household):
        result = AccountTeardownService(db_session, storage=None).delete_user(household.user_id)

        assert result.success
        assert result.summary.storage_files_deleted == 0
        assert result.errors == []
        assert db_session.get(User, household.user_id) is None

    def test_revocation_failure_is_recorded(self, db_session, fake_identity_provider, household):
        fake_identity_provider.fail_revoke = True

        result = AccountTeardownService(db_session, identity_provider=fake_identity_provider).delete_user(
            household.user_id
        )

        assert result.success
        assert result.summary.sessions_revoked == 2
        assert result.errors[0].startswith("Session revocation failed")


class TestRelationalFailure:

    def test_transaction_rolled_back_and_raised(self, db_session, fake_storage, household, monkeypatch):
        service = AccountTeardownService(db_session, fake_storage)
        before = _row_counts(db_session)
        real_delete_rows = service._delete_rows

        def failing_delete_rows(user):
            real_delete_rows(user)
            raise RuntimeError("foreign key violation")

        monkeypatch.setattr(service, "_delete_rows", failing_delete_rows)

        with pytest.raises(AccountDeletionError) as exc:
            service.delete_user(household.user_id)

        assert "foreign key violation" in str(exc.value)
        assert "3 storage files were already deleted" in str(exc.value)
        assert _row_counts(db_session) == before
        assert db_session.get(User, household.user_id) is not None
