"""Pytest fixtures for the lifecycle engine.

Provides reusable test fixtures for:
- Database session on an in-memory SQLite engine (tables created per test)
- Factories for users, events, albums, uploads, guestbook entries and auth rows
- An in-memory object storage fake with injectable failures
- An identity provider fake with injectable failures

Usage:
    def test_sweep(db_session, factory, fake_storage):
        event = factory.event(owner, is_published=True, download_window_end=past)
        RetentionSweepService(db_session, fake_storage).run_trash_sweep(now)
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, List, Optional, Sequence, Set

# Set environment variables BEFORE any imports so cached settings pick them up
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gallery_lifecycle.domain.identity.ports import IdentityProviderError, IdentityProviderPort
from gallery_lifecycle.domain.storage.ports import BatchDeleteResult, ObjectStoragePort, StorageError
from gallery_lifecycle.models import (
    Account,
    Album,
    Base,
    Event,
    GuestbookEntry,
    Invitation,
    Member,
    Organization,
    Upload,
    User,
    UserSession,
    Verification,
)
from gallery_lifecycle.models.base import generate_id

MEDIA_HOST = "https://media.example.com"

# Fixed clock for deterministic lifecycle tests
NOW = datetime(2026, 6, 15, 12, 0, 0, tzinfo=timezone.utc)

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def now() -> datetime:
    return NOW


class Factory:
    """Creates committed rows with sensible defaults."""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, email: Optional[str] = None, name: Optional[str] = "Test User", **kwargs) -> User:
        email = email or f"user-{generate_id()[:8]}@example.com"
        return self._save(User(email=email, name=name, created_at=NOW - timedelta(days=400), **kwargs))

    def organization(self, name: str = "Studio") -> Organization:
        return self._save(Organization(name=name, slug=f"studio-{generate_id()[:8]}"))

    def event(
        self,
        owner: User,
        plan: str = "free",
        is_published: bool = False,
        download_window_end: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        status: str = "active",
        name: str = "Wedding",
        couple_names: str = "Alex & Sam",
        trashed_at: Optional[datetime] = None,
        delete_at: Optional[datetime] = None,
        **kwargs,
    ) -> Event:
        return self._save(Event(
            user_id=owner.id,
            name=name,
            couple_names=couple_names,
            slug=f"wedding-{generate_id()[:12]}",
            plan=plan,
            is_published=is_published,
            download_window_end=download_window_end or NOW + timedelta(days=60),
            created_at=created_at or NOW - timedelta(days=10),
            updated_at=created_at or NOW - timedelta(days=10),
            status=status,
            trashed_at=trashed_at,
            delete_at=delete_at,
            **kwargs,
        ))

    def trashed_event(self, owner: User, delete_at: datetime, **kwargs) -> Event:
        return self.event(
            owner,
            status="trashed",
            trashed_at=delete_at - timedelta(days=30),
            delete_at=delete_at,
            **kwargs,
        )

    def album(self, event: Event, name: str = "Ceremony") -> Album:
        return self._save(Album(event_id=event.id, name=name))

    def upload(
        self,
        event: Event,
        file_name: str = "photo.jpg",
        file_size: int = 1024,
        album: Optional[Album] = None,
        file_url: Optional[str] = None,
    ) -> Upload:
        return self._save(Upload(
            event_id=event.id,
            album_id=album.id if album else None,
            file_name=file_name,
            file_url=file_url or f"{MEDIA_HOST}/events/{event.id}/{file_name}",
            file_size=file_size,
        ))

    def guestbook_entry(self, event: Event, guest_name: str = "Grandma") -> GuestbookEntry:
        return self._save(GuestbookEntry(event_id=event.id, guest_name=guest_name, message="Congratulations!"))

    def session(self, user: User) -> UserSession:
        return self._save(UserSession(user_id=user.id, expires_at=NOW + timedelta(days=7)))

    def account(self, user: User, provider_id: str = "credential") -> Account:
        return self._save(Account(user_id=user.id, account_id=user.id, provider_id=provider_id))

    def verification(self, identifier: str) -> Verification:
        return self._save(Verification(identifier=identifier, value=generate_id(), expires_at=NOW + timedelta(hours=1)))

    def member(self, user: User, organization: Organization) -> Member:
        return self._save(Member(user_id=user.id, organization_id=organization.id))

    def invitation(self, inviter: User, organization: Organization, email: str) -> Invitation:
        return self._save(Invitation(
            inviter_id=inviter.id,
            organization_id=organization.id,
            email=email,
            expires_at=NOW + timedelta(days=7),
        ))


@pytest.fixture
def factory(db_session: Session) -> Factory:
    return Factory(db_session)


class FakeObjectStorage(ObjectStoragePort):
    """In-memory ObjectStoragePort.

    failing_prefixes: list_keys raises StorageError for these prefixes
    failing_keys: single and batch deletes report these keys as failed
    """

    def __init__(self, keys: Sequence[str] = ()):
        self.objects: Set[str] = set(keys)
        self.failing_prefixes: Set[str] = set()
        self.failing_keys: Set[str] = set()
        self.batch_calls: List[List[str]] = []
        self.single_deletes: List[str] = []

    def put(self, *keys: str) -> None:
        self.objects.update(keys)

    def list_keys(self, prefix: str) -> List[str]:
        if prefix in self.failing_prefixes:
            raise StorageError(f"Failed to list objects under {prefix}: AccessDenied")
        return sorted(k for k in self.objects if k.startswith(prefix))

    def delete_objects(self, keys: Sequence[str]) -> BatchDeleteResult:
        self.batch_calls.append(list(keys))
        result = BatchDeleteResult(requested=len(keys))
        for key in keys:
            if key in self.failing_keys:
                result.errors.append(f"Failed to delete {key}: InternalError")
                continue
            self.objects.discard(key)
            result.deleted += 1
        return result

    def delete_object(self, key: str) -> bool:
        self.single_deletes.append(key)
        if key in self.failing_keys:
            raise StorageError(f"Failed to delete {key}: InternalError")
        self.objects.discard(key)
        return True


@pytest.fixture
def fake_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


class FakeIdentityProvider(IdentityProviderPort):
    """Records calls; fails when told to.

    on_remove runs when remove_user succeeds, standing in for the provider
    deleting the user from the shared database.
    """

    def __init__(self, on_remove: Optional[Callable[[str], None]] = None):
        self.revoked: List[str] = []
        self.removed: List[str] = []
        self.fail_revoke = False
        self.fail_remove = False
        self.on_remove = on_remove

    def revoke_user_sessions(self, user_id: str) -> None:
        if self.fail_revoke:
            raise IdentityProviderError("Identity provider returned 503 for /admin/revoke-user-sessions")
        self.revoked.append(user_id)

    def remove_user(self, user_id: str) -> None:
        if self.fail_remove:
            raise IdentityProviderError("Identity provider returned 500 for /admin/remove-user")
        self.removed.append(user_id)
        if self.on_remove:
            self.on_remove(user_id)


@pytest.fixture
def fake_identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def make_storage() -> Callable[..., FakeObjectStorage]:
    return FakeObjectStorage


@pytest.fixture
def make_identity_provider() -> Callable[..., FakeIdentityProvider]:
    return FakeIdentityProvider
