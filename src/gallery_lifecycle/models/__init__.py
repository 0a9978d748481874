"""SQLAlchemy models for the gallery lifecycle engine"""

from .base import Base, PortableJSONB
from .event import Event
from .media import Album, GuestbookEntry, Upload
from .deletion_event import DeletionEvent
from .user import Account, Invitation, Member, Organization, User, UserSession, Verification

__all__ = [
    "Base",
    "PortableJSONB",
    "Event",
    "Album",
    "GuestbookEntry",
    "Upload",
    "DeletionEvent",
    "User",
    "Organization",
    "UserSession",
    "Account",
    "Verification",
    "Member",
    "Invitation",
]
