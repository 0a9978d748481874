"""Event-owned content: uploads, albums and guestbook entries.

All three are cascade-owned by an Event; their rows never outlive it.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Text, func
from sqlalchemy.orm import relationship

from .base import Base, generate_id, utcnow


class Album(Base):
    __tablename__ = "albums"
    __table_args__ = (
        Index("ix_albums_event_id", "event_id"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    event_id = Column(Text, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    event = relationship("Event", back_populates="albums")


class Upload(Base):
    """Media asset uploaded by a guest.

    file_url is the public URL of the object; its path (without the leading
    slash) is the storage key.
    """
    __tablename__ = "uploads"
    __table_args__ = (
        Index("ix_uploads_event_id", "event_id"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    event_id = Column(Text, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    album_id = Column(Text, ForeignKey("albums.id", ondelete="SET NULL"), nullable=True)
    file_name = Column(Text, nullable=False)
    file_url = Column(Text, nullable=False)
    file_type = Column(Text, nullable=False, default="image")
    mime_type = Column(Text, nullable=False, default="image/jpeg")
    file_size = Column(Integer, nullable=False, default=0)
    is_approved = Column(Boolean, nullable=False, default=True)
    uploader_name = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    event = relationship("Event", back_populates="uploads")


class GuestbookEntry(Base):
    __tablename__ = "guestbook_entries"
    __table_args__ = (
        Index("ix_guestbook_entries_event_id", "event_id"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    event_id = Column(Text, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    guest_name = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    is_approved = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    event = relationship("Event", back_populates="guestbook_entries")
