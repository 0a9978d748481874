"""Event SQLAlchemy model - one hosted photo gallery"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Text, false, func
from sqlalchemy.orm import relationship

from .base import Base, generate_id, utcnow


class Event(Base):
    """Event (gallery) owned by exactly one user.

    Lifecycle columns:
    - status: 'active' or 'trashed'. A permanently deleted event has no row.
    - trashed_at / delete_at: both NULL while active, both set while trashed.
      delete_at is the end of the grace period (trashed_at + 30 days).

    organization_id grants shared access only; ownership is always user_id.
    """
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'trashed')", name="ck_events_status"),
        CheckConstraint(
            "(trashed_at IS NULL AND delete_at IS NULL) OR "
            "(trashed_at IS NOT NULL AND delete_at IS NOT NULL)",
            name="ck_events_trash_timestamps",
        ),
        Index("ix_events_user_id", "user_id"),
        Index("ix_events_status_delete_at", "status", "delete_at"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    user_id = Column(Text, nullable=False)
    organization_id = Column(Text, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True)
    name = Column(Text, nullable=False)
    couple_names = Column(Text, nullable=False, default="")
    slug = Column(Text, nullable=False, unique=True)
    plan = Column(Text, nullable=False, default="free", server_default="free")
    is_published = Column(Boolean, nullable=False, default=False, server_default=false())
    published_at = Column(DateTime(timezone=True), nullable=True)
    download_window_end = Column(DateTime(timezone=True), nullable=False)
    status = Column(Text, nullable=False, default="active", server_default="active")
    trashed_at = Column(DateTime(timezone=True), nullable=True)
    delete_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    # Relationships
    uploads = relationship("Upload", back_populates="event", passive_deletes=True)
    albums = relationship("Album", back_populates="event", passive_deletes=True)
    guestbook_entries = relationship("GuestbookEntry", back_populates="event", passive_deletes=True)

    @property
    def storage_prefix(self) -> str:
        """Object storage namespace for everything uploaded to this event."""
        return f"events/{self.id}/"

    def __repr__(self):
        return f"<Event(id={self.id}, status='{self.status}', plan='{self.plan}')>"
