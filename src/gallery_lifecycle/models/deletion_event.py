"""DeletionEvent SQLAlchemy model"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Text, func

from .base import Base, PortableJSONB, generate_id, utcnow


class DeletionEvent(Base):
    """Immutable audit record of an event lifecycle transition.

    Entries are append-only and should never be updated or deleted.
    event_id is nulled by the database when the event row is physically
    removed, so the record outlives the event it describes; the event id is
    also kept in metadata for that reason.
    """
    __tablename__ = "deletion_events"
    __table_args__ = (
        CheckConstraint(
            "action IN ('trashed', 'restored', 'deleted')",
            name="ck_deletion_events_action",
        ),
        Index("ix_deletion_events_event_id", "event_id"),
        Index("ix_deletion_events_executed_at", "executed_at"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    event_id = Column(Text, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)
    action = Column(Text, nullable=False)
    reason = Column(Text, nullable=True)
    executed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    metadata_json = Column("metadata", PortableJSONB, nullable=False, default=dict)

    def to_dict(self):
        """Convert deletion event to dictionary representation"""
        return {
            "id": self.id,
            "event_id": self.event_id,
            "action": self.action,
            "reason": self.reason,
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
            "metadata": self.metadata_json,
        }
