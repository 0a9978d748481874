"""User and identity-provider SQLAlchemy models.

The auth provider owns sessions, linked accounts, verifications,
organization memberships and invitations. They are cascade-owned by the
User for teardown purposes: deleting a user must reach every one of them.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Text, func
from sqlalchemy.orm import validates

from .base import Base, generate_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Text, primary_key=True, default=generate_id)
    name = Column(Text, nullable=True)
    email = Column(Text, nullable=True, unique=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    role = Column(Text, nullable=True, default="user")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    @validates('email')
    def validate_email(self, key, value):
        """Emails are stored lowercased so email-keyed cleanup matches."""
        return value.strip().lower() if value else value

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Text, primary_key=True, default=generate_id)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())


class UserSession(Base):
    """Login session issued by the auth provider."""
    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_user_id", "user_id"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token = Column(Text, nullable=False, unique=True, default=generate_id)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())


class Account(Base):
    """Credential or OAuth connection linked to a user."""
    __tablename__ = "accounts"
    __table_args__ = (
        Index("ix_accounts_user_id", "user_id"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    account_id = Column(Text, nullable=False)
    provider_id = Column(Text, nullable=False)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())


class Verification(Base):
    """Pending verification keyed by email (identifier), not by user id."""
    __tablename__ = "verifications"
    __table_args__ = (
        Index("ix_verifications_identifier", "identifier"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    identifier = Column(Text, nullable=False)
    value = Column(Text, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=True, default=utcnow)


class Member(Base):
    """Organization membership."""
    __tablename__ = "members"
    __table_args__ = (
        Index("ix_members_user_id", "user_id"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    organization_id = Column(Text, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(Text, nullable=False, default="member")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())


class Invitation(Base):
    """Organization invitation sent by inviter_id to email."""
    __tablename__ = "invitations"
    __table_args__ = (
        Index("ix_invitations_inviter_id", "inviter_id"),
        Index("ix_invitations_email", "email"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    organization_id = Column(Text, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    email = Column(Text, nullable=False)
    role = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending")
    expires_at = Column(DateTime(timezone=True), nullable=False)
    inviter_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
