"""Organization, user account and verification token models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import Role
from app.utils.datetime_parsing import utcnow


class Organization(Base):
    """
    A tenant in the multi-tenant system.

    Events belong to an organization and staff users (SUPER_ADMIN, ADMIN,
    ORGANIZER) see only their organization's events.
    """

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    events: Mapped[list["Event"]] = relationship(back_populates="organization")


class User(Base):
    """
    Platform account, independent of any single event.

    REVIEWER and SUBMITTER accounts have no organization. email_verified
    doubles as the "account activated" flag.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.ORGANIZER.value)
    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email_verified: Mapped[datetime | None] = mapped_column(nullable=True)
    token_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    organization: Mapped[Organization | None] = relationship()

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.email

    @property
    def account_active(self) -> bool:
        return self.email_verified is not None


class VerificationToken(Base):
    """
    Single-use invitation / password-setup token.

    Only the SHA-256 hash of the raw token is stored. Rows are deleted
    when the invitation is accepted or found expired.
    """

    __tablename__ = "verification_tokens"
    __table_args__ = (Index("ix_verification_tokens_expires", "expires"),)

    identifier: Mapped[str] = mapped_column(String(255), primary_key=True)
    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    expires: Mapped[datetime] = mapped_column(nullable=False)
