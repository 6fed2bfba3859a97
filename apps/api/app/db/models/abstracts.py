"""Abstract submission model."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import DEFAULT_ABSTRACT_STATUS
from app.utils.datetime_parsing import utcnow


class Abstract(Base):
    """
    A speaker's talk proposal for one event.

    Status changes go through app.core.abstract_lifecycle. `version` is the
    optimistic lock so two concurrent reviews cannot silently overwrite
    each other.
    """

    __tablename__ = "abstracts"
    __table_args__ = (
        CheckConstraint(
            "review_score IS NULL OR (review_score >= 0 AND review_score <= 100)",
            name="ck_abstracts_review_score_range",
        ),
        Index("ix_abstracts_event_status", "event_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    speaker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("speakers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    track_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("tracks.id", ondelete="SET NULL"), nullable=True
    )
    specialty: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=DEFAULT_ABSTRACT_STATUS.value
    )
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    review_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    management_token: Mapped[str | None] = mapped_column(
        String(64), unique=True, nullable=True
    )
    event_session_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("event_sessions.id", ondelete="SET NULL"), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    event: Mapped["Event"] = relationship()
    speaker: Mapped["Speaker"] = relationship()
    track: Mapped["Track | None"] = relationship()
    event_session: Mapped["EventSession | None"] = relationship()
