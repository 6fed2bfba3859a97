"""Schemas for the unauthenticated public surface."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, model_validator

from app.db.enums import AbstractStatus
from app.schemas.abstract import Body, Title, TrackSummary
from app.schemas.base import ApiModel


class PublicAbstractSubmit(ApiModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    company: str | None = Field(default=None, max_length=255)
    title: Title
    content: Body
    track_id: UUID | None = None


class SubmitterRegister(ApiModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    organization: str | None = Field(default=None, max_length=255)
    job_title: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)


class TokenAbstractUpdate(ApiModel):
    """
    Only title, content and trackId can change through a management link.

    Other keys (status, review fields, speaker) are dropped, so clients that
    post the whole form still work.
    """

    title: Title | None = None
    content: Body | None = None
    track_id: UUID | None = None

    @model_validator(mode="after")
    def reject_null_required(self) -> "TokenAbstractUpdate":
        for name in ("title", "content"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class TokenSpeaker(ApiModel):
    first_name: str
    last_name: str
    email: str
    company: str | None = None


class TokenEvent(ApiModel):
    id: UUID
    name: str
    slug: str
    tracks: list[TrackSummary]


class TokenAbstractRead(ApiModel):
    id: UUID
    title: str
    content: str
    status: AbstractStatus
    review_notes: str | None
    review_score: int | None
    submitted_at: datetime | None
    reviewed_at: datetime | None
    created_at: datetime
    updated_at: datetime
    track: TrackSummary | None
    speaker: TokenSpeaker
    event: TokenEvent
    is_editable: bool
    deadline_passed: bool


class TokenAbstractUpdateResponse(ApiModel):
    id: UUID
    title: str
    content: str
    status: AbstractStatus
    track_id: UUID | None
    updated_at: datetime


class PublicEventRead(ApiModel):
    id: UUID
    name: str
    slug: str
    organization_name: str | None
    tracks: list[TrackSummary]
    abstract_submissions_open: bool
    abstract_deadline: datetime | None
