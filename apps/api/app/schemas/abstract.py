"""Abstract request/response schemas (session-authenticated surface)."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, Field, model_validator
from pydantic.alias_generators import to_camel

from app.db.enums import DEFAULT_ABSTRACT_STATUS, AbstractStatus
from app.schemas.base import ApiModel


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# Non-blank after trimming
Title = Annotated[str, Field(min_length=1, max_length=500), AfterValidator(_strip_required)]
Body = Annotated[str, Field(min_length=1), AfterValidator(_strip_required)]


class AbstractCreate(ApiModel):
    speaker_id: UUID
    title: Title
    content: Body
    track_id: UUID | None = None
    status: AbstractStatus = DEFAULT_ABSTRACT_STATUS


class AbstractUpdate(ApiModel):
    """
    Partial update. Only keys present in the request are applied;
    `trackId: null` clears the track, `reviewScore: null` clears the score.
    """

    title: Title | None = None
    content: Body | None = None
    track_id: UUID | None = None
    specialty: str | None = None
    status: AbstractStatus | None = None
    review_notes: str | None = None
    review_score: int | None = Field(default=None, ge=0, le=100)

    @model_validator(mode="after")
    def reject_null_required(self) -> "AbstractUpdate":
        for name in ("title", "content", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def provided_fields(self) -> set[str]:
        return set(self.model_fields_set)


class TrackSummary(ApiModel):
    id: UUID
    name: str
    color: str | None = None


class SpeakerSummary(ApiModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    company: str | None = None
    user_id: UUID | None = None


class AbstractRead(ApiModel):
    id: UUID
    event_id: UUID
    speaker_id: UUID
    title: str
    content: str
    track_id: UUID | None
    specialty: str | None
    status: AbstractStatus
    review_notes: str | None = None
    review_score: int | None = None
    submitted_at: datetime | None
    reviewed_at: datetime | None
    event_session_id: UUID | None
    created_at: datetime
    updated_at: datetime
    speaker: SpeakerSummary | None = None
    track: TrackSummary | None = None


class AbstractDeleteResponse(ApiModel):
    success: bool = True
