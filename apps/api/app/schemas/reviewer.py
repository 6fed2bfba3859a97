"""Reviewer roster schemas."""

from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import EmailStr, Field

from app.schemas.base import ApiModel


class AddSpeakerReviewer(ApiModel):
    type: Literal["speaker"]
    speaker_id: UUID


class AddDirectReviewer(ApiModel):
    type: Literal["direct"]
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


AddReviewerRequest = Annotated[
    Union[AddSpeakerReviewer, AddDirectReviewer], Field(discriminator="type")
]


class ReviewerRead(ApiModel):
    """One roster entry, whether or not it is linked to a speaker row."""

    user_id: UUID
    speaker_id: UUID | None = None
    first_name: str
    last_name: str
    email: str
    organization: str | None = None
    job_title: str | None = None
    speaker_status: str | None = None
    account_active: bool


class AvailableSpeaker(ApiModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    organization: str | None = None
    job_title: str | None = None
    status: str


class ReviewerListResponse(ApiModel):
    reviewers: list[ReviewerRead]
    available_speakers: list[AvailableSpeaker]


class AddReviewerResponse(ApiModel):
    success: bool = True
    user_id: UUID
    invitation_sent: bool
    message: str
