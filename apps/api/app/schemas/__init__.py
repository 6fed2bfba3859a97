"""Pydantic schemas for API request/response models."""

from app.schemas.abstract import AbstractCreate, AbstractRead, AbstractUpdate
from app.schemas.auth import MeResponse, UserSession
from app.schemas.event_settings import EventSettings, merge_settings
from app.schemas.public import (
    PublicAbstractSubmit,
    SubmitterRegister,
    TokenAbstractRead,
    TokenAbstractUpdate,
)
from app.schemas.reviewer import (
    AddDirectReviewer,
    AddReviewerRequest,
    AddSpeakerReviewer,
    ReviewerListResponse,
    ReviewerRead,
)
