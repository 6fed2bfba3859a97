"""Public (unauthenticated) endpoints: event summary, abstract submission,
submitter registration and management-token access."""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.core.rate_limit import limiter
from app.schemas.base import SuccessResponse, parse_body
from app.schemas.public import (
    PublicAbstractSubmit,
    PublicEventRead,
    SubmitterRegister,
    TokenAbstractRead,
    TokenAbstractUpdate,
    TokenAbstractUpdateResponse,
)
from app.services import notification_service, public_abstract_service, user_service

router = APIRouter(prefix="/public", tags=["public"])


# =============================================================================
# Events
# =============================================================================

@router.get("/events/{slug}", response_model=PublicEventRead)
def get_public_event(slug: str, db: Session = Depends(get_db)):
    """Event summary driving the public submission form."""
    return public_abstract_service.get_public_event_summary(db, slug)


@router.post("/events/{slug}/abstracts", response_model=SuccessResponse)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_SUBMIT)
def submit_abstract(
    request: Request,
    slug: str,
    background_tasks: BackgroundTasks,
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
):
    """
    Anonymous abstract submission.

    The event must be public and open before the body is validated, so a
    closed event answers 403 regardless of the payload. The management
    link is only ever delivered by email.
    """
    event = public_abstract_service.open_event_for_submission(db, slug)
    data = parse_body(PublicAbstractSubmit, payload)
    result = public_abstract_service.submit_abstract(db, event, data, request=request)
    background_tasks.add_task(
        notification_service.send_submission_confirmation, result.confirmation
    )
    return SuccessResponse(message=public_abstract_service.SUBMISSION_SUCCESS_MESSAGE)


@router.post("/events/{slug}/submitter", response_model=SuccessResponse)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_SUBMIT)
def register_submitter(
    request: Request,
    slug: str,
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
):
    """Create a SUBMITTER account tied to the event's speaker record."""
    event = public_abstract_service.open_event_for_submission(db, slug)
    data = parse_body(SubmitterRegister, payload)
    user_service.register_submitter(db, event, data, request=request)
    return SuccessResponse(message=user_service.REGISTRATION_SUCCESS_MESSAGE)


# =============================================================================
# Management token
# =============================================================================

@router.get("/abstracts/{token}", response_model=TokenAbstractRead)
def get_abstract_by_token(token: str, db: Session = Depends(get_db)):
    abstract = public_abstract_service.get_by_token(db, token)
    return public_abstract_service.to_token_read(db, abstract)


@router.put("/abstracts/{token}", response_model=TokenAbstractUpdateResponse)
def update_abstract_by_token(
    request: Request,
    token: str,
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
):
    """
    Edit title, content or track through the management link.

    Editability (status, then deadline) is checked before the body.
    """
    abstract = public_abstract_service.get_by_token(db, token)
    public_abstract_service.ensure_token_editable(abstract)
    data = parse_body(TokenAbstractUpdate, payload)
    abstract = public_abstract_service.update_by_token(db, abstract, data, request=request)
    return TokenAbstractUpdateResponse.model_validate(abstract)
