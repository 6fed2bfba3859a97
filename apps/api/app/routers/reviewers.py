"""Reviewer roster router."""

from fastapi import APIRouter, Body, Depends, Request, Response
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_csrf_header, require_non_reviewer
from app.schemas.auth import UserSession
from app.schemas.base import SuccessResponse
from app.schemas.reviewer import AddReviewerRequest, AddReviewerResponse, ReviewerListResponse
from app.services import event_service, reviewer_service

router = APIRouter(prefix="/events/{event_id}/reviewers", tags=["reviewers"])

LIST_CACHE_CONTROL = "private, max-age=0, stale-while-revalidate=30"


@router.get("", response_model=ReviewerListResponse)
def list_reviewers(
    event_id: str,
    response: Response,
    session: UserSession = Depends(require_non_reviewer),
    db: Session = Depends(get_db),
):
    event = event_service.get_accessible_event(db, session, event_id)
    result = reviewer_service.list_reviewers(db, session, event)
    response.headers["Cache-Control"] = LIST_CACHE_CONTROL
    return result


@router.post(
    "",
    response_model=AddReviewerResponse,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
async def add_reviewer(
    event_id: str,
    request: Request,
    body: AddReviewerRequest = Body(...),
    session: UserSession = Depends(require_non_reviewer),
    db: Session = Depends(get_db),
):
    """
    Add a reviewer from an event speaker (`type: speaker`) or by email
    (`type: direct`). New accounts get an invitation email; a failed send
    does not undo the roster change.
    """
    event = event_service.get_accessible_event(db, session, event_id)
    result = await reviewer_service.add_reviewer(db, session, event, body, request=request)
    return AddReviewerResponse(
        user_id=result.user_id,
        invitation_sent=result.invitation_sent,
        message=result.message,
    )


@router.delete(
    "/{reviewer_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_csrf_header)],
)
def remove_reviewer(
    event_id: str,
    reviewer_id: str,
    request: Request,
    session: UserSession = Depends(require_non_reviewer),
    db: Session = Depends(get_db),
):
    event = event_service.get_accessible_event(db, session, event_id)
    reviewer_service.remove_reviewer(db, session, event, reviewer_id, request=request)
    return SuccessResponse(message="Reviewer removed from event")
