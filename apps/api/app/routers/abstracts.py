"""Abstracts router - session-authenticated CRUD and review for one event."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_csrf_header, require_non_reviewer
from app.schemas.abstract import (
    AbstractCreate,
    AbstractDeleteResponse,
    AbstractRead,
    AbstractUpdate,
)
from app.schemas.auth import UserSession
from app.services import abstract_service, event_service, notification_service

router = APIRouter(prefix="/events/{event_id}/abstracts", tags=["abstracts"])

LIST_CACHE_CONTROL = "private, max-age=0, stale-while-revalidate=30"


@router.get("", response_model=list[AbstractRead])
def list_abstracts(
    event_id: str,
    response: Response,
    status: str | None = None,
    track_id: UUID | None = Query(default=None, alias="trackId"),
    speaker_id: UUID | None = Query(default=None, alias="speakerId"),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List abstracts, newest submission first. Unknown status filters are ignored."""
    event = event_service.get_accessible_event(db, session, event_id)
    abstracts = abstract_service.list_abstracts(
        db, session, event, status=status, track_id=track_id, speaker_id=speaker_id
    )
    response.headers["Cache-Control"] = LIST_CACHE_CONTROL
    return [abstract_service.to_read(a, session.role) for a in abstracts]


@router.post(
    "",
    response_model=AbstractRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_abstract(
    event_id: str,
    body: AbstractCreate,
    request: Request,
    session: UserSession = Depends(require_non_reviewer),
    db: Session = Depends(get_db),
):
    event = event_service.get_accessible_event(db, session, event_id)
    abstract = abstract_service.create_abstract(db, session, event, body, request=request)
    return abstract_service.to_read(abstract, session.role)


@router.get("/{abstract_id}", response_model=AbstractRead)
def get_abstract(
    event_id: str,
    abstract_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    event = event_service.get_accessible_event(db, session, event_id)
    abstract = abstract_service.get_abstract(db, session, event, abstract_id)
    return abstract_service.to_read(abstract, session.role)


@router.put(
    "/{abstract_id}",
    response_model=AbstractRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_abstract(
    event_id: str,
    abstract_id: UUID,
    body: AbstractUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    session: UserSession = Depends(require_non_reviewer),
    db: Session = Depends(get_db),
):
    """
    Partial update. Review decisions (ACCEPTED, REJECTED, REVISION_REQUESTED,
    UNDER_REVIEW) email the speaker after the response is sent.
    """
    event = event_service.get_accessible_event(db, session, event_id)
    abstract, notification = abstract_service.update_abstract(
        db, session, event, abstract_id, body, request=request
    )
    if notification is not None:
        background_tasks.add_task(notification_service.send_status_update, notification)
    return abstract_service.to_read(abstract, session.role)


@router.delete(
    "/{abstract_id}",
    response_model=AbstractDeleteResponse,
    dependencies=[Depends(require_csrf_header)],
)
def delete_abstract(
    event_id: str,
    abstract_id: UUID,
    request: Request,
    session: UserSession = Depends(require_non_reviewer),
    db: Session = Depends(get_db),
):
    event = event_service.get_accessible_event(db, session, event_id)
    abstract_service.delete_abstract(db, session, event, abstract_id, request=request)
    return AbstractDeleteResponse()
