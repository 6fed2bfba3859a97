"""Abstract service - session-authenticated create/read/update/delete.

Order inside every write: authorize (pure policy) -> validate references
(speaker, track) -> plan the lifecycle transition -> mutate -> audit ->
commit. Status notifications are returned to the router, which schedules
them after the response.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Request
from sqlalchemy import case
from sqlalchemy.orm import Session, joinedload

from app.core import abstract_lifecycle, policies
from app.core.permissions import Action, Resource
from app.core.structured_logging import build_log_context
from app.db.enums import AbstractStatus, AuditAction, AuditEntityType, Role
from app.db.models import Abstract, Event, Speaker
from app.schemas.abstract import AbstractCreate, AbstractRead, AbstractUpdate
from app.schemas.auth import UserSession
from app.services import audit_service, event_service
from app.services.errors import ConflictError, NotFoundError, enforce
from app.services.notification_service import StatusNotification
from app.utils.datetime_parsing import utcnow
from app.utils.normalization import normalize_optional_text

logger = logging.getLogger(__name__)


def to_read(abstract: Abstract, role: Role) -> AbstractRead:
    """Serialize, redacting review fields for roles that may not see them."""
    data = AbstractRead.model_validate(abstract, from_attributes=True)
    if not policies.can_view_review_fields(role):
        data.review_notes = None
        data.review_score = None
    return data


def _base_query(db: Session, event_id: UUID):
    return (
        db.query(Abstract)
        .options(joinedload(Abstract.speaker), joinedload(Abstract.track))
        .filter(Abstract.event_id == event_id)
    )


def list_abstracts(
    db: Session,
    session: UserSession,
    event: Event,
    *,
    status: str | None = None,
    track_id: UUID | None = None,
    speaker_id: UUID | None = None,
) -> list[Abstract]:
    """
    List an event's abstracts, newest submission first.

    SUBMITTER callers only see abstracts of speakers linked to them.
    An unknown `status` filter is ignored.
    """
    enforce(policies.evaluate(session.role, Action.READ, Resource.ABSTRACT))

    query = _base_query(db, event.id)
    if status and AbstractStatus.has_value(status):
        query = query.filter(Abstract.status == status)
    if track_id:
        query = query.filter(Abstract.track_id == track_id)
    if speaker_id:
        query = query.filter(Abstract.speaker_id == speaker_id)
    if session.role == Role.SUBMITTER:
        query = query.join(Speaker, Abstract.speaker_id == Speaker.id).filter(
            Speaker.user_id == session.user_id
        )

    # Unsubmitted drafts (NULL submitted_at) last on every backend
    return query.order_by(
        case((Abstract.submitted_at.is_(None), 1), else_=0),
        Abstract.submitted_at.desc(),
        Abstract.created_at.desc(),
    ).all()


def _load(db: Session, event: Event, abstract_id: UUID) -> Abstract:
    abstract = _base_query(db, event.id).filter(Abstract.id == abstract_id).first()
    if not abstract:
        raise NotFoundError("Abstract not found")
    return abstract


def get_abstract(db: Session, session: UserSession, event: Event, abstract_id: UUID) -> Abstract:
    abstract = _load(db, event, abstract_id)
    enforce(policies.evaluate_abstract_read(session, abstract.speaker.user_id))
    return abstract


def create_abstract(
    db: Session,
    session: UserSession,
    event: Event,
    data: AbstractCreate,
    request: Request | None = None,
) -> Abstract:
    """
    Create an abstract for one of the event's speakers.

    Raises:
        AccessDenied: policy denial (REVIEWER, or SUBMITTER for another speaker)
        NotFoundError: speaker or track not in this event
        TransitionError: status other than DRAFT/SUBMITTED
    """
    enforce(policies.deny_reviewer(session.role))

    speaker = (
        db.query(Speaker)
        .filter(Speaker.id == data.speaker_id, Speaker.event_id == event.id)
        .first()
    )
    if not speaker:
        raise NotFoundError("Speaker not found")
    enforce(policies.evaluate_abstract_create(session, speaker.user_id))

    if data.track_id:
        event_service.get_event_track(db, event.id, data.track_id)

    transition = abstract_lifecycle.plan_initial(data.status)
    abstract = Abstract(
        event_id=event.id,
        speaker_id=speaker.id,
        title=data.title,
        content=data.content,
        track_id=data.track_id,
    )
    abstract_lifecycle.apply_transition(abstract, transition, utcnow())
    db.add(abstract)
    db.flush()

    finish_audit = audit_service.stage(
        db,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.ABSTRACT,
        entity_id=abstract.id,
        event_id=event.id,
        user_id=session.user_id,
        changes={"title": abstract.title, "status": abstract.status, "speakerId": speaker.id},
        request=request,
    )
    db.commit()
    finish_audit()
    db.refresh(abstract)

    logger.info(
        "Abstract created",
        extra=build_log_context(
            user_id=session.user_id, event_id=event.id, abstract_id=abstract.id
        ),
    )
    return abstract


def update_abstract(
    db: Session,
    session: UserSession,
    event: Event,
    abstract_id: UUID,
    data: AbstractUpdate,
    request: Request | None = None,
) -> tuple[Abstract, StatusNotification | None]:
    """
    Apply a partial update, including review decisions.

    Returns the refreshed abstract and, for review actions on an abstract
    whose speaker has an email, the status notification to send.

    Raises:
        AccessDenied: policy denial
        NotFoundError: abstract or track not in this event
        TransitionError: status change not allowed from the current status
    """
    enforce(policies.deny_reviewer(session.role))

    abstract = _load(db, event, abstract_id)
    provided = data.provided_fields()
    target_status = data.status if "status" in provided else None

    enforce(
        policies.evaluate_abstract_update(
            session,
            owner_user_id=abstract.speaker.user_id,
            current_status=abstract.status,
            fields=provided,
            target_status=target_status,
        )
    )

    if "track_id" in provided and data.track_id is not None:
        event_service.get_event_track(db, event.id, data.track_id)

    transition = None
    if target_status is not None:
        transition = abstract_lifecycle.plan_transition(abstract.status, target_status)

    previous_status = abstract.status
    changes: dict[str, object] = {}
    for field in ("title", "content", "track_id", "specialty", "review_notes", "review_score"):
        if field in provided:
            value = getattr(data, field)
            if field in ("specialty", "review_notes"):
                value = normalize_optional_text(value)
            setattr(abstract, field, value)
            changes[field] = value
    if transition is not None:
        abstract_lifecycle.apply_transition(abstract, transition, utcnow())
        changes["status"] = {"from": previous_status, "to": transition.to_status.value}

    is_review = transition is not None and transition.is_review
    finish_audit = audit_service.stage(
        db,
        action=AuditAction.REVIEW if is_review else AuditAction.UPDATE,
        entity_type=AuditEntityType.ABSTRACT,
        entity_id=abstract.id,
        event_id=event.id,
        user_id=session.user_id,
        changes=changes,
        request=request,
    )
    db.commit()
    finish_audit()
    db.refresh(abstract)

    notification = None
    if is_review and abstract.speaker.email:
        notification = StatusNotification(
            to_email=abstract.speaker.email,
            recipient_name=f"{abstract.speaker.first_name} {abstract.speaker.last_name}".strip(),
            event_name=event.name,
            event_slug=event.slug,
            abstract_id=str(abstract.id),
            abstract_title=abstract.title,
            new_status=abstract.status,
            review_notes=abstract.review_notes,
            review_score=abstract.review_score,
            management_token=abstract.management_token,
        )

    logger.info(
        "Abstract %s", "reviewed" if is_review else "updated",
        extra=build_log_context(
            user_id=session.user_id, event_id=event.id, abstract_id=abstract.id
        ),
    )
    return abstract, notification


def delete_abstract(
    db: Session,
    session: UserSession,
    event: Event,
    abstract_id: UUID,
    request: Request | None = None,
) -> None:
    """
    Raises:
        AccessDenied: caller is not SUPER_ADMIN
        NotFoundError: abstract not in this event
        ConflictError: abstract is scheduled in a session
    """
    enforce(policies.evaluate_abstract_delete(session))

    abstract = _load(db, event, abstract_id)
    if abstract.event_session_id is not None:
        raise ConflictError("Cannot delete abstract that is linked to a session")

    finish_audit = audit_service.stage(
        db,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.ABSTRACT,
        entity_id=abstract.id,
        event_id=event.id,
        user_id=session.user_id,
        changes={"title": abstract.title, "status": abstract.status},
        request=request,
    )
    db.delete(abstract)
    db.commit()
    finish_audit()
