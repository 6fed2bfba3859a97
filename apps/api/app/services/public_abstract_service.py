"""Public abstract access: anonymous submission and management-token self-service.

The management token is the only credential on this path. Unknown tokens
are indistinguishable from never-issued ones (404). Editability is always
re-checked here, never trusted from the client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import Request
from sqlalchemy.orm import Session, joinedload

from app.core import abstract_lifecycle
from app.core.abstract_lifecycle import EDIT_BLOCK_MESSAGES
from app.core.security import generate_management_token
from app.core.structured_logging import build_log_context
from app.db.enums import AbstractStatus, AuditAction, AuditEntityType, SpeakerStatus
from app.db.models import Abstract, Event, Speaker
from app.schemas.abstract import TrackSummary
from app.schemas.public import (
    PublicAbstractSubmit,
    PublicEventRead,
    TokenAbstractRead,
    TokenAbstractUpdate,
    TokenEvent,
    TokenSpeaker,
)
from app.services import audit_service, event_service
from app.services.errors import NotFoundError, SubmissionsClosedError
from app.services.notification_service import SubmissionConfirmation
from app.utils.datetime_parsing import utcnow
from app.utils.normalization import normalize_email, normalize_name, normalize_optional_text

logger = logging.getLogger(__name__)

SUBMISSION_SUCCESS_MESSAGE = (
    "Abstract submitted successfully. Check your email for a link to track your submission."
)


@dataclass(frozen=True)
class SubmissionResult:
    abstract: Abstract
    confirmation: SubmissionConfirmation


# =============================================================================
# Public event + submission
# =============================================================================

def get_public_event_summary(db: Session, slug: str, now: datetime | None = None) -> PublicEventRead:
    event = event_service.get_public_event(db, slug)
    now = now or utcnow()
    event_settings = event_service.get_event_settings(event)
    open_now = event_settings.allow_abstract_submissions and not abstract_lifecycle.deadline_passed(
        event_settings.abstract_deadline, now
    )
    return PublicEventRead(
        id=event.id,
        name=event.name,
        slug=event.slug,
        organization_name=event.organization.name if event.organization else None,
        tracks=[TrackSummary.model_validate(t) for t in event_service.list_tracks(db, event.id)],
        abstract_submissions_open=open_now,
        abstract_deadline=event_settings.abstract_deadline,
    )


def open_event_for_submission(db: Session, slug: str, now: datetime | None = None) -> Event:
    """
    Resolve the public event and check the submission window.

    Called before the body is validated so a closed event answers 403
    whatever the payload.

    Raises:
        NotFoundError: no PUBLISHED/LIVE event for the slug or id
        SubmissionsClosedError: submissions disabled or deadline passed
    """
    event = event_service.get_public_event(db, slug)
    event_service.ensure_submissions_open(event, now or utcnow())
    return event


def upsert_speaker(
    db: Session,
    event: Event,
    *,
    email: str,
    first_name: str,
    last_name: str,
    company: str | None = None,
) -> Speaker:
    """Find the event's speaker by lower-cased email, refreshing names, or create one."""
    normalized = normalize_email(email)
    speaker = (
        db.query(Speaker)
        .filter(Speaker.event_id == event.id, Speaker.email == normalized)
        .first()
    )
    if speaker:
        speaker.first_name = first_name
        speaker.last_name = last_name
        if company is not None:
            speaker.company = company
    else:
        speaker = Speaker(
            event_id=event.id,
            email=normalized,
            first_name=first_name,
            last_name=last_name,
            company=company,
            status=SpeakerStatus.CONFIRMED.value,
        )
        db.add(speaker)
    db.flush()
    return speaker


def submit_abstract(
    db: Session,
    event: Event,
    data: PublicAbstractSubmit,
    request: Request | None = None,
) -> SubmissionResult:
    """
    Create a SUBMITTED abstract with a fresh management token.

    The token is only delivered by email (returned here inside the
    confirmation for the router to schedule), never in the response.
    """
    if data.track_id:
        event_service.get_event_track(db, event.id, data.track_id)

    speaker = upsert_speaker(
        db,
        event,
        email=data.email,
        first_name=normalize_name(data.first_name) or data.first_name,
        last_name=normalize_name(data.last_name) or data.last_name,
        company=normalize_optional_text(data.company),
    )

    transition = abstract_lifecycle.plan_initial(AbstractStatus.SUBMITTED)
    abstract = Abstract(
        event_id=event.id,
        speaker_id=speaker.id,
        title=data.title,
        content=data.content,
        track_id=data.track_id,
        management_token=generate_management_token(),
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
        changes={"title": abstract.title, "status": abstract.status, "source": "public"},
        request=request,
    )
    db.commit()
    finish_audit()
    db.refresh(abstract)

    logger.info(
        "Public abstract submitted",
        extra=build_log_context(event_id=event.id, abstract_id=abstract.id),
    )
    confirmation = SubmissionConfirmation(
        to_email=speaker.email,
        recipient_name=f"{speaker.first_name} {speaker.last_name}".strip(),
        event_name=event.name,
        event_slug=event.slug,
        abstract_title=abstract.title,
        management_token=abstract.management_token,
    )
    return SubmissionResult(abstract=abstract, confirmation=confirmation)


# =============================================================================
# Management token
# =============================================================================

def get_by_token(db: Session, token: str) -> Abstract:
    """
    Raises:
        NotFoundError: no abstract carries this token
    """
    if not token:
        raise NotFoundError("Abstract not found")
    abstract = (
        db.query(Abstract)
        .options(
            joinedload(Abstract.speaker),
            joinedload(Abstract.track),
            joinedload(Abstract.event),
        )
        .filter(Abstract.management_token == token)
        .first()
    )
    if not abstract:
        raise NotFoundError("Abstract not found")
    return abstract


def _deadline(abstract: Abstract):
    return event_service.get_event_settings(abstract.event).abstract_deadline


def to_token_read(db: Session, abstract: Abstract, now: datetime | None = None) -> TokenAbstractRead:
    now = now or utcnow()
    deadline = _deadline(abstract)
    event = abstract.event
    speaker = abstract.speaker
    return TokenAbstractRead(
        id=abstract.id,
        title=abstract.title,
        content=abstract.content,
        status=abstract.status,
        review_notes=abstract.review_notes,
        review_score=abstract.review_score,
        submitted_at=abstract.submitted_at,
        reviewed_at=abstract.reviewed_at,
        created_at=abstract.created_at,
        updated_at=abstract.updated_at,
        track=TrackSummary.model_validate(abstract.track) if abstract.track else None,
        speaker=TokenSpeaker(
            first_name=speaker.first_name,
            last_name=speaker.last_name,
            email=speaker.email,
            company=speaker.company,
        ),
        event=TokenEvent(
            id=event.id,
            name=event.name,
            slug=event.slug,
            tracks=[TrackSummary.model_validate(t) for t in event_service.list_tracks(db, event.id)],
        ),
        is_editable=abstract_lifecycle.is_editable(abstract.status, deadline, now),
        deadline_passed=abstract_lifecycle.deadline_passed(deadline, now),
    )


def ensure_token_editable(abstract: Abstract, now: datetime | None = None) -> None:
    """
    Raises:
        SubmissionsClosedError: status no longer editable, or deadline passed
    """
    block = abstract_lifecycle.check_editable(abstract.status, _deadline(abstract), now or utcnow())
    if block is not None:
        raise SubmissionsClosedError(EDIT_BLOCK_MESSAGES[block])


def update_by_token(
    db: Session,
    abstract: Abstract,
    data: TokenAbstractUpdate,
    request: Request | None = None,
) -> Abstract:
    """
    Apply a management-link edit.

    The caller must have run ensure_token_editable() first; it is
    repeated here so the write never depends on the caller's ordering.
    A REVISION_REQUESTED abstract goes back to SUBMITTED.
    """
    now = utcnow()
    ensure_token_editable(abstract, now)

    provided = data.model_fields_set
    if "track_id" in provided and data.track_id is not None:
        event_service.get_event_track(db, abstract.event_id, data.track_id)

    previous_status = abstract.status
    changes: dict[str, object] = {}
    for field in ("title", "content", "track_id"):
        if field in provided:
            value = getattr(data, field)
            setattr(abstract, field, value)
            changes[field] = value

    transition = abstract_lifecycle.plan_token_edit(abstract.status)
    abstract_lifecycle.apply_transition(abstract, transition, now)
    if transition.changes_status:
        changes["status"] = {"from": previous_status, "to": transition.to_status.value}

    finish_audit = audit_service.stage(
        db,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.ABSTRACT,
        entity_id=abstract.id,
        event_id=abstract.event_id,
        changes={**changes, "source": "management_link"},
        request=request,
    )
    db.commit()
    finish_audit()
    db.refresh(abstract)
    return abstract
