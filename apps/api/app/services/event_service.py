"""Event service - scoped event lookup and typed settings access."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.abstract_lifecycle import deadline_passed
from app.db.enums import ORG_SCOPED_ROLES, PUBLIC_EVENT_STATUSES, Role
from app.db.models import Event, Speaker, Track
from app.schemas.auth import UserSession
from app.schemas.event_settings import EventSettings, merge_settings
from app.services.errors import NotFoundError, SubmissionsClosedError


def _parse_uuid(value: UUID | str) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def get_event_settings(event: Event) -> EventSettings:
    return EventSettings.from_document(event.settings)


def update_event_settings(event: Event, **updates) -> None:
    """Shallow-merge named settings keys onto the event (no flush)."""
    event.settings = merge_settings(event.settings, **updates)


def get_accessible_event(db: Session, session: UserSession, event_id: UUID | str) -> Event:
    """
    Load an event the caller may see.

    - SUPER_ADMIN / ADMIN / ORGANIZER: events of their organization
    - REVIEWER: events whose reviewer roster contains them
    - SUBMITTER: events where they own a speaker record

    Raises:
        NotFoundError: unknown event or outside the caller's scope
    """
    parsed = _parse_uuid(event_id)
    event = db.get(Event, parsed) if parsed else None
    if not event or not can_access_event(db, session, event):
        raise NotFoundError("Event not found")
    return event


def can_access_event(db: Session, session: UserSession, event: Event) -> bool:
    if session.role in ORG_SCOPED_ROLES:
        return session.org_id is not None and event.organization_id == session.org_id
    if session.role == Role.REVIEWER:
        return str(session.user_id) in get_event_settings(event).reviewer_user_ids
    if session.role == Role.SUBMITTER:
        owned = (
            db.query(Speaker.id)
            .filter(Speaker.event_id == event.id, Speaker.user_id == session.user_id)
            .first()
        )
        return owned is not None
    return False


def get_public_event(db: Session, slug_or_id: str) -> Event:
    """
    Resolve a PUBLISHED or LIVE event by slug or id.

    Raises:
        NotFoundError: no such public event
    """
    statuses = [s.value for s in PUBLIC_EVENT_STATUSES]
    criteria = [Event.slug == slug_or_id]
    parsed = _parse_uuid(slug_or_id)
    if parsed:
        criteria.append(Event.id == parsed)
    event = (
        db.query(Event)
        .filter(or_(*criteria), Event.status.in_(statuses))
        .order_by(Event.created_at.asc())
        .first()
    )
    if not event:
        raise NotFoundError("Event not found")
    return event


def ensure_submissions_open(event: Event, now: datetime) -> EventSettings:
    """
    Gate for public submission and submitter registration.

    Raises:
        SubmissionsClosedError: submissions disabled or deadline passed
    """
    event_settings = get_event_settings(event)
    if not event_settings.allow_abstract_submissions:
        raise SubmissionsClosedError("Abstract submissions are not open for this event")
    if deadline_passed(event_settings.abstract_deadline, now):
        raise SubmissionsClosedError("The abstract submission deadline has passed")
    return event_settings


def get_event_track(db: Session, event_id: UUID, track_id: UUID) -> Track:
    """
    Raises:
        NotFoundError: track missing or belongs to another event
    """
    track = (
        db.query(Track)
        .filter(Track.id == track_id, Track.event_id == event_id)
        .first()
    )
    if not track:
        raise NotFoundError("Track not found")
    return track


def list_tracks(db: Session, event_id: UUID) -> list[Track]:
    return (
        db.query(Track)
        .filter(Track.event_id == event_id)
        .order_by(Track.sort_order.asc(), Track.name.asc())
        .all()
    )
