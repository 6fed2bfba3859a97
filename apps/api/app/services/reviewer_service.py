"""Reviewer roster service.

The roster lives in Event.settings["reviewerUserIds"]. Adding a reviewer
resolves (or provisions) the User, appends the id and writes the audit
entry in one commit; the Event version column makes concurrent roster
writes fail with StaleDataError instead of losing an entry. The
invitation email goes out after the commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Request
from sqlalchemy.orm import Session

from app.core import policies
from app.core.permissions import Action
from app.core.structured_logging import build_log_context
from app.db.enums import AuditAction, AuditEntityType, Role
from app.db.models import Event, Organization, Speaker, User
from app.schemas.auth import UserSession
from app.schemas.reviewer import (
    AddDirectReviewer,
    AddReviewerRequest,
    AddSpeakerReviewer,
    AvailableSpeaker,
    ReviewerListResponse,
    ReviewerRead,
)
from app.services import audit_service, event_service, notification_service, user_service
from app.services.errors import ConflictError, NotFoundError, enforce
from app.utils.normalization import normalize_email

logger = logging.getLogger(__name__)

ADDED_WITH_INVITATION = "Reviewer added and invitation email sent"
ADDED = "Reviewer added to event"


@dataclass
class PendingInvitation:
    """A freshly provisioned account whose invitation still has to be emailed."""

    email: str
    recipient_name: str
    raw_token: str


@dataclass
class AddReviewerResult:
    user_id: UUID
    invitation_sent: bool

    @property
    def message(self) -> str:
        return ADDED_WITH_INVITATION if self.invitation_sent else ADDED


def _roster(event: Event) -> list[str]:
    return list(event_service.get_event_settings(event).reviewer_user_ids)


def _parse_id(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None


# =============================================================================
# List
# =============================================================================

def list_reviewers(db: Session, session: UserSession, event: Event) -> ReviewerListResponse:
    """
    Project the roster into one Reviewer shape.

    Speaker-linked entries come first (in speaker order), then roster users
    with no speaker row. Ids without a User row are skipped.
    """
    enforce(policies.evaluate_roster(session, Action.READ))

    roster = _roster(event)
    roster_ids = set(roster)
    speakers = (
        db.query(Speaker)
        .filter(Speaker.event_id == event.id)
        .order_by(Speaker.created_at.desc())
        .all()
    )
    users: dict[str, User] = {}
    parsed_ids = [parsed for parsed in map(_parse_id, roster) if parsed]
    if parsed_ids:
        users = {
            str(user.id): user
            for user in db.query(User).filter(User.id.in_(parsed_ids)).all()
        }

    reviewers: list[ReviewerRead] = []
    available: list[AvailableSpeaker] = []
    seen: set[str] = set()
    for speaker in speakers:
        linked = str(speaker.user_id) if speaker.user_id else None
        if linked and linked in roster_ids and linked in users and linked not in seen:
            seen.add(linked)
            reviewers.append(
                ReviewerRead(
                    user_id=speaker.user_id,
                    speaker_id=speaker.id,
                    first_name=speaker.first_name,
                    last_name=speaker.last_name,
                    email=speaker.email,
                    organization=speaker.organization,
                    job_title=speaker.job_title,
                    speaker_status=speaker.status,
                    account_active=users[linked].account_active,
                )
            )
        elif not (linked and linked in roster_ids):
            available.append(AvailableSpeaker.model_validate(speaker))

    for user_id in roster:
        user = users.get(user_id)
        if user is None or user_id in seen:
            continue
        seen.add(user_id)
        reviewers.append(
            ReviewerRead(
                user_id=user.id,
                first_name=user.first_name,
                last_name=user.last_name,
                email=user.email,
                account_active=user.account_active,
            )
        )

    return ReviewerListResponse(reviewers=reviewers, available_speakers=available)


# =============================================================================
# Add
# =============================================================================

@dataclass
class Resolution:
    """Who gets added, and the invitation to send if the account is new."""

    user_id: UUID
    email: str
    pending: PendingInvitation | None = None


def _existing_reviewer(db: Session, email: str) -> User | None:
    """
    Look up an account for the email, rejecting non-reviewer roles.

    Raises:
        ConflictError: account exists with another role
    """
    user = user_service.get_user_by_email(db, email)
    if user and user.role != Role.REVIEWER.value:
        raise ConflictError(
            f"User already exists with role {user.role}. "
            "Change their role in Settings > Users first."
        )
    return user


def _ensure_not_on_roster(event: Event, user_id: UUID) -> None:
    if str(user_id) in _roster(event):
        raise ConflictError("This person is already a reviewer for this event")


def _provision(db: Session, *, email: str, first_name: str, last_name: str) -> Resolution:
    user, raw_token = user_service.create_invited_reviewer(
        db, email=email, first_name=first_name, last_name=last_name
    )
    pending = PendingInvitation(
        email=user.email,
        recipient_name=f"{first_name} {last_name}",
        raw_token=raw_token,
    )
    return Resolution(user_id=user.id, email=user.email, pending=pending)


def _resolve_speaker(db: Session, event: Event, data: AddSpeakerReviewer) -> Resolution:
    speaker = (
        db.query(Speaker)
        .filter(Speaker.id == data.speaker_id, Speaker.event_id == event.id)
        .first()
    )
    if not speaker:
        raise NotFoundError("Speaker not found")

    if speaker.user_id:
        _ensure_not_on_roster(event, speaker.user_id)
        return Resolution(user_id=speaker.user_id, email=speaker.email)

    user = _existing_reviewer(db, speaker.email)
    if user:
        _ensure_not_on_roster(event, user.id)
        resolution = Resolution(user_id=user.id, email=user.email)
    else:
        resolution = _provision(
            db,
            email=speaker.email,
            first_name=speaker.first_name,
            last_name=speaker.last_name,
        )
    speaker.user_id = resolution.user_id
    return resolution


def _resolve_direct(db: Session, event: Event, data: AddDirectReviewer) -> Resolution:
    email = normalize_email(data.email)
    user = _existing_reviewer(db, email)
    if user:
        _ensure_not_on_roster(event, user.id)
        return Resolution(user_id=user.id, email=user.email)
    return _provision(db, email=email, first_name=data.first_name, last_name=data.last_name)


async def add_reviewer(
    db: Session,
    session: UserSession,
    event: Event,
    data: AddReviewerRequest,
    request: Request | None = None,
) -> AddReviewerResult:
    """
    Put a person on the event's reviewer roster.

    Roster membership is checked before anything is written, so a
    duplicate add leaves no trace.

    Raises:
        AccessDenied: REVIEWER caller
        NotFoundError: speaker not in this event
        ConflictError: account has another role, or already on the roster
    """
    enforce(policies.evaluate_roster(session, Action.CREATE))

    if isinstance(data, AddSpeakerReviewer):
        resolution = _resolve_speaker(db, event, data)
    else:
        resolution = _resolve_direct(db, event, data)
    pending = resolution.pending

    event_service.update_event_settings(
        event, reviewer_user_ids=[*_roster(event), str(resolution.user_id)]
    )
    finish_audit = audit_service.stage(
        db,
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.EVENT_REVIEWER,
        entity_id=resolution.user_id,
        event_id=event.id,
        user_id=session.user_id,
        changes={
            "type": data.type,
            "email": audit_service.hash_email(resolution.email),
            "invited": pending is not None,
        },
        request=request,
    )
    db.commit()
    finish_audit()

    invitation_sent = False
    if pending is not None:
        invitation_sent = await _send_invitation(db, session, pending)
        if not invitation_sent:
            logger.warning(
                "Failed to send reviewer invitation email to %s",
                audit_service.hash_email(pending.email),
                extra=build_log_context(user_id=session.user_id, event_id=event.id),
            )

    logger.info(
        "Reviewer added",
        extra=build_log_context(user_id=session.user_id, event_id=event.id),
    )
    return AddReviewerResult(user_id=resolution.user_id, invitation_sent=invitation_sent)


async def _send_invitation(db: Session, session: UserSession, pending: PendingInvitation) -> bool:
    organization = db.get(Organization, session.org_id) if session.org_id else None
    inviter_name = session.display_name or session.email or "A team member"
    return await notification_service.send_reviewer_invitation(
        to_email=pending.email,
        recipient_name=pending.recipient_name,
        organization_name=organization.name if organization else "your organization",
        inviter_name=inviter_name,
        raw_token=pending.raw_token,
    )


# =============================================================================
# Remove
# =============================================================================

def remove_reviewer(
    db: Session,
    session: UserSession,
    event: Event,
    reviewer_id: UUID | str,
    request: Request | None = None,
) -> None:
    """
    Drop a user id from the roster. Other settings keys are untouched.

    Raises:
        AccessDenied: REVIEWER caller
        NotFoundError: id not on the roster
    """
    enforce(policies.evaluate_roster(session, Action.DELETE))

    roster = _roster(event)
    target = str(reviewer_id)
    if target not in roster:
        raise NotFoundError("Reviewer not found for this event")

    event_service.update_event_settings(
        event, reviewer_user_ids=[value for value in roster if value != target]
    )
    finish_audit = audit_service.stage(
        db,
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.EVENT_REVIEWER,
        entity_id=target,
        event_id=event.id,
        user_id=session.user_id,
        request=request,
    )
    db.commit()
    finish_audit()

    logger.info(
        "Reviewer removed",
        extra=build_log_context(user_id=session.user_id, event_id=event.id),
    )
