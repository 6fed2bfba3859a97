"""Composes and sends the core's transactional emails.

All sends are best-effort: results are logged and returned, never raised.
Background-task entry points take plain dataclasses, not ORM rows, since
they run after the request's database session is closed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from app.core.config import settings
from app.core.effects import send_best_effort
from app.services import email_sender, email_templates
from app.services.audit_service import hash_email
from app.types import EmailResult

logger = logging.getLogger(__name__)


def management_link(event_slug: str, management_token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/e/{event_slug}/abstract/{management_token}"


def event_link(event_slug: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/e/{event_slug}"


def invitation_link(raw_token: str, email: str) -> str:
    query = urlencode({"token": raw_token, "email": email})
    return f"{settings.APP_URL.rstrip('/')}/accept-invitation?{query}"


@dataclass(frozen=True)
class SubmissionConfirmation:
    to_email: str
    recipient_name: str
    event_name: str
    event_slug: str
    abstract_title: str
    management_token: str


@dataclass(frozen=True)
class StatusNotification:
    to_email: str
    recipient_name: str
    event_name: str
    event_slug: str
    abstract_id: str
    abstract_title: str
    new_status: str
    review_notes: str | None
    review_score: int | None
    management_token: str | None


async def _send(
    to_email: str,
    rendered: email_templates.RenderedEmail,
    idempotency_key: str | None = None,
) -> EmailResult:
    return await email_sender.send_email(
        to_email=to_email,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
        idempotency_key=idempotency_key,
    )


async def send_submission_confirmation(notice: SubmissionConfirmation) -> bool:
    rendered = email_templates.abstract_submission_confirmation(
        recipient_name=notice.recipient_name,
        event_name=notice.event_name,
        abstract_title=notice.abstract_title,
        management_link=management_link(notice.event_slug, notice.management_token),
    )
    return await send_best_effort(
        f"submission confirmation to {hash_email(notice.to_email)}",
        lambda: _send(notice.to_email, rendered),
    )


async def send_status_update(notice: StatusNotification) -> bool:
    link = (
        management_link(notice.event_slug, notice.management_token)
        if notice.management_token
        else event_link(notice.event_slug)
    )
    rendered = email_templates.abstract_status_update(
        recipient_name=notice.recipient_name,
        event_name=notice.event_name,
        abstract_title=notice.abstract_title,
        new_status=notice.new_status,
        management_link=link,
        review_notes=notice.review_notes,
        review_score=notice.review_score,
    )
    sent = await send_best_effort(
        f"status update for abstract {notice.abstract_id}",
        lambda: _send(notice.to_email, rendered),
    )
    if sent:
        logger.info(
            "Sent %s notification for abstract %s", notice.new_status, notice.abstract_id
        )
    return sent


async def send_reviewer_invitation(
    *,
    to_email: str,
    recipient_name: str,
    organization_name: str,
    inviter_name: str,
    raw_token: str,
) -> bool:
    days = settings.INVITATION_EXPIRY_DAYS
    rendered = email_templates.user_invitation(
        recipient_name=recipient_name,
        organization_name=organization_name,
        inviter_name=inviter_name,
        role="Reviewer",
        setup_link=invitation_link(raw_token, to_email),
        expires_in=f"{days} day{'s' if days != 1 else ''}",
    )
    return await send_best_effort(
        f"reviewer invitation to {hash_email(to_email)}",
        lambda: _send(to_email, rendered),
    )
