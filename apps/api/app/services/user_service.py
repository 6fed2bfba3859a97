"""User service - account lookup, provisioning and invitation acceptance."""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import (
    generate_verification_token,
    hash_password,
    hash_verification_token,
    placeholder_password_hash,
    verify_password,
)
from app.core.structured_logging import build_log_context
from app.db.enums import AuditAction, AuditEntityType, Role, SpeakerStatus
from app.db.models import Event, Speaker, User, VerificationToken
from app.schemas.public import SubmitterRegister
from app.services import audit_service
from app.services.errors import DuplicateAccountError, InvalidTokenError, NotFoundError
from app.utils.datetime_parsing import ensure_utc, utcnow
from app.utils.normalization import normalize_email, normalize_optional_text

logger = logging.getLogger(__name__)

REGISTRATION_SUCCESS_MESSAGE = (
    "Account created successfully. Please log in to submit your abstract."
)
INVITATION_ACCEPTED_MESSAGE = "Account setup complete. You can now sign in."


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    """Get user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (case-insensitive)."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def authenticate(db: Session, email: str, password: str) -> User | None:
    """
    Check credentials for login.

    Returns None for unknown email, wrong password, or an account that
    has not been activated through its invitation yet.
    """
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    if not user.account_active or not Role.has_value(user.role):
        return None
    return user


def revoke_all_sessions(db: Session, user_id: UUID) -> bool:
    """
    Invalidate every issued session cookie for the user.

    Session JWTs carry token_version; bumping it makes get_current_user
    reject them. Flushes only, the caller commits.
    """
    user = get_user_by_id(db, user_id)
    if not user:
        return False

    user.token_version += 1
    db.flush()
    logger.info("Sessions revoked", extra=build_log_context(user_id=user.id))
    return True


# =============================================================================
# Provisioning
# =============================================================================

def create_invited_reviewer(
    db: Session, *, email: str, first_name: str, last_name: str
) -> tuple[User, str]:
    """
    Create an inactive REVIEWER account plus its invitation token.

    Both rows are flushed, not committed, so they land in the caller's
    transaction. Returns the user and the raw token for the setup link.
    """
    normalized = normalize_email(email)
    user = User(
        email=normalized,
        first_name=first_name,
        last_name=last_name,
        role=Role.REVIEWER.value,
        organization_id=None,
        password_hash=placeholder_password_hash(),
        email_verified=None,
    )
    db.add(user)

    raw_token = generate_verification_token()
    db.add(
        VerificationToken(
            identifier=normalized,
            token=hash_verification_token(raw_token),
            expires=utcnow() + timedelta(days=settings.INVITATION_EXPIRY_DAYS),
        )
    )
    db.flush()
    return user, raw_token


def register_submitter(
    db: Session,
    event: Event,
    data: SubmitterRegister,
    request: Request | None = None,
) -> User:
    """
    Self-registration for an event's submission portal.

    Creates an activated SUBMITTER account and links (or creates) the
    event's speaker row for the same email, in one transaction.

    Raises:
        DuplicateAccountError: an account already uses the email
    """
    email = normalize_email(data.email)
    if get_user_by_email(db, email):
        raise DuplicateAccountError(
            "An account with this email already exists. Please log in instead."
        )

    user = User(
        email=email,
        first_name=data.first_name,
        last_name=data.last_name,
        role=Role.SUBMITTER.value,
        organization_id=None,
        password_hash=hash_password(data.password),
        email_verified=utcnow(),
    )
    db.add(user)
    db.flush()

    profile = {
        "organization": normalize_optional_text(data.organization),
        "job_title": normalize_optional_text(data.job_title),
        "city": normalize_optional_text(data.city),
        "country": normalize_optional_text(data.country),
    }
    speaker = (
        db.query(Speaker)
        .filter(Speaker.event_id == event.id, Speaker.email == email)
        .first()
    )
    if speaker:
        speaker.user_id = user.id
        speaker.first_name = data.first_name
        speaker.last_name = data.last_name
        for field, value in profile.items():
            if value:
                setattr(speaker, field, value)
    else:
        speaker = Speaker(
            event_id=event.id,
            user_id=user.id,
            email=email,
            first_name=data.first_name,
            last_name=data.last_name,
            status=SpeakerStatus.CONFIRMED.value,
            **profile,
        )
        db.add(speaker)
    db.flush()

    finish_audit = audit_service.stage(
        db,
        action=AuditAction.REGISTER,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        event_id=event.id,
        user_id=user.id,
        changes={"role": user.role, "speakerId": speaker.id},
        request=request,
    )
    db.commit()
    finish_audit()
    db.refresh(user)

    logger.info(
        "Submitter account created for %s",
        audit_service.hash_email(email),
        extra=build_log_context(user_id=user.id, event_id=event.id),
    )
    return user


# =============================================================================
# Invitation acceptance
# =============================================================================

def _find_token(db: Session, raw_token: str, email: str) -> VerificationToken | None:
    return (
        db.query(VerificationToken)
        .filter(
            VerificationToken.identifier == email,
            VerificationToken.token == hash_verification_token(raw_token),
        )
        .first()
    )


def validate_invitation(db: Session, raw_token: str | None, email: str | None) -> User:
    """
    Check an invitation link without consuming it.

    Raises:
        InvalidTokenError: missing parameters, unknown or expired token
        NotFoundError: token is valid but the account is gone
    """
    if not raw_token or not email:
        raise InvalidTokenError("Missing token or email")

    normalized = normalize_email(email)
    record = _find_token(db, raw_token, normalized)
    if not record:
        raise InvalidTokenError("Invalid invitation link")
    if ensure_utc(record.expires) < utcnow():
        raise InvalidTokenError("Invitation has expired")

    user = get_user_by_email(db, normalized)
    if not user:
        raise NotFoundError("User not found")
    return user


def accept_invitation(
    db: Session,
    raw_token: str,
    email: str,
    password: str,
    request: Request | None = None,
) -> User:
    """
    Consume an invitation: set the password, activate the account and
    delete the token, together with the audit entry.

    An expired token is deleted before the error is raised.

    Raises:
        InvalidTokenError: unknown or expired token
        NotFoundError: token is valid but the account is gone
    """
    normalized = normalize_email(email)
    record = _find_token(db, raw_token, normalized)
    if not record:
        raise InvalidTokenError("Invalid or expired invitation link")

    if ensure_utc(record.expires) < utcnow():
        db.delete(record)
        db.commit()
        raise InvalidTokenError(
            "Invitation has expired. Please contact your administrator for a new invitation."
        )

    user = get_user_by_email(db, normalized)
    if not user:
        raise NotFoundError("User not found")

    user.password_hash = hash_password(password)
    user.email_verified = utcnow()
    db.delete(record)

    finish_audit = audit_service.stage(
        db,
        action=AuditAction.ACCEPT_INVITATION,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        user_id=user.id,
        changes={"email": audit_service.hash_email(normalized)},
        request=request,
    )
    db.commit()
    finish_audit()
    db.refresh(user)

    logger.info("User accepted invitation", extra=build_log_context(user_id=user.id))
    return user
