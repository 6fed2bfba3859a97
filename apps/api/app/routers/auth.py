"""Authentication router: password login, session endpoints and invitation acceptance."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import COOKIE_NAME, get_current_session, get_db, require_csrf_header
from app.core.rate_limit import limiter
from app.core.security import create_session_token
from app.core.structured_logging import build_log_context
from app.schemas.auth import (
    AcceptInvitationRequest,
    InvitationCheckResponse,
    InvitationUser,
    LoginRequest,
    MeResponse,
    UserSession,
)
from app.schemas.base import SuccessResponse
from app.services import audit_service, user_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _me(session: UserSession) -> MeResponse:
    return MeResponse(
        user_id=session.user_id,
        email=session.email,
        display_name=session.display_name,
        org_id=session.org_id,
        role=session.role,
    )


# =============================================================================
# Session Endpoints
# =============================================================================

@router.post("/login", response_model=MeResponse)
@limiter.limit("5/minute")
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Password login for activated accounts. Sets the session cookie.

    Unknown email, wrong password and not-yet-activated accounts all
    answer the same 401.
    """
    user = user_service.authenticate(db, body.email, body.password)
    if not user:
        logger.info("Failed login for %s", audit_service.hash_email(body.email))
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_session_token(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        token_version=user.token_version,
    )
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    logger.info("User logged in", extra=build_log_context(user_id=user.id))
    return MeResponse(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        org_id=user.organization_id,
        role=user.role,
    )


@router.get("/me", response_model=MeResponse)
def get_me(session: UserSession = Depends(get_current_session)):
    """Current user; used by the frontend to bootstrap auth state."""
    return _me(session)


@router.post(
    "/logout",
    response_model=SuccessResponse,
    dependencies=[Depends(require_csrf_header)],
)
def logout(
    response: Response,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Revoke the user's sessions and clear the cookie.

    Requires X-Requested-With header for CSRF protection.
    """
    user_service.revoke_all_sessions(db, session.user_id)
    db.commit()
    response.delete_cookie(COOKIE_NAME, path="/")
    return SuccessResponse()


# =============================================================================
# Invitation acceptance
# =============================================================================

@router.get("/accept-invitation", response_model=InvitationCheckResponse)
@limiter.limit(settings.RATE_LIMIT_INVITATION)
def check_invitation(
    request: Request,
    token: str | None = None,
    email: str | None = None,
    db: Session = Depends(get_db),
):
    """Validate an invitation link without consuming it."""
    user = user_service.validate_invitation(db, token, email)
    return InvitationCheckResponse(
        user=InvitationUser(
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            organization_name=user.organization.name if user.organization else None,
        )
    )


@router.post("/accept-invitation", response_model=SuccessResponse)
@limiter.limit(settings.RATE_LIMIT_INVITATION)
def accept_invitation(
    request: Request,
    body: AcceptInvitationRequest,
    db: Session = Depends(get_db),
):
    """Set the password and activate the account. The token is single-use."""
    user_service.accept_invitation(
        db, body.token, body.email, body.password, request=request
    )
    return SuccessResponse(message=user_service.INVITATION_ACCEPTED_MESSAGE)
