"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.db.enums import Role
from app.schemas.base import ApiModel


class UserSession(BaseModel):
    """
    Full session context for authenticated requests.

    This is returned by get_current_session dependency
    and contains all information needed for authorization.
    REVIEWER and SUBMITTER sessions have no org_id.
    """
    user_id: UUID
    org_id: UUID | None
    role: Role  # Validated enum
    email: str
    display_name: str


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class MeResponse(ApiModel):
    """Response schema for GET /api/auth/me."""
    user_id: UUID
    email: str
    display_name: str
    org_id: UUID | None
    role: Role


class AcceptInvitationRequest(ApiModel):
    token: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)


class InvitationUser(ApiModel):
    first_name: str
    last_name: str
    email: str
    organization_name: str | None = None


class InvitationCheckResponse(ApiModel):
    valid: bool = True
    user: InvitationUser
