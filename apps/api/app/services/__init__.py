"""Service layer modules."""

from app.services.user_service import (
    authenticate,
    get_user_by_email,
    get_user_by_id,
    revoke_all_sessions,
)

# Import service modules (not individual functions) for cleaner access
from app.services import abstract_service
from app.services import event_service
from app.services import public_abstract_service
from app.services import reviewer_service

__all__ = [
    # User service
    "authenticate",
    "get_user_by_id",
    "get_user_by_email",
    "revoke_all_sessions",
    # Service modules
    "abstract_service",
    "event_service",
    "public_abstract_service",
    "reviewer_service",
]
