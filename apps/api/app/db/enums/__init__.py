"""Enum definitions for application constants."""

from app.db.enums.abstracts import (
    DEFAULT_ABSTRACT_STATUS,
    EDITABLE_STATUSES,
    INITIAL_STATUSES,
    REVIEW_STATUSES,
    AbstractStatus,
)
from app.db.enums.audit import AuditAction, AuditEntityType
from app.db.enums.auth import Role
from app.db.enums.events import PUBLIC_EVENT_STATUSES, EventStatus, SpeakerStatus
from app.db.enums.permissions import ORG_SCOPED_ROLES, ROLES_CAN_REVIEW

__all__ = [
    "AbstractStatus",
    "AuditAction",
    "AuditEntityType",
    "DEFAULT_ABSTRACT_STATUS",
    "EDITABLE_STATUSES",
    "EventStatus",
    "INITIAL_STATUSES",
    "ORG_SCOPED_ROLES",
    "PUBLIC_EVENT_STATUSES",
    "REVIEW_STATUSES",
    "ROLES_CAN_REVIEW",
    "Role",
    "SpeakerStatus",
]
