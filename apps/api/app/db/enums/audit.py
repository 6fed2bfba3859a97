"""Audit trail enums."""

from enum import Enum


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    REVIEW = "REVIEW"
    DELETE = "DELETE"
    REGISTER = "REGISTER"
    ACCEPT_INVITATION = "ACCEPT_INVITATION"


class AuditEntityType(str, Enum):
    ABSTRACT = "Abstract"
    EVENT_REVIEWER = "EventReviewer"
    USER = "User"
    SPEAKER = "Speaker"
