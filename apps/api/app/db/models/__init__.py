"""SQLAlchemy ORM models."""

from app.db.models.abstracts import Abstract
from app.db.models.audit import AuditLog
from app.db.models.auth import Organization, User, VerificationToken
from app.db.models.events import Event, EventSession, Speaker, Track

__all__ = [
    "Abstract",
    "AuditLog",
    "Event",
    "EventSession",
    "Organization",
    "Speaker",
    "Track",
    "User",
    "VerificationToken",
]
