"""
Access policy evaluation for event resources.

Every function here is pure: it inspects the caller's session and the
resource state it is handed and returns a Decision. Nothing is raised and
nothing is written, so handlers can evaluate before touching the database
and map the outcome with app.services.errors.enforce().
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from app.core.permissions import (
    REVIEW_FIELDS,
    SUBMITTER_DENIED_FIELDS,
    Action,
    Resource,
    has_capability,
)
from app.db.enums import (
    EDITABLE_STATUSES,
    REVIEW_STATUSES,
    ROLES_CAN_REVIEW,
    AbstractStatus,
    Role,
)
from app.schemas.auth import UserSession


class Outcome(str, Enum):
    ALLOW = "allow"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


_STATUS_CODES = {
    Outcome.ALLOW: 200,
    Outcome.FORBIDDEN: 403,
    Outcome.NOT_FOUND: 404,
}


@dataclass(frozen=True)
class Decision:
    outcome: Outcome
    message: str = ""

    @property
    def allowed(self) -> bool:
        return self.outcome == Outcome.ALLOW

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.outcome]


ALLOW = Decision(Outcome.ALLOW)


def forbid(message: str = "Forbidden") -> Decision:
    return Decision(Outcome.FORBIDDEN, message)


def hide(message: str) -> Decision:
    return Decision(Outcome.NOT_FOUND, message)


# =============================================================================
# Generic checks
# =============================================================================

def evaluate(role: Role, action: Action, resource: Resource) -> Decision:
    """Capability-table lookup for (role, action, resource)."""
    if has_capability(role, action, resource):
        return ALLOW
    return forbid()


def deny_reviewer(role: Role) -> Decision:
    """Guard for mutating handlers on abstracts, tracks, hotels and the reviewer roster."""
    if role == Role.REVIEWER:
        return forbid()
    return ALLOW


def can_view_review_fields(role: Role) -> bool:
    return role != Role.SUBMITTER


def _owns(session: UserSession, owner_user_id: UUID | None) -> bool:
    return owner_user_id is not None and owner_user_id == session.user_id


# =============================================================================
# Abstracts
# =============================================================================

def evaluate_abstract_create(
    session: UserSession, speaker_user_id: UUID | None
) -> Decision:
    """SUBMITTER may only create for a speaker linked to their own account."""
    decision = evaluate(session.role, Action.CREATE, Resource.ABSTRACT)
    if not decision.allowed:
        return decision
    if session.role == Role.SUBMITTER and not _owns(session, speaker_user_id):
        return hide("Speaker not found")
    return ALLOW


def evaluate_abstract_read(session: UserSession, owner_user_id: UUID | None) -> Decision:
    decision = evaluate(session.role, Action.READ, Resource.ABSTRACT)
    if not decision.allowed:
        return hide("Abstract not found")
    if session.role == Role.SUBMITTER and not _owns(session, owner_user_id):
        return hide("Abstract not found")
    return ALLOW


def evaluate_abstract_update(
    session: UserSession,
    *,
    owner_user_id: UUID | None,
    current_status: AbstractStatus | str,
    fields: Iterable[str],
    target_status: AbstractStatus | str | None = None,
) -> Decision:
    """
    Decide whether `session` may write `fields` (and move to `target_status`).

    `fields` are the snake_case attribute names present in the request.
    """
    fields = set(fields)
    current = AbstractStatus(current_status)
    target = AbstractStatus(target_status) if target_status is not None else None
    sets_review_status = target is not None and target in REVIEW_STATUSES

    decision = evaluate(session.role, Action.UPDATE, Resource.ABSTRACT)
    if not decision.allowed:
        return decision

    if session.role == Role.SUBMITTER:
        if not _owns(session, owner_user_id):
            return hide("Abstract not found")
        if fields & SUBMITTER_DENIED_FIELDS or sets_review_status:
            return forbid()
        if current not in EDITABLE_STATUSES:
            return forbid("Cannot edit abstract in current status")

    if session.role not in ROLES_CAN_REVIEW:
        if sets_review_status:
            return forbid("Only admins can approve, reject, or set review status")
        if fields & REVIEW_FIELDS:
            return forbid("Only admins can add review notes or scores")

    return ALLOW


def evaluate_abstract_delete(session: UserSession) -> Decision:
    if not has_capability(session.role, Action.DELETE, Resource.ABSTRACT):
        return forbid("Only super admins can delete abstracts")
    return ALLOW


# =============================================================================
# Reviewer roster
# =============================================================================

def evaluate_roster(session: UserSession, action: Action) -> Decision:
    decision = deny_reviewer(session.role)
    if not decision.allowed:
        return decision
    return evaluate(session.role, action, Resource.REVIEWER_ROSTER)
