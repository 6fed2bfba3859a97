"""
Abstract review lifecycle.

Single transition table shared by every write path (dashboard create and
update, public submission, management-token edit). Callers plan a
transition first, then apply it to the row inside the same transaction as
the rest of the update.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from app.db.enums import (
    EDITABLE_STATUSES,
    INITIAL_STATUSES,
    REVIEW_STATUSES,
    AbstractStatus,
)
from app.utils.datetime_parsing import ensure_utc

S = AbstractStatus

ALLOWED_TRANSITIONS: dict[AbstractStatus, frozenset[AbstractStatus]] = {
    S.DRAFT: frozenset({S.DRAFT, S.SUBMITTED}),
    S.SUBMITTED: frozenset(
        {S.SUBMITTED, S.UNDER_REVIEW, S.ACCEPTED, S.REJECTED, S.REVISION_REQUESTED}
    ),
    S.UNDER_REVIEW: frozenset(
        {S.UNDER_REVIEW, S.ACCEPTED, S.REJECTED, S.REVISION_REQUESTED}
    ),
    S.REVISION_REQUESTED: frozenset(
        {S.REVISION_REQUESTED, S.SUBMITTED, S.UNDER_REVIEW, S.ACCEPTED, S.REJECTED}
    ),
    # Terminal for review; a same-status re-review only refreshes reviewed_at
    S.ACCEPTED: frozenset({S.ACCEPTED}),
    S.REJECTED: frozenset({S.REJECTED}),
}


class TransitionError(ValueError):
    """Requested status change is not in the transition table."""

    def __init__(self, current: AbstractStatus | None, target: AbstractStatus):
        self.current = current
        self.target = target
        if current is None:
            message = f"Abstracts cannot be created with status {target.value}"
        else:
            message = f"Cannot change abstract status from {current.value} to {target.value}"
        super().__init__(message)


class EditBlock(str, Enum):
    """Why an abstract is not editable through its management link."""

    DEADLINE = "deadline"
    STATUS = "status"


EDIT_BLOCK_MESSAGES = {
    EditBlock.DEADLINE: "The abstract submission deadline has passed",
    EditBlock.STATUS: "This abstract can no longer be edited",
}


@dataclass(frozen=True)
class Transition:
    from_status: AbstractStatus | None
    to_status: AbstractStatus
    stamp_submitted: bool
    stamp_reviewed: bool

    @property
    def is_review(self) -> bool:
        return self.stamp_reviewed

    @property
    def changes_status(self) -> bool:
        return self.from_status != self.to_status


def _coerce(status: AbstractStatus | str) -> AbstractStatus:
    return status if isinstance(status, AbstractStatus) else AbstractStatus(status)


def plan_initial(status: AbstractStatus | str) -> Transition:
    """Plan the creation of an abstract in `status` (DRAFT or SUBMITTED)."""
    target = _coerce(status)
    if target not in INITIAL_STATUSES:
        raise TransitionError(None, target)
    return Transition(
        from_status=None,
        to_status=target,
        stamp_submitted=target == S.SUBMITTED,
        stamp_reviewed=False,
    )


def plan_transition(
    current: AbstractStatus | str, target: AbstractStatus | str
) -> Transition:
    """
    Validate `current -> target` and derive the timestamp effects.

    submitted_at is stamped on DRAFT -> SUBMITTED and re-stamped on
    REVISION_REQUESTED -> SUBMITTED. Every move into a review status
    (including a same-status re-review) stamps reviewed_at.

    Raises:
        TransitionError: target not reachable from current
    """
    current = _coerce(current)
    target = _coerce(target)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise TransitionError(current, target)
    return Transition(
        from_status=current,
        to_status=target,
        stamp_submitted=target == S.SUBMITTED
        and current in (S.DRAFT, S.REVISION_REQUESTED),
        stamp_reviewed=target in REVIEW_STATUSES,
    )


def plan_token_edit(current: AbstractStatus | str) -> Transition:
    """
    Implicit transition for a management-link edit.

    REVISION_REQUESTED goes back to SUBMITTED; any other editable status
    is kept as-is.
    """
    current = _coerce(current)
    if current == S.REVISION_REQUESTED:
        return plan_transition(current, S.SUBMITTED)
    return Transition(
        from_status=current,
        to_status=current,
        stamp_submitted=False,
        stamp_reviewed=False,
    )


def apply_transition(abstract, transition: Transition, now: datetime) -> None:
    """Write status and timestamps onto the abstract row (no flush)."""
    abstract.status = transition.to_status.value
    if transition.stamp_submitted:
        abstract.submitted_at = now
    if transition.stamp_reviewed:
        abstract.reviewed_at = now


def deadline_passed(deadline: datetime | None, now: datetime) -> bool:
    deadline = ensure_utc(deadline)
    return deadline is not None and ensure_utc(now) > deadline


def check_editable(
    status: AbstractStatus | str, deadline: datetime | None, now: datetime
) -> EditBlock | None:
    """
    Return the reason the abstract cannot be edited by its submitter, or None.

    Status is checked before the deadline so a decided abstract reports
    the status message even after the deadline.
    """
    if _coerce(status) not in EDITABLE_STATUSES:
        return EditBlock.STATUS
    if deadline_passed(deadline, now):
        return EditBlock.DEADLINE
    return None


def is_editable(status: AbstractStatus | str, deadline: datetime | None, now: datetime) -> bool:
    return check_editable(status, deadline, now) is None
