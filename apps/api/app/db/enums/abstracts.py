"""Abstract lifecycle enums."""

from enum import Enum


class AbstractStatus(str, Enum):
    """
    Abstract review lifecycle.

    DRAFT -> SUBMITTED -> UNDER_REVIEW -> ACCEPTED | REJECTED | REVISION_REQUESTED.
    REVISION_REQUESTED -> SUBMITTED is the only back-edge.
    """

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    REVISION_REQUESTED = "REVISION_REQUESTED"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


DEFAULT_ABSTRACT_STATUS = AbstractStatus.SUBMITTED

# Statuses that count as a review decision (stamp reviewed_at)
REVIEW_STATUSES = frozenset(
    {
        AbstractStatus.UNDER_REVIEW,
        AbstractStatus.ACCEPTED,
        AbstractStatus.REJECTED,
        AbstractStatus.REVISION_REQUESTED,
    }
)

# Statuses in which the submitter may still edit
EDITABLE_STATUSES = frozenset(
    {
        AbstractStatus.DRAFT,
        AbstractStatus.SUBMITTED,
        AbstractStatus.REVISION_REQUESTED,
    }
)

# Statuses an abstract may be created in
INITIAL_STATUSES = frozenset({AbstractStatus.DRAFT, AbstractStatus.SUBMITTED})
