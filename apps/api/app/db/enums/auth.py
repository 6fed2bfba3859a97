"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    - SUPER_ADMIN: Platform owner (may delete abstracts)
    - ADMIN: Organization admin (reviews abstracts, manages reviewers)
    - ORGANIZER: Runs events for an organization (no review decisions)
    - REVIEWER: Org-independent, read-only access to rostered events
    - SUBMITTER: Self-registered speaker managing their own abstracts
    """

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    ORGANIZER = "ORGANIZER"
    REVIEWER = "REVIEWER"
    SUBMITTER = "SUBMITTER"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
