"""
Role capability table.

Maps each role to the actions it may perform per resource type. Finer,
state-dependent rules (ownership, editable status, review fields) are
layered on top in app.core.policies.
"""

from __future__ import annotations

from enum import Enum

from app.db.enums import Role


class Resource(str, Enum):
    ABSTRACT = "abstract"
    TRACK = "track"
    HOTEL = "hotel"
    SPEAKER = "speaker"
    REVIEWER_ROSTER = "reviewer_roster"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    REVIEW = "review"


_ALL = frozenset(Action)
_CRUD = frozenset({Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE})
_READ = frozenset({Action.READ})
_NONE: frozenset[Action] = frozenset()

ROLE_CAPABILITIES: dict[Role, dict[Resource, frozenset[Action]]] = {
    Role.SUPER_ADMIN: {resource: _ALL for resource in Resource},
    Role.ADMIN: {
        Resource.ABSTRACT: frozenset(
            {Action.CREATE, Action.READ, Action.UPDATE, Action.REVIEW}
        ),
        Resource.TRACK: _CRUD,
        Resource.HOTEL: _CRUD,
        Resource.SPEAKER: _CRUD,
        Resource.REVIEWER_ROSTER: _CRUD,
    },
    Role.ORGANIZER: {
        Resource.ABSTRACT: frozenset({Action.CREATE, Action.READ, Action.UPDATE}),
        Resource.TRACK: _CRUD,
        Resource.HOTEL: _CRUD,
        Resource.SPEAKER: _CRUD,
        Resource.REVIEWER_ROSTER: _CRUD,
    },
    Role.REVIEWER: {
        Resource.ABSTRACT: _READ,
        Resource.TRACK: _READ,
        Resource.HOTEL: _READ,
        Resource.SPEAKER: _READ,
        Resource.REVIEWER_ROSTER: _NONE,
    },
    # Ownership checks narrow these to the submitter's own speaker rows
    Role.SUBMITTER: {
        Resource.ABSTRACT: frozenset({Action.CREATE, Action.READ, Action.UPDATE}),
        Resource.TRACK: _READ,
        Resource.HOTEL: _NONE,
        Resource.SPEAKER: frozenset({Action.READ, Action.UPDATE}),
        Resource.REVIEWER_ROSTER: _NONE,
    },
}

# Abstract fields only reviewers-of-record (ADMIN, SUPER_ADMIN) may write
REVIEW_FIELDS = frozenset({"review_notes", "review_score"})

# Abstract fields a SUBMITTER may never write
SUBMITTER_DENIED_FIELDS = REVIEW_FIELDS | {"specialty"}


def capabilities_for(role: Role, resource: Resource) -> frozenset[Action]:
    return ROLE_CAPABILITIES.get(role, {}).get(resource, _NONE)


def has_capability(role: Role, action: Action, resource: Resource) -> bool:
    return action in capabilities_for(role, resource)
