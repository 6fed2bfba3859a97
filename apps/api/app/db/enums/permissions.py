"""Role permission helper sets."""

from app.db.enums.auth import Role

# Roles scoped to events by organization membership
ORG_SCOPED_ROLES = {Role.SUPER_ADMIN, Role.ADMIN, Role.ORGANIZER}

# Roles that may set review statuses, notes and scores
ROLES_CAN_REVIEW = {Role.SUPER_ADMIN, Role.ADMIN}
