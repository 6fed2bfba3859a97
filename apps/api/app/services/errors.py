"""Service-layer exceptions, translated to HTTP status codes by the routers."""


class NotFoundError(LookupError):
    """Resource missing or intentionally hidden from the caller (404)."""


class ConflictError(ValueError):
    """Request conflicts with existing state (400)."""


class DuplicateAccountError(ValueError):
    """Self-registration with an email that already has an account (409)."""


class SubmissionsClosedError(PermissionError):
    """Public action not currently permitted for the event (403)."""


class InvalidTokenError(ValueError):
    """Invitation token missing, unknown or expired (400)."""


class AccessDenied(Exception):
    """A policy Decision that denied the request; carries its 403/404 status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    @classmethod
    def from_decision(cls, decision) -> "AccessDenied":
        return cls(decision.status_code, decision.message)


def enforce(decision) -> None:
    """Raise AccessDenied unless the policy decision allows the request."""
    if not decision.allowed:
        raise AccessDenied.from_decision(decision)
