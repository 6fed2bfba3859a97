"""Structured logging helpers (PII-safe)."""

from typing import Any
from uuid import UUID


def build_log_context(
    *,
    user_id: UUID | str | None = None,
    event_id: UUID | str | None = None,
    abstract_id: UUID | str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict (ids only, never emails or tokens)."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if event_id:
        context["event_id"] = str(event_id)
    if abstract_id:
        context["abstract_id"] = str(abstract_id)
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
