"""Audit logging service - trail of state-changing operations.

Security guidelines:
- NEVER log secrets (management tokens, verification tokens, passwords)
- Hash PII in log lines (use hash_email for emails)
- IP: Trust X-Forwarded-For only behind a configured proxy

Criticality per action lives in app.core.effects.AUDIT_EFFECT_POLICY.
"""

import hashlib
import json
from collections.abc import Callable
from typing import Any
from uuid import UUID

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.effects import EffectPolicy, audit_policy, run_best_effort
from app.db.enums import AuditAction, AuditEntityType
from app.db.models import AuditLog


# Never persisted in an audit snapshot
REDACTED_KEYS = frozenset(
    {"management_token", "managementToken", "password", "password_hash", "token"}
)


def hash_email(email: str) -> str:
    """Hash email for logs (prefix + SHA256 suffix for debugging)."""
    if not email:
        return ""
    prefix = email.split("@")[0][:3] if "@" in email else email[:3]
    suffix = hashlib.sha256(email.lower().encode()).hexdigest()[:12]
    return f"{prefix}...@[hash:{suffix}]"


def get_client_ip(request: Request | None) -> str | None:
    """
    Extract client IP from request.

    Only trusts X-Forwarded-For when TRUST_PROXY_HEADERS=True (behind reverse proxy).
    """
    if not request:
        return None

    if settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # X-Forwarded-For: client, proxy1, proxy2 - take first
            return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return None


def redact_changes(changes: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop secret keys and coerce values to JSON-safe primitives."""
    if changes is None:
        return None
    cleaned = {k: v for k, v in changes.items() if k not in REDACTED_KEYS}
    return json.loads(json.dumps(cleaned, default=str))


def build_entry(
    *,
    action: AuditAction,
    entity_type: AuditEntityType,
    entity_id: UUID | str,
    event_id: UUID | None = None,
    user_id: UUID | None = None,
    changes: dict[str, Any] | None = None,
    request: Request | None = None,
) -> AuditLog:
    return AuditLog(
        event_id=event_id,
        user_id=user_id,
        action=action.value,
        entity_type=entity_type.value,
        entity_id=str(entity_id),
        changes=redact_changes(changes),
        ip_address=get_client_ip(request),
    )


def log_in_transaction(db: Session, **kwargs: Any) -> AuditLog:
    """
    Add an audit row to the caller's open transaction.

    Used for MUST_SUCCEED actions: the caller commits the mutation and
    the audit row together.
    """
    entry = build_entry(**kwargs)
    db.add(entry)
    db.flush()
    return entry


def log_after_commit(db: Session, **kwargs: Any) -> bool:
    """Write a BEST_EFFORT audit row after the primary commit. Never raises."""
    label = f"audit {kwargs['entity_type'].value}.{kwargs['action'].value}"
    return run_best_effort(db, label, lambda: db.add(build_entry(**kwargs)))


def stage(db: Session, **kwargs: Any) -> Callable[[], None]:
    """
    Stage an audit write according to its effect policy.

    MUST_SUCCEED rows are flushed immediately so they commit (or roll back)
    with the caller's mutation. BEST_EFFORT rows are deferred: call the
    returned function after the primary commit.

        finish_audit = audit_service.stage(db, action=..., ...)
        db.commit()
        finish_audit()
    """
    policy = audit_policy(kwargs["entity_type"], kwargs["action"])
    if policy == EffectPolicy.MUST_SUCCEED:
        log_in_transaction(db, **kwargs)
        return lambda: None
    return lambda: log_after_commit(db, **kwargs)
