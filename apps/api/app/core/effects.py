"""
Side-effect criticality.

Each audited action is either MUST_SUCCEED (the audit row is flushed into
the same transaction as the mutation, so both commit or neither does) or
BEST_EFFORT (written after the primary commit; a failure is logged and
the response is unaffected). Outbound email is always BEST_EFFORT.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from sqlalchemy.orm import Session

from app.db.enums import AuditAction, AuditEntityType
from app.types import EmailResult

logger = logging.getLogger(__name__)


class EffectPolicy(str, Enum):
    MUST_SUCCEED = "must_succeed"
    BEST_EFFORT = "best_effort"


AUDIT_EFFECT_POLICY: dict[tuple[AuditEntityType, AuditAction], EffectPolicy] = {
    (AuditEntityType.ABSTRACT, AuditAction.CREATE): EffectPolicy.BEST_EFFORT,
    (AuditEntityType.ABSTRACT, AuditAction.UPDATE): EffectPolicy.BEST_EFFORT,
    (AuditEntityType.ABSTRACT, AuditAction.REVIEW): EffectPolicy.MUST_SUCCEED,
    (AuditEntityType.ABSTRACT, AuditAction.DELETE): EffectPolicy.MUST_SUCCEED,
    (AuditEntityType.EVENT_REVIEWER, AuditAction.CREATE): EffectPolicy.MUST_SUCCEED,
    (AuditEntityType.EVENT_REVIEWER, AuditAction.DELETE): EffectPolicy.BEST_EFFORT,
    (AuditEntityType.USER, AuditAction.REGISTER): EffectPolicy.BEST_EFFORT,
    (AuditEntityType.USER, AuditAction.ACCEPT_INVITATION): EffectPolicy.MUST_SUCCEED,
}


def audit_policy(entity_type: AuditEntityType, action: AuditAction) -> EffectPolicy:
    return AUDIT_EFFECT_POLICY.get((entity_type, action), EffectPolicy.BEST_EFFORT)


def run_best_effort(db: Session, label: str, fn: Callable[[], None]) -> bool:
    """
    Run a post-commit write in its own transaction.

    Returns False (after rolling back and logging) if it failed.
    """
    try:
        fn()
        db.commit()
        return True
    except Exception:
        db.rollback()
        logger.exception("Best-effort effect failed: %s", label)
        return False


async def send_best_effort(
    label: str, send: Callable[[], Awaitable[EmailResult]]
) -> bool:
    """Await an email send; never raises, returns whether it was delivered."""
    try:
        result = await send()
    except Exception:
        logger.exception("Email send raised: %s", label)
        return False
    if not result.get("success"):
        logger.warning("Email send failed: %s (%s)", label, result.get("error"))
        return False
    return True
