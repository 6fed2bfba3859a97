"""Rate limiting configuration for the public endpoints."""

import logging
import os

from slowapi import Limiter

from app.core.config import settings

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = (
    []
    if IS_TESTING or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)


def client_ip_key(request) -> str:
    """Rate-limit key: client IP, honoring X-Forwarded-For only behind a trusted proxy."""
    from app.services.audit_service import get_client_ip

    return get_client_ip(request) or "unknown"


def _build_limiter() -> Limiter:
    if IS_TESTING:
        # In-memory storage for tests (no Redis dependency); limits stay active
        return Limiter(
            key_func=client_ip_key,
            storage_uri="memory://",
            default_limits=DEFAULT_LIMITS,
        )

    try:
        import redis

        r = redis.from_url(REDIS_URL, socket_connect_timeout=1)
        r.ping()
        return Limiter(
            key_func=client_ip_key,
            storage_uri=REDIS_URL,
            default_limits=DEFAULT_LIMITS,
        )
    except Exception as e:
        logger.warning("Redis unavailable for rate limiting, using in-memory: %s", e)
        return Limiter(
            key_func=client_ip_key,
            storage_uri="memory://",
            default_limits=DEFAULT_LIMITS,
        )


limiter = _build_limiter()
