"""Security utilities: session JWTs, password hashing and opaque tokens."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt

from app.core.config import settings


# =============================================================================
# Session Token (JWT in cookie)
# =============================================================================

def create_session_token(
    user_id: UUID,
    org_id: UUID | None,
    role: str,
    token_version: int,
) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET).
    Reviewers and submitters carry no org_id.
    """
    payload = {
        "sub": str(user_id),
        "org_id": str(org_id) if org_id else None,
        "role": role,
        "token_version": token_version,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


# =============================================================================
# Passwords (bcrypt)
# =============================================================================

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def placeholder_password_hash() -> str:
    """Hash of random bytes nobody knows; the account must go through the invitation flow."""
    return hash_password(secrets.token_hex(32))


# =============================================================================
# Opaque tokens
# =============================================================================

def generate_management_token() -> str:
    """32 random bytes, hex-encoded (64 chars). Stored in plain text on the abstract."""
    return secrets.token_hex(32)


def generate_verification_token() -> str:
    return secrets.token_hex(32)


def hash_verification_token(raw_token: str) -> str:
    """SHA-256 of token + pepper. Only this digest is persisted."""
    return hashlib.sha256(
        f"{raw_token}:{settings.VERIFICATION_TOKEN_PEPPER}".encode("utf-8")
    ).hexdigest()
