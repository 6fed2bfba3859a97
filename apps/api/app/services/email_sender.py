"""Transactional email via the Resend HTTP API.

send_email() never raises: every outcome is reported as
{"success": True, "message_id": ...} or {"success": False, "error": ...}.
"""

from __future__ import annotations

import logging

import httpx

from app.core.config import settings
from app.services.audit_service import hash_email
from app.services.http_service import DEFAULT_RETRY_STATUSES, request_with_retries
from app.types import EmailResult

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT_SECONDS = 15.0
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0


def _from_header() -> str:
    name = (settings.EMAIL_FROM_NAME or "").strip()
    address = settings.EMAIL_FROM.strip()
    return f"{name} <{address}>" if name else address


async def send_email(
    *,
    to_email: str,
    subject: str,
    html: str,
    text: str | None = None,
    idempotency_key: str | None = None,
) -> EmailResult:
    if not settings.email_configured:
        logger.warning(
            "Email not sent to %s: RESEND_API_KEY not configured", hash_email(to_email)
        )
        return {"success": False, "error": "Email service not configured"}

    payload: dict[str, object] = {
        "from": _from_header(),
        "to": [to_email],
        "subject": subject,
        "html": html,
    }
    if text:
        payload["text"] = text

    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key

    try:
        async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:

            async def request_fn() -> httpx.Response:
                return await client.post(RESEND_SEND_URL, headers=headers, json=payload)

            response = await request_with_retries(
                request_fn,
                max_attempts=RESEND_MAX_ATTEMPTS,
                base_delay=RESEND_RETRY_BASE_DELAY,
                max_delay=RESEND_RETRY_MAX_DELAY,
                retry_statuses=DEFAULT_RETRY_STATUSES,
            )
    except httpx.HTTPError as exc:
        logger.warning("Resend request failed for %s: %s", hash_email(to_email), exc)
        return {"success": False, "error": f"Email request failed: {exc.__class__.__name__}"}

    if 200 <= response.status_code < 300:
        try:
            message_id = response.json().get("id")
        except ValueError:
            message_id = None
        if isinstance(message_id, str) and message_id:
            return {"success": True, "message_id": message_id}
        return {"success": False, "error": "Resend API returned success without message id"}

    error_text = response.text[:500] if response.text else ""
    logger.warning(
        "Resend returned %s for %s", response.status_code, hash_email(to_email)
    )
    return {"success": False, "error": f"Resend API error {response.status_code}: {error_text}"}
