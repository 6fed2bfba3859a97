"""HTTP helpers with retry/backoff for outbound integrations."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

DEFAULT_RETRY_STATUSES = {429, 500, 502, 503, 504}


def _backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff with up to 50% jitter."""
    delay = min(max_delay, base_delay * (2**attempt))
    if delay:
        delay += random.uniform(0, delay / 2)
    return delay


async def request_with_retries(
    request_fn: Callable[[], Awaitable[httpx.Response]],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    retry_statuses: set[int] | None = None,
) -> httpx.Response:
    """
    Execute an HTTP request, retrying transport errors and retryable statuses.

    The final response is returned even if its status is retryable;
    the final transport error is re-raised.
    """
    statuses = retry_statuses or DEFAULT_RETRY_STATUSES

    for attempt in range(max_attempts):
        last_attempt = attempt >= max_attempts - 1
        try:
            response = await request_fn()
        except httpx.RequestError as exc:
            if last_attempt:
                raise
            logger.warning("HTTP request failed (attempt %d), retrying", attempt + 1, exc_info=exc)
            delay = _backoff_delay(attempt, base_delay, max_delay)
            if delay:
                await asyncio.sleep(delay)
            continue

        if response.status_code in statuses and not last_attempt:
            logger.warning(
                "HTTP request returned %s (attempt %d), retrying",
                response.status_code,
                attempt + 1,
            )
            delay = _backoff_delay(attempt, base_delay, max_delay)
            if delay:
                await asyncio.sleep(delay)
            continue

        return response

    return response
