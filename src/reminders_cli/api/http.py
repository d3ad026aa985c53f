"""Retrying request helper shared by sign-in and CloudKit calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from reminders_cli.exceptions import TransportError, is_retryable_status

logger = logging.getLogger(__name__)

BACKOFF_BASE = 1.0


def backoff_delay(attempt: int, backoff_max: float = 30.0) -> float:
    """Delay before retry number ``attempt + 1``: 1s, 2s, 4s, ... capped."""
    return min(BACKOFF_BASE * (2**attempt), backoff_max)


async def send_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    retry: int = 3,
    backoff_max: float = 30.0,
    **kwargs: Any,
) -> httpx.Response:
    """Send a request, retrying network failures and 429/5xx responses.

    Non-retryable responses are returned as-is for the caller to interpret.
    When the attempts run out on a retryable status, the last response is
    returned; when they run out on network failures, TransportError is raised.
    """
    last_exception: Exception | None = None
    response: httpx.Response | None = None

    for attempt in range(retry + 1):
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            last_exception = e
            response = None
            logger.debug("%s %s failed: %s", method, url, e)
        else:
            logger.debug("%s %s -> %d", method, url, response.status_code)
            if not is_retryable_status(response.status_code):
                return response

        if attempt < retry:
            delay = backoff_delay(attempt, backoff_max)
            logger.info("Retrying %s in %.0fs (attempt %d/%d)", url, delay, attempt + 2, retry + 1)
            await asyncio.sleep(delay)

    if response is not None:
        return response
    raise TransportError(f"{method} {url} failed: {last_exception}") from last_exception
