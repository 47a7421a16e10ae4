"""
Email API client
================

Sends transactional email through the backend email API
(``POST {EMAIL_API_BASE_URL}/api/send-email``). The API accepts a JSON body
of ``to``, ``subject``, ``html`` and/or ``text``, and ``from_name``.

Delivery failures are returned as ``EmailResult(success=False)`` rather than
raised, so that one bad recipient does not interrupt a batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from rigsnap.core.config import settings

logger = logging.getLogger(__name__)

_SEND_PATH = "/api/send-email"


@dataclass
class EmailResult:
    """Result of sending a single email."""
    success: bool
    response: dict[str, Any] | None = None
    error: str | None = None


def _endpoint() -> str | None:
    base_url = settings.email_api_base_url
    if not base_url:
        return None
    return base_url.rstrip("/") + _SEND_PATH


async def _post(client: httpx.AsyncClient, url: str, payload: dict[str, Any]) -> EmailResult:
    try:
        response = await client.post(
            url,
            json=payload,
            timeout=settings.email_timeout_seconds,
        )
    except httpx.HTTPError as exc:
        logger.error("Email API request failed: %s", exc)
        return EmailResult(success=False, error=f"Email API request failed: {exc}")

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.status_code >= 400:
        detail = body.get("error") if isinstance(body, dict) else None
        error = f"Email API error: {detail or response.reason_phrase or response.status_code}"
        logger.error("%s (to=%s)", error, payload.get("to"))
        return EmailResult(success=False, response=body if isinstance(body, dict) else None, error=error)

    return EmailResult(success=True, response=body if isinstance(body, dict) else None)


async def send_email(
    to: str,
    subject: str,
    html: str | None = None,
    text: str | None = None,
    from_name: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> EmailResult:
    """Send one email.

    Args:
        to: Recipient address.
        subject: Subject line.
        html: HTML body.
        text: Plain-text body.
        from_name: Sender display name; defaults to ``EMAIL_FROM_NAME``.
        client: Shared HTTP client; a short-lived one is opened if omitted.

    Returns:
        EmailResult indicating success or failure.
    """
    url = _endpoint()
    if url is None:
        logger.error("Email API base URL not configured; cannot email %s", to)
        return EmailResult(success=False, error="Email API base URL not configured")

    payload: dict[str, Any] = {
        "to": to,
        "subject": subject,
        "from_name": from_name or settings.email_from_name,
    }
    if html is not None:
        payload["html"] = html
    if text is not None:
        payload["text"] = text

    if client is not None:
        return await _post(client, url, payload)
    async with httpx.AsyncClient() as own_client:
        return await _post(own_client, url, payload)
