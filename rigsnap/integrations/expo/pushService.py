"""
Expo Push Service
=================

Low-level integration with the Expo push notification gateway
(``https://exp.host/--/api/v2/push/send``). The mobile app registers Expo
push tokens (``ExponentPushToken[...]``) and Expo relays each message to
FCM/APNs.

One HTTP call is made per message. Sends are not retried: the caller records
the failure and moves on.

Ticket handling:
  Expo answers HTTP 200 with a push ticket even when the message was
  rejected. A ticket with ``status == "error"`` is reported as a failure,
  and the ``DeviceNotRegistered`` error code marks the token as invalid so
  that the caller can clear it in the database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from rigsnap.core.config import settings

logger = logging.getLogger(__name__)

# Ticket error codes that mean the token will never work again
INVALID_TOKEN_ERRORS: frozenset[str] = frozenset({"DeviceNotRegistered"})


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class SendResult:
    """Result of sending a single notification."""
    success: bool
    ticket_id: str | None = None
    error: str | None = None
    invalid_token: bool = False


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _headers() -> dict[str, str]:
    headers = {
        "Accept": "application/json",
        "Accept-Encoding": "gzip, deflate",
        "Content-Type": "application/json",
    }
    if settings.expo_access_token:
        headers["Authorization"] = f"Bearer {settings.expo_access_token}"
    return headers


def build_message(
    *,
    token: str,
    title: str | None,
    body: str | None,
    data: dict[str, Any] | None = None,
    sound: str | None = "default",
    priority: str = "high",
    badge: int | None = None,
) -> dict[str, Any]:
    """Build the JSON body of an Expo push message.

    Args:
        token: Expo push token of the target device.
        title: Notification title.
        body: Notification body text.
        data: Payload delivered to the app alongside the notification.
        sound: ``"default"`` for the system sound, None for silent.
        priority: ``"high"`` for time-sensitive, ``"normal"`` otherwise.
        badge: iOS badge count.
    """
    message: dict[str, Any] = {
        "to": token,
        "title": title,
        "body": body,
        "data": data or {},
        "priority": priority,
    }
    if sound:
        message["sound"] = sound
    if badge is not None:
        message["badge"] = badge
    return message


def _parse_ticket(payload: Any) -> SendResult:
    """Turn an Expo response body into a SendResult."""
    if not isinstance(payload, dict):
        return SendResult(success=False, error="Unexpected push gateway response")

    if payload.get("errors"):
        first = payload["errors"][0]
        message = first.get("message") if isinstance(first, dict) else str(first)
        return SendResult(success=False, error=f"Push gateway error: {message}")

    ticket = payload.get("data")
    # A single message yields a single ticket; a one-element list is also accepted
    if isinstance(ticket, list):
        ticket = ticket[0] if ticket else None
    if not isinstance(ticket, dict):
        return SendResult(success=False, error="Push gateway returned no ticket")

    if ticket.get("status") == "ok":
        return SendResult(success=True, ticket_id=ticket.get("id"))

    details = ticket.get("details") or {}
    error_code = details.get("error") if isinstance(details, dict) else None
    return SendResult(
        success=False,
        error=ticket.get("message") or error_code or "Push ticket error",
        invalid_token=error_code in INVALID_TOKEN_ERRORS,
    )


async def _post(client: httpx.AsyncClient, message: dict[str, Any]) -> SendResult:
    try:
        response = await client.post(
            settings.expo_push_url,
            json=message,
            headers=_headers(),
            timeout=settings.push_timeout_seconds,
        )
    except httpx.HTTPError as exc:
        logger.error("Push gateway request failed: %s", exc)
        return SendResult(success=False, error=f"Push gateway request failed: {exc}")

    if response.status_code >= 400:
        logger.error("Push gateway HTTP error: status %d", response.status_code)
        return SendResult(
            success=False,
            error=f"HTTP error! status: {response.status_code}",
        )

    try:
        payload = response.json()
    except ValueError:
        return SendResult(success=False, error="Push gateway returned invalid JSON")

    result = _parse_ticket(payload)
    if result.success:
        logger.info("Push notification accepted: ticket=%s", result.ticket_id)
    elif result.invalid_token:
        logger.warning("Push token no longer registered: %s", result.error)
    else:
        logger.error("Push notification rejected: %s", result.error)
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def send_notification(
    device_token: str,
    title: str,
    body: str,
    data: dict[str, Any] | None = None,
    badge: int | None = 1,
    sound: str = "default",
    priority: str = "high",
    client: httpx.AsyncClient | None = None,
) -> SendResult:
    """Send a push notification to a single device.

    Args:
        device_token: Expo push token for the target device.
        title: Notification title displayed to the user.
        body: Notification body text.
        data: Optional payload delivered to the app.
        badge: iOS badge count.
        sound: Sound to play (``"default"`` for system sound).
        priority: ``"high"`` for time-sensitive, ``"normal"`` otherwise.
        client: Shared HTTP client; a short-lived one is opened if omitted.

    Returns:
        SendResult indicating success or failure.
    """
    logger.info(
        "Sending push notification to device: title=%r, priority=%s",
        title,
        priority,
    )

    message = build_message(
        token=device_token,
        title=title,
        body=body,
        data=data,
        sound=sound,
        priority=priority,
        badge=badge,
    )

    if client is not None:
        return await _post(client, message)
    async with httpx.AsyncClient() as own_client:
        return await _post(own_client, message)
