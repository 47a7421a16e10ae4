"""
Notification Service
====================

Fan-out layer between the matching engine and the outbound gateways. For a
new service request and its eligible providers, each dispatch:

  1. Builds the channel-specific message (push title/body/data, or the
     templated HTML email).
  2. Sends one message per provider, all concurrently, over a shared HTTP
     client.
  3. Waits for every send to settle. A failed or crashed send is recorded
     as a ``failed`` outcome and never affects the other recipients.
  4. Returns a summary: how many were sent, out of how many eligible, with
     one outcome per provider.

Nothing here is persisted and nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from rigsnap.core.config import settings
from rigsnap.integrations.expo import pushService
from rigsnap.integrations.mailer import emailService
from rigsnap.integrations.mailer.templates import render_new_request_email
from rigsnap.models.notification import DeliveryStatus, NotificationChannel
from rigsnap.services.matchingEngine import EligibleProvider, RequestDetails

logger = logging.getLogger(__name__)


URGENCY_PREFIXES: dict[str, str] = {
    "high": "🚨 URGENT",
    "medium": "⚡ Priority",
}
DEFAULT_URGENCY_PREFIX = "📋 New"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class NotificationOutcome:
    """What happened to one provider in a dispatch cycle."""
    provider_id: str
    channel: NotificationChannel
    status: DeliveryStatus
    distance_km: Optional[float] = None
    error: Optional[str] = None
    invalid_token: bool = False


@dataclass
class DispatchSummary:
    """Aggregate of a dispatch cycle."""
    channel: NotificationChannel
    sent: int = 0
    total: int = 0
    outcomes: list[NotificationOutcome] = field(default_factory=list)
    invalid_tokens: list[str] = field(default_factory=list)


@dataclass
class PushContent:
    title: str
    body: str
    data: dict[str, Any]


# ---------------------------------------------------------------------------
# Message builders
# ---------------------------------------------------------------------------

def urgency_prefix(urgency: Optional[str]) -> str:
    return URGENCY_PREFIXES.get((urgency or "").lower(), DEFAULT_URGENCY_PREFIX)


def format_service_type(service_type: Optional[str]) -> str:
    """``"tire_repair"`` -> ``"Tire Repair"``."""
    if not service_type:
        return "Service"
    words = service_type.replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def build_push_content(request: RequestDetails, distance_km: float) -> PushContent:
    distance = f"{distance_km:.1f}"
    title = f"{urgency_prefix(request.urgency)} Service Request"
    body = (
        f"{format_service_type(request.service_type)} needed {distance}km away. "
        "Tap to view details."
    )
    data = {
        "type": "new_request",
        "requestId": request.id,
        "serviceType": request.service_type,
        "urgency": request.urgency,
        "distance": distance,
        "location": request.location,
    }
    return PushContent(title=title, body=body, data=data)


def build_email_content(
    request: RequestDetails,
    requester_name: Optional[str],
) -> tuple[str, str]:
    return render_new_request_email(
        requester_name=requester_name,
        service_type=request.service_type,
        description=request.description,
        urgency=request.urgency,
        budget=request.budget,
        location=request.location,
        brand=settings.email_from_name,
    )


# ---------------------------------------------------------------------------
# Per-recipient senders
# ---------------------------------------------------------------------------

async def _send_push(
    match: EligibleProvider,
    request: RequestDetails,
    client: httpx.AsyncClient,
) -> NotificationOutcome:
    provider = match.provider
    content = build_push_content(request, match.distance_km)
    result = await pushService.send_notification(
        device_token=provider.push_token,
        title=content.title,
        body=content.body,
        data=content.data,
        badge=1,
        sound="default",
        priority="high",
        client=client,
    )
    return NotificationOutcome(
        provider_id=provider.id,
        channel=NotificationChannel.PUSH,
        status=DeliveryStatus.SENT if result.success else DeliveryStatus.FAILED,
        distance_km=round(match.distance_km, 1),
        error=result.error,
        invalid_token=result.invalid_token,
    )


async def _send_email(
    match: EligibleProvider,
    subject: str,
    html: str,
    client: httpx.AsyncClient,
) -> NotificationOutcome:
    provider = match.provider
    result = await emailService.send_email(
        to=provider.email,
        subject=subject,
        html=html,
        from_name=settings.email_from_name,
        client=client,
    )
    return NotificationOutcome(
        provider_id=provider.id,
        channel=NotificationChannel.EMAIL,
        status=DeliveryStatus.SENT if result.success else DeliveryStatus.FAILED,
        distance_km=round(match.distance_km, 1),
        error=result.error,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def dispatch(
    eligible: list[EligibleProvider],
    request: RequestDetails,
    *,
    channel: NotificationChannel,
    requester_name: Optional[str] = None,
) -> DispatchSummary:
    """Notify every eligible provider about ``request`` on ``channel``.

    All sends are started together and joined with
    ``asyncio.gather(..., return_exceptions=True)``, so an exception in one
    send becomes a failed outcome for that provider only.

    Args:
        eligible: Output of ``matchingEngine.select_eligible``.
        request: The new service request.
        channel: Push or email.
        requester_name: Display name used in the email body.

    Returns:
        DispatchSummary with one outcome per eligible provider, in input order.
    """
    summary = DispatchSummary(channel=channel, total=len(eligible))
    if not eligible:
        return summary

    logger.info(
        "Sending %s notifications to %d providers for request %s",
        channel.value,
        len(eligible),
        request.id,
    )

    async with httpx.AsyncClient() as client:
        if channel == NotificationChannel.PUSH:
            sends = [_send_push(match, request, client) for match in eligible]
        else:
            subject, html = build_email_content(request, requester_name)
            sends = [_send_email(match, subject, html, client) for match in eligible]
        results = await asyncio.gather(*sends, return_exceptions=True)

    for match, result in zip(eligible, results):
        if isinstance(result, BaseException):
            logger.error(
                "Failed to send %s notification to provider %s: %s",
                channel.value,
                match.provider.id,
                result,
            )
            result = NotificationOutcome(
                provider_id=match.provider.id,
                channel=channel,
                status=DeliveryStatus.FAILED,
                distance_km=round(match.distance_km, 1),
                error=str(result) or type(result).__name__,
            )
        summary.outcomes.append(result)
        if result.status == DeliveryStatus.SENT:
            summary.sent += 1
        elif result.invalid_token and match.provider.push_token:
            summary.invalid_tokens.append(match.provider.push_token)

    logger.info(
        "Successfully sent %d out of %d %s notifications",
        summary.sent,
        summary.total,
        channel.value,
    )
    return summary


async def send_test_notification(
    push_token: str,
    user_name: Optional[str],
    user_id: str,
) -> pushService.SendResult:
    """Send a one-off diagnostic push to a single user's device."""
    return await pushService.send_notification(
        device_token=push_token,
        title="🧪 RigSnap Test",
        body=f"Test notification for {user_name or 'you'}",
        data={"type": "debug_test", "userId": user_id},
    )
