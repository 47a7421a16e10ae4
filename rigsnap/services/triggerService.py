"""
Request Trigger Service
=======================

Entry point run when a new row lands in the ``requests`` table. The
database webhook delivers ``{type, table, schema, record, old_record}``;
this module turns that into a dispatch cycle:

  1. Skip anything that is not an INSERT on the requests table.
  2. Read the request's own coordinates (a bad value aborts with 400).
  3. Email only: look up the requester's name for the message body.
  4. Load every provider reachable on the channel (failure aborts with 500).
  5. Filter with the matching engine and fan out with the notification
     service.
  6. Clear push tokens the gateway reported as unregistered.

Aborts are raised as ``TriggerError`` carrying the HTTP status the route
should answer with.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rigsnap.core.config import settings
from rigsnap.models.notification import NotificationChannel
from rigsnap.services import matchingEngine, notificationService, providerService
from rigsnap.services.geoService import Coordinates
from rigsnap.services.locationParser import coordinates_from_mapping
from rigsnap.services.matchingEngine import RequestDetails
from rigsnap.services.notificationService import NotificationOutcome

logger = logging.getLogger(__name__)

INSERT_EVENT = "INSERT"

_NO_PROVIDERS_MESSAGES: dict[NotificationChannel, str] = {
    NotificationChannel.PUSH: "No providers with push tokens found",
    NotificationChannel.EMAIL: "No providers with email addresses found",
}


class TriggerError(Exception):
    """Aborts a whole trigger invocation with an HTTP status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


@dataclass
class TriggerResult:
    message: str
    channel: NotificationChannel
    providers_notified: int = 0
    total_providers: int = 0
    outcomes: list[NotificationOutcome] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Request record helpers
# ---------------------------------------------------------------------------

def parse_request_coordinates(raw: Any) -> Coordinates:
    """Read the coordinates of the triggering request.

    Unlike provider locations there is no fallback: the request was created
    from the app's GPS fix, so anything but a coordinate object is an error.

    Raises:
        TriggerError: 400 if the value is not JSON or lacks numeric
            latitude/longitude.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except (ValueError, RecursionError):
            logger.error("Error parsing request coordinates: %r", raw)
            raise TriggerError(400, "Invalid coordinates format")

    coords = coordinates_from_mapping(raw) if isinstance(raw, Mapping) else None
    if coords is None:
        logger.error("Missing latitude or longitude in coordinates")
        raise TriggerError(400, "Missing coordinates")
    return coords


def request_from_record(record: Mapping[str, Any]) -> RequestDetails:
    """Build ``RequestDetails`` from a raw ``requests`` row."""
    requester_id = record.get("trucker_id") or record.get("customer_id")
    budget = record.get("budget")
    if budget is None:
        budget = record.get("estimated_cost")
    return RequestDetails(
        id=str(record.get("id")),
        requester_id=str(requester_id) if requester_id else None,
        coordinates=parse_request_coordinates(record.get("coordinates")),
        service_type=record.get("service_type"),
        urgency=record.get("urgency"),
        description=record.get("description"),
        location=record.get("location"),
        budget=budget,
    )


async def _requester_name(db: AsyncSession, requester_id: Optional[str]) -> str:
    """Display name of the requester, for the email channel."""
    try:
        user_id = uuid.UUID(requester_id) if requester_id else None
    except ValueError:
        user_id = None
    if user_id is None:
        logger.error("Request has no valid requester id: %r", requester_id)
        raise TriggerError(500, "Failed to fetch customer information")

    try:
        requester = await providerService.get_user(db, user_id)
    except SQLAlchemyError:
        logger.exception("Error fetching requester %s", user_id)
        raise TriggerError(500, "Failed to fetch customer information")

    if requester is None:
        logger.error("Requester %s not found", user_id)
        raise TriggerError(500, "Failed to fetch customer information")
    return requester.name


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def process_request_record(
    db: AsyncSession,
    record: Mapping[str, Any],
    channel: NotificationChannel,
) -> TriggerResult:
    """Run matching and dispatch for one request row on one channel."""
    request = request_from_record(record)
    logger.info("Processing new request %s for %s notifications", request.id, channel.value)

    requester_name = None
    if channel == NotificationChannel.EMAIL:
        requester_name = await _requester_name(db, request.requester_id)

    try:
        providers = await providerService.list_providers_for_channel(db, channel)
    except SQLAlchemyError:
        logger.exception("Error fetching providers")
        raise TriggerError(500, "Failed to fetch providers")

    if not providers:
        return TriggerResult(message=_NO_PROVIDERS_MESSAGES[channel], channel=channel)

    eligible = matchingEngine.select_eligible(request, providers, channel=channel)
    summary = await notificationService.dispatch(
        eligible,
        request,
        channel=channel,
        requester_name=requester_name,
    )

    if summary.invalid_tokens:
        try:
            await providerService.clear_push_tokens(db, summary.invalid_tokens)
        except SQLAlchemyError:
            logger.exception("Failed to clear %d invalid push tokens", len(summary.invalid_tokens))

    return TriggerResult(
        message=f"Processed request {request.id}",
        channel=channel,
        providers_notified=summary.sent,
        total_providers=summary.total,
        outcomes=summary.outcomes,
    )


async def handle_insert_event(
    db: AsyncSession,
    payload: Mapping[str, Any],
    channel: NotificationChannel,
) -> TriggerResult:
    """Handle one database webhook delivery.

    Returns a skip result (not an error) for events other than an INSERT on
    the requests table.

    Raises:
        TriggerError: When the request coordinates are unusable (400) or a
            collaborator query fails (500).
    """
    if payload.get("type") != INSERT_EVENT or payload.get("table") != settings.requests_table:
        logger.info(
            "Ignoring %s event on table %s",
            payload.get("type"),
            payload.get("table"),
        )
        return TriggerResult(message="Not a request insert operation", channel=channel)

    record = payload.get("record")
    if not isinstance(record, Mapping):
        raise TriggerError(400, "Missing request record")

    return await process_request_record(db, record, channel)
