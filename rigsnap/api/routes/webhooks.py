"""
Trigger API Routes
==================

Endpoints called when a new service request is stored:

  POST /api/v1/webhooks/send-push-notifications  -- push channel
  POST /api/v1/webhooks/send-email               -- email channel
  POST /api/v1/requests/{request_id}/notify      -- re-run for a stored request

Both webhook endpoints receive the database webhook payload
(``{type, table, schema, record, old_record}``) and answer with a dispatch
summary. Aborted invocations answer ``{"error": "..."}`` with a non-2xx
status.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from rigsnap.api.deps import DBSession, verify_webhook_secret
from rigsnap.api.schemas.webhook import (
    DatabaseWebhookPayload,
    ErrorResponse,
    NotificationOutcomeOut,
    TriggerResponse,
)
from rigsnap.models.notification import NotificationChannel
from rigsnap.services import providerService, triggerService
from rigsnap.services.triggerService import TriggerError, TriggerResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Triggers"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _to_response(result: TriggerResult) -> TriggerResponse:
    return TriggerResponse(
        message=result.message,
        channel=result.channel,
        providers_notified=result.providers_notified,
        total_providers=result.total_providers,
        results=[NotificationOutcomeOut.model_validate(o) for o in result.outcomes],
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _run_trigger(
    db: DBSession,
    payload: DatabaseWebhookPayload,
    channel: NotificationChannel,
) -> TriggerResponse | JSONResponse:
    try:
        result = await triggerService.handle_insert_event(
            db, payload.model_dump(by_alias=True), channel
        )
    except TriggerError as exc:
        return _error(exc.status_code, exc.message)
    except Exception as exc:
        logger.exception("Error in %s notification trigger", channel.value)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal error")
    return _to_response(result)


# ---------------------------------------------------------------------------
# POST /api/v1/webhooks/send-push-notifications
# ---------------------------------------------------------------------------

@router.post(
    "/webhooks/send-push-notifications",
    response_model=TriggerResponse,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(verify_webhook_secret)],
    summary="Push-notify nearby providers about a new request",
)
async def send_push_notifications(
    db: DBSession,
    payload: DatabaseWebhookPayload,
):
    return await _run_trigger(db, payload, NotificationChannel.PUSH)


# ---------------------------------------------------------------------------
# POST /api/v1/webhooks/send-email
# ---------------------------------------------------------------------------

@router.post(
    "/webhooks/send-email",
    response_model=TriggerResponse,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(verify_webhook_secret)],
    summary="Email nearby providers about a new request",
)
async def send_email_notifications(
    db: DBSession,
    payload: DatabaseWebhookPayload,
):
    return await _run_trigger(db, payload, NotificationChannel.EMAIL)


# ---------------------------------------------------------------------------
# POST /api/v1/requests/{request_id}/notify
# ---------------------------------------------------------------------------

@router.post(
    "/requests/{request_id}/notify",
    response_model=TriggerResponse,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(verify_webhook_secret)],
    summary="Re-run provider notification for a stored request",
)
async def renotify_request(
    db: DBSession,
    request_id: uuid.UUID,
    channel: NotificationChannel = Query(default=NotificationChannel.PUSH),
):
    stored = await providerService.get_request(db, request_id)
    if stored is None:
        return _error(status.HTTP_404_NOT_FOUND, f"Request with id '{request_id}' not found.")

    try:
        result = await triggerService.process_request_record(db, stored.to_record(), channel)
    except TriggerError as exc:
        return _error(exc.status_code, exc.message)
    return _to_response(result)
