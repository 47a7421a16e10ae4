"""
Notification diagnostics.

  POST /api/v1/notifications/test/{user_id}  -- send a test push to one user
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, HTTPException, status

from rigsnap.api.deps import DBSession
from rigsnap.api.schemas.user import DebugPushResponse
from rigsnap.services import notificationService, providerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post(
    "/test/{user_id}",
    response_model=DebugPushResponse,
    summary="Send a test push notification",
    description=(
        "Sends a diagnostic push to the user's registered device. If the "
        "gateway reports the token as unregistered, the token is cleared."
    ),
)
async def send_test_notification(
    db: DBSession,
    user_id: uuid.UUID,
) -> DebugPushResponse:
    user = await providerService.get_user(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id '{user_id}' not found.",
        )
    if not user.push_token:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User has no push token registered.",
        )

    result = await notificationService.send_test_notification(
        user.push_token, user.name, str(user.id)
    )
    if result.invalid_token:
        await providerService.clear_push_tokens(db, [user.push_token])

    logger.info("Test notification for user %s: sent=%s", user_id, result.success)
    return DebugPushResponse(
        user_id=user.id,
        sent=result.success,
        ticket_id=result.ticket_id,
        error=result.error,
    )
