"""
User push token routes.

  PUT  /api/v1/users/{user_id}/push-token   -- register or clear a token
  GET  /api/v1/users/{user_id}/push-status  -- can this user receive push?
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, HTTPException, status

from rigsnap.api.deps import DBSession
from rigsnap.api.schemas.user import PushStatusResponse, PushTokenUpdateRequest
from rigsnap.services import providerService

router = APIRouter(prefix="/users", tags=["Users"])


def _status_for(user) -> PushStatusResponse:
    token = user.push_token
    return PushStatusResponse(
        user_id=user.id,
        role=user.role,
        has_push_token=bool(token),
        token_preview=token[:30] + "..." if token else None,
    )


@router.put(
    "/{user_id}/push-token",
    response_model=PushStatusResponse,
    summary="Register or clear a user's push token",
)
async def update_push_token(
    db: DBSession,
    user_id: uuid.UUID,
    body: PushTokenUpdateRequest,
) -> PushStatusResponse:
    try:
        user = await providerService.set_push_token(db, user_id, body.push_token)
    except providerService.UserNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    return _status_for(user)


@router.get(
    "/{user_id}/push-status",
    response_model=PushStatusResponse,
    summary="Report whether a user can receive push notifications",
)
async def get_push_status(
    db: DBSession,
    user_id: uuid.UUID,
) -> PushStatusResponse:
    user = await providerService.get_user(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id '{user_id}' not found.",
        )
    return _status_for(user)
