"""
Pydantic v2 schemas for push token registration and status.
"""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from rigsnap.models.user import UserRole


class PushTokenUpdateRequest(BaseModel):
    """Register a device's Expo push token, or clear it with null."""

    push_token: Optional[str] = Field(
        default=None,
        max_length=512,
        description="Expo push token (ExponentPushToken[...]); null to clear",
    )

    @field_validator("push_token")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v.strip() if v is not None else None


class PushStatusResponse(BaseModel):
    user_id: uuid.UUID
    role: UserRole
    has_push_token: bool
    token_preview: Optional[str] = None


class DebugPushResponse(BaseModel):
    user_id: uuid.UUID
    sent: bool
    ticket_id: Optional[str] = None
    error: Optional[str] = None
