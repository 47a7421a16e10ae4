"""
Pydantic v2 schemas for the database webhook trigger endpoints.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from rigsnap.models.notification import DeliveryStatus, NotificationChannel


class DatabaseWebhookPayload(BaseModel):
    """Body posted by the database webhook on a row change."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str = Field(description="Operation: INSERT, UPDATE or DELETE")
    table: str = Field(description="Table the row belongs to")
    db_schema: Optional[str] = Field(default=None, alias="schema")
    record: Optional[dict[str, Any]] = Field(
        default=None, description="The new row (INSERT/UPDATE)"
    )
    old_record: Optional[dict[str, Any]] = None


class NotificationOutcomeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_id: str
    channel: NotificationChannel
    status: DeliveryStatus
    distance_km: Optional[float] = None
    error: Optional[str] = None


class TriggerResponse(BaseModel):
    """Summary of one dispatch cycle."""

    message: str
    channel: NotificationChannel
    providers_notified: int = Field(description="Providers whose send succeeded")
    total_providers: int = Field(description="Providers found eligible")
    results: list[NotificationOutcomeOut] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
