"""
Provider Service
================

Database reads and small writes that the notification trigger needs:

  - list_providers_for_channel -- every provider reachable on a channel
  - get_user                   -- requester lookup for the email body
  - get_request                -- stored request, for manual re-dispatch
  - set_push_token             -- register/clear a device token
  - clear_push_tokens          -- drop tokens the push gateway rejected
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rigsnap.models.notification import NotificationChannel
from rigsnap.models.request import ServiceRequest
from rigsnap.models.user import User, UserRole
from rigsnap.services.matchingEngine import ProviderCandidate

logger = logging.getLogger(__name__)


class UserNotFoundError(Exception):
    def __init__(self, user_id: uuid.UUID) -> None:
        self.user_id = user_id
        super().__init__(f"User with id '{user_id}' not found.")


async def list_providers_for_channel(
    db: AsyncSession,
    channel: NotificationChannel,
) -> list[ProviderCandidate]:
    """Fetch every provider that has a contact for ``channel``.

    Push requires a non-null push token, email a non-null email address.
    Database errors propagate to the caller.
    """
    contact = User.push_token if channel == NotificationChannel.PUSH else User.email
    stmt = select(User).where(
        User.role == UserRole.PROVIDER,
        contact.is_not(None),
    )
    result = await db.execute(stmt)
    providers = [ProviderCandidate.from_user(user) for user in result.scalars().all()]
    logger.info("Found %d providers with %s contact", len(providers), channel.value)
    return providers


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_request(db: AsyncSession, request_id: uuid.UUID) -> ServiceRequest | None:
    result = await db.execute(
        select(ServiceRequest).where(ServiceRequest.id == request_id)
    )
    return result.scalar_one_or_none()


async def set_push_token(
    db: AsyncSession,
    user_id: uuid.UUID,
    push_token: str | None,
) -> User:
    """Store (or clear, with None) the Expo push token of a user.

    Raises:
        UserNotFoundError: If the user does not exist.
    """
    user = await get_user(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    user.push_token = push_token
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()

    logger.info(
        "Push token %s for user %s",
        "updated" if push_token else "cleared",
        user_id,
    )
    return user


async def clear_push_tokens(db: AsyncSession, tokens: list[str]) -> None:
    """Null out push tokens the gateway reported as no longer registered."""
    if not tokens:
        return

    logger.info("Clearing %d unregistered push tokens", len(tokens))

    await db.execute(
        update(User)
        .where(User.push_token.in_(tokens))
        .values(push_token=None, updated_at=datetime.now(timezone.utc))
    )
    await db.flush()
