"""
Expo push integration
=====================

Public re-exports for the Expo push notification service.
"""

from .pushService import (
    INVALID_TOKEN_ERRORS,
    SendResult,
    build_message,
    send_notification,
)

__all__ = [
    "INVALID_TOKEN_ERRORS",
    "SendResult",
    "build_message",
    "send_notification",
]
