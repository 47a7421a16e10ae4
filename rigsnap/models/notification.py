"""
Enums shared by the matching and notification layers. Notification
outcomes are never persisted, so there is no table here.
"""

import enum


class NotificationChannel(str, enum.Enum):
    """Delivery channel of a dispatch cycle."""
    PUSH = "push"
    EMAIL = "email"


class DeliveryStatus(str, enum.Enum):
    """Outcome of an individual send attempt."""
    SENT = "sent"
    FAILED = "failed"
