"""
RigSnap SQLAlchemy Models
=========================

Central import point for all ORM models. Import ``Base`` from here for
Alembic auto-generation and for the ``create_all`` convenience in tests.

Usage::

    from rigsnap.models import Base, User, ServiceRequest
"""

# -- Base & Mixins --
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# -- Users --
from .user import User, UserRole

# -- Requests --
from .request import RequestStatus, ServiceRequest, ServiceType, Urgency

# -- Notifications --
from .notification import DeliveryStatus, NotificationChannel

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "User",
    "UserRole",
    "RequestStatus",
    "ServiceRequest",
    "ServiceType",
    "Urgency",
    "DeliveryStatus",
    "NotificationChannel",
]
