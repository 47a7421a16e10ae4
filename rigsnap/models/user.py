"""
SQLAlchemy model for the users table.

Truckers and service providers share one table; provider-only columns
(services, service_radius) are null for truckers.
"""

import enum
from typing import Optional

from sqlalchemy import JSON, Enum, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class UserRole(str, enum.Enum):
    TRUCKER = "trucker"
    PROVIDER = "provider"


# text[] on PostgreSQL, JSON list elsewhere (SQLite in tests)
ServiceList = ARRAY(Text).with_variant(JSON(), "sqlite")


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="user_role",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=UserRole.TRUCKER,
    )
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Free text, "lat,lng" or JSON -- see services.locationParser
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default="")

    # Provider-specific
    services: Mapped[Optional[list[str]]] = mapped_column(ServiceList, nullable=True)
    service_radius: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Expo push token registered by the mobile app
    push_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role.value if self.role else None}>"
