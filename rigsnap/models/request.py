"""
SQLAlchemy model for the requests table (roadside service requests created
by truckers).
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Numeric, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ServiceType(str, enum.Enum):
    TOWING = "towing"
    REPAIR = "repair"
    MECHANIC = "mechanic"
    TIRE_REPAIR = "tire_repair"
    TRUCK_WASH = "truck_wash"
    HOSE_REPAIR = "hose_repair"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Urgency(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _enum_values(e: type[enum.Enum]) -> list[str]:
    return [member.value for member in e]


class ServiceRequest(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "requests"

    trucker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    location: Mapped[str] = mapped_column(Text, nullable=False)
    coordinates: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )

    service_type: Mapped[ServiceType] = mapped_column(
        Enum(ServiceType, name="service_type", values_callable=_enum_values),
        nullable=False,
    )
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, name="request_status", values_callable=_enum_values),
        nullable=False,
        default=RequestStatus.PENDING,
    )
    urgency: Mapped[Urgency] = mapped_column(
        Enum(Urgency, name="urgency_level", values_callable=_enum_values),
        nullable=False,
        default=Urgency.MEDIUM,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    estimated_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def to_record(self) -> dict[str, Any]:
        """Render the row the way a database webhook delivers it."""
        return {
            "id": str(self.id),
            "trucker_id": str(self.trucker_id),
            "provider_id": str(self.provider_id) if self.provider_id else None,
            "location": self.location,
            "coordinates": self.coordinates,
            "service_type": self.service_type.value,
            "status": self.status.value,
            "urgency": self.urgency.value,
            "description": self.description,
            "estimated_cost": float(self.estimated_cost) if self.estimated_cost is not None else None,
        }
