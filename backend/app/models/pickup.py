"""
Pickup record model.

Pickups live in the key-value store as JSON documents using the camelCase
attribute names of the public API. Absent attributes are left out of the
document entirely.
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PickupStatus(str, enum.Enum):
    """
    Pickup status enumeration.

    Status flow:
        PENDING → AVAILABLE → ACCEPTED → IN_PROGRESS → COMPLETED
        ACCEPTED → CANCELLED (cancel-acceptance)
        AVAILABLE / ACCEPTED / CANCELLED → DELETED (soft delete)
    """
    PENDING = "pending"
    AVAILABLE = "available"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DELETED = "deleted"


# Statuses that carry a driverId
DRIVER_ASSIGNED_STATUSES = frozenset(
    {PickupStatus.ACCEPTED, PickupStatus.IN_PROGRESS, PickupStatus.COMPLETED}
)


class WasteType(str, enum.Enum):
    HOUSEHOLD = "household"
    CONSTRUCTION = "construction"
    GREEN = "green"
    ELECTRONIC = "electronic"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps as UTC so they compare with offset-aware ones."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Pickup(BaseModel):
    """A single waste-collection request and its lifecycle state."""
    id: str
    user_id: str = Field(..., alias="userId")
    driver_id: Optional[str] = Field(None, alias="driverId")
    status: PickupStatus
    location: str
    estimated_weight: float = Field(..., alias="estimatedWeight")
    waste_type: str = Field(..., alias="wasteType")
    requested_time: datetime = Field(..., alias="requestedTime")
    deleted_at: Optional[datetime] = Field(None, alias="deletedAt")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        populate_by_name = True

    @field_validator("requested_time", "deleted_at", "created_at", "updated_at")
    @classmethod
    def _aware(cls, value):
        return as_utc(value)

    def to_document(self) -> dict:
        """Serialize to the stored/public JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def __repr__(self):
        return f"<Pickup(id={self.id}, user_id={self.user_id}, status='{self.status.value}')>"
