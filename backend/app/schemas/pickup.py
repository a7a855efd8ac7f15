"""
Pickup Pydantic schemas.

Request bodies use the camelCase names of the public API.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from backend.app.models.pickup import PickupStatus, WasteType


class NewPickup(BaseModel):
    """Schema for creating a pickup."""
    location: str = Field(..., min_length=1)
    estimated_weight: float = Field(..., ge=1, alias="estimatedWeight")
    waste_type: str = Field(..., min_length=1, alias="wasteType")
    requested_time: datetime = Field(..., alias="requestedTime")

    class Config:
        populate_by_name = True

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump()


class UpdatePickup(BaseModel):
    """Schema for updating a pickup; omitted fields are left unchanged."""
    location: Optional[str] = Field(None, min_length=1)
    estimated_weight: Optional[float] = Field(None, ge=1, alias="estimatedWeight")
    waste_type: Optional[WasteType] = Field(None, alias="wasteType")
    requested_time: Optional[datetime] = Field(None, alias="requestedTime")
    status: Optional[PickupStatus] = None

    class Config:
        populate_by_name = True
        extra = "forbid"

    def to_fields(self) -> Dict[str, Any]:
        """Non-status attributes that were supplied, keyed by model field name."""
        fields = self.model_dump(exclude_none=True, exclude={"status"})
        if "waste_type" in fields:
            fields["waste_type"] = fields["waste_type"].value
        return fields


class PickupListResponse(BaseModel):
    pickups: List[Dict[str, Any]]
    next_cursor: Optional[str] = Field(None, alias="nextCursor")

    class Config:
        populate_by_name = True
