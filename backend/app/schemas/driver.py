"""
Driver Pydantic schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from backend.app.schemas.user import NewUser, UpdateUser, UserResponse, address_of


class NewDriver(NewUser):
    """Schema for creating a driver profile."""
    vehicle_make: str = Field(..., min_length=1, max_length=100, alias="vehicleMake")
    vehicle_model: str = Field(..., min_length=1, max_length=100, alias="vehicleModel")
    vehicle_year: int = Field(..., ge=1900, le=2100, alias="vehicleYear")


class UpdateDriver(UpdateUser):
    vehicle_make: Optional[str] = Field(None, min_length=1, max_length=100, alias="vehicleMake")
    vehicle_model: Optional[str] = Field(None, min_length=1, max_length=100, alias="vehicleModel")
    vehicle_year: Optional[int] = Field(None, ge=1900, le=2100, alias="vehicleYear")


class DriverResponse(UserResponse):
    vehicle_make: str = Field(..., alias="vehicleMake")
    vehicle_model: str = Field(..., alias="vehicleModel")
    vehicle_year: int = Field(..., alias="vehicleYear")


class DriverListResponse(BaseModel):
    drivers: List[DriverResponse]
    limit: int
    offset: int


def driver_to_response(driver) -> DriverResponse:
    return DriverResponse(
        id=driver.id,
        first_name=driver.first_name,
        last_name=driver.last_name,
        email=driver.email,
        phone_number=driver.phone_number,
        address=address_of(driver),
        preferred_contact=driver.preferred_contact,
        vehicle_make=driver.vehicle_make,
        vehicle_model=driver.vehicle_model,
        vehicle_year=driver.vehicle_year,
        created_at=driver.created_at,
        updated_at=driver.updated_at,
    )
