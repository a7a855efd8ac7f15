"""
User Pydantic schemas.

Defines request and response models for user profile management.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field

from backend.app.models.enums import PreferredContact

PHONE_PATTERN = r"^(\+1|1)?[-. ]?\(?([0-9]{3})\)?[-. ]?([0-9]{3})[-. ]?([0-9]{4})$"


class Address(BaseModel):
    street: str = Field(..., min_length=1, max_length=100)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., pattern=r"^[A-Z]{2}$")
    zip_code: str = Field(..., pattern=r"^\d{5}(-\d{4})?$", alias="zipCode")

    class Config:
        populate_by_name = True
        extra = "forbid"


class NewUser(BaseModel):
    """Schema for creating a user profile."""
    id: Optional[str] = Field(None, min_length=1, max_length=64, description="Identity subject (admin only)")
    first_name: str = Field(..., min_length=1, max_length=100, alias="firstName")
    last_name: str = Field(..., min_length=1, max_length=100, alias="lastName")
    email: EmailStr
    phone_number: str = Field(..., pattern=PHONE_PATTERN, alias="phoneNumber")
    address: Address
    preferred_contact: PreferredContact = Field(PreferredContact.TEXT, alias="preferredContact")

    class Config:
        populate_by_name = True
        extra = "forbid"


class UpdateUser(BaseModel):
    """Schema for updating a user profile; omitted fields are left unchanged."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100, alias="firstName")
    last_name: Optional[str] = Field(None, min_length=1, max_length=100, alias="lastName")
    email: Optional[EmailStr] = None
    address: Optional[Address] = None
    preferred_contact: Optional[PreferredContact] = Field(None, alias="preferredContact")

    class Config:
        populate_by_name = True
        extra = "forbid"


class UserResponse(BaseModel):
    """Schema for user response."""
    id: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str
    phone_number: str = Field(..., alias="phoneNumber")
    address: Address
    preferred_contact: PreferredContact = Field(..., alias="preferredContact")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        populate_by_name = True


class UserListResponse(BaseModel):
    users: List[UserResponse]
    limit: int
    offset: int


def address_columns(address: Address) -> Dict[str, Any]:
    """Flatten an address into the model's column names."""
    return address.model_dump()


def address_of(record) -> Address:
    return Address(
        street=record.street,
        city=record.city,
        state=record.state,
        zip_code=record.zip_code,
    )


def user_to_response(user) -> UserResponse:
    return UserResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone_number=user.phone_number,
        address=address_of(user),
        preferred_contact=user.preferred_contact,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
