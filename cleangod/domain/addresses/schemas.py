"""Address domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_pincode

AddressType = Literal["home", "work", "other"]


class AddressCreate(BaseModel):
    """Schema for adding a new address"""

    type: AddressType = "home"
    street: str = Field(min_length=1, max_length=255)
    area: str = Field(min_length=1, max_length=255)
    city: str = "Visakhapatnam"
    state: str = "Andhra Pradesh"
    pincode: str
    landmark: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    isDefault: bool = False

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return validate_pincode(v)


class AddressUpdate(BaseModel):
    """Schema for updating an existing address"""

    type: Optional[AddressType] = None
    street: Optional[str] = Field(default=None, min_length=1, max_length=255)
    area: Optional[str] = Field(default=None, min_length=1, max_length=255)
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    landmark: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        if v:
            return validate_pincode(v)
        return v


class AddressResponse(BaseModel):
    """Schema for address response"""

    id: str
    type: str
    street: str
    area: str
    city: str
    state: str
    pincode: str
    landmark: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    isDefault: bool
    createdAt: Optional[datetime] = None
