"""User domain schemas - profile and notification preferences"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_indian_phone


class UserProfile(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    role: str
    isVerified: bool
    createdAt: Optional[datetime] = None


class UserProfileUpdate(BaseModel):
    """Fields editable on the profile page"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if v else v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_indian_phone(v)
        return None


class NotificationPreferences(BaseModel):
    emailNotifications: bool = True
    smsNotifications: bool = True
    pushNotifications: bool = True
    marketingEmails: bool = False
    bookingReminders: bool = True
    serviceUpdates: bool = True


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; switches left out keep their current value"""

    emailNotifications: Optional[bool] = None
    smsNotifications: Optional[bool] = None
    pushNotifications: Optional[bool] = None
    marketingEmails: Optional[bool] = None
    bookingReminders: Optional[bool] = None
    serviceUpdates: Optional[bool] = None
