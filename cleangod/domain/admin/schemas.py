"""Admin domain schemas - Pydantic models for the dashboard"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_indian_phone
from ..booking.schemas import BookingResponse
from ..catalog.schemas import PricingTier


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    isActive: bool = True
    sortOrder: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    isActive: Optional[bool] = None
    sortOrder: Optional[int] = None


class ServiceCreate(BaseModel):
    """Schema for creating a service with its pricing tiers"""

    categoryId: Optional[str] = None
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    shortDescription: Optional[str] = None
    images: list[str] = []
    pricing: list[PricingTier] = Field(min_length=1)
    duration: int = Field(default=60, ge=1)
    features: list[str] = []
    requirements: list[str] = []
    isActive: bool = True
    sortOrder: int = 0

    @field_validator("pricing")
    @classmethod
    def unique_tier_ids(cls, v):
        ids = [tier.id for tier in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Pricing tier ids must be unique")
        return v


class ServiceUpdate(BaseModel):
    categoryId: Optional[str] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    shortDescription: Optional[str] = None
    images: Optional[list[str]] = None
    pricing: Optional[list[PricingTier]] = Field(default=None, min_length=1)
    duration: Optional[int] = Field(default=None, ge=1)
    features: Optional[list[str]] = None
    requirements: Optional[list[str]] = None
    isActive: Optional[bool] = None
    sortOrder: Optional[int] = None


class ProductCreate(BaseModel):
    categoryId: Optional[str] = None
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    shortDescription: Optional[str] = None
    images: list[str] = []
    price: float = Field(ge=0)
    originalPrice: Optional[float] = Field(default=None, ge=0)
    stock: int = Field(default=0, ge=0)
    isActive: bool = True


class ProductUpdate(BaseModel):
    categoryId: Optional[str] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    shortDescription: Optional[str] = None
    images: Optional[list[str]] = None
    price: Optional[float] = Field(default=None, ge=0)
    originalPrice: Optional[float] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    isActive: Optional[bool] = None


class BannerCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    subtitle: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    order: int = 0
    isActive: bool = True


class BannerUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    subtitle: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    order: Optional[int] = None
    isActive: Optional[bool] = None


class ServiceBoyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None
    skills: list[str] = []
    isActive: bool = True

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_indian_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)


class ServiceBoyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None
    skills: Optional[list[str]] = None
    isActive: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_indian_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)


class TaskAssign(BaseModel):
    """A job handed to a service boy; linking a booking sets its provider"""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    bookingId: Optional[str] = None
    scheduledDate: Optional[date] = None
    scheduledTime: Optional[str] = None


class ServiceBoyResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    skills: list[str] = []
    isActive: bool
    tasks: list[dict] = []
    createdAt: Optional[datetime] = None


class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str
    isVerified: bool
    createdAt: Optional[datetime] = None


class TopService(BaseModel):
    name: str
    bookings: int
    revenue: float


class DashboardStats(BaseModel):
    totalRevenue: float
    activeBookings: int
    totalUsers: int
    servicesCompleted: int
    recentBookings: list[BookingResponse]
    topServices: list[TopService]
