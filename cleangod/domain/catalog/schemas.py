"""Catalog domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field


class PricingTier(BaseModel):
    """A priced variant of a service, e.g. "1 BHK Empty" or "2 BHK Occupied" """

    id: str
    name: str
    originalPrice: float = Field(ge=0)
    sellingPrice: float = Field(ge=0)
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    isActive: bool
    sortOrder: int


class ServiceResponse(BaseModel):
    id: str
    categoryId: Optional[str] = None
    name: str
    description: Optional[str] = None
    shortDescription: Optional[str] = None
    images: list[str] = []
    pricing: list[PricingTier] = []
    duration: int
    features: list[str] = []
    requirements: list[str] = []
    isActive: bool
    sortOrder: int
    rating: float
    totalBookings: int


class ProductResponse(BaseModel):
    id: str
    categoryId: Optional[str] = None
    name: str
    description: Optional[str] = None
    shortDescription: Optional[str] = None
    images: list[str] = []
    price: float
    originalPrice: Optional[float] = None
    stock: int
    isActive: bool


class BannerResponse(BaseModel):
    id: str
    title: str
    subtitle: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    order: int
    isActive: bool
