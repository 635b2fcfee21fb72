"""Coupon domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class CouponCreate(BaseModel):
    """Schema for creating a coupon from the admin dashboard"""

    code: str = Field(min_length=2, max_length=50)
    title: Optional[str] = None
    description: Optional[str] = None
    discountType: Literal["percentage", "fixed"]
    discountValue: float = Field(gt=0)
    minOrderAmount: Optional[float] = Field(default=None, ge=0)
    maxDiscount: Optional[float] = Field(default=None, gt=0)
    usageLimit: Optional[int] = Field(default=None, ge=1)
    validFrom: Optional[datetime] = None
    validUntil: Optional[datetime] = None
    isActive: bool = True
    applicableFor: Literal["services", "products", "both"] = "both"

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper()

    @model_validator(mode="after")
    def check_values(self):
        if self.discountType == "percentage" and self.discountValue > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.validFrom and self.validUntil and self.validUntil <= self.validFrom:
            raise ValueError("validUntil must be after validFrom")
        return self


class CouponUpdate(BaseModel):
    """Schema for updating a coupon"""

    title: Optional[str] = None
    description: Optional[str] = None
    discountValue: Optional[float] = Field(default=None, gt=0)
    minOrderAmount: Optional[float] = Field(default=None, ge=0)
    maxDiscount: Optional[float] = Field(default=None, gt=0)
    usageLimit: Optional[int] = Field(default=None, ge=1)
    validFrom: Optional[datetime] = None
    validUntil: Optional[datetime] = None
    isActive: Optional[bool] = None
    applicableFor: Optional[Literal["services", "products", "both"]] = None


class CouponResponse(BaseModel):
    id: str
    code: str
    title: Optional[str] = None
    description: Optional[str] = None
    discountType: str
    discountValue: float
    minOrderAmount: Optional[float] = None
    maxDiscount: Optional[float] = None
    usageLimit: Optional[int] = None
    usedCount: int = 0
    validFrom: Optional[datetime] = None
    validUntil: Optional[datetime] = None
    isActive: bool
    applicableFor: str
