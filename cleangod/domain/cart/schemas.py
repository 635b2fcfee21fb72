"""Cart domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class CartItem(BaseModel):
    """One line item; (id, type) is unique within a cart"""

    id: str
    type: Literal["service", "product"]
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    image: Optional[str] = None
    pricingId: Optional[str] = None
    variantId: Optional[str] = None


class AddCartItemRequest(BaseModel):
    """Schema for adding an item; name and price come from the catalog"""

    id: str
    type: Literal["service", "product"]
    quantity: int = Field(ge=1, default=1)
    pricingId: Optional[str] = None
    variantId: Optional[str] = None


class UpdateQuantityRequest(BaseModel):
    """Quantity of 0 or less removes the item"""

    quantity: int


class ApplyCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)


class CartResponse(BaseModel):
    items: list[CartItem]
    itemCount: int
    subtotal: float


class CartTotalsResponse(BaseModel):
    subtotal: float
    discount: float
    taxes: float
    total: float
    appliedCoupon: Optional[str] = None
    couponApplied: bool = False
    message: Optional[str] = None
