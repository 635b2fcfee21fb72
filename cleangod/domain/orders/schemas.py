"""Order domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled"]
OrderPaymentStatus = Literal["pending", "paid", "failed", "refunded"]


class OrderItem(BaseModel):
    productId: str
    variantId: Optional[str] = None
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)


class OrderCreate(BaseModel):
    """Schema for an order entered from the admin dashboard"""

    customerId: str
    items: list[OrderItem] = Field(min_length=1)
    deliveryAddress: dict
    status: OrderStatus = "pending"
    paymentStatus: OrderPaymentStatus = "pending"
    paymentId: Optional[str] = None
    trackingId: Optional[str] = None


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    paymentStatus: Optional[OrderPaymentStatus] = None
    paymentId: Optional[str] = None
    trackingId: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    customerId: str
    items: list[OrderItem]
    status: str
    totalAmount: float
    deliveryAddress: dict
    paymentStatus: str
    paymentId: Optional[str] = None
    trackingId: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
