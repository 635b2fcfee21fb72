"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .pricing import CouponSnapshot, Totals
from .wizard import AddressSnapshot, DraftItem

BookingStatus = Literal["pending", "confirmed", "in-progress", "completed", "cancelled"]
PaymentStatus = Literal["pending", "completed", "failed", "refunded"]


class ChooseTimeRequest(BaseModel):
    """
    Time selection page.
    Start from a single service (serviceId, pricingId) or from the cart
    (fromCart); with neither, the items already in the draft are kept.
    """

    scheduledDate: date
    scheduledTime: str
    notes: Optional[str] = Field(default=None, max_length=1000)
    serviceId: Optional[str] = None
    pricingId: Optional[str] = None
    quantity: int = Field(ge=1, default=1)
    fromCart: bool = False

    @model_validator(mode="after")
    def validate_entry_point(self):
        if self.serviceId and self.fromCart:
            raise ValueError("Choose either a single service or the cart, not both")
        return self


class ChooseAddressRequest(BaseModel):
    addressId: str


class ChoosePaymentRequest(BaseModel):
    paymentMethod: Literal["cash_on_delivery", "online"]
    couponCode: Optional[str] = Field(default=None, max_length=50)


class SubmitBookingRequest(BaseModel):
    """paymentId from the hosted checkout, kept as a reference until the signed callback confirms payment"""

    paymentId: Optional[str] = Field(default=None, max_length=255)


class DraftResponse(BaseModel):
    step: str
    nextPage: str
    draftId: Optional[str] = None
    items: list[DraftItem] = []
    scheduledDate: Optional[date] = None
    scheduledTime: Optional[str] = None
    notes: Optional[str] = None
    duration: Optional[int] = None
    address: Optional[AddressSnapshot] = None
    paymentMethod: Optional[str] = None
    coupon: Optional[CouponSnapshot] = None
    totals: Optional[Totals] = None
    couponApplied: Optional[bool] = None
    message: Optional[str] = None


class TimeSlotsResponse(BaseModel):
    dates: list[date]
    slots: list[str]


class BookingLine(BaseModel):
    id: str
    type: str
    name: str
    price: float
    quantity: int
    pricingId: Optional[str] = None


class BookingResponse(BaseModel):
    id: str
    reference: str
    customerId: str
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None
    services: list[BookingLine]
    address: dict
    scheduledDate: str
    scheduledTime: str
    duration: Optional[int] = None
    notes: Optional[str] = None
    subtotal: float
    discount: float
    taxes: float
    totalAmount: float
    appliedCoupon: Optional[str] = None
    paymentMethod: str
    paymentStatus: str
    paymentId: Optional[str] = None
    status: str
    providerId: Optional[str] = None
    providerName: Optional[str] = None
    completedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class BookingStatusUpdate(BaseModel):
    """Admin patch; omitted fields are left unchanged"""

    status: Optional[BookingStatus] = None
    paymentStatus: Optional[PaymentStatus] = None
    providerId: Optional[str] = None
    providerName: Optional[str] = None


class PaymentCallback(BaseModel):
    """Signed notification from the payment provider"""

    bookingId: str
    paymentId: str
    status: Literal["completed", "failed", "refunded"]
