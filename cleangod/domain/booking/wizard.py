"""
Booking wizard state machine

A booking draft moves through the wizard pages

    NotStarted -> TimeChosen -> AddressChosen -> Ready -> (submitted)

Each transition function takes the current state and returns the next one.
Going back to an earlier page is allowed and discards the choices made after
it; skipping ahead raises InvalidTransition with the page the user has to
complete first.
"""

import uuid
from datetime import date, timedelta
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from ...config import BOOKING_WINDOW_DAYS, COUPON_CAP_FRACTION, DEFAULT_BOOKING_DURATION, TAX_RATE
from .pricing import CouponSnapshot, Totals, compute_totals, line_subtotal

# Fixed catalog of offered slots; no availability or conflict check
TIME_SLOTS = ["11:30 AM", "12:30 PM", "01:00 PM", "02:30 PM", "03:30 PM", "04:30 PM"]

PAYMENT_METHODS = ("cash_on_delivery", "online")

SERVICES_PAGE = "/services"
ADDRESS_PAGE = "/booking/address-selection"
PAYMENT_PAGE = "/booking/payment"


class WizardError(Exception):
    """Base class for booking wizard errors"""


class InvalidTransition(WizardError):
    """A wizard step was attempted before the steps it depends on"""

    def __init__(self, message: str, redirect_to: str):
        super().__init__(message)
        self.redirect_to = redirect_to


class InvalidSelection(WizardError):
    """The values chosen on a wizard page are not acceptable"""


class DraftItem(BaseModel):
    id: str
    type: Literal["service", "product"]
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    pricingId: Optional[str] = None
    variantId: Optional[str] = None
    duration: Optional[int] = None  # minutes, services only


class AddressSnapshot(BaseModel):
    id: str
    type: Literal["home", "work", "other"] = "home"
    street: str
    area: str
    city: str
    state: str
    pincode: str
    landmark: Optional[str] = None
    isDefault: bool = False


class NotStarted(BaseModel):
    step: Literal["not_started"] = "not_started"


class _Scheduled(BaseModel):
    draftId: str
    idempotencyKey: str
    items: list[DraftItem] = Field(min_length=1)
    scheduledDate: date
    scheduledTime: str
    notes: str = ""
    duration: int = DEFAULT_BOOKING_DURATION


class TimeChosen(_Scheduled):
    step: Literal["time_chosen"] = "time_chosen"


class AddressChosen(_Scheduled):
    step: Literal["address_chosen"] = "address_chosen"
    address: AddressSnapshot


class Ready(_Scheduled):
    step: Literal["ready"] = "ready"
    address: AddressSnapshot
    paymentMethod: Literal["cash_on_delivery", "online"]
    coupon: Optional[CouponSnapshot] = None
    totals: Totals


WizardState = Annotated[
    Union[NotStarted, TimeChosen, AddressChosen, Ready],
    Field(discriminator="step"),
]

wizard_state_adapter = TypeAdapter(WizardState)


def next_page(state) -> str:
    """The first page the user still has to complete"""
    if isinstance(state, NotStarted):
        return SERVICES_PAGE
    if isinstance(state, TimeChosen):
        return ADDRESS_PAGE
    return PAYMENT_PAGE


def booking_dates(today: date, window_days: int = BOOKING_WINDOW_DAYS) -> list[date]:
    return [today + timedelta(days=offset) for offset in range(window_days)]


def total_duration(items: list[DraftItem]) -> int:
    minutes = sum((item.duration or 0) * item.quantity for item in items if item.type == "service")
    return minutes or DEFAULT_BOOKING_DURATION


def choose_time(
    state,
    scheduled_date: date,
    scheduled_time: str,
    items: Optional[list[DraftItem]] = None,
    notes: Optional[str] = None,
    today: Optional[date] = None,
    window_days: int = BOOKING_WINDOW_DAYS,
) -> TimeChosen:
    """Time selection page. Starts a new draft when items are given from NotStarted."""
    today = today or date.today()

    if scheduled_time not in TIME_SLOTS:
        raise InvalidSelection(f"Time slot must be one of: {', '.join(TIME_SLOTS)}")
    if scheduled_date not in booking_dates(today, window_days):
        raise InvalidSelection(f"Date must be within the next {window_days} days")

    if isinstance(state, NotStarted):
        if not items:
            raise InvalidTransition("Choose a service before picking a time", SERVICES_PAGE)
        return TimeChosen(
            draftId=uuid.uuid4().hex,
            idempotencyKey=uuid.uuid4().hex,
            items=items,
            scheduledDate=scheduled_date,
            scheduledTime=scheduled_time,
            notes=notes or "",
            duration=total_duration(items),
        )

    new_items = items or state.items
    return TimeChosen(
        draftId=state.draftId,
        idempotencyKey=state.idempotencyKey,
        items=new_items,
        scheduledDate=scheduled_date,
        scheduledTime=scheduled_time,
        notes=state.notes if notes is None else notes,
        duration=total_duration(new_items),
    )


def choose_address(state, address: AddressSnapshot) -> AddressChosen:
    """Address selection page"""
    if isinstance(state, NotStarted):
        raise InvalidTransition("Pick a date and time first", next_page(state))

    return AddressChosen(**_scheduled_fields(state), address=address)


def choose_payment(
    state,
    payment_method: str,
    coupon: Optional[CouponSnapshot] = None,
    tax_rate: float = TAX_RATE,
    cap_fraction: float = COUPON_CAP_FRACTION,
) -> Ready:
    """Payment page: fixes the payment method and quotes the totals shown to the user"""
    if isinstance(state, (NotStarted, TimeChosen)):
        raise InvalidTransition("Select an address first", next_page(state))
    if payment_method not in PAYMENT_METHODS:
        raise InvalidSelection(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}")

    return Ready(
        **_scheduled_fields(state),
        address=state.address,
        paymentMethod=payment_method,
        coupon=coupon,
        totals=quote(state.items, coupon, tax_rate, cap_fraction),
    )


def quote(
    items: list[DraftItem],
    coupon: Optional[CouponSnapshot] = None,
    tax_rate: float = TAX_RATE,
    cap_fraction: float = COUPON_CAP_FRACTION,
) -> Totals:
    return compute_totals(line_subtotal(items), coupon, tax_rate, cap_fraction)


def requote(
    state: Ready,
    items: list[DraftItem],
    coupon: Optional[CouponSnapshot] = None,
    tax_rate: float = TAX_RATE,
    cap_fraction: float = COUPON_CAP_FRACTION,
) -> Ready:
    """A ready draft with current line prices and coupon; the customer confirms the new total"""
    return state.model_copy(
        update={
            "items": items,
            "duration": total_duration(items),
            "coupon": coupon,
            "totals": quote(items, coupon, tax_rate, cap_fraction),
        }
    )


def require_ready(state) -> Ready:
    """Guard for submission: only a complete draft may be persisted"""
    if not isinstance(state, Ready):
        raise InvalidTransition("Booking is not complete yet", next_page(state))
    return state


def _scheduled_fields(state: _Scheduled) -> dict:
    return {
        "draftId": state.draftId,
        "idempotencyKey": state.idempotencyKey,
        "items": state.items,
        "scheduledDate": state.scheduledDate,
        "scheduledTime": state.scheduledTime,
        "notes": state.notes,
        "duration": state.duration,
    }
