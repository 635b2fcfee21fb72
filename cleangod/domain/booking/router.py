"""Booking router - wizard, submission, confirmation and payment callbacks"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ...auth import get_current_user, get_optional_user
from ...config import PAYMENT_WEBHOOK_SECRET
from ...database import get_db
from ...models import User
from ...shared.validators import validate_client_key
from ...storage import KeyValueStore, get_storage
from ...webhook_security import verify_payment_callback
from .schemas import (
    BookingResponse,
    ChooseAddressRequest,
    ChoosePaymentRequest,
    ChooseTimeRequest,
    DraftResponse,
    PaymentCallback,
    SubmitBookingRequest,
    TimeSlotsResponse,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/booking", tags=["Booking"])
bookings_router = APIRouter(prefix="/bookings", tags=["Bookings"])
payments_router = APIRouter(prefix="/payments", tags=["Payments"])


def _client_key(header: str, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return validate_client_key(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {header}: {e}") from e


def get_wizard_service(
    x_session_id: str = Header(...),
    x_device_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    storage: KeyValueStore = Depends(get_storage),
) -> BookingService:
    """BookingService bound to the browsing session that owns the draft"""
    return BookingService(
        db,
        storage,
        session_id=_client_key("X-Session-Id", x_session_id),
        device_id=_client_key("X-Device-Id", x_device_id),
    )


def get_booking_service(
    db: Session = Depends(get_db),
    storage: KeyValueStore = Depends(get_storage),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, storage)


# Wizard


@router.get("/time-slots", response_model=TimeSlotsResponse)
def get_time_slots():
    """Bookable dates (next 7 days) and the fixed daily slots"""
    return BookingService.time_slots()


@router.get("/draft", response_model=DraftResponse)
def get_draft(service: BookingService = Depends(get_wizard_service)):
    """Current wizard state and the next page to show"""
    return service.get_draft()


@router.post("/draft/time", response_model=DraftResponse)
def choose_time(
    data: ChooseTimeRequest,
    _: Optional[User] = Depends(get_optional_user),
    service: BookingService = Depends(get_wizard_service),
):
    return service.choose_time(data)


@router.post("/draft/address", response_model=DraftResponse)
def choose_address(
    data: ChooseAddressRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_wizard_service),
):
    return service.choose_address(current_user, data.addressId)


@router.post("/draft/payment", response_model=DraftResponse)
def choose_payment(
    data: ChoosePaymentRequest,
    _: User = Depends(get_current_user),
    service: BookingService = Depends(get_wizard_service),
):
    """Fix the payment method and quote the totals; unknown coupons are ignored"""
    return service.choose_payment(data.paymentMethod, data.couponCode)


@router.delete("/draft")
def clear_draft(service: BookingService = Depends(get_wizard_service)):
    return service.clear_draft()


@router.post("/submit", response_model=BookingResponse, status_code=201)
def submit_booking(
    data: SubmitBookingRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_wizard_service),
):
    """Turn the completed draft into a booking"""
    return service.submit(current_user, data.paymentId)


@router.get("/confirmation/{booking_id}", response_model=BookingResponse)
def get_confirmation(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_confirmation(current_user, booking_id)


# Customer bookings


@bookings_router.get("", response_model=list[BookingResponse])
def list_my_bookings(
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_user_bookings(current_user)


@bookings_router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel a pending or confirmed booking"""
    return service.cancel(current_user, booking_id)


# Payment provider


@payments_router.post("/callback", response_model=BookingResponse)
async def payment_callback(
    request: Request,
    service: BookingService = Depends(get_booking_service),
):
    """Signed status update from the payment provider's hosted checkout"""
    body = await verify_payment_callback(request, PAYMENT_WEBHOOK_SECRET)
    try:
        data = PaymentCallback.model_validate_json(body)
    except ValidationError as e:
        logger.warning(f"⚠️ Malformed payment callback: {e}")
        raise HTTPException(status_code=400, detail="Invalid callback payload") from e
    return await run_in_threadpool(service.apply_payment_callback, data)
