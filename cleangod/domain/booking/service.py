"""Booking service - wizard steps, submission and booking lifecycle"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import REDIRECT_HEADER
from ...cache import Cache
from ...models import Booking, User
from ...retry import COLLABORATOR_ERRORS, retry_read, service_unavailable
from ...storage import KeyValueStore
from ..addresses.service import AddressService
from ..cart.store import CartStore
from ..catalog.service import CatalogService
from ..coupons.service import INVALID_COUPON_MESSAGE, CouponService, order_kind
from .drafts import DraftStore, SubmissionInFlight
from .pricing import CouponSnapshot, line_subtotal
from .repository import BookingRepository
from .schemas import (
    BookingResponse,
    BookingStatusUpdate,
    ChooseTimeRequest,
    DraftResponse,
    PaymentCallback,
    TimeSlotsResponse,
)
from .wizard import (
    PAYMENT_PAGE,
    SERVICES_PAGE,
    TIME_SLOTS,
    AddressChosen,
    DraftItem,
    InvalidSelection,
    InvalidTransition,
    NotStarted,
    Ready,
    booking_dates,
    choose_address,
    choose_payment,
    choose_time,
    next_page,
    require_ready,
    requote,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {"completed", "cancelled"}
CANCELLABLE_STATUSES = {"pending", "confirmed"}


def booking_reference(booking_id: str) -> str:
    """Short code shown to the customer, e.g. CG3F9A1C"""
    return f"CG{booking_id[-6:].upper()}"


def booking_to_response(b: Booking) -> BookingResponse:
    return BookingResponse(
        id=b.id,
        reference=booking_reference(b.id),
        customerId=b.customer_id,
        customerName=b.customer_name,
        customerEmail=b.customer_email,
        customerPhone=b.customer_phone,
        services=b.services or [],
        address=b.address or {},
        scheduledDate=b.scheduled_date,
        scheduledTime=b.scheduled_time,
        duration=b.duration,
        notes=b.notes,
        subtotal=b.subtotal,
        discount=b.discount,
        taxes=b.taxes,
        totalAmount=b.total_amount,
        appliedCoupon=b.applied_coupon,
        paymentMethod=b.payment_method,
        paymentStatus=b.payment_status,
        paymentId=b.payment_id,
        status=b.status,
        providerId=b.provider_id,
        providerName=b.provider_name,
        completedAt=b.completed_at,
        createdAt=b.created_at,
        updatedAt=b.updated_at,
    )


def draft_to_response(state, **extra) -> DraftResponse:
    data = state.model_dump(exclude={"idempotencyKey"})
    return DraftResponse(**data, nextPage=next_page(state), **extra)


def wizard_http_error(error: Exception) -> HTTPException:
    """Map wizard and submission errors to HTTP errors"""
    if isinstance(error, InvalidTransition):
        return HTTPException(
            status_code=409,
            detail=str(error),
            headers={REDIRECT_HEADER: error.redirect_to},
        )
    if isinstance(error, SubmissionInFlight):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=422, detail=str(error))


class BookingService:
    """
    Service layer for bookings.

    The wizard operations need the browsing session that owns the draft;
    the lifecycle operations (listing, cancelling, status updates) do not.
    """

    def __init__(
        self,
        db: Session,
        storage: KeyValueStore,
        session_id: Optional[str] = None,
        device_id: Optional[str] = None,
    ):
        self.db = db
        self.storage = storage
        self.session_id = session_id
        self.device_id = device_id
        self.repo = BookingRepository()
        self.catalog = CatalogService(db, Cache(storage))
        self.coupons = CouponService(db)
        self.addresses = AddressService(db)

    @property
    def drafts(self) -> DraftStore:
        if not self.session_id:
            raise HTTPException(status_code=400, detail="X-Session-Id header is required")
        return DraftStore(self.storage, self.session_id)

    def _load_draft(self):
        try:
            return self.drafts.load()
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("load booking draft", e) from e

    def _save_draft(self, state) -> None:
        try:
            self.drafts.save(state)
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("save booking draft", e) from e

    def _read(self, operation, description: str):
        try:
            return retry_read(operation, description, db=self.db)
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable(description, e) from e

    # Wizard

    def get_draft(self) -> DraftResponse:
        return draft_to_response(self._load_draft())

    def clear_draft(self) -> dict:
        try:
            self.drafts.clear()
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("clear booking draft", e) from e
        return {"message": "Booking draft cleared"}

    @staticmethod
    def time_slots(today: Optional[date] = None) -> TimeSlotsResponse:
        return TimeSlotsResponse(dates=booking_dates(today or date.today()), slots=TIME_SLOTS)

    def _service_items(self, service_id: str, pricing_id: Optional[str], quantity: int) -> list[DraftItem]:
        line = self.catalog.resolve_line("service", service_id, pricing_id)
        if line is None:
            raise HTTPException(
                status_code=404,
                detail="Service not available",
                headers={REDIRECT_HEADER: SERVICES_PAGE},
            )
        return [
            DraftItem(
                id=service_id,
                type="service",
                name=line.name,
                price=line.price,
                quantity=quantity,
                pricingId=line.pricingId,
                duration=line.duration,
            )
        ]

    def _cart_items(self) -> list[DraftItem]:
        """Cart lines re-priced from the catalog; unavailable items are left out"""
        if not self.device_id:
            raise HTTPException(status_code=400, detail="X-Device-Id header is required")
        try:
            cart = CartStore(self.storage, self.device_id)
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("load cart", e) from e

        items = []
        for item in cart.items:
            line = self.catalog.resolve_line(item.type, item.id, item.pricingId)
            if line is None:
                logger.info(f"🛒 Skipping unavailable {item.type} {item.id} at checkout")
                continue
            items.append(
                DraftItem(
                    id=item.id,
                    type=item.type,
                    name=line.name,
                    price=line.price,
                    quantity=item.quantity,
                    pricingId=line.pricingId,
                    variantId=item.variantId,
                    duration=line.duration,
                )
            )
        if not items:
            raise wizard_http_error(InvalidTransition("Your cart is empty", SERVICES_PAGE))
        return items

    def choose_time(self, data: ChooseTimeRequest, today: Optional[date] = None) -> DraftResponse:
        state = self._load_draft()

        items = None
        if data.serviceId:
            items = self._service_items(data.serviceId, data.pricingId, data.quantity)
        elif data.fromCart:
            items = self._cart_items()

        try:
            state = choose_time(
                state, data.scheduledDate, data.scheduledTime, items=items, notes=data.notes, today=today
            )
        except (InvalidTransition, InvalidSelection) as e:
            raise wizard_http_error(e) from e

        self._save_draft(state)
        logger.info(f"📅 Draft {state.draftId}: {state.scheduledDate} {state.scheduledTime}")
        return draft_to_response(state)

    def choose_address(self, user: User, address_id: str) -> DraftResponse:
        state = self._load_draft()
        if isinstance(state, NotStarted):
            raise wizard_http_error(InvalidTransition("Pick a date and time first", next_page(state)))

        snapshot = self.addresses.snapshot(user, address_id)
        state = choose_address(state, snapshot)
        self._save_draft(state)
        return draft_to_response(state)

    def _resolve_coupon(self, code: Optional[str], items: list[DraftItem]) -> Optional[CouponSnapshot]:
        if not code:
            return None
        kind = order_kind({item.type for item in items})
        return self.coupons.resolve(code, line_subtotal(items), kind)

    def choose_payment(self, payment_method: str, coupon_code: Optional[str] = None) -> DraftResponse:
        state = self._load_draft()

        coupon = None
        if isinstance(state, (AddressChosen, Ready)):
            coupon = self._resolve_coupon(coupon_code, state.items)

        try:
            state = choose_payment(state, payment_method, coupon)
        except (InvalidTransition, InvalidSelection) as e:
            raise wizard_http_error(e) from e

        self._save_draft(state)
        extra = {}
        if coupon_code:
            extra = {
                "couponApplied": coupon is not None,
                "message": None if coupon else INVALID_COUPON_MESSAGE,
            }
        return draft_to_response(state, **extra)

    # Submission

    def submit(self, user: User, payment_id: Optional[str] = None) -> BookingResponse:
        """
        Persist the draft as exactly one booking.

        The draft is re-priced against the catalog first; a changed total is
        saved to the draft and answered with 409 so the customer confirms it.
        The insert is not retried. A replay of the same draft (same
        idempotency key) returns the booking created the first time.
        """
        try:
            ready = require_ready(self._load_draft())
        except InvalidTransition as e:
            raise wizard_http_error(e) from e

        try:
            with self.drafts.submission_guard():
                existing = self._read(
                    lambda: self.repo.get_by_idempotency_key(self.db, ready.idempotencyKey),
                    "idempotency lookup",
                )
                if existing:
                    logger.info(f"🔁 Draft {ready.draftId} already submitted as booking {existing.id}")
                    self._after_submit(ready, existing)
                    return booking_to_response(existing)

                self._require_current_quote(ready)
                booking = self._insert_redeeming_coupon(user, ready, payment_id)
        except SubmissionInFlight as e:
            raise wizard_http_error(e) from e
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("acquire submission lock", e) from e

        logger.info(
            f"✅ Booking {booking.id} created for user {user.id}: "
            f"{booking.total_amount} ({booking.payment_method})"
        )
        self._after_submit(ready, booking)
        return booking_to_response(booking)

    def _current_lines(self, ready: Ready) -> list[DraftItem]:
        items = []
        for item in ready.items:
            line = self.catalog.resolve_line(item.type, item.id, item.pricingId)
            if line is None:
                logger.info(f"🛒 {item.type} {item.id} is no longer available, dropping it from the draft")
                continue
            items.append(
                item.model_copy(update={"name": line.name, "price": line.price, "duration": line.duration})
            )
        return items

    def _require_current_quote(self, ready: Ready) -> None:
        """Re-price the draft from the catalog and re-check its coupon"""
        items = self._current_lines(ready)
        if not items:
            raise wizard_http_error(
                InvalidTransition("The items in this booking are no longer available", SERVICES_PAGE)
            )

        coupon = self._resolve_coupon(ready.coupon.code, items) if ready.coupon else None
        current = requote(ready, items, coupon)
        if current == ready:
            return

        self._save_draft(current)
        logger.warning(
            f"⚠️ Draft {ready.draftId} was quoted {ready.totals.total}, "
            f"current total is {current.totals.total}"
        )
        raise wizard_http_error(
            InvalidTransition("Prices have changed. Please review your order total", PAYMENT_PAGE)
        )

    def _insert_redeeming_coupon(self, user: User, ready: Ready, payment_id: Optional[str]) -> Booking:
        code = ready.coupon.code if ready.coupon else None
        if code and not self.coupons.claim(code):
            self._save_draft(requote(ready, ready.items))
            raise wizard_http_error(
                InvalidTransition(f"Coupon {code} is no longer available", PAYMENT_PAGE)
            )

        try:
            booking, created = self._insert(user, ready, payment_id)
        except HTTPException:
            if code:
                self.coupons.release(code)
            raise

        if code and not created:
            self.coupons.release(code)
        return booking

    def _insert(self, user: User, ready: Ready, payment_id: Optional[str]) -> tuple[Booking, bool]:
        """Create the booking. Returns (booking, created); False when a concurrent insert won."""
        try:
            booking = self.repo.create_booking(
                self.db,
                customer_id=user.id,
                customer_name=user.name,
                customer_email=user.email,
                customer_phone=user.phone,
                services=[
                    item.model_dump(include={"id", "type", "name", "price", "quantity", "pricingId"})
                    for item in ready.items
                ],
                address=ready.address.model_dump(),
                scheduled_date=ready.scheduledDate.isoformat(),
                scheduled_time=ready.scheduledTime,
                duration=ready.duration,
                notes=ready.notes,
                subtotal=ready.totals.subtotal,
                discount=ready.totals.discount,
                taxes=ready.totals.taxes,
                total_amount=ready.totals.total,
                applied_coupon=ready.coupon.code if ready.coupon else None,
                payment_method=ready.paymentMethod,
                # Only the signed payment callback marks a booking as paid
                payment_status="pending",
                payment_id=payment_id,
                status="pending",
                idempotency_key=ready.idempotencyKey,
            )
        except IntegrityError as e:
            # Lost a race on the idempotency key; the other insert won
            self.db.rollback()
            existing = self.repo.get_by_idempotency_key(self.db, ready.idempotencyKey)
            if existing is None:
                raise service_unavailable("create booking", e) from e
            return existing, False
        except COLLABORATOR_ERRORS as e:
            self.db.rollback()
            raise service_unavailable("create booking", e) from e
        return booking, True

    def _after_submit(self, ready: Ready, booking: Booking) -> None:
        """Clear the draft and converted cart lines. The booking already exists, so failures are only logged."""
        try:
            self.drafts.clear()
            if self.device_id:
                cart = CartStore(self.storage, self.device_id)
                for item in ready.items:
                    cart.remove_item(item.id, item.type)
        except COLLABORATOR_ERRORS as e:
            logger.error(f"❌ Cleanup after booking {booking.id} failed: {e}")

    # Lifecycle

    def _get_or_404(self, booking_id: str) -> Booking:
        booking = self._read(lambda: self.repo.get_booking(self.db, booking_id), "get booking")
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def get_confirmation(self, user: User, booking_id: str) -> BookingResponse:
        booking = self._read(lambda: self.repo.get_booking(self.db, booking_id), "get booking")
        if not booking or booking.customer_id != user.id:
            raise HTTPException(
                status_code=404, detail="Booking not found", headers={REDIRECT_HEADER: "/"}
            )
        return booking_to_response(booking)

    def list_user_bookings(self, user: User) -> list[BookingResponse]:
        bookings = self._read(
            lambda: self.repo.get_user_bookings(self.db, user.id), "list user bookings"
        )
        return [booking_to_response(b) for b in bookings]

    def list_bookings(self, status: Optional[str] = None) -> list[BookingResponse]:
        bookings = self._read(lambda: self.repo.get_bookings(self.db, status), "list bookings")
        return [booking_to_response(b) for b in bookings]

    def _update(self, booking: Booking, **updates) -> Booking:
        try:
            return self.repo.update_booking(self.db, booking, **updates)
        except COLLABORATOR_ERRORS as e:
            self.db.rollback()
            raise service_unavailable("update booking", e) from e

    def cancel(self, user: User, booking_id: str) -> BookingResponse:
        booking = self._get_or_404(booking_id)
        if booking.customer_id != user.id:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.status not in CANCELLABLE_STATUSES:
            raise HTTPException(
                status_code=409, detail=f"A {booking.status} booking cannot be cancelled"
            )
        booking = self._update(booking, status="cancelled")
        logger.info(f"🚫 Booking {booking.id} cancelled by customer")
        return booking_to_response(booking)

    def apply_status_patch(self, booking_id: str, data: BookingStatusUpdate) -> BookingResponse:
        """Admin update of status, payment status and assigned provider"""
        booking = self._get_or_404(booking_id)
        if (
            data.status
            and booking.status in TERMINAL_STATUSES
            and data.status != booking.status
        ):
            raise HTTPException(
                status_code=409, detail=f"Booking is already {booking.status}"
            )

        completed_at = None
        if data.status == "completed" and booking.status != "completed":
            completed_at = datetime.now(timezone.utc)

        booking = self._update(
            booking,
            status=data.status,
            payment_status=data.paymentStatus,
            provider_id=data.providerId,
            provider_name=data.providerName,
            completed_at=completed_at,
        )
        logger.info(f"📝 Booking {booking.id} updated: status={booking.status}, payment={booking.payment_status}")
        return booking_to_response(booking)

    def apply_payment_callback(self, data: PaymentCallback) -> BookingResponse:
        booking = self._get_or_404(data.bookingId)

        status = None
        if data.status == "completed" and booking.status == "pending":
            status = "confirmed"

        booking = self._update(
            booking, payment_status=data.status, payment_id=data.paymentId, status=status
        )
        logger.info(f"💳 Payment {data.paymentId} for booking {booking.id}: {data.status}")
        return booking_to_response(booking)
