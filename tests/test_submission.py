from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from cleangod.domain.booking.drafts import DraftStore
from cleangod.domain.booking.service import BookingService, booking_reference
from cleangod.domain.booking.wizard import (
    AddressSnapshot,
    DraftItem,
    NotStarted,
    choose_address,
    choose_payment,
    choose_time,
)
from cleangod.domain.cart.schemas import CartItem
from cleangod.domain.cart.store import CartStore
from cleangod.domain.coupons.repository import CouponRepository
from cleangod.domain.coupons.service import CouponService
from cleangod.models import Booking, Coupon, Service, User

SESSION = "session-0001"
DEVICE = "device-0001"

ADDRESS = AddressSnapshot(
    id="addr-1", street="12 Beach Road", area="MVP Colony", city="Visakhapatnam",
    state="Andhra Pradesh", pincode="530017",
)


@pytest.fixture
def user(db_session):
    user = User(firebase_uid="uid-1", email="asha@example.com", name="Asha")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def items(catalog):
    return [
        DraftItem(
            id=catalog["service"], type="service", name="Deep Cleaning - 1 BHK",
            price=1000, pricingId="1bhk", duration=180,
        )
    ]


def time_chosen(items):
    return choose_time(NotStarted(), date.today() + timedelta(days=1), "12:30 PM", items=items)


def ready(items, coupon=None):
    return choose_payment(choose_address(time_chosen(items), ADDRESS), "cash_on_delivery", coupon)


def make_service(db_session, storage, session_id=SESSION):
    return BookingService(db_session, storage, session_id=session_id, device_id=DEVICE)


def test_draft_without_address_never_calls_create(db_session, storage, user, items):
    DraftStore(storage, SESSION).save(time_chosen(items))
    service = make_service(db_session, storage)
    service.repo = MagicMock()

    with pytest.raises(HTTPException) as exc:
        service.submit(user)

    assert exc.value.status_code == 409
    assert exc.value.headers["X-Redirect-To"] == "/booking/address-selection"
    service.repo.create_booking.assert_not_called()


def test_empty_draft_redirects_to_services(db_session, storage, user):
    service = make_service(db_session, storage)
    service.repo = MagicMock()

    with pytest.raises(HTTPException) as exc:
        service.submit(user)

    assert exc.value.headers["X-Redirect-To"] == "/services"
    service.repo.create_booking.assert_not_called()


def test_submit_persists_quoted_totals_and_cleans_up(db_session, storage, user, items, catalog):
    draft = ready(items)
    DraftStore(storage, SESSION).save(draft)
    cart = CartStore(storage, DEVICE)
    cart.add_item(CartItem(id=catalog["service"], type="service", name="x", price=1000, pricingId="1bhk"))
    cart.add_item(CartItem(id=catalog["product"], type="product", name="y", price=100))

    result = make_service(db_session, storage).submit(user)

    assert result.totalAmount == draft.totals.total == 1180
    assert result.status == "pending"
    assert result.paymentStatus == "pending"
    assert result.reference == booking_reference(result.id)
    assert db_session.query(Booking).count() == 1
    assert not DraftStore(storage, SESSION).exists()
    assert [i.id for i in CartStore(storage, DEVICE).items] == [catalog["product"]]


def test_price_change_after_payment_step_asks_for_review(db_session, storage, user, items, catalog):
    DraftStore(storage, SESSION).save(ready(items))

    service = db_session.get(Service, catalog["service"])
    service.pricing = [
        {"id": "1bhk", "name": "1 BHK", "originalPrice": 2000, "sellingPrice": 1800},
    ]
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        make_service(db_session, storage).submit(user)

    assert exc.value.status_code == 409
    assert exc.value.headers["X-Redirect-To"] == "/booking/payment"
    assert db_session.query(Booking).count() == 0

    reviewed = DraftStore(storage, SESSION).load()
    assert reviewed.items[0].price == 1800
    assert reviewed.totals.total == 2124

    booking = make_service(db_session, storage).submit(user)
    assert booking.totalAmount == 2124


def test_coupon_past_its_usage_limit_is_not_redeemed_twice(db_session, storage, user, items):
    CouponRepository().create_coupon(
        db_session, code="ONCE", discount_type="fixed", discount_value=100, usage_limit=1
    )
    coupon = CouponService(db_session).resolve("ONCE", 1000, "services")
    DraftStore(storage, "session-a").save(ready(items, coupon))
    DraftStore(storage, "session-b").save(ready(items, coupon))

    first = make_service(db_session, storage, "session-a").submit(user)
    assert first.appliedCoupon == "ONCE"

    with pytest.raises(HTTPException) as exc:
        make_service(db_session, storage, "session-b").submit(user)

    assert exc.value.status_code == 409
    assert exc.value.headers["X-Redirect-To"] == "/booking/payment"
    reviewed = DraftStore(storage, "session-b").load()
    assert reviewed.coupon is None
    assert reviewed.totals.total == 1180

    db_session.expire_all()
    assert db_session.query(Coupon).filter(Coupon.code == "ONCE").one().used_count == 1
    assert db_session.query(Booking).filter(Booking.applied_coupon == "ONCE").count() == 1


def test_lost_coupon_claim_drops_the_discount(db_session, storage, user, items):
    seed_coupon = CouponRepository().create_coupon(
        db_session, code="RACE", discount_type="fixed", discount_value=100, usage_limit=5
    )
    coupon = CouponService(db_session).resolve(seed_coupon.code, 1000, "services")
    DraftStore(storage, SESSION).save(ready(items, coupon))
    service = make_service(db_session, storage)
    service.coupons.claim = MagicMock(return_value=False)
    service.repo = MagicMock()
    service.repo.get_by_idempotency_key.return_value = None

    with pytest.raises(HTTPException) as exc:
        service.submit(user)

    assert exc.value.status_code == 409
    service.repo.create_booking.assert_not_called()
    assert DraftStore(storage, SESSION).load().coupon is None


def test_replayed_draft_returns_existing_booking(db_session, storage, user, items):
    draft = ready(items)
    DraftStore(storage, SESSION).save(draft)
    first = make_service(db_session, storage).submit(user)

    # Same draft arrives again, e.g. cleanup was lost
    DraftStore(storage, SESSION).save(draft)
    second = make_service(db_session, storage).submit(user)

    assert second.id == first.id
    assert db_session.query(Booking).count() == 1


def test_concurrent_submit_is_rejected(db_session, storage, user, items):
    DraftStore(storage, SESSION).save(ready(items))
    service = make_service(db_session, storage)
    service.repo = MagicMock()

    with service.drafts.submission_guard():
        with pytest.raises(HTTPException) as exc:
            make_service(db_session, storage).submit(user)

    assert exc.value.status_code == 409


def test_insert_failure_keeps_draft_and_is_not_retried(db_session, storage, user, items):
    CouponRepository().create_coupon(
        db_session, code="KEEP", discount_type="fixed", discount_value=100, usage_limit=1
    )
    coupon = CouponService(db_session).resolve("KEEP", 1000, "services")
    draft = ready(items, coupon)
    DraftStore(storage, SESSION).save(draft)
    service = make_service(db_session, storage)
    service.repo = MagicMock()
    service.repo.get_by_idempotency_key.return_value = None
    service.repo.create_booking.side_effect = OperationalError("INSERT", {}, Exception("db down"))

    with pytest.raises(HTTPException) as exc:
        service.submit(user)

    assert exc.value.status_code == 503
    assert service.repo.create_booking.call_count == 1
    assert DraftStore(storage, SESSION).load() == draft
    assert storage.get(f"booking_submit_lock:{SESSION}") is None

    db_session.expire_all()
    assert db_session.query(Coupon).filter(Coupon.code == "KEEP").one().used_count == 0


def test_client_payment_id_does_not_mark_booking_paid(db_session, storage, user, items):
    draft = choose_payment(choose_address(time_chosen(items), ADDRESS), "online")
    DraftStore(storage, SESSION).save(draft)

    booking = make_service(db_session, storage).submit(user, payment_id="pay_123")

    assert (booking.status, booking.paymentStatus) == ("pending", "pending")
    assert booking.paymentId == "pay_123"


def test_booking_reference():
    assert booking_reference("0123456789abcdef") == "CGABCDEF"
