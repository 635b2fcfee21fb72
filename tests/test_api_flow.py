import inspect
import json
import time

from fastapi.routing import APIRoute

from cleangod.models import Booking, Coupon, Service
from cleangod.webhook_security import sign_payment_callback

from .conftest import DEVICE_ID, auth, client_headers, tomorrow


def add_address(client, token="customer-token"):
    response = client.post(
        "/addresses",
        json={"street": "12 Beach Road", "area": "MVP Colony", "pincode": "530017"},
        headers=auth(token),
    )
    assert response.status_code == 201
    return response.json()


def book_from_cart(client, catalog, coupon=None, payment_method="cash_on_delivery"):
    headers = client_headers()
    client.post(
        "/cart/items",
        json={"id": catalog["service"], "type": "service", "pricingId": "1bhk"},
        headers=headers,
    )
    client.post(
        "/booking/draft/time",
        json={"scheduledDate": tomorrow(), "scheduledTime": "11:30 AM", "fromCart": True},
        headers=headers,
    )
    address = add_address(client)
    client.post("/booking/draft/address", json={"addressId": address["id"]}, headers=headers)
    payment = client.post(
        "/booking/draft/payment",
        json={"paymentMethod": payment_method, "couponCode": coupon},
        headers=headers,
    )
    assert payment.status_code == 200
    return payment.json()


def test_three_steps_produce_one_booking_with_displayed_total(client, catalog, db_session):
    draft = book_from_cart(client, catalog, coupon="clean20")
    assert draft["step"] == "ready"
    assert draft["couponApplied"] is True
    assert draft["totals"] == {"subtotal": 1000, "discount": 200, "taxes": 144, "total": 944}

    response = client.post("/booking/submit", json={}, headers=client_headers())
    assert response.status_code == 201
    booking = response.json()

    assert booking["totalAmount"] == draft["totals"]["total"]
    assert booking["appliedCoupon"] == "CLEAN20"
    assert booking["address"]["pincode"] == "530017"
    assert booking["services"][0]["name"] == "Deep Cleaning - 1 BHK"
    assert db_session.query(Booking).count() == 1
    assert db_session.query(Coupon).filter(Coupon.code == "CLEAN20").one().used_count == 1


def test_after_submission_draft_is_gone_and_cart_item_removed(client, catalog):
    headers = client_headers()
    book_from_cart(client, catalog)
    # Added after the draft was built, so it is not part of the booking
    client.post("/cart/items", json={"id": catalog["product"], "type": "product"}, headers=headers)
    assert client.post("/booking/submit", json={}, headers=headers).status_code == 201

    draft = client.get("/booking/draft", headers=headers).json()
    assert draft["step"] == "not_started"
    assert draft["nextPage"] == "/services"

    cart = client.get("/cart", headers=headers).json()
    assert [i["type"] for i in cart["items"]] == ["product"]


def test_unknown_coupon_is_a_no_op(client, catalog):
    draft = book_from_cart(client, catalog, coupon="BOGUS")
    assert draft["couponApplied"] is False
    assert draft["message"]
    assert draft["coupon"] is None
    assert draft["totals"]["total"] == 1180


def test_confirmation_shows_reference_and_hides_foreign_bookings(client, catalog):
    book_from_cart(client, catalog)
    booking = client.post("/booking/submit", json={}, headers=client_headers()).json()

    mine = client.get(f"/booking/confirmation/{booking['id']}", headers=auth())
    assert mine.status_code == 200
    assert mine.json()["reference"] == "CG" + booking["id"][-6:].upper()

    theirs = client.get(f"/booking/confirmation/{booking['id']}", headers=auth("other-token"))
    assert theirs.status_code == 404
    assert theirs.headers["X-Redirect-To"] == "/"

    missing = client.get("/booking/confirmation/does-not-exist", headers=auth())
    assert missing.status_code == 404


def test_online_payment_waits_for_signed_callback(client, catalog):
    book_from_cart(client, catalog, payment_method="online")
    booking = client.post(
        "/booking/submit", json={"paymentId": "pay_123"}, headers=client_headers()
    ).json()
    assert (booking["status"], booking["paymentStatus"]) == ("pending", "pending")
    assert booking["paymentId"] == "pay_123"


def test_skipping_ahead_redirects(client, catalog):
    headers = client_headers()
    response = client.post(
        "/booking/draft/payment", json={"paymentMethod": "online"}, headers=headers
    )
    assert response.status_code == 409
    assert response.headers["X-Redirect-To"] == "/services"

    submit = client.post("/booking/submit", json={}, headers=headers)
    assert submit.status_code == 409


def test_single_service_entry_point(client, catalog):
    response = client.post(
        "/booking/draft/time",
        json={
            "scheduledDate": tomorrow(),
            "scheduledTime": "02:30 PM",
            "serviceId": catalog["service"],
            "pricingId": "2bhk",
        },
        headers=client_headers(),
    )
    assert response.status_code == 200
    draft = response.json()
    assert draft["step"] == "time_chosen"
    assert draft["nextPage"] == "/booking/address-selection"
    assert draft["items"][0]["price"] == 1500
    assert draft["duration"] == 180


def test_invalid_slot_is_422(client, catalog):
    response = client.post(
        "/booking/draft/time",
        json={"scheduledDate": tomorrow(), "scheduledTime": "09:00 PM", "serviceId": catalog["service"]},
        headers=client_headers(),
    )
    assert response.status_code == 422


def test_address_step_requires_sign_in(client, catalog):
    headers = {"X-Session-Id": "session-0001", "X-Return-Path": "/booking/address-selection"}
    response = client.post("/booking/draft/address", json={"addressId": "x"}, headers=headers)
    assert response.status_code == 401
    assert response.headers["X-Redirect-To"] == "/auth/login?redirect=/booking/address-selection"


def test_time_slots(client):
    body = client.get("/booking/time-slots").json()
    assert len(body["dates"]) == 7
    assert body["slots"][0] == "11:30 AM"


def test_cart_refresh_uses_current_catalog_price(client, catalog, db_session):
    headers = {"X-Device-Id": DEVICE_ID}
    client.post(
        "/cart/items",
        json={"id": catalog["service"], "type": "service", "pricingId": "1bhk"},
        headers=headers,
    )

    service = db_session.get(Service, catalog["service"])
    service.pricing = [
        {"id": "1bhk", "name": "1 BHK", "originalPrice": 1200, "sellingPrice": 900},
    ]
    db_session.commit()

    cart = client.get("/cart", headers=headers).json()
    assert cart["items"][0]["price"] == 900
    assert cart["subtotal"] == 900


def test_cart_coupon_preview(client, catalog):
    headers = {"X-Device-Id": DEVICE_ID}
    client.post("/cart/items", json={"id": catalog["product"], "type": "product", "quantity": 10}, headers=headers)

    applied = client.post("/cart/coupon", json={"code": "save50"}, headers=headers).json()
    assert applied["couponApplied"] is True
    assert (applied["discount"], applied["taxes"], applied["total"]) == (50, 171, 1121)

    services_only = client.post("/cart/coupon", json={"code": "CLEAN20"}, headers=headers).json()
    assert services_only["couponApplied"] is False
    assert services_only["total"] == 1180


def test_cart_requires_valid_device_id(client):
    assert client.get("/cart").status_code == 422
    assert client.get("/cart", headers={"X-Device-Id": "bad id!"}).status_code == 400


def test_cart_quantity_zero_removes(client, catalog):
    headers = {"X-Device-Id": DEVICE_ID}
    client.post("/cart/items", json={"id": catalog["product"], "type": "product"}, headers=headers)
    cart = client.patch(
        f"/cart/items/product/{catalog['product']}", json={"quantity": 0}, headers=headers
    ).json()
    assert cart["items"] == []
    assert cart["itemCount"] == 0


def test_cancel_and_terminal_status(client, catalog):
    book_from_cart(client, catalog)
    booking = client.post("/booking/submit", json={}, headers=client_headers()).json()

    cancelled = client.post(f"/bookings/{booking['id']}/cancel", headers=auth())
    assert cancelled.json()["status"] == "cancelled"

    again = client.post(f"/bookings/{booking['id']}/cancel", headers=auth())
    assert again.status_code == 409

    listed = client.get("/bookings", headers=auth()).json()
    assert [b["id"] for b in listed] == [booking["id"]]


def test_signed_payment_callback(client, catalog, monkeypatch):
    monkeypatch.setattr("cleangod.domain.booking.router.PAYMENT_WEBHOOK_SECRET", "whsec_test")
    book_from_cart(client, catalog, payment_method="online")
    booking = client.post("/booking/submit", json={}, headers=client_headers()).json()
    assert booking["status"] == "pending"

    body = json.dumps(
        {"bookingId": booking["id"], "paymentId": "pay_789", "status": "completed"}
    ).encode()
    timestamp = str(int(time.time()))
    signature = sign_payment_callback("whsec_test", timestamp, body)

    response = client.post(
        "/payments/callback",
        content=body,
        headers={"X-Payment-Timestamp": timestamp, "X-Payment-Signature": signature},
    )
    assert response.status_code == 200
    assert (response.json()["status"], response.json()["paymentStatus"]) == ("confirmed", "completed")

    forged = client.post(
        "/payments/callback",
        content=body,
        headers={"X-Payment-Timestamp": timestamp, "X-Payment-Signature": "0" * 64},
    )
    assert forged.status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/health/storage").json()["storage"]["backend"] == "MemoryStore"


def test_security_and_cache_headers(client, catalog):
    catalog_response = client.get("/catalog/services")
    assert catalog_response.headers["X-Frame-Options"] == "DENY"
    assert catalog_response.headers["Cache-Control"].startswith("public")

    cart = client.get("/cart", headers={"X-Device-Id": DEVICE_ID})
    assert cart.headers["Cache-Control"].startswith("no-store")


def test_blocking_routes_run_in_threadpool(app):
    # Database reads back off with time.sleep, so handlers must not run on the event loop
    async_routes = {
        route.path
        for route in app.routes
        if isinstance(route, APIRoute) and inspect.iscoroutinefunction(route.endpoint)
    }
    assert async_routes == {"/payments/callback"}
