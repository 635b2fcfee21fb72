from .conftest import auth, client_headers, tomorrow

ADMIN = auth("admin-token")


def test_admin_routes_require_admin(client, admin_user):
    assert client.get("/admin/dashboard").status_code == 401
    assert client.get("/admin/dashboard", headers=auth()).status_code == 403
    assert client.get("/admin/dashboard", headers=ADMIN).status_code == 200


def test_service_crud_invalidates_catalog_cache(client, admin_user):
    category = client.post("/admin/categories", json={"name": "Sofa Cleaning"}, headers=ADMIN).json()
    assert client.get("/catalog/services").json() == []

    created = client.post(
        "/admin/services",
        json={
            "categoryId": category["id"],
            "name": "Sofa Shampoo",
            "pricing": [
                {"id": "3s", "name": "3 Seater", "originalPrice": 900, "sellingPrice": 799}
            ],
            "duration": 90,
        },
        headers=ADMIN,
    )
    assert created.status_code == 201
    service_id = created.json()["id"]

    listed = client.get("/catalog/services").json()
    assert [s["name"] for s in listed] == ["Sofa Shampoo"]

    client.put(f"/admin/services/{service_id}", json={"isActive": False}, headers=ADMIN)
    assert client.get("/catalog/services").json() == []
    assert client.get(f"/catalog/services/{service_id}").status_code == 404


def test_duplicate_pricing_tier_ids_rejected(client, admin_user):
    response = client.post(
        "/admin/services",
        json={
            "name": "Bad",
            "pricing": [
                {"id": "a", "name": "A", "originalPrice": 1, "sellingPrice": 1},
                {"id": "a", "name": "B", "originalPrice": 2, "sellingPrice": 2},
            ],
        },
        headers=ADMIN,
    )
    assert response.status_code == 422


def test_category_with_services_cannot_be_deleted(client, admin_user, catalog):
    response = client.delete(f"/admin/categories/{catalog['category']}", headers=ADMIN)
    assert response.status_code == 409


def test_coupon_admin(client, admin_user):
    created = client.post(
        "/admin/coupons",
        json={"code": "monsoon15", "discountType": "percentage", "discountValue": 15},
        headers=ADMIN,
    )
    assert created.status_code == 201
    assert created.json()["code"] == "MONSOON15"

    duplicate = client.post(
        "/admin/coupons",
        json={"code": "MONSOON15", "discountType": "fixed", "discountValue": 10},
        headers=ADMIN,
    )
    assert duplicate.status_code == 409

    too_much = client.post(
        "/admin/coupons",
        json={"code": "HALF+", "discountType": "percentage", "discountValue": 150},
        headers=ADMIN,
    )
    assert too_much.status_code == 422


def _submit_booking(client, catalog):
    headers = client_headers()
    client.post(
        "/booking/draft/time",
        json={"scheduledDate": tomorrow(), "scheduledTime": "03:30 PM", "serviceId": catalog["service"]},
        headers=headers,
    )
    address = client.post(
        "/addresses",
        json={"street": "5 Hill View", "area": "Seethammadhara", "pincode": "530013"},
        headers=auth(),
    ).json()
    client.post("/booking/draft/address", json={"addressId": address["id"]}, headers=headers)
    client.post("/booking/draft/payment", json={"paymentMethod": "cash_on_delivery"}, headers=headers)
    response = client.post("/booking/submit", json={}, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_booking_status_lifecycle(client, admin_user, catalog):
    booking = _submit_booking(client, catalog)

    confirmed = client.patch(
        f"/admin/bookings/{booking['id']}", json={"status": "confirmed"}, headers=ADMIN
    ).json()
    assert confirmed["status"] == "confirmed"

    completed = client.patch(
        f"/admin/bookings/{booking['id']}",
        json={"status": "completed", "paymentStatus": "completed"},
        headers=ADMIN,
    ).json()
    assert completed["completedAt"] is not None

    reopened = client.patch(
        f"/admin/bookings/{booking['id']}", json={"status": "pending"}, headers=ADMIN
    )
    assert reopened.status_code == 409


def test_dashboard_stats(client, admin_user, catalog):
    booking = _submit_booking(client, catalog)
    client.patch(f"/admin/bookings/{booking['id']}", json={"status": "confirmed"}, headers=ADMIN)

    stats = client.get("/admin/dashboard", headers=ADMIN).json()
    assert stats["totalRevenue"] == booking["totalAmount"]
    assert stats["activeBookings"] == 1
    assert stats["servicesCompleted"] == 0
    assert stats["totalUsers"] == 2
    assert [b["id"] for b in stats["recentBookings"]] == [booking["id"]]
    assert stats["topServices"][0] == {
        "name": "Deep Cleaning - 1 BHK",
        "bookings": 1,
        "revenue": 1000,
    }


def test_assign_task_sets_booking_provider(client, admin_user, catalog):
    booking = _submit_booking(client, catalog)
    boy = client.post(
        "/admin/service-boys",
        json={"name": "Suresh", "phone": "98480 12345", "skills": ["deep cleaning"]},
        headers=ADMIN,
    ).json()
    assert boy["phone"] == "+919848012345"

    assigned = client.post(
        f"/admin/service-boys/{boy['id']}/tasks",
        json={"title": "Deep clean", "bookingId": booking["id"]},
        headers=ADMIN,
    ).json()
    assert assigned["tasks"][0]["bookingId"] == booking["id"]
    assert assigned["tasks"][0]["id"].startswith("task_")

    listed = client.get("/admin/bookings", headers=ADMIN).json()
    assert listed[0]["providerId"] == boy["id"]
    assert listed[0]["providerName"] == "Suresh"


def test_orders(client, admin_user):
    customer = client.get("/orders", headers=auth())
    assert customer.json() == []

    users = client.get("/admin/users", headers=ADMIN).json()
    customer_id = next(u["id"] for u in users if u["email"] == "asha@example.com")

    order = client.post(
        "/admin/orders",
        json={
            "customerId": customer_id,
            "items": [{"productId": "p1", "quantity": 2, "price": 150}],
            "deliveryAddress": {"street": "1 Main Road", "pincode": "530016"},
        },
        headers=ADMIN,
    ).json()
    assert order["totalAmount"] == 300

    client.patch(f"/admin/orders/{order['id']}", json={"status": "shipped"}, headers=ADMIN)
    mine = client.get("/orders", headers=auth()).json()
    assert [(o["id"], o["status"]) for o in mine] == [(order["id"], "shipped")]
