from .conftest import auth


def create(client, street, **extra):
    response = client.post(
        "/addresses",
        json={"street": street, "area": "Dwaraka Nagar", "pincode": "530016", **extra},
        headers=auth(),
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_first_address_becomes_default_with_city_defaults(client):
    first = create(client, "1 Main Road")
    assert first["isDefault"] is True
    assert first["city"] == "Visakhapatnam"
    assert first["state"] == "Andhra Pradesh"

    second = create(client, "2 Main Road")
    assert second["isDefault"] is False


def test_set_default_clears_others(client):
    first = create(client, "1 Main Road")
    second = create(client, "2 Main Road")

    client.post(f"/addresses/{second['id']}/default", headers=auth())
    addresses = {a["id"]: a["isDefault"] for a in client.get("/addresses", headers=auth()).json()}

    assert addresses == {first["id"]: False, second["id"]: True}


def test_new_default_address_takes_over(client):
    first = create(client, "1 Main Road")
    second = create(client, "2 Main Road", isDefault=True)

    addresses = {a["id"]: a["isDefault"] for a in client.get("/addresses", headers=auth()).json()}
    assert addresses == {first["id"]: False, second["id"]: True}


def test_deleting_default_promotes_remaining(client):
    first = create(client, "1 Main Road")
    second = create(client, "2 Main Road")

    assert client.delete(f"/addresses/{first['id']}", headers=auth()).status_code == 200
    remaining = client.get("/addresses", headers=auth()).json()
    assert [(a["id"], a["isDefault"]) for a in remaining] == [(second["id"], True)]


def test_invalid_pincode_is_rejected(client):
    response = client.post(
        "/addresses",
        json={"street": "1 Main Road", "area": "Gajuwaka", "pincode": "53001"},
        headers=auth(),
    )
    assert response.status_code == 422


def test_addresses_are_private(client):
    address = create(client, "1 Main Road")
    assert client.get("/addresses", headers=auth("other-token")).json() == []
    response = client.put(
        f"/addresses/{address['id']}", json={"landmark": "Near park"}, headers=auth("other-token")
    )
    assert response.status_code == 404


def test_update_address(client):
    address = create(client, "1 Main Road")
    updated = client.put(
        f"/addresses/{address['id']}", json={"landmark": "Opp. RTC Complex"}, headers=auth()
    ).json()
    assert updated["landmark"] == "Opp. RTC Complex"
    assert updated["street"] == "1 Main Road"
