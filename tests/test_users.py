from .conftest import auth


def test_profile_reflects_token_claims(client):
    me = client.get("/users/me", headers=auth()).json()
    assert me["email"] == "asha@example.com"
    assert me["name"] == "Asha"
    assert me["role"] == "customer"
    assert me["isVerified"] is True


def test_update_name_and_phone(client):
    updated = client.put(
        "/users/me", json={"name": " Asha Rao ", "phone": "98765 43210"}, headers=auth()
    ).json()
    assert updated["name"] == "Asha Rao"
    assert updated["phone"] == "+919876543210"

    # Fields left out are kept
    renamed = client.put("/users/me", json={"name": "Asha R"}, headers=auth()).json()
    assert renamed["phone"] == "+919876543210"


def test_invalid_phone_is_rejected(client):
    response = client.put("/users/me", json={"phone": "12345"}, headers=auth())
    assert response.status_code == 422


def test_preferences_default_and_partial_update(client):
    defaults = client.get("/users/me/preferences", headers=auth()).json()
    assert defaults["marketingEmails"] is False
    assert defaults["smsNotifications"] is True

    updated = client.put(
        "/users/me/preferences", json={"smsNotifications": False}, headers=auth()
    ).json()
    assert updated["smsNotifications"] is False
    assert updated["emailNotifications"] is True

    assert client.get("/users/me/preferences", headers=auth()).json() == updated


def test_preferences_are_per_user(client):
    client.put("/users/me/preferences", json={"marketingEmails": True}, headers=auth())
    other = client.get("/users/me/preferences", headers=auth("other-token")).json()
    assert other["marketingEmails"] is False


def test_profile_requires_sign_in(client):
    response = client.get("/users/me")
    assert response.status_code == 401
    assert response.headers["X-Redirect-To"] == "/auth/login?redirect=/users/me"
