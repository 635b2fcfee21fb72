from datetime import date, timedelta

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from cleangod.auth import get_token_verifier
from cleangod.database import Database
from cleangod.main import create_app
from cleangod.models import Product, Service, ServiceCategory, User
from cleangod.storage import MemoryStore

DEVICE_ID = "device-0001"
SESSION_ID = "session-0001"

TOKENS = {
    "customer-token": {
        "sub": "uid-customer",
        "email": "asha@example.com",
        "name": "Asha",
        "email_verified": True,
    },
    "other-token": {
        "sub": "uid-other",
        "email": "ravi@example.com",
        "name": "Ravi",
    },
    "admin-token": {
        "sub": "uid-admin",
        "email": "admin@cleangod.in",
        "name": "Admin",
    },
}


async def fake_verify_token(token: str) -> dict:
    if token not in TOKENS:
        raise HTTPException(status_code=401, detail="Invalid token")
    return TOKENS[token]


def auth(token: str = "customer-token") -> dict:
    return {"Authorization": f"Bearer {token}"}


def client_headers(token: str = "customer-token", session_id: str = SESSION_ID) -> dict:
    return {**auth(token), "X-Device-Id": DEVICE_ID, "X-Session-Id": session_id}


def tomorrow() -> str:
    return (date.today() + timedelta(days=1)).isoformat()


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def storage():
    return MemoryStore()


@pytest.fixture
def app(database, storage):
    app = create_app(database=database, storage=storage)
    app.dependency_overrides[get_token_verifier] = lambda: fake_verify_token
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def catalog(db_session):
    """One category, a two-tier service and a product"""
    category = ServiceCategory(name="Home Cleaning", sort_order=1)
    db_session.add(category)
    db_session.commit()

    service = Service(
        category_id=category.id,
        name="Deep Cleaning",
        images=["https://cdn.example.com/deep.jpg"],
        pricing=[
            {"id": "1bhk", "name": "1 BHK", "originalPrice": 1200, "sellingPrice": 1000},
            {"id": "2bhk", "name": "2 BHK", "originalPrice": 1800, "sellingPrice": 1500},
        ],
        duration=180,
        features=["Kitchen", "Bathrooms"],
    )
    product = Product(name="Floor Cleaner", price=100, stock=20)
    db_session.add_all([service, product])
    db_session.commit()

    return {"category": category.id, "service": service.id, "product": product.id}


@pytest.fixture
def admin_user(db_session):
    user = User(firebase_uid="uid-admin", email="admin@cleangod.in", name="Admin", role="admin")
    db_session.add(user)
    db_session.commit()
    return user
