# tests/conftest.py
import pytest
from wightcars import create_app
from wightcars.extensions import db
from wightcars.models import User
from wightcars.settings import ensure_defaults

CAR = {
    "title": "2018 Ford Fiesta Zetec",
    "make": "Ford",
    "model": "Fiesta",
    "year": 2018,
    "price": 1000000,
    "location": "Newport, Isle of Wight",
    "mileage": 30000,
    "fuel_type": "petrol",
    "transmission": "manual",
    "body_type": "hatchback",
}


@pytest.fixture()
def app(tmp_path):
    """
    Fresh app per test:
    - SQLite file under tmp_path.
    - No scheduler threads.
    - Cheap bcrypt rounds.
    """
    application = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.sqlite'}",
        "SCHEDULER_ENABLED": False,
        "STATIC_FALLBACK": False,
        "BCRYPT_LOG_ROUNDS": 4,
        "JWT_SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
    })
    with application.app_context():
        db.create_all()
        ensure_defaults()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def register(client):
    """Register a user and return (user_id, bearer headers)."""
    def _mk(email, password="secret123", full_name="Test User", **extra):
        r = client.post("/api/auth/register", json={
            "email": email,
            "password": password,
            "full_name": full_name,
            **extra,
        })
        assert r.status_code == 200, r.get_json()
        data = r.get_json()["data"]
        return data["user"]["id"], {"Authorization": f"Bearer {data['token']}"}
    return _mk


@pytest.fixture()
def seller(register):
    return register("seller@test.local", full_name="Seller", is_dealer=True)


@pytest.fixture()
def buyer(register):
    return register("buyer@test.local", full_name="Buyer")


@pytest.fixture()
def admin(app, register):
    uid, headers = register("admin@test.local", full_name="Admin")
    with app.app_context():
        db.session.get(User, uid).is_admin = True
        db.session.commit()
    return uid, headers


@pytest.fixture()
def make_car(client, seller):
    """Create a listing as the seller (or ``headers``) and return its JSON."""
    def _mk(headers=None, **overrides):
        r = client.post("/api/cars", json={**CAR, **overrides}, headers=headers or seller[1])
        assert r.status_code == 201, r.get_json()
        return r.get_json()["data"]
    return _mk
