# tests/test_fallback.py
import pytest
from conftest import CAR
from sqlalchemy.exc import OperationalError
from wightcars.extensions import db
from wightcars.fallback import STATIC_CARS


@pytest.fixture()
def store_down(monkeypatch):
    """Every statement executed through the session fails as if MySQL went away."""
    def _boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("server has gone away"))
    monkeypatch.setattr(db.session, "execute", _boom)


def test_read_failure_is_503_when_fallback_disabled(client, store_down):
    r = client.get("/api/cars")
    assert r.status_code == 503
    assert r.get_json() == {"success": False, "error": "Failed to fetch cars"}


def test_read_failure_serves_static_listings_when_enabled(app, client, store_down):
    app.config["STATIC_FALLBACK"] = True
    body = client.get("/api/cars?sort_by=price_asc").get_json()
    assert body["success"] is True
    assert body["degraded"] is True
    assert body["pagination"]["total"] == len(STATIC_CARS)
    prices = [c["price"] for c in body["data"]]
    assert prices == sorted(prices)


def test_fallback_applies_filters(app, client, store_down):
    app.config["STATIC_FALLBACK"] = True
    body = client.get("/api/cars?min_price=1000000&max_price=2000000&make=bmw").get_json()
    assert [c["id"] for c in body["data"]] == [2]


def test_featured_falls_back(app, client, store_down):
    app.config["STATIC_FALLBACK"] = True
    body = client.get("/api/cars/featured").get_json()
    assert body["degraded"] is True
    assert body["data"]


def test_detail_never_falls_back(app, client, store_down):
    app.config["STATIC_FALLBACK"] = True
    assert client.get("/api/cars/1").status_code == 503


def test_writes_never_fall_back(app, client, seller, monkeypatch):
    app.config["STATIC_FALLBACK"] = True

    def _boom():
        raise OperationalError("INSERT", {}, Exception("server has gone away"))
    monkeypatch.setattr(db.session, "commit", _boom)

    r = client.post("/api/cars", json=CAR, headers=seller[1])
    assert r.status_code == 503
    assert r.get_json()["success"] is False
