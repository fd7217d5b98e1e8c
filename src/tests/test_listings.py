# tests/test_listings.py
from datetime import datetime

import pytest
from conftest import CAR
from sqlalchemy import delete
from wightcars import listings
from wightcars.extensions import db
from wightcars.models import Car, SavedCar

THIS_YEAR = datetime.utcnow().year


def _ids(resp):
    return [c["id"] for c in resp.get_json()["data"]]


def test_create_and_fetch_keeps_exact_price(client, make_car):
    car = make_car(price=1295000, year=2020)
    assert car["status"] == "active"
    assert car["moderation_status"] == "pending"

    r = client.get(f"/api/cars/{car['id']}")
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["price"] == 1295000
    assert isinstance(data["price"], int)
    assert data["seller"]["email"] == "seller@test.local"


@pytest.mark.parametrize("year,ok", [
    (1899, False),
    (1900, True),
    (THIS_YEAR + 1, True),
    (THIS_YEAR + 2, False),
])
def test_year_bounds(client, seller, year, ok):
    r = client.post("/api/cars", json={**CAR, "year": year}, headers=seller[1])
    assert r.status_code == (201 if ok else 400)
    if not ok:
        assert "year" in r.get_json()["fields"]


@pytest.mark.parametrize("price,ok", [
    (0, False), (-100, False), (1, True), (12.5, False), ("abc", False),
    (2 ** 31 - 1, True), (2 ** 31, False),
])
def test_price_rules(client, seller, price, ok):
    r = client.post("/api/cars", json={**CAR, "price": price}, headers=seller[1])
    assert r.status_code == (201 if ok else 400)


def test_create_reports_every_bad_field(client, seller):
    r = client.post("/api/cars", json={"make": "Ford", "fuel_type": "steam"}, headers=seller[1])
    assert r.status_code == 400
    body = r.get_json()
    assert set(body["fields"]) >= {"fuel_type", "title", "model", "year", "price", "location"}
    assert "fuel_type" in body["errors"]


def test_create_requires_login(client):
    assert client.post("/api/cars", json=CAR).status_code == 401


def test_price_range_filter(client, make_car):
    make_car(price=500000)
    mid = make_car(price=1500000)
    make_car(price=2500000)
    r = client.get("/api/cars?min_price=1000000&max_price=2000000")
    assert r.status_code == 200
    assert _ids(r) == [mid["id"]]


def test_sort_price_asc_and_default_newest(client, make_car):
    c3 = make_car(price=3)
    c1 = make_car(price=1)
    c2 = make_car(price=2)
    r = client.get("/api/cars?sort_by=price_asc")
    assert [c["price"] for c in r.get_json()["data"]] == [1, 2, 3]

    r = client.get("/api/cars")
    assert _ids(r) == [c2["id"], c1["id"], c3["id"]]


def test_make_is_case_insensitive(client, make_car):
    ford = make_car(make="Ford")
    make_car(make="BMW", model="3 Series")
    assert _ids(client.get("/api/cars?make=FORD")) == [ford["id"]]


def test_results_satisfy_every_predicate_and_widen_monotonically(client, make_car):
    make_car(make="Ford", year=2015, price=600000, location="Ryde")
    make_car(make="Ford", year=2019, price=1200000, location="Cowes")
    make_car(make="Ford", year=2021, price=1800000, location="Cowes")
    make_car(make="Honda", model="Jazz", year=2019, price=900000, location="Cowes")

    narrow = client.get("/api/cars?make=ford&min_year=2018&location=cowes&max_price=1500000")
    rows = narrow.get_json()["data"]
    assert len(rows) == 1
    for c in rows:
        assert c["make"].lower() == "ford"
        assert c["year"] >= 2018
        assert "cowes" in c["location"].lower()
        assert c["price"] <= 1500000
        assert c["status"] == "active"

    wide = client.get("/api/cars?make=ford&min_year=2018&location=cowes")
    assert set(_ids(narrow)) <= set(_ids(wide))
    assert len(_ids(wide)) == 2


def test_pagination_and_limit_cap(client, make_car):
    for i in range(3):
        make_car(price=1000 + i)
    body = client.get("/api/cars?limit=2&page=2").get_json()
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
    assert len(body["data"]) == 1

    assert client.get("/api/cars?limit=1000").get_json()["pagination"]["limit"] == 50


def test_empty_result_has_zero_pages(client):
    body = client.get("/api/cars?make=Lada").get_json()
    assert body["data"] == []
    assert body["pagination"]["pages"] == 0
    assert body["degraded"] is False


def test_bad_numeric_filter_is_400(client):
    r = client.get("/api/cars?min_price=lots")
    assert r.status_code == 400
    assert r.get_json()["fields"] == ["min_price"]


def test_withdrawn_cars_hidden_unless_requested(client, seller, make_car):
    car = make_car()
    client.put(f"/api/cars/{car['id']}", json={"status": "withdrawn"}, headers=seller[1])
    assert _ids(client.get("/api/cars")) == []
    assert _ids(client.get("/api/cars?status=withdrawn")) == [car["id"]]
    assert _ids(client.get("/api/cars/my/listings", headers=seller[1])) == [car["id"]]


def test_view_counter_counts_every_fetch(app, client, make_car):
    car = make_car()
    for n in range(1, 6):
        r = client.get(f"/api/cars/{car['id']}")
        assert r.get_json()["data"]["views"] == n
    with app.app_context():
        assert db.session.get(Car, car["id"]).views == 5


def test_missing_car_is_404(client):
    r = client.get("/api/cars/9999")
    assert r.status_code == 404
    assert r.get_json() == {"success": False, "error": "Car not found"}


def test_update_is_sparse_and_owner_only(client, seller, buyer, make_car):
    car = make_car(description="Lovely")
    r = client.put(f"/api/cars/{car['id']}", json={"price": 950000}, headers=seller[1])
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["price"] == 950000
    assert data["description"] == "Lovely"
    assert data["title"] == car["title"]

    r = client.put(f"/api/cars/{car['id']}", json={"price": 1}, headers=buyer[1])
    assert r.status_code == 403

    r = client.put(f"/api/cars/{car['id']}", json={"year": 1800}, headers=seller[1])
    assert r.status_code == 400


def test_featured_image_must_be_a_listing_image(client, seller):
    r = client.post("/api/cars", json={**CAR, "images": ["a.jpg"], "featured_image": "b.jpg"},
                    headers=seller[1])
    assert r.status_code == 400
    r = client.post("/api/cars", json={**CAR, "images": ["a.jpg"], "featured_image": "a.jpg"},
                    headers=seller[1])
    assert r.status_code == 201


def test_delete(client, seller, buyer, make_car):
    car = make_car()
    assert client.delete(f"/api/cars/{car['id']}", headers=buyer[1]).status_code == 403
    assert client.delete(f"/api/cars/{car['id']}", headers=seller[1]).status_code == 200
    assert client.get(f"/api/cars/{car['id']}").status_code == 404


def test_save_toggle_is_an_involution(client, buyer, make_car):
    car = make_car()
    url = f"/api/cars/{car['id']}/save"

    r = client.post(url, headers=buyer[1])
    assert r.get_json()["data"] == {"saved": True}
    assert _ids(client.get("/api/cars/my/saved", headers=buyer[1])) == [car["id"]]

    r = client.post(url, headers=buyer[1])
    assert r.get_json()["data"] == {"saved": False}
    assert _ids(client.get("/api/cars/my/saved", headers=buyer[1])) == []

    assert client.post("/api/cars/9999/save", headers=buyer[1]).status_code == 404


def test_featured_listing(client, make_car):
    make_car()
    body = client.get("/api/cars/featured").get_json()
    assert len(body["data"]) == 1
    assert body["degraded"] is False


def test_makes_reference_data(client):
    makes = client.get("/api/cars/data/makes").get_json()["data"]
    assert any(m["name"] == "Ford" for m in makes)


def test_viewing_leaves_updated_at_alone(app, client, make_car):
    car = make_car()
    stamp = datetime(2024, 1, 2, 3, 4, 5)
    with app.app_context():
        db.session.get(Car, car["id"]).updated_at = stamp
        db.session.commit()

    client.get(f"/api/cars/{car['id']}")
    data = client.get(f"/api/cars/{car['id']}").get_json()["data"]
    assert data["views"] == 2
    with app.app_context():
        assert db.session.get(Car, car["id"]).updated_at == stamp


def test_oversized_numbers_are_400(client, make_car):
    make_car()
    r = client.get("/api/cars?page=99999999999999999999")
    assert r.status_code == 400
    assert r.get_json()["fields"] == ["page"]
    r = client.get(f"/api/cars?max_mileage={2 ** 40}")
    assert r.status_code == 400
    assert r.get_json()["fields"] == ["max_mileage"]


def test_is_negotiable_parses_text_flags(client, seller):
    r = client.post("/api/cars", json={**CAR, "is_negotiable": "false"}, headers=seller[1])
    assert r.status_code == 201
    assert r.get_json()["data"]["is_negotiable"] is False

    r = client.post("/api/cars", json={**CAR, "is_negotiable": "1"}, headers=seller[1])
    assert r.get_json()["data"]["is_negotiable"] is True

    r = client.post("/api/cars", json={**CAR, "is_negotiable": "maybe"}, headers=seller[1])
    assert r.status_code == 400
    assert r.get_json()["fields"] == ["is_negotiable"]


def test_save_race_on_unique_pair_still_reports_saved(app, client, buyer, make_car, monkeypatch):
    car = make_car()
    with app.app_context():
        # a concurrent request saved the same pair first
        db.session.add(SavedCar(user_id=buyer[0], car_id=car["id"]))
        db.session.commit()
    monkeypatch.setattr(listings, "delete", lambda model: delete(model).where(model.id == -1))

    r = client.post(f"/api/cars/{car['id']}/save", headers=buyer[1])
    assert r.status_code == 200
    assert r.get_json()["data"] == {"saved": True}
    with app.app_context():
        assert SavedCar.query.filter_by(user_id=buyer[0], car_id=car["id"]).count() == 1


def test_non_object_body_is_400(client, seller, make_car):
    r = client.post("/api/cars", json=[CAR], headers=seller[1])
    assert r.status_code == 400
    car = make_car()
    r = client.put(f"/api/cars/{car['id']}", json=[1], headers=seller[1])
    assert r.status_code == 400
    assert r.get_json()["error"] == "Request body must be a JSON object"
