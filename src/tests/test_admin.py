# tests/test_admin.py
from sqlalchemy.exc import OperationalError
from wightcars import analytics
from wightcars.extensions import db
from wightcars.models import AdminLog


def test_admin_routes_require_admin(client, buyer):
    assert client.get("/api/admin/dashboard").status_code == 401
    r = client.get("/api/admin/dashboard", headers=buyer[1])
    assert r.status_code == 403
    assert r.get_json()["error"] == "Admin access required"


def test_dashboard_shape(client, admin, make_car):
    make_car(price=1000000)
    make_car(price=2000001)
    data = client.get("/api/admin/dashboard", headers=admin[1]).get_json()["data"]
    assert set(data) == {"userStats", "carStats", "messageStats", "todayStats", "recentActivity",
                         "pendingReports", "pendingModeration", "timestamp"}
    assert data["userStats"]["total_users"] == 2
    assert data["carStats"]["total_cars"] == 2
    assert data["carStats"]["avg_price"] == 1500000
    assert data["pendingModeration"] == 2
    assert {row["type"] for row in data["todayStats"]} == {"user", "car", "message"}


def test_analytics_shape(client, admin, make_car):
    make_car(price=400000)
    make_car(price=450000, make="Kia", model="Picanto")
    make_car(price=3500000)
    r = client.get("/api/admin/analytics?period=7", headers=admin[1])
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["period"] == 7
    assert data["popularMakes"][0] == {"make": "Ford", "count": 2, "avg_price": 1950000}
    assert data["priceRanges"] == [
        {"price_range": "Under £5,000", "count": 2},
        {"price_range": "Over £30,000", "count": 1},
    ]
    assert sum(day["new_listings"] for day in data["carStats"]) == 3

    assert client.get("/api/admin/analytics?period=soon", headers=admin[1]).status_code == 400


def test_suspend_withdraws_listings_and_blocks_login(app, client, admin, seller, make_car):
    car = make_car()
    r = client.post(f"/api/admin/users/{seller[0]}/suspend", json={"reason": "Scam"}, headers=admin[1])
    assert r.status_code == 200
    assert r.get_json()["data"] == {"withdrawn_listings": 1}

    assert client.get(f"/api/cars/{car['id']}").get_json()["data"]["status"] == "withdrawn"
    r = client.post("/api/auth/login", json={"email": "seller@test.local", "password": "secret123"})
    assert r.status_code == 403

    with app.app_context():
        entry = AdminLog.query.filter_by(action="suspend_user").one()
        assert entry.target_id == seller[0]
        assert entry.details == "Reason: Scam, Permanent"

    assert client.post(f"/api/admin/users/{seller[0]}/unsuspend", headers=admin[1]).status_code == 200
    r = client.post("/api/auth/login", json={"email": "seller@test.local", "password": "secret123"})
    assert r.status_code == 200


def test_suspend_needs_reason(client, admin, seller):
    r = client.post(f"/api/admin/users/{seller[0]}/suspend", json={}, headers=admin[1])
    assert r.status_code == 400


def test_user_listing_and_verify(client, admin, seller, make_car):
    make_car()
    r = client.post(f"/api/admin/users/{seller[0]}/verify", json={"notes": "ID checked"}, headers=admin[1])
    assert r.status_code == 200

    body = client.get("/api/admin/users?status=verified", headers=admin[1]).get_json()
    assert [u["id"] for u in body["data"]] == [seller[0]]
    assert body["data"][0]["car_count"] == 1
    assert body["pagination"]["total"] == 1

    body = client.get("/api/admin/users?search=admin@", headers=admin[1]).get_json()
    assert [u["id"] for u in body["data"]] == [admin[0]]


def test_moderation_queue(client, admin, make_car):
    car = make_car()
    queue = client.get("/api/admin/moderation/cars", headers=admin[1]).get_json()["data"]
    assert [c["id"] for c in queue] == [car["id"]]

    r = client.post(f"/api/admin/moderation/cars/{car['id']}/approve", headers=admin[1])
    assert r.status_code == 200
    assert r.get_json()["data"]["moderation_status"] == "approved"
    assert client.get("/api/admin/moderation/cars", headers=admin[1]).get_json()["data"] == []

    r = client.post(f"/api/admin/moderation/cars/{car['id']}/flag", json={"notes": "Stock photo"},
                    headers=admin[1])
    data = r.get_json()["data"]
    assert data["moderation_status"] == "flagged"
    assert data["status"] == "withdrawn"

    assert client.post(f"/api/admin/moderation/cars/{car['id']}/burn", headers=admin[1]).status_code == 400


def test_feature_car(client, admin, make_car):
    plain = make_car()
    star = make_car()
    client.post(f"/api/admin/cars/{plain['id']}/feature", headers=admin[1])
    featured = client.get("/api/cars/featured").get_json()["data"]
    assert featured[0]["id"] == plain["id"]
    assert featured[1]["id"] == star["id"]


def test_report_workflow(client, admin, buyer, make_car):
    car = make_car()
    report = client.post("/api/reports", json={"report_type": "spam", "reported_car_id": car["id"]},
                         headers=buyer[1]).get_json()["data"]

    listed = client.get("/api/admin/reports", headers=admin[1]).get_json()["data"]
    assert listed[0]["reported_car_title"] == car["title"]
    assert listed[0]["reporter_email"] == "buyer@test.local"

    r = client.put(f"/api/admin/reports/{report['id']}", json={"assigned_to": buyer[0]}, headers=admin[1])
    assert r.status_code == 400

    r = client.put(f"/api/admin/reports/{report['id']}",
                   json={"status": "resolved", "assigned_to": admin[0], "resolution_notes": "Removed"},
                   headers=admin[1])
    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == "resolved"
    assert client.get("/api/admin/reports", headers=admin[1]).get_json()["data"] == []


def test_settings(app, client, admin, make_car):
    settings = client.get("/api/admin/settings", headers=admin[1]).get_json()["data"]
    by_key = {s["key"]: s for s in settings}
    assert by_key["auto_approve_listings"]["value"] is False
    assert by_key["featured_cars_count"]["value"] == 6

    r = client.put("/api/admin/settings/auto_approve_listings", json={"value": True}, headers=admin[1])
    assert r.status_code == 200
    assert r.get_json()["data"]["value"] is True
    assert make_car()["moderation_status"] == "approved"

    r = client.put("/api/admin/settings/featured_cars_count", json={"value": "many"}, headers=admin[1])
    assert r.status_code == 400
    assert client.put("/api/admin/settings/nope", json={"value": 1}, headers=admin[1]).status_code == 404

    with app.app_context():
        assert db.session.query(AdminLog).filter_by(action="update_setting").count() == 1


def test_analytics_period_bounds(client, admin):
    assert client.get("/api/admin/analytics?period=3650", headers=admin[1]).status_code == 200
    for period in ("0", "3651", "999999999", "99999999999999999999"):
        r = client.get(f"/api/admin/analytics?period={period}", headers=admin[1])
        assert r.status_code == 400, period
        assert r.get_json()["fields"] == ["period"]


def test_admin_pagination_out_of_range(client, admin):
    r = client.get("/api/admin/users?page=99999999999999999999", headers=admin[1])
    assert r.status_code == 400
    assert r.get_json()["fields"] == ["page"]


def test_aggregates_degrade_to_empty_when_store_fails(client, admin, make_car, monkeypatch):
    make_car()

    def _boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("server has gone away"))
    monkeypatch.setattr(db.session, "execute", _boom)

    r = client.get("/api/admin/dashboard", headers=admin[1])
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["userStats"] == analytics.EMPTY_USER_STATS
    assert data["carStats"] == analytics.EMPTY_CAR_STATS
    assert data["messageStats"] == analytics.EMPTY_MESSAGE_STATS
    assert data["todayStats"] == []
    assert data["recentActivity"] == []
    assert data["pendingReports"] == 0
    assert data["pendingModeration"] == 0

    r = client.get("/api/admin/analytics?period=7", headers=admin[1])
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["period"] == 7
    for key in ("userGrowth", "carStats", "popularMakes", "priceRanges", "locationStats"):
        assert data[key] == [], key


def test_admin_bodies_must_be_objects(client, admin, seller):
    r = client.post(f"/api/admin/users/{seller[0]}/suspend", json=["Scam"], headers=admin[1])
    assert r.status_code == 400
    r = client.put("/api/admin/settings/featured_cars_count", json=[1], headers=admin[1])
    assert r.status_code == 400
