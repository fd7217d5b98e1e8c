from flask import Blueprint
from flask_jwt_extended import jwt_required
from .. import accounts
from ..errors import json_body
from ..identity import current_identity
from ..listings import user_cars
from ..utils import api_ok

bp = Blueprint("users", __name__)


@bp.get("/users/dashboard/stats")
@jwt_required()
def dashboard_stats():
    ident = current_identity()
    return api_ok(accounts.dashboard_stats(ident.user_id))


@bp.get("/users/dashboard/activity")
@jwt_required()
def dashboard_activity():
    ident = current_identity()
    return api_ok(accounts.recent_activity(ident.user_id))


@bp.get("/users/profile/<int:user_id>")
def profile(user_id):
    return api_ok(accounts.public_profile(user_id))


@bp.put("/users/profile")
@jwt_required()
def update_profile():
    ident = current_identity()
    user = accounts.update_profile(ident, json_body())
    return api_ok({"user": user}, message="Profile updated successfully")


@bp.put("/users/password")
@jwt_required()
def change_password():
    ident = current_identity()
    data = json_body()
    accounts.change_password(ident, data.get("currentPassword"), data.get("newPassword"))
    return api_ok(None, message="Password updated successfully")


@bp.get("/users/<int:user_id>/cars")
def cars_for_user(user_id):
    return api_ok(user_cars(user_id))


@bp.get("/users/me/alerts")
@jwt_required()
def list_alerts():
    return api_ok(accounts.list_alerts(current_identity()))


@bp.post("/users/me/alerts")
@jwt_required()
def create_alert():
    ident = current_identity()
    return api_ok(accounts.create_alert(ident, json_body()), status=201)


@bp.delete("/users/me/alerts/<int:alert_id>")
@jwt_required()
def delete_alert(alert_id):
    accounts.delete_alert(current_identity(), alert_id)
    return api_ok({"deleted": True})


@bp.post("/reports")
@jwt_required()
def file_report():
    ident = current_identity()
    report = accounts.file_report(ident, json_body())
    return api_ok(report, status=201, message="Report submitted")
