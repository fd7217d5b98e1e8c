from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required
from .. import analytics, moderation, settings
from ..errors import ValidationError, json_body
from ..filters import MAX_INT
from ..identity import current_admin
from ..utils import api_ok, client_ip

bp = Blueprint("admin", __name__)


def _meta():
    return {"ip": client_ip(request), "user_agent": request.headers.get("User-Agent")}


def _int_arg(name, default):
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", fields=[name])
    if abs(value) > MAX_INT:
        raise ValidationError(f"{name} is out of range", fields=[name])
    return value


@bp.get("/dashboard")
@jwt_required()
def dashboard():
    current_admin()
    return api_ok(analytics.overview())


@bp.get("/analytics")
@jwt_required()
def analytics_report():
    current_admin()
    days = _int_arg("period", current_app.config.get("ANALYTICS_DEFAULT_DAYS", 30))
    if not 1 <= days <= analytics.MAX_PERIOD_DAYS:
        raise ValidationError(f"period must be between 1 and {analytics.MAX_PERIOD_DAYS} days",
                              fields=["period"])
    return api_ok(analytics.analytics(days))


# ---- Users ----

@bp.get("/users")
@jwt_required()
def users():
    current_admin()
    result = moderation.list_users(
        search=request.args.get("search"),
        status=request.args.get("status"),
        sort_by=request.args.get("sortBy", "created_at"),
        sort_order=request.args.get("sortOrder", "DESC"),
        page=_int_arg("page", 1),
        limit=_int_arg("limit", 20),
    )
    return api_ok(result["users"], pagination=result["pagination"])


@bp.post("/users/<int:user_id>/verify")
@jwt_required()
def verify_user(user_id):
    admin = current_admin()
    moderation.verify_user(admin, user_id, json_body().get("notes"), **_meta())
    return api_ok(None, message="User verified successfully")


@bp.post("/users/<int:user_id>/suspend")
@jwt_required()
def suspend_user(user_id):
    admin = current_admin()
    data = json_body()
    result = moderation.suspend_user(admin, user_id, data.get("reason"), data.get("duration"), **_meta())
    return api_ok(result, message="User suspended successfully")


@bp.post("/users/<int:user_id>/unsuspend")
@jwt_required()
def unsuspend_user(user_id):
    admin = current_admin()
    moderation.unsuspend_user(admin, user_id, **_meta())
    return api_ok(None, message="User unsuspended successfully")


# ---- Listings ----

@bp.get("/moderation/cars")
@jwt_required()
def moderation_cars():
    current_admin()
    result = moderation.moderation_queue(
        status=request.args.get("status", "pending"),
        page=_int_arg("page", 1),
        limit=_int_arg("limit", 20),
    )
    return api_ok(result["cars"], pagination=result["pagination"])


@bp.post("/moderation/cars/<int:car_id>/<action>")
@jwt_required()
def moderate_car(car_id, action):
    admin = current_admin()
    car = moderation.moderate_car(admin, car_id, action, json_body().get("notes"), **_meta())
    return api_ok(car, message=f"Car {moderation.MODERATION_ACTIONS[action]} successfully")


@bp.post("/cars/<int:car_id>/feature")
@jwt_required()
def feature_car(car_id):
    admin = current_admin()
    car = moderation.feature_car(admin, car_id, json_body().get("featured", True), **_meta())
    return api_ok(car)


# ---- Reports ----

@bp.get("/reports")
@jwt_required()
def reports():
    current_admin()
    result = moderation.list_reports(
        status=request.args.get("status", "open"),
        page=_int_arg("page", 1),
        limit=_int_arg("limit", 20),
    )
    return api_ok(result["reports"], pagination=result["pagination"])


@bp.put("/reports/<int:report_id>")
@jwt_required()
def update_report(report_id):
    admin = current_admin()
    return api_ok(moderation.update_report(admin, report_id, json_body(), **_meta()))


# ---- Settings ----

@bp.get("/settings")
@jwt_required()
def list_settings():
    current_admin()
    return api_ok(settings.list_settings())


@bp.put("/settings/<key>")
@jwt_required()
def update_setting(key):
    admin = current_admin()
    data = json_body()
    if "value" not in data:
        raise ValidationError("value is required", fields=["value"])
    return api_ok(settings.update_setting(admin, key, data["value"], **_meta()))
