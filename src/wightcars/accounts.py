# wightcars/accounts.py
import logging

from sqlalchemy import func, literal, select, union_all

from .errors import Conflict, NotFound, ValidationError, store_errors
from .extensions import db
from .filters import CarFilters
from .listings import user_cars
from .models import REPORT_TYPES, Car, Message, Report, SavedCar, SearchAlert, User
from .utils import iso

log = logging.getLogger("wightcars.users")

MIN_PASSWORD = 6
PROFILE_FIELDS = ("full_name", "phone", "location", "avatar_url")


def serialize_user(u: User, private=False):
    data = {
        "id": u.id,
        "full_name": u.full_name,
        "location": u.location,
        "avatar_url": u.avatar_url,
        "is_dealer": bool(u.is_dealer),
        "is_verified": bool(u.is_verified),
        "created_at": iso(u.created_at),
    }
    if private:
        data.update({
            "email": u.email,
            "phone": u.phone,
            "is_admin": bool(u.is_admin),
            "is_suspended": bool(u.is_suspended),
            "updated_at": iso(u.updated_at),
        })
    return data


def validate_password(password, field="password"):
    if not isinstance(password, str) or len(password) < MIN_PASSWORD:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD} characters long", fields=[field])


def register_user(data):
    data = data or {}
    email = (data.get("email") or "").strip().lower()
    full_name = (data.get("full_name") or "").strip()
    password = data.get("password") or ""
    missing = [k for k, v in (("email", email), ("password", password), ("full_name", full_name)) if not v]
    if missing:
        raise ValidationError("Email, password, and full name are required", fields=missing)
    if "@" not in email:
        raise ValidationError("Invalid email format", fields=["email"])
    validate_password(password)

    with store_errors("Failed to create user"):
        if User.query.filter_by(email=email).first():
            raise Conflict("User with this email already exists")
        u = User(
            email=email,
            full_name=full_name,
            phone=(data.get("phone") or "").strip() or None,
            location=(data.get("location") or "").strip() or None,
            is_dealer=bool(data.get("is_dealer")),
        )
        u.set_password(password)
        db.session.add(u)
        db.session.commit()
        log.info("user:register id=%s email=%s", u.id, email)
        return u


def update_profile(identity, data):
    data = data or {}
    if data.get("email") is not None and "@" not in str(data.get("email")):
        raise ValidationError("Invalid email format", fields=["email"])
    with store_errors("Failed to update profile"):
        u = db.session.get(User, identity.user_id)
        if u is None:
            raise NotFound("User not found")
        for name in PROFILE_FIELDS:
            value = data.get(name)
            if isinstance(value, str) and value.strip():
                setattr(u, name, value.strip())
        db.session.commit()
        return serialize_user(u, private=True)


def change_password(identity, current, new):
    if not current or not new:
        raise ValidationError("Current password and new password are required",
                              fields=[n for n, v in (("currentPassword", current), ("newPassword", new)) if not v])
    validate_password(new, field="newPassword")
    with store_errors("Failed to update password"):
        u = db.session.get(User, identity.user_id)
        if u is None:
            raise NotFound("User not found")
        if not u.check_password(current):
            raise ValidationError("Current password is incorrect", fields=["currentPassword"])
        u.set_password(new)
        db.session.commit()


def public_profile(user_id):
    with store_errors("Failed to fetch user profile"):
        u = db.session.get(User, user_id)
        if u is None:
            raise NotFound("User not found")
        profile = serialize_user(u)
    return {"user": profile, "cars": user_cars(user_id)}


def dashboard_stats(user_id):
    with store_errors("Failed to fetch dashboard stats"):
        cars = db.session.execute(select(func.count(Car.id)).where(Car.user_id == user_id)).scalar_one()
        messages = db.session.execute(
            select(func.count(Message.id)).where(Message.recipient_id == user_id)).scalar_one()
        saved = db.session.execute(
            select(func.count(SavedCar.id)).where(SavedCar.user_id == user_id)).scalar_one()
    return {"cars": cars, "messages": messages, "saved": saved}


def recent_activity(user_id, limit=10):
    received = (
        select(literal("message").label("type"),
               Message.created_at.label("created_at"),
               (literal("New message about ") + Car.title).label("description"))
        .join(Car, Message.car_id == Car.id)
        .where(Message.recipient_id == user_id)
    )
    listed = (
        select(literal("car"), Car.created_at, literal("Listed ") + Car.title)
        .where(Car.user_id == user_id)
    )
    stmt = union_all(received, listed).subquery()
    with store_errors("Failed to fetch dashboard activity"):
        rows = db.session.execute(
            select(stmt).order_by(stmt.c.created_at.desc()).limit(limit)
        ).all()
    return [{"type": r.type, "created_at": iso(r.created_at), "description": r.description} for r in rows]


# ---- Search alerts ----

def serialize_alert(a: SearchAlert):
    return {"id": a.id, "name": a.name, "filters": a.filters, "is_active": bool(a.is_active),
            "created_at": iso(a.created_at)}


def create_alert(identity, data):
    data = data or {}
    name = (data.get("name") or "").strip() if isinstance(data.get("name"), str) else ""
    if not name:
        raise ValidationError("Alert name is required", fields=["name"])
    raw = data.get("filters")
    if not isinstance(raw, dict):
        raise ValidationError("filters must be an object", fields=["filters"])
    filters = CarFilters.from_args(raw).to_dict()
    with store_errors("Failed to save search alert"):
        a = SearchAlert(user_id=identity.user_id, name=name, filters=filters)
        db.session.add(a)
        db.session.commit()
        return serialize_alert(a)


def list_alerts(identity):
    with store_errors("Failed to fetch search alerts"):
        items = (SearchAlert.query.filter_by(user_id=identity.user_id)
                 .order_by(SearchAlert.created_at.desc(), SearchAlert.id.desc()).all())
        return [serialize_alert(a) for a in items]


def delete_alert(identity, alert_id):
    with store_errors("Failed to delete search alert"):
        a = SearchAlert.query.filter_by(id=alert_id, user_id=identity.user_id).first()
        if a is None:
            raise NotFound("Search alert not found")
        db.session.delete(a)
        db.session.commit()


# ---- Reports ----

def serialize_report(r: Report):
    return {
        "id": r.id,
        "reporter_id": r.reporter_id,
        "reported_user_id": r.reported_user_id,
        "reported_car_id": r.reported_car_id,
        "report_type": r.report_type,
        "description": r.description,
        "status": r.status,
        "assigned_to": r.assigned_to,
        "resolution_notes": r.resolution_notes,
        "created_at": iso(r.created_at),
        "updated_at": iso(r.updated_at),
    }


def file_report(identity, data):
    data = data or {}
    report_type = data.get("report_type")
    if report_type not in REPORT_TYPES:
        raise ValidationError(f"report_type must be one of: {', '.join(REPORT_TYPES)}",
                              fields=["report_type"])
    try:
        user_id = int(data["reported_user_id"]) if data.get("reported_user_id") else None
        car_id = int(data["reported_car_id"]) if data.get("reported_car_id") else None
    except (TypeError, ValueError):
        raise ValidationError("Invalid report target", fields=["reported_user_id", "reported_car_id"])
    if not user_id and not car_id:
        raise ValidationError("A reported user or listing is required",
                              fields=["reported_user_id", "reported_car_id"])
    with store_errors("Failed to file report"):
        if user_id and db.session.get(User, user_id) is None:
            raise NotFound("User not found")
        if car_id and db.session.get(Car, car_id) is None:
            raise NotFound("Car not found")
        r = Report(reporter_id=identity.user_id, reported_user_id=user_id,
                   reported_car_id=car_id, report_type=report_type,
                   description=(data.get("description") or None))
        db.session.add(r)
        db.session.commit()
        log.info("report:filed id=%s by=%s type=%s", r.id, identity.user_id, report_type)
        return serialize_report(r)
