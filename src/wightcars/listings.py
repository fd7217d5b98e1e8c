# wightcars/listings.py
import logging
from datetime import date, datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from .errors import Forbidden, NotFound, ValidationError, store_errors
from .extensions import db
from .filters import MAX_INT, CarFilters, Page, parse_bool
from .models import (
    BODY_TYPES, CAR_STATUSES, FUEL_TYPES, SERVICE_HISTORIES, TRANSMISSIONS,
    Car, SavedCar, User,
)
from .settings import get_setting
from .utils import iso

log = logging.getLogger("wightcars.cars")

REQUIRED_FIELDS = ("title", "make", "model", "year", "price", "location")
TEXT_FIELDS = ("title", "description", "make", "model", "engine_size", "color",
               "location", "postcode", "condition_notes", "featured_image")
ENUM_FIELDS = {
    "fuel_type": FUEL_TYPES,
    "transmission": TRANSMISSIONS,
    "body_type": BODY_TYPES,
    "service_history": SERVICE_HISTORIES,
    "status": CAR_STATUSES,
}


# ---- Serialization ----

def seller_summary(u: User):
    return {
        "id": u.id,
        "full_name": u.full_name,
        "location": u.location,
        "is_dealer": bool(u.is_dealer),
        "is_verified": bool(u.is_verified),
    }


def seller_contact(u: User):
    data = seller_summary(u)
    data.update({"email": u.email, "phone": u.phone})
    return data


def serialize_car(c: Car, seller=None):
    data = {
        "id": c.id,
        "user_id": c.user_id,
        "title": c.title,
        "description": c.description,
        "make": c.make,
        "model": c.model,
        "year": c.year,
        "mileage": c.mileage,
        "fuel_type": c.fuel_type,
        "transmission": c.transmission,
        "body_type": c.body_type,
        "engine_size": c.engine_size,
        "doors": c.doors,
        "color": c.color,
        "price": c.price,
        "is_negotiable": bool(c.is_negotiable),
        "status": c.status,
        "location": c.location,
        "postcode": c.postcode,
        "mot_expiry": c.mot_expiry.isoformat() if c.mot_expiry else None,
        "service_history": c.service_history,
        "features": c.features or [],
        "condition_notes": c.condition_notes,
        "images": c.images or [],
        "featured_image": c.featured_image,
        "views": c.views or 0,
        "is_featured": bool(c.is_featured),
        "moderation_status": c.moderation_status,
        "created_at": iso(c.created_at),
        "updated_at": iso(c.updated_at),
    }
    if seller is not None:
        data["seller"] = seller
    return data


# ---- Search ----

def _joined():
    return select(Car, User).join(User, Car.user_id == User.id)


def search_cars(filters: CarFilters) -> Page:
    """One page of listings matching ``filters`` plus the total match count."""
    where = filters.where()
    with store_errors("Failed to fetch cars"):
        total = db.session.execute(
            select(func.count(Car.id)).select_from(Car).join(User, Car.user_id == User.id).where(where)
        ).scalar_one()
        rows = db.session.execute(
            _joined().where(where)
            .order_by(*filters.order_by())
            .limit(filters.limit)
            .offset(filters.offset)
        ).all()
    items = [serialize_car(c, seller_summary(u)) for c, u in rows]
    return Page(items=items, page=filters.page, limit=filters.limit, total=total)


def featured_cars(limit=None):
    limit = limit or get_setting("featured_cars_count", 6)
    with store_errors("Failed to fetch featured cars"):
        rows = db.session.execute(
            _joined().where(Car.status == "active")
            .order_by(Car.is_featured.desc(), Car.created_at.desc(), Car.id.desc())
            .limit(limit)
        ).all()
    return Page(items=[serialize_car(c, seller_summary(u)) for c, u in rows],
                page=1, limit=limit, total=len(rows))


def saved_cars(user_id):
    with store_errors("Failed to fetch saved cars"):
        rows = db.session.execute(
            _joined().join(SavedCar, SavedCar.car_id == Car.id)
            .where(SavedCar.user_id == user_id)
            .order_by(SavedCar.created_at.desc(), SavedCar.id.desc())
        ).all()
    return [serialize_car(c, seller_summary(u)) for c, u in rows]


def user_cars(user_id, limit=20):
    with store_errors("Failed to fetch user cars"):
        rows = db.session.execute(
            _joined().where(Car.user_id == user_id, Car.status == "active")
            .order_by(Car.created_at.desc(), Car.id.desc())
            .limit(limit)
        ).all()
    return [serialize_car(c, seller_summary(u)) for c, u in rows]


# ---- Detail + views ----

def record_view(car_id):
    """Atomic ``views = views + 1``; no de-duplication per viewer, updated_at untouched."""
    result = db.session.execute(
        update(Car).where(Car.id == car_id)
        .values(views=Car.views + 1, updated_at=Car.updated_at)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def get_car(car_id):
    with store_errors("Failed to fetch car"):
        row = db.session.execute(_joined().where(Car.id == car_id)).first()
        if row is None:
            raise NotFound("Car not found")
        record_view(car_id)
        db.session.commit()
        car, seller = row
        return serialize_car(car, seller_contact(seller))


# ---- Validation ----

def _as_int(value):
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(value)
        return int(value)
    if isinstance(value, int):
        return value
    return int(str(value).strip())


def _string_list(value):
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(value)
    return [v.strip() for v in value if v.strip()]


def validate_car_payload(data, partial=False):
    """Clean a create payload (or a sparse patch when ``partial``).

    Returns a dict holding only the fields present in ``data``; raises
    ValidationError listing every offending field.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    errors = {}
    clean = {}

    for name in TEXT_FIELDS:
        if name in data:
            value = data[name]
            if value is not None and not isinstance(value, str):
                errors[name] = f"{name} must be text"
                continue
            clean[name] = value.strip() if value else None

    max_year = datetime.utcnow().year + 1
    if "year" in data:
        try:
            year = _as_int(data["year"])
            if not 1900 <= year <= max_year:
                errors["year"] = f"Year must be between 1900 and {max_year}"
            else:
                clean["year"] = year
        except (TypeError, ValueError):
            errors["year"] = "Year must be a whole number"

    if "price" in data:
        try:
            price = _as_int(data["price"])
            if price <= 0:
                errors["price"] = "Price must be greater than 0"
            elif price > MAX_INT:
                errors["price"] = "Price is too large"
            else:
                clean["price"] = price
        except (TypeError, ValueError):
            errors["price"] = "Price must be a whole number of pence"

    for name in ("mileage", "doors"):
        if name in data and data[name] not in (None, ""):
            try:
                value = _as_int(data[name])
                if not 0 <= value <= MAX_INT:
                    raise ValueError(value)
                clean[name] = value
            except (TypeError, ValueError):
                errors[name] = f"{name} must be a non-negative whole number"
        elif name in data:
            clean[name] = None

    for name, allowed in ENUM_FIELDS.items():
        if name in data and data[name] not in (None, ""):
            if data[name] not in allowed:
                errors[name] = f"{name} must be one of: {', '.join(allowed)}"
            else:
                clean[name] = data[name]

    for name in ("features", "images"):
        if name in data:
            try:
                clean[name] = _string_list(data[name] or [])
            except ValueError:
                errors[name] = f"{name} must be a list of strings"

    if "is_negotiable" in data:
        flag = parse_bool(data["is_negotiable"])
        if flag is None:
            errors["is_negotiable"] = "is_negotiable must be true or false"
        else:
            clean["is_negotiable"] = flag

    if "mot_expiry" in data:
        raw = data["mot_expiry"]
        if raw in (None, ""):
            clean["mot_expiry"] = None
        else:
            try:
                clean["mot_expiry"] = date.fromisoformat(str(raw)[:10])
            except ValueError:
                errors["mot_expiry"] = "mot_expiry must be an ISO date"

    if not partial:
        for name in REQUIRED_FIELDS:
            if name not in errors and not clean.get(name):
                errors[name] = f"{name} is required"
    else:
        for name in REQUIRED_FIELDS:
            if name in data and name not in errors and not clean.get(name):
                errors[name] = f"{name} cannot be empty"

    if errors:
        fields = list(errors)
        raise ValidationError("; ".join(errors.values()), fields=fields, errors=errors)
    return clean


def _check_featured_image(featured, images):
    if featured and featured not in (images or []):
        raise ValidationError("featured_image must be one of the listing images",
                              fields=["featured_image"])


# ---- Mutation ----

def create_car(identity, data):
    if identity.is_suspended:
        raise Forbidden("Suspended accounts cannot post listings")
    clean = validate_car_payload(data)
    _check_featured_image(clean.get("featured_image"), clean.get("images"))
    clean.setdefault("status", "active")
    auto_approve = get_setting("auto_approve_listings", False)

    with store_errors("Failed to create car listing"):
        car = Car(user_id=identity.user_id,
                  moderation_status="approved" if auto_approve else "pending",
                  **clean)
        db.session.add(car)
        db.session.commit()
        log.info("car:create id=%s user=%s", car.id, identity.user_id)
        return serialize_car(car)


def _owned_car(identity, car_id):
    car = db.session.get(Car, car_id)
    if car is None:
        raise NotFound("Car not found")
    if not identity.can_edit(car.user_id):
        raise Forbidden("You can only modify your own listings")
    return car


def update_car(identity, car_id, patch):
    with store_errors("Failed to update car listing"):
        car = _owned_car(identity, car_id)
        clean = validate_car_payload(patch, partial=True)
        _check_featured_image(clean.get("featured_image", car.featured_image),
                              clean.get("images", car.images))
        for key, value in clean.items():
            setattr(car, key, value)
        car.updated_at = datetime.utcnow()
        db.session.commit()
        return serialize_car(car)


def delete_car(identity, car_id):
    with store_errors("Failed to delete car listing"):
        car = _owned_car(identity, car_id)
        db.session.delete(car)
        db.session.commit()
        log.info("car:delete id=%s by=%s", car_id, identity.user_id)


# ---- Favourites ----

def toggle_saved(user_id, car_id):
    """Flip the saved state of (user, car); returns the new state.

    Delete-first keyed by the unique pair, insert otherwise; a concurrent
    insert of the same pair trips the unique constraint and still means saved.
    """
    with store_errors("Failed to save/unsave car"):
        if db.session.get(Car, car_id) is None:
            raise NotFound("Car not found")
        removed = db.session.execute(
            delete(SavedCar)
            .where(SavedCar.user_id == user_id, SavedCar.car_id == car_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        if removed:
            db.session.commit()
            return False
        try:
            db.session.add(SavedCar(user_id=user_id, car_id=car_id))
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            log.info("saved:race user=%s car=%s", user_id, car_id)
        return True
