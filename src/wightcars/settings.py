# wightcars/settings.py
import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from .errors import NotFound, ValidationError, store_errors
from .extensions import db
from .models import SiteSetting
from .utils import iso

log = logging.getLogger("wightcars.settings")

DEFAULT_SETTINGS = [
    ("site_name", "WightCars", "text", "Name of the website"),
    ("site_description", "Isle of Wight Car Marketplace", "text", "Site description for SEO"),
    ("max_images_per_car", "8", "number", "Maximum number of images per car listing"),
    ("max_image_size_mb", "5", "number", "Maximum image size in MB"),
    ("auto_approve_listings", "false", "boolean", "Automatically approve new car listings"),
    ("require_verification_to_sell", "false", "boolean", "Require user verification before posting cars"),
    ("enable_user_registration", "true", "boolean", "Allow new user registration"),
    ("maintenance_mode", "false", "boolean", "Enable maintenance mode"),
    ("featured_cars_count", "6", "number", "Number of featured cars on homepage"),
    ("contact_email", "admin@wightcars.com", "text", "Contact email for site inquiries"),
]
_DEFAULTS = {key: (value, kind) for key, value, kind, _ in DEFAULT_SETTINGS}


def coerce(kind, raw):
    if raw is None:
        return None
    if kind == "boolean":
        return str(raw).strip().lower() in ("1", "true", "yes", "on")
    if kind == "number":
        return int(raw)
    if kind == "json":
        return json.loads(raw)
    return raw


def _dump(kind, value):
    """Normalise an incoming value to its stored text form."""
    try:
        if kind == "boolean":
            if isinstance(value, bool):
                return "true" if value else "false"
            if str(value).strip().lower() in ("true", "false", "1", "0"):
                return "true" if str(value).strip().lower() in ("true", "1") else "false"
            raise ValueError(value)
        if kind == "number":
            if isinstance(value, bool):
                raise ValueError(value)
            return str(int(value))
        if kind == "json":
            return json.dumps(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Value must be of type {kind}", fields=["value"])
    return "" if value is None else str(value)


def get_setting(key, default=None):
    """Typed value of a setting; falls back to the built-in default."""
    try:
        row = SiteSetting.query.filter_by(setting_key=key).first()
    except SQLAlchemyError:
        db.session.rollback()
        log.warning("setting %s unreadable, using default", key)
        row = None
    if row is not None:
        return coerce(row.setting_type, row.setting_value)
    if key in _DEFAULTS:
        raw, kind = _DEFAULTS[key]
        return coerce(kind, raw)
    return default


def serialize_setting(s: SiteSetting):
    return {
        "key": s.setting_key,
        "value": coerce(s.setting_type, s.setting_value),
        "type": s.setting_type,
        "description": s.description,
        "updated_by": s.updated_by,
        "updated_at": iso(s.updated_at),
    }


def list_settings():
    with store_errors("Failed to load settings"):
        return [serialize_setting(s) for s in SiteSetting.query.order_by(SiteSetting.setting_key).all()]


def update_setting(identity, key, value, **meta):
    from .moderation import log_action

    with store_errors("Failed to update setting"):
        row = SiteSetting.query.filter_by(setting_key=key).first()
        if row is None:
            raise NotFound("Setting not found")
        row.setting_value = _dump(row.setting_type, value)
        row.updated_by = identity.user_id
        log_action(identity, "update_setting", "setting", row.id, f"{key}={row.setting_value}", **meta)
        db.session.commit()
        return serialize_setting(row)


def ensure_defaults():
    """Insert missing default settings (used by seed and tests)."""
    existing = {k for (k,) in db.session.query(SiteSetting.setting_key).all()}
    for key, value, kind, description in DEFAULT_SETTINGS:
        if key not in existing:
            db.session.add(SiteSetting(setting_key=key, setting_value=value,
                                       setting_type=kind, description=description))
    db.session.commit()
