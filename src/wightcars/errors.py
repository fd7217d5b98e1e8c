# wightcars/errors.py
import logging
from contextlib import contextmanager

from flask import request
from sqlalchemy.exc import InterfaceError, OperationalError
from werkzeug.exceptions import HTTPException

from .extensions import db
from .utils import api_error

log = logging.getLogger("wightcars.errors")


class ApiError(Exception):
    status = 500
    default_message = "Internal server error"

    def __init__(self, message=None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)


class ValidationError(ApiError):
    status = 400
    default_message = "Invalid input"

    def __init__(self, message=None, fields=None, **extra):
        self.fields = list(fields or [])
        if self.fields:
            extra.setdefault("fields", self.fields)
        super().__init__(message, **extra)


class Unauthorized(ApiError):
    status = 401
    default_message = "Authentication required"


class Forbidden(ApiError):
    status = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status = 404
    default_message = "Not found"


class Conflict(ApiError):
    status = 409
    default_message = "Conflict"


class StoreUnavailable(ApiError):
    status = 503
    default_message = "Database unavailable"


def json_body():
    """The request's JSON object; an absent body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(e):
        if isinstance(e, StoreUnavailable):
            log.warning("store unavailable: %s", e.message)
        return api_error(e.message, e.status, **e.extra)

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return api_error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(e):
        log.exception("unhandled error")
        return api_error("Internal server error", 500)


@contextmanager
def store_errors(message):
    """Translate lost-connection errors from the store into StoreUnavailable."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        db.session.rollback()
        log.error("%s: %s", message, getattr(e, "orig", e))
        raise StoreUnavailable(message) from e
