# wightcars/routes/auth.py
from datetime import datetime
from flask import Blueprint
from flask_jwt_extended import create_access_token, decode_token, jwt_required
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from sqlalchemy.orm import load_only
from ..accounts import register_user, serialize_user
from ..errors import Forbidden, NotFound, Unauthorized, ValidationError, json_body, store_errors
from ..extensions import db
from ..identity import current_identity
from ..models import User
from ..settings import get_setting
from ..utils import api_ok
import logging, time

bp = Blueprint("auth", __name__)
log = logging.getLogger("wightcars.auth")


def _token_for(u: User):
    return create_access_token(identity=str(u.id), additional_claims={"email": u.email})


@bp.post("/register")
def register():
    if not get_setting("enable_user_registration", True):
        raise Forbidden("Registration is currently closed")
    u = register_user(json_body())
    return api_ok({"user": serialize_user(u, private=True), "token": _token_for(u)})


@bp.post("/login")
def login():
    t0 = time.perf_counter()
    data = json_body()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        raise ValidationError("Email and password are required",
                              fields=[k for k, v in (("email", email), ("password", password)) if not v])

    log.info("login:start email=%s", email)

    with store_errors("Login failed"):
        q0 = time.perf_counter()
        u = User.query.filter_by(email=email).first()
        q1 = time.perf_counter()

        if not u or not u.check_password(password):
            log.info("login:rejected email=%s db=%.3fs", email, q1 - q0)
            raise Unauthorized("Invalid email or password")

        if u.is_suspended:
            log.info("login:suspended email=%s", email)
            raise Forbidden("This account has been suspended")

        u.last_login_at = datetime.utcnow()
        db.session.commit()

    log.info("login:ok email=%s db=%.3fs total=%.3fs", email, q1 - q0, time.perf_counter() - t0)
    return api_ok({"user": serialize_user(u, private=True), "token": _token_for(u)})


@bp.get("/me")
@jwt_required()
def me():
    ident = current_identity()
    u = db.session.get(User, ident.user_id)
    return api_ok({"user": serialize_user(u, private=True)})


@bp.post("/verify")
def verify():
    data = json_body()
    token = data.get("token")
    if not token:
        raise ValidationError("Token is required", fields=["token"])
    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException):
        raise Unauthorized("Invalid or expired token")
    u = User.query.options(load_only(User.id, User.email, User.full_name, User.location,
                                     User.avatar_url, User.is_dealer, User.is_verified,
                                     User.is_suspended, User.created_at)).filter_by(id=int(claims["sub"])).first()
    if not u:
        raise NotFound("User not found")
    if u.is_suspended:
        raise Forbidden("This account has been suspended")
    return api_ok({"valid": True, "user": serialize_user(u)})
