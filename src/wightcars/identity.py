# wightcars/identity.py
from dataclasses import dataclass

from flask_jwt_extended import get_jwt_identity

from .errors import Forbidden, Unauthorized
from .extensions import db
from .models import User


@dataclass(frozen=True)
class Identity:
    user_id: int
    email: str
    is_admin: bool = False
    is_suspended: bool = False

    @classmethod
    def from_user(cls, user):
        return cls(user_id=user.id, email=user.email,
                   is_admin=bool(user.is_admin), is_suspended=bool(user.is_suspended))

    def can_edit(self, owner_id):
        return self.is_admin or self.user_id == owner_id


def current_identity() -> Identity:
    """Identity of the caller of a ``@jwt_required()`` view."""
    raw = get_jwt_identity()
    try:
        uid = int(raw)
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token")
    user = db.session.get(User, uid)
    if user is None:
        raise Unauthorized("User not found")
    return Identity.from_user(user)


def current_admin() -> Identity:
    ident = current_identity()
    if not ident.is_admin or ident.is_suspended:
        raise Forbidden("Admin access required")
    return ident
