from flask import Blueprint
from flask_jwt_extended import jwt_required
from .. import messaging
from ..errors import json_body
from ..identity import current_identity
from ..utils import api_ok

bp = Blueprint("messages", __name__)


@bp.get("")
@jwt_required()
def inbox():
    ident = current_identity()
    return api_ok(messaging.inbox(ident.user_id))


@bp.post("")
@jwt_required()
def send():
    ident = current_identity()
    m = messaging.send_message(ident, json_body())
    return api_ok(m, status=201, message="Message sent successfully")


@bp.put("/<int:message_id>/read")
@jwt_required()
def mark_read(message_id):
    ident = current_identity()
    messaging.mark_read(ident.user_id, message_id)
    return api_ok({"id": message_id, "is_read": True}, message="Message marked as read")


@bp.get("/conversation/<int:car_id>/<int:other_user_id>")
@jwt_required()
def conversation(car_id, other_user_id):
    ident = current_identity()
    return api_ok(messaging.conversation(ident.user_id, car_id, other_user_id))
