import logging

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import aliased

from .errors import NotFound, ValidationError, store_errors
from .extensions import db
from .models import Car, Message, User
from .utils import iso

log = logging.getLogger("wightcars.messages")

Sender = aliased(User, name="sender")
Recipient = aliased(User, name="recipient")


def serialize_message(m: Message, car=None, sender=None, recipient=None):
    data = {
        "id": m.id,
        "car_id": m.car_id,
        "sender_id": m.sender_id,
        "recipient_id": m.recipient_id,
        "subject": m.subject,
        "message": m.message,
        "is_read": bool(m.is_read),
        "created_at": iso(m.created_at),
    }
    if car is not None:
        data["car"] = {"id": car.id, "title": car.title, "make": car.make, "model": car.model,
                       "year": car.year, "featured_image": car.featured_image}
    if sender is not None:
        data["sender"] = {"id": sender.id, "full_name": sender.full_name, "email": sender.email}
    if recipient is not None:
        data["recipient"] = {"id": recipient.id, "full_name": recipient.full_name, "email": recipient.email}
    return data


def _thread_query():
    return (
        select(Message, Car, Sender, Recipient)
        .join(Car, Message.car_id == Car.id)
        .join(Sender, Message.sender_id == Sender.id)
        .join(Recipient, Message.recipient_id == Recipient.id)
    )


def _as_id(value, name, errors):
    if isinstance(value, bool):
        errors.append(name)
        return None
    try:
        v = int(value)
    except (TypeError, ValueError):
        errors.append(name)
        return None
    if v <= 0:
        errors.append(name)
    return v


def _is_reply(car, sender_id, recipient_id):
    """The owner may answer anyone who has already enquired about the car."""
    if car.user_id != sender_id:
        return False
    return db.session.execute(
        select(Message.id).where(Message.car_id == car.id,
                                 Message.sender_id == recipient_id,
                                 Message.recipient_id == sender_id).limit(1)
    ).first() is not None


def send_message(identity, data):
    data = data or {}
    errors = []
    car_id = _as_id(data.get("car_id"), "car_id", errors)
    recipient_id = _as_id(data.get("recipient_id"), "recipient_id", errors)
    body = (data.get("message") or "").strip() if isinstance(data.get("message"), str) else ""
    if not body:
        errors.append("message")
    if errors:
        raise ValidationError("Car ID, recipient ID, and message are required", fields=errors)
    if recipient_id == identity.user_id:
        raise ValidationError("Cannot send message to yourself", fields=["recipient_id"])

    with store_errors("Failed to send message"):
        car = db.session.get(Car, car_id)
        if car is None:
            raise NotFound("Car not found")
        if car.user_id != recipient_id and not _is_reply(car, identity.user_id, recipient_id):
            raise ValidationError("Invalid recipient for this car", fields=["recipient_id"])
        subject = (data.get("subject") or "").strip() or f"Enquiry about {car.year} {car.make} {car.model}"
        m = Message(car_id=car_id, sender_id=identity.user_id, recipient_id=recipient_id,
                    subject=subject, message=body)
        db.session.add(m)
        db.session.commit()
        log.info("message:sent id=%s car=%s from=%s to=%s", m.id, car_id, identity.user_id, recipient_id)
        return serialize_message(m)


def inbox(user_id):
    with store_errors("Failed to fetch messages"):
        rows = db.session.execute(
            _thread_query()
            .where(or_(Message.sender_id == user_id, Message.recipient_id == user_id))
            .order_by(Message.created_at.desc(), Message.id.desc())
        ).all()
    return [serialize_message(*row) for row in rows]


def mark_read(user_id, message_id):
    with store_errors("Failed to mark message as read"):
        updated = db.session.execute(
            update(Message)
            .where(Message.id == message_id, Message.recipient_id == user_id)
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not updated:
            db.session.rollback()
            raise NotFound("Message not found")
        db.session.commit()


def conversation(user_id, car_id, other_user_id):
    with store_errors("Failed to fetch conversation"):
        rows = db.session.execute(
            _thread_query()
            .where(
                Message.car_id == car_id,
                or_(
                    and_(Message.sender_id == user_id, Message.recipient_id == other_user_id),
                    and_(Message.sender_id == other_user_id, Message.recipient_id == user_id),
                ),
            )
            .order_by(Message.created_at.asc(), Message.id.asc())
        ).all()
    return [serialize_message(*row) for row in rows]
