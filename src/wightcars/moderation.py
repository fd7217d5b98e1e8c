# wightcars/moderation.py
import logging
from datetime import datetime

from sqlalchemy import func, or_, select, update

from .accounts import serialize_report
from .errors import NotFound, ValidationError, store_errors
from .extensions import db
from .filters import page_count
from .listings import serialize_car
from .models import MODERATION_STATUSES, REPORT_STATUSES, AdminLog, Car, Message, Report, User
from .utils import iso

log = logging.getLogger("wightcars.admin")

USER_STATUS_FILTERS = {
    "verified": User.is_verified.is_(True),
    "unverified": User.is_verified.is_(False),
    "suspended": User.is_suspended.is_(True),
    "dealer": User.is_dealer.is_(True),
    "admin": User.is_admin.is_(True),
}
USER_SORT_COLUMNS = {
    "created_at": User.created_at,
    "email": User.email,
    "full_name": User.full_name,
    "last_login_at": User.last_login_at,
}
MODERATION_ACTIONS = {"approve": "approved", "reject": "rejected", "flag": "flagged"}


def log_action(identity, action, target_type, target_id=None, details=None, ip=None, user_agent=None):
    db.session.add(AdminLog(
        admin_id=identity.user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
        ip_address=ip,
        user_agent=(user_agent or "")[:255] or None,
    ))
    log.info("admin:%s admin=%s target=%s:%s", action, identity.user_id, target_type, target_id)


def _page_args(page, limit):
    page = max(page or 1, 1)
    limit = min(max(limit or 20, 1), 100)
    return page, limit, (page - 1) * limit


# ---- Users ----

def list_users(search=None, status=None, sort_by="created_at", sort_order="DESC", page=1, limit=20):
    page, limit, offset = _page_args(page, limit)
    conds = []
    if search:
        like = f"%{search}%"
        conds.append(or_(User.email.ilike(like), User.full_name.ilike(like), User.location.ilike(like)))
    if status in USER_STATUS_FILTERS:
        conds.append(USER_STATUS_FILTERS[status])
    column = USER_SORT_COLUMNS.get(sort_by, User.created_at)
    order = column.asc() if str(sort_order).upper() == "ASC" else column.desc()

    car_count = (select(func.count(Car.id)).where(Car.user_id == User.id)
                 .correlate(User).scalar_subquery())
    active_cars = (select(func.count(Car.id)).where(Car.user_id == User.id, Car.status == "active")
                   .correlate(User).scalar_subquery())
    message_count = (select(func.count(Message.id)).where(Message.sender_id == User.id)
                     .correlate(User).scalar_subquery())

    with store_errors("Failed to load users"):
        total = db.session.execute(select(func.count(User.id)).where(*conds)).scalar_one()
        rows = db.session.execute(
            select(User, car_count.label("car_count"), active_cars.label("active_cars"),
                   message_count.label("message_count"))
            .where(*conds)
            .order_by(order, User.id.desc())
            .limit(limit).offset(offset)
        ).all()

    users = []
    for u, cars, active, messages in rows:
        users.append({
            "id": u.id,
            "email": u.email,
            "full_name": u.full_name,
            "location": u.location,
            "is_verified": bool(u.is_verified),
            "is_dealer": bool(u.is_dealer),
            "is_admin": bool(u.is_admin),
            "is_suspended": bool(u.is_suspended),
            "suspension_reason": u.suspension_reason,
            "last_login_at": iso(u.last_login_at),
            "created_at": iso(u.created_at),
            "car_count": cars,
            "active_cars": active,
            "message_count": messages,
        })
    return {"users": users,
            "pagination": {"page": page, "limit": limit, "total": total, "pages": page_count(total, limit)}}


def _user(user_id):
    u = db.session.get(User, user_id)
    if u is None:
        raise NotFound("User not found")
    return u


def verify_user(identity, user_id, notes=None, **meta):
    with store_errors("Failed to verify user"):
        u = _user(user_id)
        u.is_verified = True
        u.verification_notes = notes
        log_action(identity, "verify_user", "user", user_id, notes, **meta)
        db.session.commit()


def suspend_user(identity, user_id, reason, duration=None, **meta):
    """Suspend an account and withdraw its active listings."""
    if not reason:
        raise ValidationError("A suspension reason is required", fields=["reason"])
    if user_id == identity.user_id:
        raise ValidationError("Admins cannot suspend themselves", fields=["userId"])
    with store_errors("Failed to suspend user"):
        u = _user(user_id)
        u.is_suspended = True
        u.suspension_reason = reason
        u.suspended_at = datetime.utcnow()
        u.suspended_by = identity.user_id
        withdrawn = db.session.execute(
            update(Car).where(Car.user_id == user_id, Car.status == "active")
            .values(status="withdrawn", updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        ).rowcount
        details = f"Reason: {reason}" + (f", Duration: {duration} days" if duration else ", Permanent")
        log_action(identity, "suspend_user", "user", user_id, details, **meta)
        db.session.commit()
        return {"withdrawn_listings": withdrawn}


def unsuspend_user(identity, user_id, **meta):
    with store_errors("Failed to unsuspend user"):
        u = _user(user_id)
        u.is_suspended = False
        u.suspension_reason = None
        u.suspended_at = None
        u.suspended_by = None
        log_action(identity, "unsuspend_user", "user", user_id, **meta)
        db.session.commit()


# ---- Listings ----

def moderation_queue(status="pending", page=1, limit=20):
    if status not in MODERATION_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(MODERATION_STATUSES)}", fields=["status"])
    page, limit, offset = _page_args(page, limit)
    with store_errors("Failed to load cars for moderation"):
        total = db.session.execute(
            select(func.count(Car.id)).where(Car.moderation_status == status)).scalar_one()
        rows = db.session.execute(
            select(Car, User).join(User, Car.user_id == User.id)
            .where(Car.moderation_status == status)
            .order_by(Car.created_at.asc(), Car.id.asc())
            .limit(limit).offset(offset)
        ).all()
    cars = [serialize_car(c, {"id": u.id, "full_name": u.full_name, "email": u.email,
                              "is_verified": bool(u.is_verified), "is_dealer": bool(u.is_dealer)})
            for c, u in rows]
    return {"cars": cars,
            "pagination": {"page": page, "limit": limit, "total": total, "pages": page_count(total, limit)}}


def moderate_car(identity, car_id, action, notes=None, **meta):
    if action not in MODERATION_ACTIONS:
        raise ValidationError("Invalid moderation action", fields=["action"])
    with store_errors("Failed to moderate car listing"):
        car = db.session.get(Car, car_id)
        if car is None:
            raise NotFound("Car not found")
        car.moderation_status = MODERATION_ACTIONS[action]
        car.moderated_by = identity.user_id
        car.moderated_at = datetime.utcnow()
        car.moderation_notes = notes
        car.is_flagged = action == "flag"
        car.flag_reason = notes if action == "flag" else None
        if action in ("reject", "flag"):
            car.status = "withdrawn"
        log_action(identity, f"moderate_car_{action}", "car", car_id, notes, **meta)
        db.session.commit()
        return serialize_car(car)


def feature_car(identity, car_id, featured=True, **meta):
    with store_errors("Failed to update featured flag"):
        car = db.session.get(Car, car_id)
        if car is None:
            raise NotFound("Car not found")
        car.is_featured = bool(featured)
        log_action(identity, "feature_car" if featured else "unfeature_car", "car", car_id, **meta)
        db.session.commit()
        return serialize_car(car)


# ---- Reports ----

def list_reports(status="open", page=1, limit=20):
    page, limit, offset = _page_args(page, limit)
    with store_errors("Failed to load reports"):
        total = db.session.execute(
            select(func.count(Report.id)).where(Report.status == status)).scalar_one()
        items = (Report.query.filter(Report.status == status)
                 .order_by(Report.created_at.desc(), Report.id.desc())
                 .limit(limit).offset(offset).all())
        reports = []
        for r in items:
            data = serialize_report(r)
            data.update({
                "reporter_name": r.reporter.full_name,
                "reporter_email": r.reporter.email,
                "reported_user_name": r.reported_user.full_name if r.reported_user else None,
                "reported_user_email": r.reported_user.email if r.reported_user else None,
                "reported_car_title": r.reported_car.title if r.reported_car else None,
                "assigned_admin_name": r.assignee.full_name if r.assignee else None,
            })
            reports.append(data)
    return {"reports": reports,
            "pagination": {"page": page, "limit": limit, "total": total, "pages": page_count(total, limit)}}


def update_report(identity, report_id, data, **meta):
    data = data or {}
    status = data.get("status")
    if status is not None and status not in REPORT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(REPORT_STATUSES)}", fields=["status"])
    with store_errors("Failed to update report"):
        r = db.session.get(Report, report_id)
        if r is None:
            raise NotFound("Report not found")
        if "assigned_to" in data:
            assignee = data["assigned_to"]
            if assignee is not None:
                admin = db.session.get(User, assignee)
                if admin is None or not admin.is_admin:
                    raise ValidationError("Reports can only be assigned to admins", fields=["assigned_to"])
            r.assigned_to = assignee
        if status:
            r.status = status
        if "resolution_notes" in data:
            r.resolution_notes = data["resolution_notes"]
        log_action(identity, "update_report", "report", report_id, f"status={r.status}", **meta)
        db.session.commit()
        return serialize_report(r)
