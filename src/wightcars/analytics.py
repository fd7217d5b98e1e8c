# wightcars/analytics.py
import logging
from datetime import datetime, timedelta
from functools import wraps

from sqlalchemy import case, func, literal, select, union_all
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import AdminLog, Car, Message, Report, User
from .utils import iso

log = logging.getLogger("wightcars.analytics")

# (upper bound in pence exclusive, label); the last bucket is open-ended
PRICE_BUCKETS = [
    (500000, "Under £5,000"),
    (1000000, "£5,000 - £10,000"),
    (2000000, "£10,000 - £20,000"),
    (3000000, "£20,000 - £30,000"),
    (None, "Over £30,000"),
]

MAX_PERIOD_DAYS = 3650

EMPTY_USER_STATS = {"total_users": 0, "verified_users": 0, "dealers": 0, "suspended_users": 0, "new_today": 0}
EMPTY_CAR_STATS = {"total_cars": 0, "active_cars": 0, "sold_cars": 0, "pending_moderation": 0,
                   "flagged_cars": 0, "new_today": 0, "avg_price": 0}
EMPTY_MESSAGE_STATS = {"total_messages": 0, "new_today": 0, "active_senders": 0, "active_recipients": 0}


def _safe(empty):
    """Return a copy of ``empty`` instead of raising when the store fails."""
    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except SQLAlchemyError:
                db.session.rollback()
                log.exception("analytics query %s failed", fn.__name__)
                return empty() if callable(empty) else empty
        return wrapper
    return deco


def _today():
    now = datetime.utcnow()
    return datetime(now.year, now.month, now.day)


def _since(days):
    return _today() - timedelta(days=days)


def _count_if(cond):
    return func.count(case((cond, 1)))


def _pence(value):
    return int(round(value)) if value is not None else 0


@_safe(lambda: dict(EMPTY_USER_STATS))
def user_stats():
    today = _today()
    row = db.session.execute(select(
        func.count(User.id).label("total_users"),
        _count_if(User.is_verified.is_(True)).label("verified_users"),
        _count_if(User.is_dealer.is_(True)).label("dealers"),
        _count_if(User.is_suspended.is_(True)).label("suspended_users"),
        _count_if(User.created_at >= today).label("new_today"),
    )).one()
    return dict(row._mapping)


@_safe(lambda: dict(EMPTY_CAR_STATS))
def car_stats():
    today = _today()
    row = db.session.execute(select(
        func.count(Car.id).label("total_cars"),
        _count_if(Car.status == "active").label("active_cars"),
        _count_if(Car.status == "sold").label("sold_cars"),
        _count_if(Car.moderation_status == "pending").label("pending_moderation"),
        _count_if(Car.is_flagged.is_(True)).label("flagged_cars"),
        _count_if(Car.created_at >= today).label("new_today"),
        func.avg(Car.price).label("avg_price"),
    )).one()
    data = dict(row._mapping)
    data["avg_price"] = _pence(data["avg_price"])
    return data


@_safe(lambda: dict(EMPTY_MESSAGE_STATS))
def message_stats():
    today = _today()
    row = db.session.execute(select(
        func.count(Message.id).label("total_messages"),
        _count_if(Message.created_at >= today).label("new_today"),
        func.count(Message.sender_id.distinct()).label("active_senders"),
        func.count(Message.recipient_id.distinct()).label("active_recipients"),
    )).one()
    return dict(row._mapping)


@_safe(list)
def today_activity():
    today = _today()
    stmt = union_all(
        select(literal("user").label("type"), func.count(User.id).label("count"),
               literal("New Users").label("label")).where(User.created_at >= today),
        select(literal("car"), func.count(Car.id), literal("New Listings")).where(Car.created_at >= today),
        select(literal("message"), func.count(Message.id), literal("New Messages")).where(Message.created_at >= today),
    )
    return [dict(r._mapping) for r in db.session.execute(stmt).all()]


@_safe(list)
def recent_admin_activity(limit=10):
    rows = db.session.execute(
        select(AdminLog, User.full_name)
        .join(User, AdminLog.admin_id == User.id)
        .order_by(AdminLog.created_at.desc(), AdminLog.id.desc())
        .limit(limit)
    ).all()
    return [{
        "id": entry.id,
        "admin_id": entry.admin_id,
        "admin_name": name,
        "action": entry.action,
        "target_type": entry.target_type,
        "target_id": entry.target_id,
        "details": entry.details,
        "ip_address": entry.ip_address,
        "created_at": iso(entry.created_at),
    } for entry, name in rows]


@_safe(0)
def open_reports():
    return db.session.execute(select(func.count(Report.id)).where(Report.status == "open")).scalar_one()


@_safe(0)
def pending_moderation():
    return db.session.execute(
        select(func.count(Car.id)).where(Car.moderation_status == "pending")
    ).scalar_one()


def overview():
    return {
        "userStats": user_stats(),
        "carStats": car_stats(),
        "messageStats": message_stats(),
        "todayStats": today_activity(),
        "recentActivity": recent_admin_activity(),
        "pendingReports": open_reports(),
        "pendingModeration": pending_moderation(),
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }


# ---- Windowed series ----

def _day(column):
    return func.date(column)


@_safe(list)
def user_growth(days):
    day = _day(User.created_at).label("date")
    rows = db.session.execute(
        select(day, func.count(User.id).label("new_users"))
        .where(User.created_at >= _since(days))
        .group_by(day).order_by(day)
    ).all()
    return [{"date": str(r.date), "new_users": r.new_users} for r in rows]


@_safe(list)
def listing_growth(days):
    day = _day(Car.created_at).label("date")
    rows = db.session.execute(
        select(day,
               func.count(Car.id).label("new_listings"),
               _count_if(Car.status == "sold").label("sold_count"),
               func.avg(Car.price).label("avg_price"))
        .where(Car.created_at >= _since(days))
        .group_by(day).order_by(day)
    ).all()
    return [{"date": str(r.date), "new_listings": r.new_listings,
             "sold_count": r.sold_count, "avg_price": _pence(r.avg_price)} for r in rows]


@_safe(list)
def popular_makes(days, limit=10):
    count = func.count(Car.id).label("count")
    rows = db.session.execute(
        select(Car.make, count, func.avg(Car.price).label("avg_price"))
        .where(Car.created_at >= _since(days))
        .group_by(Car.make)
        .order_by(count.desc(), Car.make)
        .limit(limit)
    ).all()
    return [{"make": r.make, "count": r.count, "avg_price": _pence(r.avg_price)} for r in rows]


def _price_bucket():
    whens = [(Car.price < bound, label) for bound, label in PRICE_BUCKETS if bound is not None]
    return case(*whens, else_=PRICE_BUCKETS[-1][1])


@_safe(list)
def price_ranges(days):
    bucket = _price_bucket().label("price_range")
    rows = db.session.execute(
        select(bucket, func.count(Car.id).label("count"))
        .where(Car.created_at >= _since(days))
        .group_by(bucket)
        .order_by(func.min(Car.price))
    ).all()
    return [{"price_range": r.price_range, "count": r.count} for r in rows]


@_safe(list)
def location_stats(limit=10):
    count = func.count(User.id).label("user_count")
    rows = db.session.execute(
        select(User.location, count)
        .where(User.location.isnot(None), User.location != "")
        .group_by(User.location)
        .order_by(count.desc(), User.location)
        .limit(limit)
    ).all()
    return [{"location": r.location, "user_count": r.user_count} for r in rows]


def analytics(days):
    return {
        "userGrowth": user_growth(days),
        "carStats": listing_growth(days),
        "popularMakes": popular_makes(days),
        "priceRanges": price_ranges(days),
        "locationStats": location_stats(),
        "period": days,
    }


def daily_counters():
    """Counters persisted by the stats snapshot job.

    Uses the unguarded queries: a store failure raises instead of zeroing.
    """
    users = user_stats.__wrapped__()
    cars = car_stats.__wrapped__()
    messages = message_stats.__wrapped__()
    return {
        "total_users": users["total_users"],
        "new_users_today": users["new_today"],
        "total_cars": cars["total_cars"],
        "new_cars_today": cars["new_today"],
        "active_cars": cars["active_cars"],
        "total_messages": messages["total_messages"],
        "new_messages_today": messages["new_today"],
    }
