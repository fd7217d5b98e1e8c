from datetime import datetime
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from .analytics import daily_counters
from .extensions import db
from .models import SystemStat


def snapshot_daily_stats(app=None):
    """Upsert today's ``system_stats`` row (with app context and a clean session).

    Returns the counters, or None when a query failed and the row was left as is.
    """
    if app is None:
        app = current_app._get_current_object()
    with app.app_context():
        try:
            today = datetime.utcnow().date()
            try:
                counters = daily_counters()
            except SQLAlchemyError:
                db.session.rollback()
                app.logger.exception("stats snapshot %s skipped: counter query failed", today)
                return None
            row = SystemStat.query.filter_by(stat_date=today).first()
            if row is None:
                row = SystemStat(stat_date=today)
                db.session.add(row)
            for key, value in counters.items():
                setattr(row, key, value)
            db.session.commit()
            app.logger.info("stats snapshot %s users=%s cars=%s", today,
                            counters["total_users"], counters["total_cars"])
            return counters
        finally:
            db.session.remove()


def schedule_jobs(scheduler, app):
    scheduler.add_job(
        id="snapshot_daily_stats",
        func=snapshot_daily_stats,
        trigger="interval",
        minutes=app.config.get("STATS_SNAPSHOT_MINUTES", 60),
        args=[app],
        coalesce=True,
        max_instances=1,
    )
