# tests/test_tasks.py
import pytest
from sqlalchemy.exc import OperationalError
from wightcars.cli import DEMO_CARS, DEMO_USERS
from wightcars.extensions import db
from wightcars.models import Car, SystemStat, User
from wightcars.tasks import snapshot_daily_stats


@pytest.fixture()
def counters_fail(monkeypatch):
    def _boom(*args, **kwargs):
        raise OperationalError("SELECT count(*)", {}, Exception("server has gone away"))
    return lambda: monkeypatch.setattr(db.session, "execute", _boom)


def test_snapshot_upserts_one_row_per_day(app, client, seller, make_car):
    make_car()
    counters = snapshot_daily_stats(app)
    assert counters["total_users"] == 1
    assert counters["total_cars"] == 1
    assert counters["active_cars"] == 1

    make_car()
    snapshot_daily_stats(app)
    with app.app_context():
        rows = SystemStat.query.all()
        assert len(rows) == 1
        assert rows[0].total_cars == 2


def test_seed_command(app):
    result = app.test_cli_runner().invoke(args=["seed"])
    assert result.exit_code == 0, result.output
    with app.app_context():
        assert User.query.count() == len(DEMO_USERS)
        assert Car.query.count() == len(DEMO_CARS)
        admin = User.query.filter_by(email="john.smith@wightcars.com").one()
        assert admin.is_admin
        assert admin.check_password("admin123")

    # idempotent
    result = app.test_cli_runner().invoke(args=["seed"])
    assert result.exit_code == 0
    with app.app_context():
        assert db.session.query(User).count() == len(DEMO_USERS)


def test_snapshot_command(app):
    result = app.test_cli_runner().invoke(args=["snapshot-stats"])
    assert result.exit_code == 0
    assert "total_users=0" in result.output


def test_failed_counters_leave_snapshot_row_alone(app, seller, make_car, counters_fail, monkeypatch):
    make_car()
    make_car()
    assert snapshot_daily_stats(app)["total_cars"] == 2

    counters_fail()
    assert snapshot_daily_stats(app) is None
    monkeypatch.undo()

    with app.app_context():
        row = SystemStat.query.one()
        assert row.total_cars == 2
        assert row.total_users == 1


def test_snapshot_command_fails_when_counters_fail(app, counters_fail, monkeypatch):
    counters_fail()
    result = app.test_cli_runner().invoke(args=["snapshot-stats"])
    monkeypatch.undo()
    assert result.exit_code != 0
    assert "counter query failed" in result.output
    with app.app_context():
        assert SystemStat.query.count() == 0
