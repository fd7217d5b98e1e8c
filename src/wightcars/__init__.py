import logging

from flask import Flask

from .config import Config
from .extensions import db, migrate, bcrypt, jwt, cors, scheduler
from .errors import register_error_handlers
from .routes import register_blueprints
from .tasks import schedule_jobs
from .cli import register_cli
from .utils import api_error, api_ok


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config())
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(level=app.config["LOG_LEVEL"],
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("wightcars").setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    jwt.init_app(app)

    cors.init_app(
        app,
        resources={
            r"/api/*": {
                "origins": app.config["CORS_ORIGINS"],
                "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization"],
                "supports_credentials": True,
            },
        },
    )

    register_error_handlers(app)
    register_blueprints(app)

    @app.get("/api/health")
    def health():
        return api_ok({"status": "ok", "degraded_fallback": bool(app.config["STATIC_FALLBACK"])})

    @jwt.unauthorized_loader
    def jwt_missing(reason):
        return api_error(f"Authentication required: {reason}", 401)

    @jwt.invalid_token_loader
    def jwt_invalid(reason):
        return api_error(f"Invalid token: {reason}", 401)

    @jwt.expired_token_loader
    def jwt_expired(header, data):
        return api_error("Token expired", 401)

    if app.config["SCHEDULER_ENABLED"]:
        scheduler.init_app(app)
        schedule_jobs(scheduler, app)
        scheduler.start()
        app.logger.info("scheduler started: stats snapshot every %s min",
                        app.config["STATS_SNAPSHOT_MINUTES"])

    register_cli(app)
    return app
