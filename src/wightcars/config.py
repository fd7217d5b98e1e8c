import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()


def _flag(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or (
        f"mysql+pymysql://{os.getenv('DB_USER', 'root')}:{os.getenv('DB_PASSWORD', '')}"
        f"@{os.getenv('DB_HOST', '127.0.0.1')}:{os.getenv('DB_PORT', '3306')}/{os.getenv('DB_NAME', 'wightcars')}?charset=utf8mb4"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
    }

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)

    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")]

    # Degraded read-only mode: listing reads answer from the static dataset
    # when the store is unreachable. Writes never fall back.
    STATIC_FALLBACK = _flag("ENABLE_STATIC_FALLBACK")

    SCHEDULER_ENABLED = _flag("SCHEDULER_ENABLED", "true")
    STATS_SNAPSHOT_MINUTES = int(os.getenv("STATS_SNAPSHOT_MINUTES", "60"))

    LISTINGS_DEFAULT_LIMIT = 20
    LISTINGS_MAX_LIMIT = 50
    ANALYTICS_DEFAULT_DAYS = int(os.getenv("ANALYTICS_DEFAULT_DAYS", "30"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
