# analyticsmp/config.py
import os
import secrets
from dotenv import load_dotenv

load_dotenv()

COLLECT_URL = "https://www.google-analytics.com/collect"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _app_env() -> str:
    return (os.environ.get("APP_ENV") or os.environ.get("FLASK_ENV") or "development").strip().lower()


class Config:
    APP_ENV = _app_env()
    IS_PRODUCTION = APP_ENV in {"production", "prod"}

    # Local developer convenience fallback (production must set SECRET_KEY).
    SECRET_KEY = os.environ.get("SECRET_KEY") or (
        secrets.token_hex(32) if not IS_PRODUCTION else None
    )

    # Property store database. SQLite fallback is for local development only.
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///analyticsmp.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Analytics (Universal Analytics Measurement Protocol v1)
    ANALYTICS_TRACKING_ID = os.environ.get("ANALYTICS_TRACKING_ID")
    ANALYTICS_ENDPOINT = os.environ.get("ANALYTICS_ENDPOINT") or COLLECT_URL
    ANALYTICS_DATA_SOURCE = os.environ.get("ANALYTICS_DATA_SOURCE") or "urlFetch"
    ANALYTICS_HTTP_TIMEOUT = float(os.environ.get("ANALYTICS_HTTP_TIMEOUT", "5"))

    # Exponential backoff around the collect POST is opt-in.
    ANALYTICS_RETRY_ENABLED = _env_flag("ANALYTICS_RETRY_ENABLED", default=False)
    ANALYTICS_RETRY_MAX_ATTEMPTS = int(os.environ.get("ANALYTICS_RETRY_MAX_ATTEMPTS", "5"))

    # Property scope used when no user is signed in (CLI, background jobs).
    ANALYTICS_DEFAULT_SCOPE = os.environ.get("ANALYTICS_DEFAULT_SCOPE") or "script"

    @classmethod
    def validate(cls):
        missing = []
        if cls.IS_PRODUCTION:
            if not os.environ.get("SECRET_KEY"):
                missing.append("SECRET_KEY")
            if not os.environ.get("DATABASE_URL"):
                missing.append("DATABASE_URL")
        if missing:
            missing_csv = ", ".join(missing)
            raise RuntimeError(
                f"Missing required environment variables for production: {missing_csv}"
            )
