# backend/config.py
import os

# Load .env in local/dev; real deployments inject the environment directly
from dotenv import load_dotenv

load_dotenv()


def _to_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

def _to_int(val: str | None, default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


class Config:
    # ── Core ─────────────────────────────────────────────────────────────────
    DEBUG = _to_bool(os.environ.get("DEBUG") or os.environ.get("FLASK_DEBUG"), False)
    TESTING = False
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev_secret")  # ← override in prod!

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///twiller.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 180,
    }

    # Audio uploads are multipart; keep the 100 MB ceiling of the old backend
    MAX_CONTENT_LENGTH = _to_int(os.environ.get("MAX_UPLOAD_MB"), 100) * 1024 * 1024
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # ── Time gates ──────────────────────────────────────────────────────────
    # Windows are "HH:MM-HH:MM" in APP_TIMEZONE (start inclusive, end exclusive).
    # "off" disables a gate.
    APP_TIMEZONE = os.environ.get("APP_TIMEZONE", "Asia/Kolkata")
    MOBILE_LOGIN_WINDOW = os.environ.get("MOBILE_LOGIN_WINDOW", "10:00-13:00")
    AUDIO_UPLOAD_WINDOW = os.environ.get("AUDIO_UPLOAD_WINDOW", "14:00-19:00")
    PAYMENT_WINDOW = os.environ.get("PAYMENT_WINDOW", "10:00-11:00")

    # ── OTP ─────────────────────────────────────────────────────────────────
    OTP_PEPPER = os.environ.get("OTP_PEPPER", "change-me")  # set long random in prod
    LOGIN_OTP_TTL_MINUTES = _to_int(os.environ.get("LOGIN_OTP_TTL_MINUTES"), 5)
    LANGUAGE_OTP_TTL_MINUTES = _to_int(os.environ.get("LANGUAGE_OTP_TTL_MINUTES"), 5)
    LANGUAGE_OTP_COOLDOWN_SEC = _to_int(os.environ.get("LANGUAGE_OTP_COOLDOWN_SEC"), 60)
    EMAIL_OTP_TTL_MINUTES = _to_int(os.environ.get("EMAIL_OTP_TTL_MINUTES"), 30)

    # ── Features ────────────────────────────────────────────────────────────
    AUDIO_MAX_SECONDS = _to_int(os.environ.get("AUDIO_MAX_SECONDS"), 300)
    LOGIN_HISTORY_LIMIT = _to_int(os.environ.get("LOGIN_HISTORY_LIMIT"), 50)
    RESET_PASSWORD_LENGTH = _to_int(os.environ.get("RESET_PASSWORD_LENGTH"), 12)

    # ── Payments ────────────────────────────────────────────────────────────
    # Dotted path to a callable(session_id) -> bool that confirms a checkout
    # was paid. Unset means plan activation answers 503.
    PAYMENT_VERIFIER = os.environ.get("PAYMENT_VERIFIER")
    SUBSCRIPTION_DAYS = _to_int(os.environ.get("SUBSCRIPTION_DAYS"), 30)

    # ── Brevo (SMTP relay) ──────────────────────────────────────────────────
    BREVO_HOST     = os.environ.get("BREVO_HOST", "smtp-relay.brevo.com")
    BREVO_LOGIN    = os.environ.get("BREVO_LOGIN")
    BREVO_PASSWORD = os.environ.get("BREVO_PASSWORD")
    MAIL_FROM      = os.environ.get("MAIL_FROM", "Twiller <no-reply@twiller.app>")


class ProductionConfig(Config):
    DEBUG = False
    SECRET_KEY = os.environ.get("SECRET_KEY")


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    OTP_PEPPER = "test-pepper"
