import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # --- Flask Core ---
    SECRET_KEY = os.getenv('SECRET_KEY', 'vsla-secret-key-development-only')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///vsla.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # --- Sessions (JWT carried in an HTTP-only cookie) ---
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-change-me-in-production")
    JWT_TOKEN_LOCATION = ["cookies"]
    JWT_ACCESS_COOKIE_NAME = "vsla_session"
    JWT_ACCESS_COOKIE_PATH = "/"
    JWT_COOKIE_SECURE = _env_flag("COOKIE_SECURE")  # set true behind HTTPS
    JWT_COOKIE_SAMESITE = "Lax"

    # CSRF double-submit is off; the SPA is served from the same origin
    JWT_COOKIE_CSRF_PROTECT = False

    SESSION_TTL_DAYS = int(os.getenv("SESSION_TTL_DAYS", "7"))
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=SESSION_TTL_DAYS)
    JWT_SESSION_COOKIE = False  # persistent cookie, lives as long as the token

    # --- PIN hashing (werkzeug method string) ---
    PIN_HASH_METHOD = os.getenv("PIN_HASH_METHOD", "scrypt")

    # --- Background jobs ---
    ENABLE_SCHEDULER = _env_flag("ENABLE_SCHEDULER", "true")
    MEETING_REMINDER_INTERVAL_MINUTES = int(os.getenv("MEETING_REMINDER_INTERVAL_MINUTES", "1"))
    OVERDUE_REFRESH_INTERVAL_MINUTES = int(os.getenv("OVERDUE_REFRESH_INTERVAL_MINUTES", "60"))
    # start jobs without the werkzeug reloader (gunicorn, waitress...)
    SCHEDULER_STANDALONE = _env_flag("SCHEDULER_STANDALONE")

    # --- Display ---
    CURRENCY = os.getenv("CURRENCY", "UGX")

    # PIN shown by /api/initialize for the bootstrap admin
    INITIAL_ADMIN_PIN = os.getenv("INITIAL_ADMIN_PIN", "123456")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    ENABLE_SCHEDULER = False
    PIN_HASH_METHOD = "scrypt:1024:8:1"  # keep the suite fast
    LOG_LEVEL = "WARNING"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
