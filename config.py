import os
from datetime import timedelta

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from models import MAX_PASSWORD_BYTES

REDACTED = "********"

# Keys reported by ``describe_config``; the secret ones are masked.
SUMMARY_KEYS = (
    "APP_ENV",
    "HOST",
    "PORT",
    "CLIENT_ORIGIN",
    "SQLALCHEMY_DATABASE_URI",
    "SESSION_TYPE",
    "SESSION_DIR",
    "SESSION_COOKIE_SECURE",
    "PERMANENT_SESSION_LIFETIME",
    "MAX_CONTENT_LENGTH",
    "SECRET_KEY",
    "INIT_ADMIN_NAME",
    "INIT_ADMIN_EMAIL",
    "INIT_ADMIN_PASSWORD",
)
SECRET_KEYS = {"SECRET_KEY", "INIT_ADMIN_PASSWORD"}

APP_ENV = os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development"


class Config:
    APP_ENV = APP_ENV
    HOST = os.getenv("HOST", "127.0.0.1")
    PORT = os.getenv("PORT", "5000")
    CLIENT_ORIGIN = os.getenv("CLIENT_ORIGIN", "http://localhost:3000")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    SECRET_KEY = os.getenv("SESSION_SECRET", "dev_secret_change_me")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URI", "sqlite:///warehouse.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Server-side sessions (Flask-Session over cachelib)
    SESSION_TYPE = "cachelib"
    SESSION_DIR = os.getenv("SESSION_DIR", "flask_session")
    SESSION_CACHELIB = None  # built from SESSION_DIR by create_app when unset
    SESSION_PERMANENT = True
    SESSION_REFRESH_EACH_REQUEST = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = APP_ENV == "production"
    PERMANENT_SESSION_LIFETIME = timedelta(hours=8)

    # Initial administrator; unset values fall back to the bootstrap defaults
    INIT_ADMIN_NAME = os.getenv("INIT_ADMIN_NAME")
    INIT_ADMIN_EMAIL = os.getenv("INIT_ADMIN_EMAIL")
    INIT_ADMIN_PASSWORD = os.getenv("INIT_ADMIN_PASSWORD")

    # Request bodies above this size are rejected with 413; sized for xlsx imports
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024


def validate_config(config) -> None:
    """Normalize and check values that cannot be trusted as raw env strings.

    Raises ``ValueError`` with a readable message; called as the first
    startup step so a bad value stops the process before it touches the store.
    """
    try:
        port = int(config["PORT"])
    except (TypeError, ValueError):
        raise ValueError(f"PORT must be an integer, got {config['PORT']!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"PORT out of range: {port}")
    config["PORT"] = port

    if not config.get("SECRET_KEY"):
        raise ValueError("SESSION_SECRET must not be empty")
    if not config.get("CLIENT_ORIGIN"):
        raise ValueError("CLIENT_ORIGIN must not be empty")

    email = config.get("INIT_ADMIN_EMAIL")
    if email and not email.strip():
        raise ValueError("INIT_ADMIN_EMAIL must not be blank")
    password = config.get("INIT_ADMIN_PASSWORD")
    if password and len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"INIT_ADMIN_PASSWORD must be at most {MAX_PASSWORD_BYTES} bytes")


def _redact_uri(uri: str) -> str:
    try:
        return make_url(uri).render_as_string(hide_password=True)
    except ArgumentError:
        return REDACTED


def describe_config(config) -> dict:
    """Return the resolved settings with secrets masked, for the startup log."""
    summary = {}
    for key in SUMMARY_KEYS:
        value = config.get(key)
        if key in SECRET_KEYS:
            value = REDACTED if value else None
        elif key == "SQLALCHEMY_DATABASE_URI" and value:
            value = _redact_uri(value)
        summary[key] = value
    return summary
