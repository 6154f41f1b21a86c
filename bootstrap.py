"""First-run seeding of the administrator account."""

from flask import current_app

from extensions import db
from models import ROLE_ADMIN, User, hash_password, normalize_email

DEFAULT_ADMIN_NAME = "System Admin"
DEFAULT_ADMIN_EMAIL = "admin@example.com"
DEFAULT_ADMIN_PASSWORD = "Admin@123"


def ensure_initial_admin() -> User | None:
    """Create one ADMIN account when none exists yet.

    Requires an application context with the store already connected.
    Returns the created user, or ``None`` when an ADMIN was already present.
    Database errors are re-raised after the session is rolled back.
    """
    if User.query.filter_by(role=ROLE_ADMIN).count() > 0:
        return None

    config = current_app.config
    name = config.get("INIT_ADMIN_NAME") or DEFAULT_ADMIN_NAME
    email = normalize_email(config.get("INIT_ADMIN_EMAIL") or DEFAULT_ADMIN_EMAIL)
    password = config.get("INIT_ADMIN_PASSWORD") or DEFAULT_ADMIN_PASSWORD

    admin = User(name=name, email=email, password=hash_password(password), role=ROLE_ADMIN)
    db.session.add(admin)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Initial ADMIN created: %s", email)
    return admin
