# tests/conftest.py
import os
import sys

import pytest
from cachelib import SimpleCache

# so `from app import create_app` works when run from the repo root
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import create_app  # noqa: E402
from extensions import db  # noqa: E402
from models import ROLE_ADMIN, ROLE_STAFF, User  # noqa: E402

ADMIN_EMAIL = "boss@warehouse.test"
STAFF_EMAIL = "clerk@warehouse.test"
PASSWORD = "secret-pass"


def make_config(**overrides):
    config = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SESSION_CACHELIB": SimpleCache(),
        "SECRET_KEY": "test-secret",
        "CLIENT_ORIGIN": "http://localhost:3000",
        "INIT_ADMIN_NAME": None,
        "INIT_ADMIN_EMAIL": None,
        "INIT_ADMIN_PASSWORD": None,
    }
    config.update(overrides)
    return config


@pytest.fixture()
def app():
    app = create_app(make_config())
    with app.app_context():
        db.create_all()
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def add_user(app, email, role, password=PASSWORD, name="Test User"):
    with app.app_context():
        user = User(name=name, email=email, role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user.id


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture()
def admin_id(app):
    return add_user(app, ADMIN_EMAIL, ROLE_ADMIN, name="Boss")


@pytest.fixture()
def staff_id(app):
    return add_user(app, STAFF_EMAIL, ROLE_STAFF, name="Clerk")


@pytest.fixture()
def admin_client(app, admin_id):
    client = app.test_client()
    assert login(client, ADMIN_EMAIL).status_code == 200
    return client


@pytest.fixture()
def staff_client(app, staff_id):
    client = app.test_client()
    assert login(client, STAFF_EMAIL).status_code == 200
    return client
