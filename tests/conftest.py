"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient
from flask_jwt_extended import create_access_token

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.user import User  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATE_LIMIT = "1000 per minute"
    REQUIRED_DOCUMENT_TYPES = ("resume", "photo")
    STRIPE_SECRET_KEY = "sk_test"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    BILLING_SUCCESS_URL = "https://example.com/success"
    BILLING_CANCEL_URL = "https://example.com/cancel"


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create a Flask application instance for tests."""

    upload_dir = tmp_path / "uploads"

    class TestConfig(_BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    application = create_app(TestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def app_ctx(app: Flask):
    """Run the test body inside an application context."""

    with app.app_context():
        yield app


@pytest.fixture()
def make_user(app: Flask):
    """Factory persisting a user and returning its id."""

    def _make_user(
        email: str = "applicant@example.com",
        password: str = "secret123",
        role: str = "applicant",
        **profile,
    ) -> int:
        with app.app_context():
            profile.setdefault("full_name", "")
            user = User(email=email, role=role, **profile)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make_user


@pytest.fixture()
def auth_headers(app: Flask):
    """Build bearer headers for a user id."""

    def _auth_headers(user_id: int) -> dict:
        with app.app_context():
            token = create_access_token(identity=str(user_id))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
