"""Tests covering registration, login, profile and dashboard endpoints."""

from __future__ import annotations

from io import BytesIO

import pytest
from flask.testing import FlaskClient

from models import db
from models.user import User


def _register(client: FlaskClient, email: str = "maria@example.com") -> dict:
    response = client.post(
        "/auth/register",
        json={"email": email, "password": "secret123", "full_name": "Maria Santos"},
    )
    assert response.status_code == 201
    return response.get_json()["user"]


def _login(client: FlaskClient, email: str, password: str = "secret123") -> dict:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.get_json()['access_token']}"}


def test_register_and_login(client):
    user = _register(client, "Maria@Example.com")

    assert user["email"] == "maria@example.com"
    assert user["role"] == "applicant"
    assert _login(client, "maria@example.com")

    duplicate = client.post(
        "/auth/register", json={"email": "maria@example.com", "password": "secret123"}
    )
    assert duplicate.status_code == 409


@pytest.mark.parametrize(
    "payload, status_code",
    [
        ({"email": "maria@example.com"}, 400),
        ({"password": "secret123"}, 400),
        ({"email": "maria@example.com", "password": "wrong-password"}, 401),
    ],
)
def test_login_validation(client, payload, status_code):
    _register(client)

    response = client.post("/auth/login", json=payload)

    assert response.status_code == status_code


def test_register_rejects_short_password(client):
    response = client.post(
        "/auth/register", json={"email": "short@example.com", "password": "abc"}
    )

    assert response.status_code == 400


def test_user_password_helpers(app):
    with app.app_context():
        user = User(email="helper@example.com", role="applicant")
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()

        assert user.is_active is True
        assert user.is_admin is False
        assert user.check_password("password123")
        assert not user.check_password("nope")


def test_profile_update(client):
    _register(client)
    headers = _login(client, "maria@example.com")

    response = client.patch(
        "/profile",
        json={"phone": "+63 917 000 0000", "desired_destination": "Canada"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.get_json()["desired_destination"] == "Canada"

    rejected = client.patch("/profile", json={"role": "admin"}, headers=headers)
    assert rejected.status_code == 400


def test_profile_document_reused_in_draft(client):
    _register(client)
    headers = _login(client, "maria@example.com")

    uploaded = client.post(
        "/profile/documents",
        data={"document_type": "resume", "document": (BytesIO(b"cv"), "cv.pdf")},
        headers=headers,
        content_type="multipart/form-data",
    )
    assert uploaded.status_code == 201
    profile_document = uploaded.get_json()

    attached = client.post(
        "/applications/draft/documents/from-profile",
        json={"profile_document_id": profile_document["id"]},
        headers=headers,
    )
    assert attached.status_code == 201
    assert attached.get_json()["from_profile"] is True

    listed = client.get("/profile/documents", headers=headers).get_json()
    assert [item["id"] for item in listed] == [profile_document["id"]]

    # The draft still references the blob, so deleting the profile entry keeps the file.
    assert client.delete(
        f"/profile/documents/{profile_document['id']}", headers=headers
    ).status_code == 204
    assert client.get(profile_document["file_url"], headers=headers).status_code == 200


def test_dashboard_summarises_application(client):
    _register(client)
    headers = _login(client, "maria@example.com")
    client.patch("/applications/draft", json={"phone": "+63 917 000 0000"}, headers=headers)
    client.post("/applications/draft/advance", headers=headers)

    payload = client.get("/dashboard", headers=headers).get_json()

    assert payload["profile"]["full_name"] == "Maria Santos"
    assert payload["application"]["current_step"] == 2
    assert payload["application"]["progress_percent"] == 50
    assert payload["notifications"] == []
    assert payload["unread_notifications"] == 0
