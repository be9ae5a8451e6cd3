"""Tests for the Flask application factory."""
from __future__ import annotations


def test_health_endpoint_returns_ok(client, tmp_path):
    """The health endpoint should respond with an OK payload and create uploads dir."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}
    # uploads dir is configured via TestConfig in conftest and created on app init
    assert (tmp_path / "uploads").is_dir()


def test_blueprints_registered(app):
    """Application factory should register expected blueprints."""
    bps = set(app.blueprints.keys())
    required = {
        "auth",
        "profile",
        "applications",
        "payments",
        "jobs",
        "dashboard",
        "admin",
        "billing",
        "files",
    }
    assert required.issubset(bps)


def test_required_document_types_come_from_config(app):
    assert app.config["REQUIRED_DOCUMENT_TYPES"] == ("resume", "photo")
