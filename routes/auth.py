"""Authentication blueprint providing register and login endpoints."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import create_access_token
from werkzeug.exceptions import BadRequest, Conflict, Unauthorized
from sqlalchemy import func

from models import db
from models.user import User
from utils.request_validation import parse_json_request

auth_bp = Blueprint("auth", __name__)

MIN_PASSWORD_LENGTH = 6


def _normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return (raw_email or "").strip().lower()


def _user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "full_name": user.full_name,
    }


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a new applicant with an email, password, and full name."""
    payload = parse_json_request(request)
    email = _normalize_email(payload.get("email"))
    password = (payload.get("password") or "").strip()
    full_name = (payload.get("full_name") or "").strip()

    if not email or not password:
        raise BadRequest("Email and password are required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )

    # Case-insensitive unique check
    existing = User.query.filter(func.lower(User.email) == email).first()
    if existing is not None:
        raise Conflict("A user with that email already exists.")

    user = User(email=email, role="applicant", full_name=full_name)
    user.set_password(password)

    db.session.add(user)
    db.session.commit()

    return (
        jsonify({"message": "User registered successfully.", "user": _user_payload(user)}),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and return a JWT access token."""
    payload = parse_json_request(request)
    email = _normalize_email(payload.get("email"))
    password = (payload.get("password") or "").strip()

    if not email or not password:
        raise BadRequest("Email and password are required.")

    # Case-insensitive lookup
    user = User.query.filter(func.lower(User.email) == email).first()
    if user is None or not user.is_active or not user.check_password(password):
        raise Unauthorized("Invalid email or password.")

    token = create_access_token(identity=str(user.id))
    return (
        jsonify({"access_token": token, "user": _user_payload(user)}),
        HTTPStatus.OK,
    )
