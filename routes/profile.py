"""Standing profile blueprint: personal details and reusable documents."""

from __future__ import annotations

import uuid

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, NotFound

from models import db
from models.document import Document
from models.profile_document import DOCUMENT_TYPES, ProfileDocument
from storage import get_storage
from utils.auth import require_user
from utils.request_validation import parse_json_request
from utils.uploads import file_extension, validate_upload

profile_bp = Blueprint("profile", __name__)

EDITABLE_PROFILE_FIELDS = (
    "full_name",
    "phone",
    "country_of_origin",
    "desired_destination",
    "avatar_url",
)


def _blob_in_use(user, storage_key: str) -> bool:
    """True if an application still points at the profile document's blob."""

    if Document.query.filter_by(storage_key=storage_key).first() is not None:
        return True
    draft = user.application
    return bool(
        draft
        and any(doc.get("storage_key") == storage_key for doc in draft.draft_documents or [])
    )


@profile_bp.route("", methods=["GET"])
@jwt_required()
def get_profile():
    user = require_user()
    return jsonify(user.profile_dict())


@profile_bp.route("", methods=["PATCH"])
@jwt_required()
def update_profile():
    """Update the editable profile fields present in the body."""

    user = require_user()
    data = parse_json_request(request)

    unknown = sorted(set(data) - set(EDITABLE_PROFILE_FIELDS))
    if unknown:
        raise BadRequest(f"Unknown profile fields: {', '.join(unknown)}.")
    for field in EDITABLE_PROFILE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if value is not None and not isinstance(value, str):
            raise BadRequest(f"{field} must be a string.")
        if field == "full_name":
            value = (value or "").strip()
        setattr(user, field, value)

    db.session.commit()
    return jsonify(user.profile_dict())


@profile_bp.route("/documents", methods=["GET"])
@jwt_required()
def list_profile_documents():
    user = require_user()
    documents = (
        ProfileDocument.query.filter_by(user_id=user.id)
        .order_by(ProfileDocument.uploaded_at.desc())
        .all()
    )
    return jsonify([document.to_dict() for document in documents])


@profile_bp.route("/documents", methods=["POST"])
@jwt_required()
def upload_profile_document():
    """Store a document on the profile so later applications can reuse it."""

    user = require_user()
    document_type = (request.form.get("document_type") or "").strip().lower()
    if document_type not in DOCUMENT_TYPES:
        raise BadRequest(
            "document_type must be one of: {}.".format(", ".join(DOCUMENT_TYPES))
        )
    file = validate_upload(request.files.get("document"))

    storage = get_storage()
    key = f"{user.id}/profile/{document_type}-{uuid.uuid4().hex}"
    extension = file_extension(file.filename or "")
    if extension:
        key = f"{key}.{extension}"
    stored_key = storage.save(file, key)

    document = ProfileDocument(
        user_id=user.id,
        document_type=document_type,
        name=file.filename or stored_key,
        storage_key=stored_key,
        file_url=storage.public_url(stored_key),
    )
    db.session.add(document)
    db.session.commit()
    current_app.logger.info("User %s added profile document %s", user.id, document.id)

    return jsonify(document.to_dict()), 201


@profile_bp.route("/documents/<int:document_id>", methods=["DELETE"])
@jwt_required()
def delete_profile_document(document_id: int):
    user = require_user()
    document = ProfileDocument.query.filter_by(id=document_id, user_id=user.id).first()
    if document is None:
        raise NotFound("Profile document not found.")

    storage_key = document.storage_key
    db.session.delete(document)
    db.session.commit()

    if _blob_in_use(user, storage_key):
        return "", 204
    try:
        get_storage().delete(storage_key)
    except OSError:
        current_app.logger.warning(
            "Could not delete stored profile document %s", storage_key, exc_info=True
        )
    return "", 204
