"""Application wizard blueprint: draft autosave, step navigation, documents, submission."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, NotFound

from models.application import Application
from services.wizard import STEPS, ApplicationWizard, WizardContext
from utils.auth import require_user
from utils.request_validation import parse_json_request
from utils.uploads import validate_upload

applications_bp = Blueprint("applications", __name__)


def _wizard() -> ApplicationWizard:
    return ApplicationWizard(WizardContext.for_user(require_user()))


def _optional_int(data: dict, key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise BadRequest(f"{key} must be an integer.")
    return value


@applications_bp.route("/draft", methods=["GET"])
@jwt_required()
def get_draft():
    """Return the draft to resume, pre-populated from the profile."""

    wizard = _wizard()
    return jsonify(
        {
            "draft": wizard.load(),
            "steps": [{"id": step, "name": name} for step, name in STEPS],
        }
    )


@applications_bp.route("/draft", methods=["PATCH"])
@jwt_required()
def autosave_draft():
    """Autosave edited fields. Never blocked by step validation."""

    data = dict(parse_json_request(request))
    expected_version = _optional_int(data, "version")
    data.pop("version", None)

    result = _wizard().autosave(data, expected_version=expected_version)
    status = 200 if result.ok else 503
    return jsonify(result.to_dict()), status


@applications_bp.route("/draft/steps/<int:step>/validation", methods=["GET"])
@jwt_required()
def validate_step(step: int):
    return jsonify(_wizard().validate(step).to_dict())


@applications_bp.route("/draft/advance", methods=["POST"])
@jwt_required()
def advance_step():
    """Move to the next step if the current step's gate holds."""

    data = parse_json_request(request, allow_empty=True) if request.data else {}
    result = _wizard().advance(_optional_int(data, "step"))
    return jsonify(result.to_dict())


@applications_bp.route("/draft/retreat", methods=["POST"])
@jwt_required()
def retreat_step():
    require_user()
    data = parse_json_request(request, required_keys=["step"])
    step = _optional_int(data, "step")
    return jsonify({"step": ApplicationWizard.retreat(step)})


@applications_bp.route("/draft/documents", methods=["POST"])
@jwt_required()
def upload_document():
    """Upload a file for one document type, replacing any earlier one."""

    document_type = (request.form.get("document_type") or "").strip().lower()
    if not document_type:
        raise BadRequest("document_type is required.")
    file = validate_upload(request.files.get("document"))

    document = _wizard().attach_upload(document_type, file)
    return jsonify(document), 201


@applications_bp.route("/draft/documents/from-profile", methods=["POST"])
@jwt_required()
def attach_profile_document():
    data = parse_json_request(request, required_keys=["profile_document_id"])
    profile_document_id = _optional_int(data, "profile_document_id")
    document = _wizard().attach_profile_document(profile_document_id)
    return jsonify(document), 201


@applications_bp.route("/draft/documents/<document_type>", methods=["DELETE"])
@jwt_required()
def remove_document(document_type: str):
    _wizard().remove_document(document_type.lower())
    return "", 204


@applications_bp.route("/draft/submit", methods=["POST"])
@jwt_required()
def submit_application():
    application = _wizard().submit()
    return jsonify(application.to_dict()), 201


@applications_bp.route("/me", methods=["GET"])
@jwt_required()
def my_application():
    """The applicant's application with its submitted document records."""

    user = require_user()
    application = Application.query.filter_by(user_id=user.id).first()
    if application is None:
        raise NotFound("No application found.")
    data = application.to_dict()
    data["submitted_documents"] = [document.to_dict() for document in application.documents]
    return jsonify(data)
