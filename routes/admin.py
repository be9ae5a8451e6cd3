"""Admin console blueprint: applications, documents, jobs, payments and settings."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from werkzeug.exceptions import BadRequest, NotFound

from models import db, utcnow
from models.admin_setting import AdminSetting
from models.application import APPLICATION_STATUSES, Application
from models.document import DOCUMENT_STATUSES, Document
from models.job import Job
from models.notification import Notification
from models.payment import PAYMENT_RECORD_STATUSES, Payment
from models.user import User
from services.notifications import notify_user
from services.settings import (
    PAYMENT_METHOD_CONFIG_BY_ID,
    SECRET_MASK,
    payment_method_settings,
    save_payment_method,
    upsert_setting,
)
from utils.auth import require_admin
from utils.request_validation import (
    paginate,
    parse_bool,
    parse_json_request,
    parse_pagination,
)

admin_bp = Blueprint("admin", __name__)

REVIEW_STATUSES = tuple(status for status in APPLICATION_STATUSES if status != "draft")


def _status_label(status: str) -> str:
    return status.replace("_", " ").title()


def _page_payload(items, total: int, page: int, per_page: int) -> dict:
    return {
        "results": items,
        "count": total,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page,
    }


def _get_or_404(model, object_id: int, label: str):
    instance = db.session.get(model, object_id)
    if instance is None:
        raise NotFound(f"{label} not found.")
    return instance


# Applications


@admin_bp.route("/applications", methods=["GET"])
@jwt_required()
def list_applications():
    """Applications filtered by status and a name/email search, paginated."""

    require_admin()
    query = Application.query

    status = request.args.get("status")
    if status and status != "all":
        if status not in APPLICATION_STATUSES:
            raise BadRequest("Invalid status.")
        query = query.filter(Application.status == status)
    elif not parse_bool(request.args.get("include_drafts")):
        query = query.filter(Application.status != "draft")

    search_term = (request.args.get("q") or "").strip().lower()
    if search_term:
        like = f"%{search_term}%"
        query = query.filter(
            or_(
                db.func.lower(Application.full_name).like(like),
                db.func.lower(Application.email).like(like),
            )
        )

    page, per_page = parse_pagination(request)
    applications, total = paginate(
        query.order_by(Application.created_at.desc(), Application.id.desc()),
        page,
        per_page,
    )
    return jsonify(
        _page_payload([item.to_dict() for item in applications], total, page, per_page)
    )


@admin_bp.route("/applications/<int:application_id>", methods=["GET"])
@jwt_required()
def get_application(application_id: int):
    require_admin()
    application = _get_or_404(Application, application_id, "Application")
    data = application.to_dict()
    data["profile"] = application.user.profile_dict() if application.user else None
    data["submitted_documents"] = [document.to_dict() for document in application.documents]
    data["payments"] = [
        payment.to_dict() for payment in application.payments.order_by(Payment.created_at)
    ]
    return jsonify(data)


@admin_bp.route("/applications/<int:application_id>/status", methods=["PATCH"])
@jwt_required()
def update_application_status(application_id: int):
    """Move a submitted application to a new review status and tell the applicant."""

    admin = require_admin()
    application = _get_or_404(Application, application_id, "Application")
    data = parse_json_request(request, required_keys=["status"])
    new_status = data.get("status")
    if new_status not in REVIEW_STATUSES:
        raise BadRequest(
            "status must be one of: {}.".format(", ".join(REVIEW_STATUSES))
        )
    if application.is_draft:
        raise BadRequest("Draft applications cannot be reviewed.")

    previous = application.status
    application.status = new_status
    if previous != new_status:
        notify_user(
            application.user_id,
            "Application Status Updated",
            f"Your application status has been updated to: {_status_label(new_status)}",
            type="application",
        )
    db.session.commit()
    current_app.logger.info(
        "Admin %s moved application %s from %s to %s",
        admin.id,
        application.id,
        previous,
        new_status,
    )
    return jsonify(application.to_dict())


@admin_bp.route("/applications/<int:application_id>/notes", methods=["PATCH"])
@jwt_required()
def update_application_notes(application_id: int):
    require_admin()
    application = _get_or_404(Application, application_id, "Application")
    data = parse_json_request(request, allow_empty=True)
    notes = data.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise BadRequest("notes must be a string.")
    application.notes = notes or None
    db.session.commit()
    return jsonify(application.to_dict())


# Documents


@admin_bp.route("/documents", methods=["GET"])
@jwt_required()
def list_documents():
    """Submitted documents with their applicant, pending first by default."""

    require_admin()
    query = Document.query.join(Application, Document.application_id == Application.id)

    status = request.args.get("status")
    if status and status != "all":
        if status not in DOCUMENT_STATUSES:
            raise BadRequest("Invalid status.")
        query = query.filter(Document.status == status)

    search_term = (request.args.get("q") or "").strip().lower()
    if search_term:
        like = f"%{search_term}%"
        query = query.filter(
            or_(
                db.func.lower(Document.name).like(like),
                db.func.lower(Document.document_type).like(like),
                db.func.lower(Application.full_name).like(like),
                db.func.lower(Application.email).like(like),
            )
        )

    page, per_page = parse_pagination(request)
    documents, total = paginate(
        query.order_by(Document.uploaded_at.desc(), Document.id.desc()), page, per_page
    )
    results = []
    for document in documents:
        item = document.to_dict()
        item["applicant"] = {
            "user_id": document.application.user_id,
            "full_name": document.application.full_name,
            "email": document.application.email,
        }
        results.append(item)

    payload = _page_payload(results, total, page, per_page)
    payload["pending_count"] = Document.query.filter_by(status="pending").count()
    return jsonify(payload)


@admin_bp.route("/documents/<int:document_id>/review", methods=["POST"])
@jwt_required()
def review_document(document_id: int):
    """Approve, reject or flag a document as missing, with optional notes."""

    require_admin()
    document = _get_or_404(Document, document_id, "Document")
    data = parse_json_request(request, required_keys=["status"])
    new_status = data.get("status")
    if new_status not in DOCUMENT_STATUSES:
        raise BadRequest(
            "status must be one of: {}.".format(", ".join(DOCUMENT_STATUSES))
        )
    notes = data.get("notes") or data.get("admin_notes")
    if notes is not None and not isinstance(notes, str):
        raise BadRequest("notes must be a string.")

    document.status = new_status
    document.admin_notes = notes or None
    document.reviewed_at = utcnow()

    message = f'Your document "{document.name}" has been {new_status}.'
    if notes:
        message = f"{message} Note: {notes}"
    notify_user(
        document.application.user_id,
        "Document Review Update",
        message,
        type="document",
    )
    db.session.commit()
    return jsonify(document.to_dict())


# Jobs


def _parse_money(data: dict, field: str, errors: list[str]) -> Decimal | None:
    value = data.get(field)
    if value in (None, ""):
        return None
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, TypeError):
        errors.append(f"{field} must be numeric")
        return None
    if parsed < 0:
        errors.append(f"{field} must not be negative")
    return parsed


def _parse_string_list(data: dict, field: str, errors: list[str]) -> list[str] | None:
    if field not in data:
        return None
    value = data.get(field) or []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        errors.append(f"{field} must be a list of strings")
        return None
    return [item.strip() for item in value if item.strip()]


def _validate_job_payload(data: dict, partial: bool = False):
    errors = []

    if not partial:
        for field in ("title", "company", "location"):
            if not data.get(field):
                errors.append(f"{field} is required")

    salary_min = _parse_money(data, "salary_min", errors)
    salary_max = _parse_money(data, "salary_max", errors)
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        errors.append("salary_min must not exceed salary_max")

    requirements = _parse_string_list(data, "requirements", errors)
    benefits = _parse_string_list(data, "benefits", errors)
    return errors, salary_min, salary_max, requirements, benefits


JOB_TEXT_FIELDS = ("title", "company", "location", "category", "job_type", "description")
JOB_FLAG_FIELDS = ("visa_sponsorship", "is_featured", "is_active")


def _apply_job_fields(job: Job, data: dict, partial: bool) -> None:
    errors, salary_min, salary_max, requirements, benefits = _validate_job_payload(
        data, partial=partial
    )
    if errors:
        raise BadRequest("; ".join(errors))

    for field in JOB_TEXT_FIELDS:
        if field in data and data[field] is not None:
            setattr(job, field, data[field])
    if "salary_min" in data:
        job.salary_min = salary_min
    if "salary_max" in data:
        job.salary_max = salary_max
    if requirements is not None:
        job.requirements = requirements
    if benefits is not None:
        job.benefits = benefits
    for field in JOB_FLAG_FIELDS:
        if field in data:
            parsed = parse_bool(data.get(field))
            if parsed is None:
                raise BadRequest(f"{field} must be boolean")
            setattr(job, field, parsed)


@admin_bp.route("/jobs", methods=["GET"])
@jwt_required()
def list_all_jobs():
    require_admin()
    page, per_page = parse_pagination(request)
    jobs, total = paginate(
        Job.query.order_by(Job.created_at.desc(), Job.id.desc()), page, per_page
    )
    return jsonify(_page_payload([job.to_dict() for job in jobs], total, page, per_page))


@admin_bp.route("/jobs", methods=["POST"])
@jwt_required()
def create_job():
    require_admin()
    data = parse_json_request(request)
    job = Job(requirements=[], benefits=[])
    _apply_job_fields(job, data, partial=False)
    db.session.add(job)
    db.session.commit()
    return jsonify(job.to_dict()), 201


@admin_bp.route("/jobs/<int:job_id>", methods=["PATCH"])
@jwt_required()
def update_job(job_id: int):
    require_admin()
    job = _get_or_404(Job, job_id, "Job")
    data = parse_json_request(request)
    _apply_job_fields(job, data, partial=True)
    if job.salary_min is not None and job.salary_max is not None:
        if Decimal(job.salary_min) > Decimal(job.salary_max):
            db.session.rollback()
            raise BadRequest("salary_min must not exceed salary_max")
    db.session.commit()
    return jsonify(job.to_dict())


@admin_bp.route("/jobs/<int:job_id>", methods=["DELETE"])
@jwt_required()
def delete_job(job_id: int):
    require_admin()
    job = _get_or_404(Job, job_id, "Job")
    db.session.delete(job)
    db.session.commit()
    return "", 204


# Payments


@admin_bp.route("/payments", methods=["GET"])
@jwt_required()
def list_payments():
    require_admin()
    query = Payment.query
    status = request.args.get("status")
    if status and status != "all":
        if status not in PAYMENT_RECORD_STATUSES:
            raise BadRequest("Invalid status.")
        query = query.filter(Payment.status == status)
    page, per_page = parse_pagination(request)
    payments, total = paginate(
        query.order_by(Payment.created_at.desc(), Payment.id.desc()), page, per_page
    )
    return jsonify(
        _page_payload([payment.to_dict() for payment in payments], total, page, per_page)
    )


@admin_bp.route("/payments/<int:payment_id>/status", methods=["PATCH"])
@jwt_required()
def update_payment_status(payment_id: int):
    """Confirm or fail a manual payment such as a bank transfer."""

    require_admin()
    payment = _get_or_404(Payment, payment_id, "Payment")
    data = parse_json_request(request, required_keys=["status"])
    new_status = data.get("status")
    if new_status not in PAYMENT_RECORD_STATUSES:
        raise BadRequest(
            "status must be one of: {}.".format(", ".join(PAYMENT_RECORD_STATUSES))
        )
    payment.status = new_status
    if new_status == "completed" and payment.paid_at is None:
        payment.paid_at = utcnow()
    notify_user(
        payment.user_id,
        "Payment Update",
        f"Your payment of ${payment.amount:,.2f} is now {new_status}.",
        type="payment",
        link="/payments",
    )
    db.session.commit()
    return jsonify(payment.to_dict())


# Settings


@admin_bp.route("/settings", methods=["GET"])
@jwt_required()
def list_settings():
    require_admin()
    settings = AdminSetting.query.order_by(AdminSetting.setting_key).all()
    return jsonify([setting.to_dict() for setting in settings])


@admin_bp.route("/settings", methods=["PUT"])
@jwt_required()
def save_settings():
    """Upsert a batch of ``{key, value, is_secret, description}`` settings."""

    require_admin()
    data = parse_json_request(request, required_keys=["settings"])
    entries = data.get("settings")
    if not isinstance(entries, list):
        raise BadRequest("settings must be a list.")

    saved = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("key"):
            raise BadRequest("Each setting needs a key.")
        value = entry.get("value")
        if value == SECRET_MASK:
            existing = AdminSetting.query.filter_by(setting_key=str(entry["key"])).first()
            if existing is not None and existing.is_secret:
                saved.append(existing)
                continue
        saved.append(
            upsert_setting(
                str(entry["key"]),
                None if value is None else str(value),
                is_secret=bool(entry.get("is_secret", False)),
                description=entry.get("description"),
            )
        )
    db.session.commit()
    return jsonify([setting.to_dict() for setting in saved])


@admin_bp.route("/payment-methods", methods=["GET"])
@jwt_required()
def get_payment_methods():
    require_admin()
    return jsonify(payment_method_settings())


@admin_bp.route("/payment-methods", methods=["PUT"])
@jwt_required()
def save_payment_methods():
    """Save enabled flags and field values, keyed by payment method id."""

    require_admin()
    data = parse_json_request(request, required_keys=["methods"])
    methods = data.get("methods")
    if not isinstance(methods, dict):
        raise BadRequest("methods must be an object keyed by method id.")

    unknown = sorted(set(methods) - set(PAYMENT_METHOD_CONFIG_BY_ID))
    if unknown:
        raise BadRequest(f"Unknown payment methods: {', '.join(unknown)}.")

    for method_id, entry in methods.items():
        if not isinstance(entry, dict):
            raise BadRequest(f"{method_id} must be an object.")
        enabled = entry.get("enabled")
        if enabled is not None:
            enabled = parse_bool(enabled)
            if enabled is None:
                raise BadRequest(f"{method_id}.enabled must be boolean.")
        fields = entry.get("fields") or {}
        if not isinstance(fields, dict):
            raise BadRequest(f"{method_id}.fields must be an object.")
        save_payment_method(method_id, enabled, fields)

    db.session.commit()
    return jsonify(payment_method_settings())


# Notifications


@admin_bp.route("/notifications", methods=["GET"])
@jwt_required()
def admin_notifications():
    require_admin()
    page, per_page = parse_pagination(request)
    items, total = paginate(
        Notification.query.filter_by(audience="admin").order_by(
            Notification.created_at.desc(), Notification.id.desc()
        ),
        page,
        per_page,
    )
    return jsonify(_page_payload([item.to_dict() for item in items], total, page, per_page))


@admin_bp.route("/users/<int:user_id>", methods=["GET"])
@jwt_required()
def get_user(user_id: int):
    require_admin()
    user = _get_or_404(User, user_id, "User")
    return jsonify(user.profile_dict())
