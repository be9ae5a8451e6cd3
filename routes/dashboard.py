"""Applicant dashboard: application progress, job applications, notifications."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import NotFound

from models import db
from models.application import Application
from models.job import JobApplication
from models.notification import Notification
from services.wizard import TOTAL_STEPS
from utils.auth import require_user
from utils.request_validation import paginate, parse_bool, parse_pagination

dashboard_bp = Blueprint("dashboard", __name__)

RECENT_NOTIFICATIONS = 10


def _user_notifications(user_id: int):
    return Notification.query.filter_by(audience="user", user_id=user_id)


@dashboard_bp.route("", methods=["GET"])
@jwt_required()
def dashboard():
    """Everything the applicant dashboard shows in one payload."""

    user = require_user()
    application = Application.query.filter_by(user_id=user.id).first()

    summary = None
    if application is not None:
        summary = application.to_dict()
        summary["progress_percent"] = round(application.current_step / TOTAL_STEPS * 100)
        summary["document_count"] = (
            application.documents.count()
            if not application.is_draft
            else len(application.draft_documents or [])
        )

    job_applications = (
        JobApplication.query.filter_by(user_id=user.id)
        .order_by(JobApplication.applied_at.desc())
        .all()
    )
    notifications = (
        _user_notifications(user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(RECENT_NOTIFICATIONS)
        .all()
    )
    unread = _user_notifications(user.id).filter(Notification.read.is_(False)).count()

    return jsonify(
        {
            "profile": user.profile_dict(),
            "application": summary,
            "job_applications": [item.to_dict(include_job=True) for item in job_applications],
            "notifications": [item.to_dict() for item in notifications],
            "unread_notifications": unread,
        }
    )


@dashboard_bp.route("/notifications", methods=["GET"])
@jwt_required()
def list_notifications():
    user = require_user()
    query = _user_notifications(user.id)
    unread_only = parse_bool(request.args.get("unread"))
    if unread_only:
        query = query.filter(Notification.read.is_(False))

    page, per_page = parse_pagination(request)
    items, total = paginate(
        query.order_by(Notification.created_at.desc(), Notification.id.desc()),
        page,
        per_page,
    )
    return jsonify(
        {
            "results": [item.to_dict() for item in items],
            "count": total,
            "page": page,
            "per_page": per_page,
        }
    )


@dashboard_bp.route("/notifications/<int:notification_id>/read", methods=["POST"])
@jwt_required()
def mark_notification_read(notification_id: int):
    user = require_user()
    notification = _user_notifications(user.id).filter_by(id=notification_id).first()
    if notification is None:
        raise NotFound("Notification not found.")
    notification.read = True
    db.session.commit()
    return jsonify(notification.to_dict())


@dashboard_bp.route("/notifications/read-all", methods=["POST"])
@jwt_required()
def mark_all_notifications_read():
    user = require_user()
    updated = (
        _user_notifications(user.id)
        .filter(Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.session.commit()
    return jsonify({"updated": updated})
