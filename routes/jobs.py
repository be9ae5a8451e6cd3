"""Jobs blueprint with search, detail, and job applications."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from models import db
from models.job import Job, JobApplication
from utils.auth import require_user
from utils.request_validation import paginate, parse_bool, parse_json_request, parse_pagination

jobs_bp = Blueprint("jobs", __name__)


def _get_active_job(job_id: int) -> Job:
    job = db.session.get(Job, job_id)
    if job is None or not job.is_active:
        raise NotFound("Job not found.")
    return job


@jobs_bp.route("", methods=["GET"])
def search_jobs():
    """Return active jobs with optional text, category and featured filters."""

    query = Job.query.filter(Job.is_active.is_(True))

    search_term = (request.args.get("q") or "").strip()
    if search_term:
        query = Job.search_filter(query, search_term)

    category = request.args.get("category")
    if category and category.lower() != "all":
        query = query.filter(Job.category == category)

    featured = parse_bool(request.args.get("featured"))
    if featured is not None:
        query = query.filter(Job.is_featured.is_(featured))

    page, per_page = parse_pagination(request)
    jobs, total = paginate(
        query.order_by(Job.is_featured.desc(), Job.created_at.desc(), Job.id.desc()),
        page,
        per_page,
    )

    return jsonify(
        {
            "results": [job.to_dict() for job in jobs],
            "count": total,
            "page": page,
            "per_page": per_page,
        }
    )


@jobs_bp.route("/categories", methods=["GET"])
def list_categories():
    rows = (
        db.session.query(Job.category)
        .filter(Job.is_active.is_(True), Job.category.isnot(None))
        .distinct()
        .order_by(Job.category)
        .all()
    )
    return jsonify([row[0] for row in rows])


@jobs_bp.route("/<int:job_id>", methods=["GET"])
def get_job(job_id: int):
    return jsonify(_get_active_job(job_id).to_dict())


@jobs_bp.route("/<int:job_id>/apply", methods=["POST"])
@jwt_required()
def apply_to_job(job_id: int):
    """Register the current user's interest in a job, once per job."""

    user = require_user()
    job = _get_active_job(job_id)

    data = parse_json_request(request, allow_empty=True) if request.data else {}
    cover_letter = data.get("cover_letter")
    if cover_letter is not None and not isinstance(cover_letter, str):
        raise BadRequest("cover_letter must be a string.")

    existing = JobApplication.query.filter_by(user_id=user.id, job_id=job.id).first()
    if existing is not None:
        raise Conflict("You have already applied for this job.")

    job_application = JobApplication(
        user_id=user.id, job_id=job.id, cover_letter=cover_letter, status="applied"
    )
    db.session.add(job_application)
    db.session.commit()

    return jsonify(job_application.to_dict(include_job=True)), 201


@jobs_bp.route("/applications", methods=["GET"])
@jwt_required()
def my_job_applications():
    user = require_user()
    job_applications = (
        JobApplication.query.filter_by(user_id=user.id)
        .order_by(JobApplication.applied_at.desc())
        .all()
    )
    return jsonify([item.to_dict(include_job=True) for item in job_applications])
