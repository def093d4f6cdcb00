"""Jobs blueprint with search, posting and updates."""

from __future__ import annotations

from datetime import UTC, datetime

from flask import Blueprint, jsonify, request
from sqlalchemy import or_
from werkzeug.exceptions import BadRequest, Forbidden

from models import db
from models.job import JOB_STATUSES, Job
from models.user import User
from subscriptions import NoPostingCapacity
from utils.auth import current_user, require_employer
from utils.clock import utcnow
from utils.request_validation import parse_json_request
from utils.services import subscription_service

jobs_bp = Blueprint("jobs", __name__)


def _can_modify_job(job: Job, user: User | None) -> bool:
    if user is None:
        return False
    return user.role == "admin" or user.id == job.employer_id


def _parse_expires_at(value):
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise BadRequest("expires_at must be ISO 8601 format") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def _validate_job_payload(data: dict, partial: bool = False) -> list[str]:
    errors = []
    if not partial:
        for field in ("title", "description"):
            if not data.get(field):
                errors.append(f"{field} is required")

    status = data.get("status")
    if status and status not in JOB_STATUSES:
        errors.append("status must be one of " + ", ".join(JOB_STATUSES))
    return errors


@jobs_bp.route("", methods=["GET"])
def search_jobs():
    """Return open jobs with optional text and location filters."""

    query = Job.active_filter(Job.query)

    search_term = request.args.get("q")
    if search_term:
        like = f"%{search_term.lower()}%"
        query = query.filter(
            or_(
                db.func.lower(Job.title).like(like),
                db.func.lower(Job.description).like(like),
            )
        )

    location = request.args.get("location")
    if location:
        query = query.filter(db.func.lower(Job.location).like(f"%{location.lower()}%"))

    jobs = query.order_by(Job.created_at.desc()).all()
    return jsonify({"results": [job.to_dict() for job in jobs], "count": len(jobs)})


@jobs_bp.route("", methods=["POST"])
def create_job():
    """Post a job. Requires credits or an unlimited posting entitlement."""

    user = require_employer()
    data = parse_json_request(request)
    errors = _validate_job_payload(data)
    if errors:
        raise BadRequest("; ".join(errors))

    service = subscription_service()
    if not service.can_post_job(user.id):
        raise NoPostingCapacity("Job posting limit reached or subscription expired")

    now = utcnow()
    job = Job(
        employer_id=user.id,
        title=data.get("title"),
        description=data.get("description"),
        location=data.get("location"),
        status="ACTIVE",
        expires_at=Job.default_expiry(now),
        created_at=now,
    )
    db.session.add(job)
    try:
        # Commits the job together with the consumed credit.
        service.handle_job_posting(user.id)
    except Exception:
        db.session.rollback()
        raise

    return jsonify(job.to_dict()), 201


@jobs_bp.route("/<int:job_id>", methods=["GET"])
def get_job(job_id: int):
    job = db.get_or_404(Job, job_id)
    if job.status != "ACTIVE":
        user = current_user(optional=True)
        if not _can_modify_job(job, user):
            raise Forbidden("Not authorized to view this job.")
    return jsonify(job.to_dict())


@jobs_bp.route("/<int:job_id>", methods=["PATCH"])
def update_job(job_id: int):
    job = db.get_or_404(Job, job_id)
    user = current_user()
    if not _can_modify_job(job, user):
        raise Forbidden("You do not have permission to update this job.")

    data = parse_json_request(request, allow_empty=False)
    errors = _validate_job_payload(data, partial=True)
    if errors:
        raise BadRequest("; ".join(errors))

    for field in ("title", "description", "location", "status"):
        if field in data and data[field] is not None:
            setattr(job, field, data[field])

    if "expires_at" in data:
        job.expires_at = _parse_expires_at(data.get("expires_at"))

    db.session.commit()
    return jsonify(job.to_dict())
