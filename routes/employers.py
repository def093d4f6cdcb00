"""Employer and agency profile endpoints."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import Conflict, NotFound

from models import db
from models.employer_profile import EmployerProfile
from models.employer_subscription import EmployerSubscription
from utils.auth import require_employer
from utils.request_validation import parse_json_request
from utils.services import subscription_service

employers_bp = Blueprint("employers", __name__)


@employers_bp.route("/profile", methods=["POST"])
def create_profile():
    """Create the caller's company profile and start their trial."""

    user = require_employer()
    if user.employer_profile is not None:
        raise Conflict("Employer profile already exists.")

    data = parse_json_request(request, allow_empty=True)
    company_name = (data.get("company_name") or "").strip() or None

    db.session.add(EmployerProfile(user_id=user.id, company_name=company_name))
    if user.subscription is None:
        db.session.add(EmployerSubscription(user_id=user.id))
    db.session.commit()

    service = subscription_service()
    service.initialize_trial_subscription(user.id, user.role)
    summary = service.get_employer_subscription(user.id)

    return (
        jsonify(
            {
                "profile": user.employer_profile.to_dict(),
                "subscription": summary.to_dict(),
            }
        ),
        HTTPStatus.CREATED,
    )


@employers_bp.route("/profile", methods=["GET"])
def get_profile():
    user = require_employer()
    if user.employer_profile is None:
        raise NotFound("Employer profile not found.")
    return jsonify({"profile": user.employer_profile.to_dict()})
