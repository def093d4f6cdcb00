"""Billing history and invoice endpoints."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import InternalServerError, NotFound

from utils.auth import require_employer
from utils.request_validation import int_field, parse_json_request
from utils.services import billing_ledger, payment_reconciler

billing_bp = Blueprint("billing", __name__)


@billing_bp.route("", methods=["GET"])
def billing_history():
    user = require_employer()
    profile = user.employer_profile
    if profile is None:
        raise NotFound("Employer profile not found.")

    records = billing_ledger().get_billing_history(profile.id)
    return jsonify({"billing_history": [record.to_dict() for record in records]})


@billing_bp.route("/invoice", methods=["POST"])
def create_invoice():
    """Create (once) and return a downloadable invoice for a billing record."""

    user = require_employer()
    data = parse_json_request(request, required_keys=["billing_record_id"])
    record_id = int_field(data, "billing_record_id")

    reconciler = payment_reconciler()
    invoice_id = reconciler.create_invoice_for_billing_record(record_id, employer_id=user.id)
    download_url = reconciler.get_invoice_url(invoice_id)
    if not download_url:
        raise InternalServerError("Unable to generate invoice download URL.")

    return jsonify({"invoice_id": invoice_id, "download_url": download_url})
