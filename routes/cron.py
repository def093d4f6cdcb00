"""Endpoints triggered by the external scheduler."""

from __future__ import annotations

import hmac

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import Unauthorized

from utils.clock import utcnow
from utils.services import renewal_scheduler

cron_bp = Blueprint("cron", __name__)


def _require_cron_secret() -> None:
    secret = current_app.config.get("CRON_SECRET")
    provided = request.headers.get("Authorization", "")
    if not secret or not hmac.compare_digest(provided, f"Bearer {secret}"):
        raise Unauthorized("Unauthorized")


@cron_bp.route("/process-renewals", methods=["POST"])
def process_renewals():
    _require_cron_secret()
    current_app.logger.info("Starting subscription renewals processing")
    result = renewal_scheduler().process_subscription_renewals()
    payload = result.to_dict()
    payload.update({"success": True, "timestamp": utcnow().isoformat()})
    return jsonify(payload)
