"""Subscription purchase, status and Stripe webhook endpoints."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest, Forbidden, NotFound

from models import db
from models.employer_subscription import SubscriptionType
from models.user import User
from subscriptions import PLAN_CATALOG, parse_subscription_type
from utils.auth import is_admin, require_employer, require_user
from utils.request_validation import int_field, parse_json_request
from utils.services import get_payment_gateway, payment_reconciler, subscription_service

logger = logging.getLogger(__name__)

subscription_bp = Blueprint("subscription", __name__)

CHECKOUT_COMPLETED_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}


def _redirect_urls(data: dict) -> tuple[str, str]:
    success_url = data.get("success_url") or current_app.config.get("BILLING_SUCCESS_URL")
    cancel_url = data.get("cancel_url") or current_app.config.get("BILLING_CANCEL_URL")
    if not success_url or not cancel_url:
        raise BadRequest("Billing success and cancel URLs must be configured.")
    return success_url, cancel_url


@subscription_bp.route("", methods=["GET"])
def get_subscription():
    """Return the caller's subscription summary and the plan catalog."""

    user = require_employer()
    summary = subscription_service().get_employer_subscription(user.id)
    if summary is None:
        raise NotFound("Subscription not found.")
    return jsonify(
        {
            "subscription": summary.to_dict(),
            "plans": {key.value: plan.to_dict() for key, plan in PLAN_CATALOG.items()},
        }
    )


@subscription_bp.route("/checkout", methods=["POST"])
def create_checkout_session():
    """Create a Stripe Checkout session for a plan purchase."""

    user = require_employer()
    data = parse_json_request(request, required_keys=["subscription_type"])
    subscription_type = parse_subscription_type(data["subscription_type"])
    if subscription_type == SubscriptionType.TRIAL:
        raise BadRequest("Cannot purchase trial subscription.")

    success_url, cancel_url = _redirect_urls(data)
    checkout_url = payment_reconciler().create_checkout_session(
        user.id, subscription_type, success_url, cancel_url
    )
    return jsonify({"checkout_url": checkout_url})


@subscription_bp.route("/confirm", methods=["POST"])
def confirm_payment():
    """Apply a completed checkout after the success redirect."""

    require_employer()
    data = parse_json_request(request, required_keys=["session_id"])
    record = payment_reconciler().handle_successful_payment(data["session_id"])
    return jsonify(
        {
            "processed": record is not None,
            "billing_record": record.to_dict() if record is not None else None,
        }
    )


@subscription_bp.route("/webhook", methods=["POST"])
def stripe_webhook():
    """Handle Stripe webhook events for completed checkouts."""

    event = get_payment_gateway().construct_event(
        request.get_data(), request.headers.get("Stripe-Signature")
    )
    event_type = event.get("type")
    data_object = (event.get("data") or {}).get("object") or {}

    if event_type in CHECKOUT_COMPLETED_EVENTS:
        session_id = data_object.get("id")
        if not session_id:
            raise BadRequest("Checkout event is missing the session id.")
        payment_reconciler().handle_successful_payment(session_id)
    else:
        logger.info("Ignoring webhook event type %s", event_type)

    return jsonify({"status": "success"})


@subscription_bp.route("/status", methods=["GET"])
def get_status():
    user = require_employer()
    status = subscription_service().get_subscription_status(user.id)
    return jsonify({"success": True, "status": status.to_dict()})


@subscription_bp.route("/can-post-job", methods=["GET"])
def can_post_job():
    user = require_employer()
    service = subscription_service()
    return jsonify(
        {
            "can_post_job": service.can_post_job(user.id),
            "has_active_subscription": service.has_active_subscription(user.id),
        }
    )


@subscription_bp.route("/cancel", methods=["POST"])
def cancel():
    user = require_employer()
    subscription_service().cancel_subscription(user.id)
    return jsonify(
        {
            "success": True,
            "message": (
                "Subscription cancelled. Benefits will continue until the end "
                "of your current term."
            ),
        }
    )


@subscription_bp.route("/manual-update", methods=["POST"])
def manual_update():
    """Admin override that applies a plan without a payment."""

    user = require_user()
    if not is_admin(user):
        raise Forbidden("Access denied - admin privileges required.")

    data = parse_json_request(request, required_keys=["subscription_type"])
    subscription_type = parse_subscription_type(data["subscription_type"])
    target_id = int_field(data, "target_user_id", default=user.id)
    if db.session.get(User, target_id) is None:
        raise NotFound("Target user not found.")

    subscription_service().update_employer_subscription(target_id, subscription_type)
    logger.info(
        "Manual subscription update by %s: target=%s plan=%s",
        user.id,
        target_id,
        subscription_type.value,
    )
    return jsonify(
        {
            "success": True,
            "message": f"Subscription updated to {subscription_type.value} for user {target_id}",
        }
    )
