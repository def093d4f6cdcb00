"""Per-request construction of subscription engine services."""

from __future__ import annotations

from flask import current_app

from models import db
from payments.abstract_gateway import AbstractPaymentGateway
from subscriptions import (
    BillingLedger,
    PaymentReconciler,
    RenewalScheduler,
    SubscriptionService,
)

GATEWAY_EXTENSION = "payment_gateway"


def get_payment_gateway() -> AbstractPaymentGateway:
    return current_app.extensions[GATEWAY_EXTENSION]


def subscription_service() -> SubscriptionService:
    return SubscriptionService(db.session)


def billing_ledger() -> BillingLedger:
    return BillingLedger(db.session, currency=current_app.config.get("BILLING_CURRENCY", "usd"))


def payment_reconciler() -> PaymentReconciler:
    return PaymentReconciler(
        db.session,
        get_payment_gateway(),
        subscription_service(),
        billing_ledger(),
    )


def renewal_scheduler() -> RenewalScheduler:
    return RenewalScheduler(db.session, billing_ledger())
