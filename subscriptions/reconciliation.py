"""Checkout creation and payment confirmation against the payment gateway."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.billing_record import BillingRecord, BillingStatus
from models.employer_profile import EmployerProfile
from payments.abstract_gateway import AbstractPaymentGateway, LineItem

from .exceptions import (
    BillingRecordNotFound,
    EmployerNotFound,
    PaymentGatewayError,
    PlanNotPurchasable,
)
from .ledger import BillingLedger
from .plans import PlanDefinition, get_plan
from .service import SubscriptionService

logger = logging.getLogger(__name__)

METADATA_EMPLOYER_ID = "employer_id"
METADATA_SUBSCRIPTION_TYPE = "subscription_type"


class PaymentReconciler:
    """Turns confirmed gateway payments into granted entitlements, once."""

    def __init__(
        self,
        session: Session,
        gateway: AbstractPaymentGateway,
        subscriptions: SubscriptionService,
        ledger: BillingLedger,
    ):
        self.session = session
        self.gateway = gateway
        self.subscriptions = subscriptions
        self.ledger = ledger

    def create_checkout_session(
        self,
        employer_id: int,
        subscription_type,
        success_url: str,
        cancel_url: str,
    ) -> str:
        """Create a one-time payment session for a plan and return its URL."""

        plan = get_plan(subscription_type)
        if plan.is_free:
            raise PlanNotPurchasable()

        checkout = self.gateway.create_checkout_session(
            line_items=[
                LineItem(
                    name=plan.name,
                    description=plan.description,
                    unit_amount_cents=plan.price_cents,
                    currency=self.ledger.currency,
                )
            ],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={
                METADATA_EMPLOYER_ID: str(employer_id),
                METADATA_SUBSCRIPTION_TYPE: plan.key.value,
            },
        )
        if not checkout.url:
            raise PaymentGatewayError("Checkout session has no redirect URL.")

        logger.info(
            "Created checkout session: session_id=%s employer_id=%s plan=%s",
            checkout.id,
            employer_id,
            plan.key.value,
        )
        return checkout.url

    def handle_successful_payment(self, session_id: str) -> Optional[BillingRecord]:
        """Grant the plan bought in checkout session ``session_id``.

        Safe to call repeatedly for the same session: the billing record's
        unique session id admits one grant. Sessions that are unpaid or lack
        metadata are ignored. Returns the billing record for the session, or
        None when nothing was processed.
        """

        checkout = self.gateway.retrieve_session(session_id)
        employer_ref = checkout.metadata.get(METADATA_EMPLOYER_ID)
        plan_ref = checkout.metadata.get(METADATA_SUBSCRIPTION_TYPE)
        if not checkout.is_paid or not employer_ref or not plan_ref:
            logger.warning(
                "Payment not processed: session_id=%s status=%s has_metadata=%s",
                session_id,
                checkout.payment_status,
                bool(employer_ref and plan_ref),
            )
            return None

        existing = self.ledger.find_by_session(session_id)
        if existing is not None and existing.status != BillingStatus.FAILED:
            logger.warning(
                "Ignoring repeated delivery: session_id=%s status=%s",
                session_id,
                existing.status.value,
            )
            return existing

        try:
            employer_id = int(employer_ref)
            plan = get_plan(plan_ref)
            profile = (
                self.session.query(EmployerProfile).filter_by(user_id=employer_id).first()
            )
            if profile is None:
                raise EmployerNotFound()

            record = self._claim_record(existing, profile, plan, session_id)
            if record is None:
                return self.ledger.find_by_session(session_id)

            self.subscriptions.update_employer_subscription(
                employer_id,
                plan.key,
                stripe_customer_id=checkout.customer_id,
                stripe_session_id=session_id,
                commit=False,
            )
            record.status = BillingStatus.COMPLETED
            self.session.commit()
        except Exception:
            logger.exception("Error processing successful payment: session_id=%s", session_id)
            self.session.rollback()
            self._mark_failed(session_id)
            raise

        logger.info(
            "Payment applied: session_id=%s employer_id=%s plan=%s",
            session_id,
            employer_id,
            plan.key.value,
        )
        return record

    def _claim_record(
        self,
        existing: Optional[BillingRecord],
        profile: EmployerProfile,
        plan: PlanDefinition,
        session_id: str,
    ) -> Optional[BillingRecord]:
        """Persist a PENDING record for the session, or None if another
        delivery claimed it first."""

        if existing is not None:
            claimed = self.ledger.reclaim_failed_record(session_id)
            self.session.commit()
            if not claimed:
                logger.warning("Concurrent delivery already retried session_id=%s", session_id)
                return None
            return existing
        try:
            record = self.ledger.create_billing_record(
                profile.id,
                plan.price,
                plan.billing_description,
                plan.key,
                stripe_session_id=session_id,
            )
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.warning("Concurrent delivery already claimed session_id=%s", session_id)
            return None
        return record

    def _mark_failed(self, session_id: str) -> None:
        try:
            self.ledger.update_billing_record_status(session_id, BillingStatus.FAILED)
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception(
                "Error updating billing record status to failed: session_id=%s", session_id
            )

    # Invoices

    def create_invoice_for_billing_record(
        self, record_id: int, employer_id: Optional[int] = None
    ) -> str:
        """Return the gateway invoice id for a record, creating it once."""

        record = self.ledger.get_record(record_id)
        if record is None:
            raise BillingRecordNotFound()
        profile = record.employer_profile
        if employer_id is not None and profile.user_id != employer_id:
            raise BillingRecordNotFound()
        if record.stripe_invoice_id:
            return record.stripe_invoice_id

        customer_id = self._ensure_customer(profile)
        invoice_id = self.gateway.create_invoice(
            customer_id,
            int(Decimal(record.amount) * 100),
            record.description,
            record.currency,
        )
        record.stripe_invoice_id = invoice_id
        self.session.commit()
        logger.info("Created invoice %s for billing record %s", invoice_id, record_id)
        return invoice_id

    def get_invoice_url(self, invoice_id: str) -> Optional[str]:
        return self.gateway.get_invoice_url(invoice_id)

    def _ensure_customer(self, profile: EmployerProfile) -> str:
        subscription = self.subscriptions.get_record(profile.user_id)
        if subscription is not None and subscription.stripe_customer_id:
            return subscription.stripe_customer_id

        user = profile.user
        customer_id = self.gateway.create_customer(
            email=user.email,
            name=profile.company_name or user.email,
            metadata={
                "employer_profile_id": str(profile.id),
                "user_id": str(profile.user_id),
            },
        )
        if subscription is not None:
            subscription.stripe_customer_id = customer_id
        return customer_id
