"""Stripe implementation of the payment gateway."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

import stripe

from subscriptions.exceptions import InvalidWebhook, PaymentGatewayError

from .abstract_gateway import AbstractPaymentGateway, CheckoutSession, LineItem

logger = logging.getLogger(__name__)

INVOICE_DAYS_UNTIL_DUE = 30


def _to_session(session) -> CheckoutSession:
    customer = session.get("customer")
    if isinstance(customer, Mapping):
        customer = customer.get("id")
    return CheckoutSession(
        id=session.get("id"),
        url=session.get("url"),
        payment_status=session.get("payment_status"),
        customer_id=customer,
        metadata=dict(session.get("metadata") or {}),
    )


class StripeGateway(AbstractPaymentGateway):
    """Talks to Stripe with a per-instance API key instead of the global one."""

    def __init__(self, api_key: str | None, webhook_secret: str | None = None):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def _require_key(self) -> str:
        if not self.api_key:
            raise PaymentGatewayError("Stripe secret key is not configured.")
        return self.api_key

    def create_checkout_session(
        self,
        line_items: Sequence[LineItem],
        success_url: str,
        cancel_url: str,
        metadata: Mapping[str, str],
    ) -> CheckoutSession:
        api_key = self._require_key()
        try:
            session = stripe.checkout.Session.create(
                api_key=api_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": item.currency,
                            "product_data": {
                                "name": item.name,
                                "description": item.description,
                            },
                            "unit_amount": item.unit_amount_cents,
                        },
                        "quantity": item.quantity,
                    }
                    for item in line_items
                ],
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=dict(metadata),
            )
        except stripe.StripeError as exc:
            logger.error("Stripe error creating checkout session: %s", exc)
            raise PaymentGatewayError(f"Failed to create checkout session: {exc}") from exc

        logger.info("Created checkout session: session_id=%s", session.get("id"))
        return _to_session(session)

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        api_key = self._require_key()
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=api_key)
        except stripe.StripeError as exc:
            logger.error("Stripe error retrieving session %s: %s", session_id, exc)
            raise PaymentGatewayError(f"Failed to retrieve checkout session: {exc}") from exc
        return _to_session(session)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Mapping[str, Any]:
        if not self.webhook_secret:
            raise PaymentGatewayError("Stripe webhook secret is not configured.")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Rejected webhook payload: %s", exc)
            raise InvalidWebhook() from exc
        logger.info("Verified webhook event: %s, id=%s", event.get("type"), event.get("id"))
        return event

    def create_customer(self, email: str, name: str, metadata: Mapping[str, str]) -> str:
        api_key = self._require_key()
        try:
            customer = stripe.Customer.create(
                api_key=api_key, email=email, name=name, metadata=dict(metadata)
            )
        except stripe.StripeError as exc:
            logger.error("Stripe error creating customer: %s", exc)
            raise PaymentGatewayError("Failed to create Stripe customer") from exc
        logger.info("Created Stripe customer: %s", customer.get("id"))
        return customer.get("id")

    def create_invoice(
        self, customer_id: str, amount_cents: int, description: str, currency: str
    ) -> str:
        api_key = self._require_key()
        try:
            stripe.InvoiceItem.create(
                api_key=api_key,
                customer=customer_id,
                amount=amount_cents,
                currency=currency,
                description=description,
            )
            invoice = stripe.Invoice.create(
                api_key=api_key,
                customer=customer_id,
                collection_method="send_invoice",
                days_until_due=INVOICE_DAYS_UNTIL_DUE,
                auto_advance=False,
                pending_invoice_items_behavior="include",
            )
            finalized = stripe.Invoice.finalize_invoice(invoice.get("id"), api_key=api_key)
        except stripe.StripeError as exc:
            logger.error("Stripe error creating invoice: %s", exc)
            raise PaymentGatewayError("Failed to create invoice") from exc
        return finalized.get("id")

    def get_invoice_url(self, invoice_id: str) -> Optional[str]:
        api_key = self._require_key()
        try:
            invoice = stripe.Invoice.retrieve(invoice_id, api_key=api_key)
        except stripe.StripeError as exc:
            logger.error("Error retrieving invoice URL: %s", exc)
            return None
        return invoice.get("invoice_pdf")
