"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import pytest
from flask import Flask
from flask.testing import FlaskClient
from flask_jwt_extended import create_access_token

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.employer_profile import EmployerProfile  # noqa: E402
from models.employer_subscription import EmployerSubscription  # noqa: E402
from models.user import User  # noqa: E402
from payments.abstract_gateway import (  # noqa: E402
    AbstractPaymentGateway,
    CheckoutSession,
    LineItem,
)
from subscriptions import InvalidWebhook  # noqa: E402
from utils.services import GATEWAY_EXTENSION  # noqa: E402

NOW = datetime(2024, 6, 1, 12, 0, 0)


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STRIPE_SECRET_KEY = "sk_test"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    BILLING_SUCCESS_URL = "https://example.com/success"
    BILLING_CANCEL_URL = "https://example.com/cancel"
    CRON_SECRET = "cron-secret"
    ADMIN_EMAIL = "owner@example.com"
    RATE_LIMIT = "1000 per minute"


class FakeGateway(AbstractPaymentGateway):
    """In-memory payment gateway that records every call."""

    def __init__(self):
        self.sessions: dict[str, CheckoutSession] = {}
        self.checkouts: list[dict] = []
        self.customers: list[dict] = []
        self.invoices: dict[str, dict] = {}
        self.events: list[Mapping[str, Any]] = []
        self.retrieve_calls = 0

    def add_session(
        self,
        session_id: str,
        employer_id,
        subscription_type: str,
        payment_status: str = "paid",
        customer_id: Optional[str] = "cus_test",
    ) -> CheckoutSession:
        metadata = {}
        if employer_id is not None:
            metadata["employer_id"] = str(employer_id)
        if subscription_type is not None:
            metadata["subscription_type"] = subscription_type
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.example/{session_id}",
            payment_status=payment_status,
            customer_id=customer_id,
            metadata=metadata,
        )
        self.sessions[session_id] = session
        return session

    def create_checkout_session(
        self,
        line_items: Sequence[LineItem],
        success_url: str,
        cancel_url: str,
        metadata: Mapping[str, str],
    ) -> CheckoutSession:
        session_id = f"cs_test_{len(self.checkouts) + 1}"
        self.checkouts.append(
            {
                "line_items": list(line_items),
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": dict(metadata),
            }
        )
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.example/{session_id}",
            payment_status="unpaid",
            metadata=dict(metadata),
        )
        self.sessions[session_id] = session
        return session

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        self.retrieve_calls += 1
        return self.sessions[session_id]

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Mapping[str, Any]:
        if signature != "valid-signature":
            raise InvalidWebhook()
        return self.events.pop(0)

    def create_customer(self, email: str, name: str, metadata: Mapping[str, str]) -> str:
        customer_id = f"cus_{len(self.customers) + 1}"
        self.customers.append(
            {"id": customer_id, "email": email, "name": name, "metadata": dict(metadata)}
        )
        return customer_id

    def create_invoice(
        self, customer_id: str, amount_cents: int, description: str, currency: str
    ) -> str:
        invoice_id = f"in_{len(self.invoices) + 1}"
        self.invoices[invoice_id] = {
            "customer_id": customer_id,
            "amount_cents": amount_cents,
            "description": description,
            "currency": currency,
        }
        return invoice_id

    def get_invoice_url(self, invoice_id: str) -> Optional[str]:
        return f"https://invoices.example/{invoice_id}.pdf"


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(_BaseTestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def fake_gateway(app: Flask) -> FakeGateway:
    """Replace the Stripe gateway with an in-memory fake."""

    gateway = FakeGateway()
    app.extensions[GATEWAY_EXTENSION] = gateway
    return gateway


def create_user(email: str, role: str = "employer", password: str = "Secret123") -> User:
    user = User(email=email, role=role)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def create_employer(
    email: str = "employer@example.com",
    role: str = "employer",
    company_name: str = "Acme Staffing",
    **subscription_fields,
) -> int:
    """Persist a user with a profile and subscription row; returns the user id."""

    user = create_user(email, role=role)
    db.session.add(EmployerProfile(user_id=user.id, company_name=company_name))
    db.session.add(EmployerSubscription(user_id=user.id, **subscription_fields))
    db.session.commit()
    return user.id


def get_subscription(user_id: int) -> EmployerSubscription:
    db.session.expire_all()
    return EmployerSubscription.query.filter_by(user_id=user_id).one()


def auth_header(app: Flask, user_id: int) -> dict[str, str]:
    with app.app_context():
        token = create_access_token(identity=str(user_id))
    return {"Authorization": f"Bearer {token}"}
