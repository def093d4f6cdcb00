"""Tests for checkout creation, payment confirmation and invoices."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

from models import db
from models.billing_record import BillingRecord, BillingStatus
from models.employer_profile import EmployerProfile
from models.employer_subscription import SubscriptionType
from subscriptions import (
    BillingLedger,
    BillingRecordNotFound,
    PaymentReconciler,
    PlanNotPurchasable,
    SubscriptionService,
    get_plan,
)

from conftest import NOW, FakeGateway, create_employer, get_subscription


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def reconciler(app, gateway):
    with app.app_context():
        service = SubscriptionService(db.session, clock=lambda: NOW)
        ledger = BillingLedger(db.session)
        yield PaymentReconciler(db.session, gateway, service, ledger)


def _records(session_id: str) -> list[BillingRecord]:
    db.session.expire_all()
    return BillingRecord.query.filter_by(stripe_session_id=session_id).all()


def test_checkout_session_carries_plan_and_employer(reconciler, gateway):
    employer_id = create_employer()

    url = reconciler.create_checkout_session(
        employer_id, "BUNDLE", "https://app/success", "https://app/cancel"
    )

    assert url == "https://checkout.example/cs_test_1"
    checkout = gateway.checkouts[0]
    assert checkout["metadata"] == {
        "employer_id": str(employer_id),
        "subscription_type": "BUNDLE",
    }
    item = checkout["line_items"][0]
    assert item.unit_amount_cents == 75_000
    assert item.currency == "usd"
    assert item.name == "Hiring Bundle"


def test_checkout_rejects_free_plan(reconciler, gateway):
    employer_id = create_employer()

    with pytest.raises(PlanNotPurchasable):
        reconciler.create_checkout_session(
            employer_id, SubscriptionType.TRIAL, "https://s", "https://c"
        )
    assert gateway.checkouts == []


def test_payment_is_applied_once_per_session(reconciler, gateway):
    employer_id = create_employer(job_credits=0)
    gateway.add_session("cs_paid", employer_id, "SPOTLIGHT")

    first = reconciler.handle_successful_payment("cs_paid")
    second = reconciler.handle_successful_payment("cs_paid")

    assert first is not None
    assert second is not None and second.id == first.id
    records = _records("cs_paid")
    assert len(records) == 1
    assert records[0].status == BillingStatus.COMPLETED
    assert records[0].subscription_type == SubscriptionType.SPOTLIGHT
    assert get_subscription(employer_id).job_credits == 1


def test_failed_record_retry_is_claimed_by_one_delivery(reconciler, gateway, monkeypatch):
    employer_id = create_employer(job_credits=0)
    gateway.add_session("cs_x", employer_id, "BUNDLE")
    profile = EmployerProfile.query.filter_by(user_id=employer_id).one()
    plan = get_plan(SubscriptionType.BUNDLE)
    reconciler.ledger.create_billing_record(
        profile.id,
        plan.price,
        plan.billing_description,
        plan.key,
        stripe_session_id="cs_x",
    )
    reconciler.ledger.update_billing_record_status("cs_x", BillingStatus.FAILED)
    db.session.commit()

    other_session = Session(bind=db.engine)
    other = PaymentReconciler(
        other_session,
        gateway,
        SubscriptionService(other_session, clock=lambda: NOW),
        BillingLedger(other_session),
    )

    real_find = reconciler.ledger.find_by_session
    interleaved = []

    def _find_then_let_other_worker_finish(session_id):
        # The FAILED record is loaded before the other worker retries and commits.
        record = real_find(session_id)
        if not interleaved:
            interleaved.append(other.handle_successful_payment(session_id).status)
        return record

    monkeypatch.setattr(reconciler.ledger, "find_by_session", _find_then_let_other_worker_finish)
    try:
        record = reconciler.handle_successful_payment("cs_x")
    finally:
        other_session.close()

    assert interleaved == [BillingStatus.COMPLETED]
    assert record.status == BillingStatus.COMPLETED
    assert [r.status for r in _records("cs_x")] == [BillingStatus.COMPLETED]
    assert get_subscription(employer_id).job_credits == 4


def test_time_plan_payment_sets_dates_once(reconciler, gateway):
    employer_id = create_employer()
    gateway.add_session("cs_net", employer_id, "NETWORK", customer_id="cus_42")

    reconciler.handle_successful_payment("cs_net")
    reconciler.handle_successful_payment("cs_net")

    subscription = get_subscription(employer_id)
    assert subscription.subscription_type == SubscriptionType.NETWORK
    assert subscription.network_access_end_date == NOW + timedelta(days=365)
    assert subscription.stripe_customer_id == "cus_42"
    assert subscription.stripe_session_id == "cs_net"
    record = _records("cs_net")[0]
    assert float(record.amount) == 17500.0
    assert record.description.startswith("Network Access Membership (Annual)")


def test_unpaid_session_is_ignored(reconciler, gateway):
    employer_id = create_employer(job_credits=0)
    gateway.add_session("cs_unpaid", employer_id, "BUNDLE", payment_status="unpaid")

    assert reconciler.handle_successful_payment("cs_unpaid") is None
    assert _records("cs_unpaid") == []
    assert get_subscription(employer_id).job_credits == 0


def test_session_without_metadata_is_ignored(reconciler, gateway):
    gateway.add_session("cs_blank", None, None)

    assert reconciler.handle_successful_payment("cs_blank") is None
    assert BillingRecord.query.count() == 0


def test_failed_grant_marks_record_failed_and_can_be_retried(reconciler, gateway, monkeypatch):
    employer_id = create_employer(job_credits=0)
    gateway.add_session("cs_retry", employer_id, "BUNDLE")

    def _explode(*args, **kwargs):
        raise RuntimeError("write failed")

    with monkeypatch.context() as patch:
        patch.setattr(reconciler.subscriptions, "update_employer_subscription", _explode)
        with pytest.raises(RuntimeError):
            reconciler.handle_successful_payment("cs_retry")

    records = _records("cs_retry")
    assert [record.status for record in records] == [BillingStatus.FAILED]
    assert get_subscription(employer_id).job_credits == 0

    record = reconciler.handle_successful_payment("cs_retry")

    assert record.status == BillingStatus.COMPLETED
    assert len(_records("cs_retry")) == 1
    assert get_subscription(employer_id).job_credits == 4


def test_concurrent_claim_does_not_grant_twice(reconciler, gateway, monkeypatch):
    employer_id = create_employer(job_credits=0)
    gateway.add_session("cs_race", employer_id, "SPOTLIGHT")
    reconciler.handle_successful_payment("cs_race")

    real_find = reconciler.ledger.find_by_session
    calls = {"count": 0}

    def _stale_find(session_id):
        # The first lookup misses, as if another worker had not committed yet.
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return real_find(session_id)

    monkeypatch.setattr(reconciler.ledger, "find_by_session", _stale_find)

    record = reconciler.handle_successful_payment("cs_race")

    assert record is not None
    assert len(_records("cs_race")) == 1
    assert get_subscription(employer_id).job_credits == 1


def test_invoice_is_created_once_for_a_record(reconciler, gateway):
    employer_id = create_employer()
    gateway.add_session("cs_inv", employer_id, "SPOTLIGHT", customer_id="cus_known")
    record = reconciler.handle_successful_payment("cs_inv")

    invoice_id = reconciler.create_invoice_for_billing_record(record.id, employer_id)
    again = reconciler.create_invoice_for_billing_record(record.id, employer_id)

    assert invoice_id == again
    assert gateway.customers == []
    assert gateway.invoices[invoice_id] == {
        "customer_id": "cus_known",
        "amount_cents": 25_000,
        "description": record.description,
        "currency": "usd",
    }
    assert reconciler.get_invoice_url(invoice_id).endswith(f"{invoice_id}.pdf")


def test_invoice_creates_customer_when_missing(reconciler, gateway):
    employer_id = create_employer("billing@example.com", company_name="Harbor Hotels")
    gateway.add_session("cs_nocus", employer_id, "BUNDLE", customer_id=None)
    record = reconciler.handle_successful_payment("cs_nocus")

    reconciler.create_invoice_for_billing_record(record.id, employer_id)

    assert gateway.customers[0]["email"] == "billing@example.com"
    assert gateway.customers[0]["name"] == "Harbor Hotels"
    assert get_subscription(employer_id).stripe_customer_id == "cus_1"


def test_invoice_for_another_employers_record_is_hidden(reconciler, gateway):
    owner = create_employer("owner@corp.example")
    other = create_employer("other@corp.example")
    gateway.add_session("cs_owner", owner, "SPOTLIGHT")
    record = reconciler.handle_successful_payment("cs_owner")

    with pytest.raises(BillingRecordNotFound):
        reconciler.create_invoice_for_billing_record(record.id, other)
    with pytest.raises(BillingRecordNotFound):
        reconciler.create_invoice_for_billing_record(9999)
