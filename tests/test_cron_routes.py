"""Tests for the scheduled renewal trigger."""

from __future__ import annotations

from datetime import timedelta

from models.billing_record import BillingRecord
from models.employer_subscription import SubscriptionType
from utils.clock import utcnow

from conftest import create_employer, get_subscription


def test_process_renewals_requires_cron_secret(client):
    missing = client.post("/cron/process-renewals")
    wrong = client.post(
        "/cron/process-renewals", headers={"Authorization": "Bearer nope"}
    )

    assert missing.status_code == 401
    assert wrong.status_code == 401


def test_process_renewals_reports_counts(app, client):
    with app.app_context():
        due_id = create_employer(
            subscription_type=SubscriptionType.UNLIMITED,
            unlimited_posting_end_date=utcnow() + timedelta(days=1),
            auto_renew=True,
        )
        create_employer(
            "notdue@example.com",
            subscription_type=SubscriptionType.UNLIMITED,
            unlimited_posting_end_date=utcnow() + timedelta(days=30),
            auto_renew=True,
        )

    response = client.post(
        "/cron/process-renewals",
        headers={"Authorization": f"Bearer {app.config['CRON_SECRET']}"},
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["renewed_count"] == 1
    assert payload["failed_count"] == 0
    assert payload["success"] is True
    with app.app_context():
        renewed = get_subscription(due_id)
        assert renewed.unlimited_posting_end_date > utcnow() + timedelta(days=364)
        assert BillingRecord.query.count() == 1
