"""Billing ledger helpers.

Ledger writes are flushed, not committed; the caller owns the transaction.
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from models.billing_record import BillingRecord, BillingStatus
from models.employer_subscription import SubscriptionType
from utils.clock import utcnow


class BillingLedger:
    def __init__(self, session: Session, currency: str = "usd"):
        self.session = session
        self.currency = currency

    def create_billing_record(
        self,
        employer_profile_id: int,
        amount: Decimal,
        description: str,
        subscription_type: SubscriptionType,
        stripe_session_id: Optional[str] = None,
    ) -> BillingRecord:
        record = BillingRecord(
            employer_profile_id=employer_profile_id,
            amount=amount,
            currency=self.currency,
            description=description,
            subscription_type=subscription_type,
            stripe_session_id=stripe_session_id,
            status=BillingStatus.PENDING,
        )
        self.session.add(record)
        self.session.flush()
        return record

    def update_billing_record_status(
        self,
        stripe_session_id: str,
        status: BillingStatus,
        stripe_invoice_id: Optional[str] = None,
    ) -> int:
        """Set the status of the record(s) for a session; returns rows touched."""

        values = {"status": status, "updated_at": utcnow()}
        if stripe_invoice_id:
            values["stripe_invoice_id"] = stripe_invoice_id
        updated = (
            self.session.query(BillingRecord)
            .filter(BillingRecord.stripe_session_id == stripe_session_id)
            .update(values, synchronize_session="evaluate")
        )
        self.session.flush()
        return updated

    def reclaim_failed_record(self, stripe_session_id: str) -> int:
        """Move a FAILED record back to PENDING; returns 0 if it was not FAILED."""

        claimed = (
            self.session.query(BillingRecord)
            .filter(
                BillingRecord.stripe_session_id == stripe_session_id,
                BillingRecord.status == BillingStatus.FAILED,
            )
            .update(
                {"status": BillingStatus.PENDING, "updated_at": utcnow()},
                synchronize_session=False,
            )
        )
        self.session.flush()
        return claimed

    def find_by_session(self, stripe_session_id: str) -> Optional[BillingRecord]:
        return (
            self.session.query(BillingRecord)
            .filter_by(stripe_session_id=stripe_session_id)
            .first()
        )

    def get_record(self, record_id: int) -> Optional[BillingRecord]:
        return self.session.get(BillingRecord, record_id)

    def get_billing_history(self, employer_profile_id: int) -> List[BillingRecord]:
        return (
            self.session.query(BillingRecord)
            .filter_by(employer_profile_id=employer_profile_id)
            .order_by(BillingRecord.created_at.desc(), BillingRecord.id.desc())
            .all()
        )
