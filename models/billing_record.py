"""Billing ledger entries."""

from decimal import Decimal
from enum import Enum

from utils.clock import utcnow

from . import db
from .employer_subscription import SubscriptionType


class BillingStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class BillingRecord(db.Model):
    """One purchase or renewal charge.

    ``stripe_session_id`` is unique so that repeated webhook deliveries for a
    checkout session can only ever claim a single record.
    """

    __tablename__ = "billing_records"

    id = db.Column(db.Integer, primary_key=True)
    employer_profile_id = db.Column(
        db.Integer,
        db.ForeignKey("employer_profiles.id"),
        nullable=False,
        index=True,
    )
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(8), nullable=False, default="usd")
    description = db.Column(db.String(500), nullable=False)
    subscription_type = db.Column(
        db.Enum(SubscriptionType, name="billing_subscription_type", native_enum=False),
        nullable=False,
    )
    status = db.Column(
        db.Enum(BillingStatus, name="billing_status", native_enum=False),
        nullable=False,
        default=BillingStatus.PENDING,
    )
    stripe_session_id = db.Column(db.String(255), nullable=True, unique=True)
    stripe_invoice_id = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    employer_profile = db.relationship("EmployerProfile", back_populates="billing_records")

    def to_dict(self) -> dict:
        """Serialize the billing record."""

        amount = float(self.amount) if isinstance(self.amount, Decimal) else self.amount
        return {
            "id": self.id,
            "amount": amount,
            "currency": self.currency,
            "description": self.description,
            "subscription_type": self.subscription_type.value,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "stripe_invoice_id": self.stripe_invoice_id,
            "stripe_session_id": self.stripe_session_id,
        }
