"""Employer subscription model for billing and entitlements."""

from enum import Enum

from utils.clock import utcnow

from . import db


class SubscriptionType(str, Enum):
    """Plan identifiers. Values are persisted verbatim."""

    TRIAL = "TRIAL"
    SPOTLIGHT = "SPOTLIGHT"
    BUNDLE = "BUNDLE"
    UNLIMITED = "UNLIMITED"
    NETWORK = "NETWORK"
    NETWORK_QUARTERLY = "NETWORK_QUARTERLY"


class RenewalPeriod(str, Enum):
    ANNUAL = "ANNUAL"
    QUARTERLY = "QUARTERLY"


class EmployerSubscription(db.Model):
    """Stores an employer's plan, credits and entitlement end dates.

    ``user_id`` is the employer id used throughout the subscription engine.
    ``has_network_access`` is a cache of ``network_access_end_date`` written
    alongside it; entitlement checks always read the date.
    """

    __tablename__ = "employer_subscriptions"
    __table_args__ = (
        db.CheckConstraint("job_credits >= 0", name="ck_employer_subscriptions_credits"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True
    )
    subscription_type = db.Column(
        db.Enum(SubscriptionType, name="subscription_type", native_enum=False),
        nullable=False,
        default=SubscriptionType.TRIAL,
    )
    subscription_start_date = db.Column(db.DateTime, nullable=True)
    subscription_end_date = db.Column(db.DateTime, nullable=True)
    job_credits = db.Column(db.Integer, nullable=False, default=0)
    job_post_limit = db.Column(db.Integer, nullable=False, default=0)
    jobs_posted_count = db.Column(db.Integer, nullable=False, default=0)
    unlimited_posting_end_date = db.Column(db.DateTime, nullable=True)
    network_access_end_date = db.Column(db.DateTime, nullable=True)
    has_network_access = db.Column(db.Boolean, nullable=False, default=False)
    auto_renew = db.Column(db.Boolean, nullable=False, default=False, index=True)
    renewal_period = db.Column(
        db.Enum(RenewalPeriod, name="renewal_period", native_enum=False),
        nullable=True,
    )
    stripe_customer_id = db.Column(db.String(255), nullable=True)
    stripe_session_id = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    user = db.relationship("User", back_populates="subscription")

    @property
    def period_start(self):
        """Start of the current period, falling back to record creation."""

        return self.subscription_start_date or self.created_at
