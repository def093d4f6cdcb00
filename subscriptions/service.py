"""Entitlement queries, the job-posting gate, the subscription mutator and
trial setup for employer accounts.

Query methods never raise: a missing record or a store error denies the
entitlement and is logged. Command methods raise ``SubscriptionError``
subclasses and commit their own changes unless told otherwise.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import and_, or_, update
from sqlalchemy.orm import Session

from models.employer_subscription import (
    EmployerSubscription,
    RenewalPeriod,
    SubscriptionType,
)
from models.job import COUNTED_JOB_STATUSES, Job
from models.user import User
from utils.clock import Clock, utcnow

from . import entitlements
from .exceptions import EmployerNotFound, NoPostingCapacity
from .plans import AGENCY_TRIAL_CREDITS, PlanDefinition, get_plan

logger = logging.getLogger(__name__)

# Expired listings keep counting toward usage for this long.
USAGE_GRACE_DAYS = 60


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class SubscriptionSummary:
    subscription_type: SubscriptionType
    subscription_start_date: Optional[datetime]
    subscription_end_date: Optional[datetime]
    job_post_limit: Optional[int]
    jobs_posted_count: int
    job_credits: int
    has_network_access: bool
    stripe_customer_id: Optional[str]

    def to_dict(self) -> dict:
        return {
            "subscription_type": self.subscription_type.value,
            "subscription_start_date": _iso(self.subscription_start_date),
            "subscription_end_date": _iso(self.subscription_end_date),
            "job_post_limit": self.job_post_limit,
            "jobs_posted_count": self.jobs_posted_count,
            "job_credits": self.job_credits,
            "has_network_access": self.has_network_access,
            "stripe_customer_id": self.stripe_customer_id,
        }


@dataclass(frozen=True)
class SubscriptionStatus:
    has_unlimited_posting: bool
    has_network_access: bool
    job_credits: int
    subscription_type: SubscriptionType
    unlimited_posting_end_date: Optional[datetime]
    network_access_end_date: Optional[datetime]
    auto_renew: bool
    renewal_period: Optional[RenewalPeriod]
    days_until_expiry: Optional[int]

    def to_dict(self) -> dict:
        return {
            "has_unlimited_posting": self.has_unlimited_posting,
            "has_network_access": self.has_network_access,
            "job_credits": self.job_credits,
            "subscription_type": self.subscription_type.value,
            "unlimited_posting_end_date": _iso(self.unlimited_posting_end_date),
            "network_access_end_date": _iso(self.network_access_end_date),
            "auto_renew": self.auto_renew,
            "renewal_period": self.renewal_period.value if self.renewal_period else None,
            "days_until_expiry": self.days_until_expiry,
        }


def set_entitlement_end_dates(
    subscription: EmployerSubscription, plan: PlanDefinition, end_date: datetime
) -> None:
    """Point every time-bounded entitlement the plan grants at ``end_date``."""

    subscription.subscription_end_date = end_date
    subscription.unlimited_posting_end_date = (
        end_date if plan.has_unlimited_posting else None
    )
    subscription.network_access_end_date = end_date if plan.has_network_access else None
    subscription.has_network_access = plan.has_network_access


class SubscriptionService:
    """Reads and mutates ``EmployerSubscription`` rows for one unit of work."""

    def __init__(self, session: Session, clock: Clock = utcnow):
        self.session = session
        self.clock = clock

    def get_record(self, employer_id: int) -> Optional[EmployerSubscription]:
        return (
            self.session.query(EmployerSubscription)
            .filter_by(user_id=employer_id)
            .first()
        )

    def require_record(self, employer_id: int) -> EmployerSubscription:
        subscription = self.get_record(employer_id)
        if subscription is None:
            raise EmployerNotFound()
        return subscription

    # Entitlement queries

    def _check(
        self,
        employer_id: int,
        predicate: Callable[[EmployerSubscription, datetime], bool],
        label: str,
    ) -> bool:
        try:
            subscription = self.get_record(employer_id)
            if subscription is None:
                logger.info("No subscription record for employer %s (%s)", employer_id, label)
                return False
            return bool(predicate(subscription, self.clock()))
        except Exception:
            logger.exception("Error checking %s for employer %s", label, employer_id)
            return False

    def has_active_subscription(self, employer_id: int) -> bool:
        return self._check(
            employer_id, entitlements.subscription_is_active, "subscription status"
        )

    def has_active_unlimited_posting(self, employer_id: int) -> bool:
        return self._check(
            employer_id, entitlements.unlimited_posting_is_active, "unlimited posting"
        )

    def has_active_network_access(self, employer_id: int) -> bool:
        return self._check(
            employer_id, entitlements.network_access_is_active, "network access"
        )

    def can_post_job(self, employer_id: int) -> bool:
        """Return True if the employer may post a job right now."""

        def _allowed(subscription: EmployerSubscription, now: datetime) -> bool:
            if entitlements.unlimited_posting_is_active(subscription, now):
                return True
            return (subscription.job_credits or 0) > 0

        return self._check(employer_id, _allowed, "job posting eligibility")

    # Credit ledger

    def handle_job_posting(self, employer_id: int) -> None:
        """Consume posting capacity for one accepted job.

        Without unlimited posting, one credit is taken with a conditional
        decrement so concurrent posts can never drive ``job_credits`` below
        zero. The lifetime ``jobs_posted_count`` always increases.
        """

        subscription = self.require_record(employer_id)
        if not entitlements.unlimited_posting_is_active(subscription, self.clock()):
            result = self.session.execute(
                update(EmployerSubscription)
                .where(
                    EmployerSubscription.user_id == employer_id,
                    EmployerSubscription.job_credits > 0,
                )
                .values(job_credits=EmployerSubscription.job_credits - 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                logger.warning("Employer %s tried to post without capacity", employer_id)
                raise NoPostingCapacity()

        self.session.execute(
            update(EmployerSubscription)
            .where(EmployerSubscription.user_id == employer_id)
            .values(jobs_posted_count=EmployerSubscription.jobs_posted_count + 1)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()

    increment_job_post_count = handle_job_posting

    def get_active_jobs_count(
        self, employer_id: int, subscription_start_date: datetime
    ) -> int:
        """Count ACTIVE/FILLED jobs posted since ``subscription_start_date``.

        Listings count while open and for ``USAGE_GRACE_DAYS`` after they
        expire; listings without an expiry count for the same window after
        creation.
        """

        cutoff = self.clock() - timedelta(days=USAGE_GRACE_DAYS)
        return (
            self.session.query(Job)
            .filter(
                Job.employer_id == employer_id,
                Job.created_at >= subscription_start_date,
                Job.status.in_(COUNTED_JOB_STATUSES),
                or_(
                    and_(Job.expires_at.is_(None), Job.created_at >= cutoff),
                    Job.expires_at >= cutoff,
                ),
            )
            .count()
        )

    # Summaries

    def get_employer_subscription(self, employer_id: int) -> Optional[SubscriptionSummary]:
        subscription = self.get_record(employer_id)
        if subscription is None:
            return None

        now = self.clock()
        subscription_type = subscription.subscription_type or SubscriptionType.TRIAL
        start_date = subscription.period_start
        if subscription_type == SubscriptionType.TRIAL:
            end_date = entitlements.trial_end_date(subscription)
            job_post_limit = subscription.job_post_limit
        else:
            end_date = subscription.subscription_end_date
            job_post_limit = get_plan(subscription_type).job_limit

        return SubscriptionSummary(
            subscription_type=subscription_type,
            subscription_start_date=start_date,
            subscription_end_date=end_date,
            job_post_limit=job_post_limit,
            jobs_posted_count=self.get_active_jobs_count(employer_id, start_date),
            job_credits=subscription.job_credits or 0,
            has_network_access=entitlements.network_access_is_active(subscription, now),
            stripe_customer_id=subscription.stripe_customer_id,
        )

    def get_subscription_status(self, employer_id: int) -> SubscriptionStatus:
        subscription = self.require_record(employer_id)
        now = self.clock()
        return SubscriptionStatus(
            has_unlimited_posting=entitlements.unlimited_posting_is_active(subscription, now),
            has_network_access=entitlements.network_access_is_active(subscription, now),
            job_credits=subscription.job_credits or 0,
            subscription_type=subscription.subscription_type or SubscriptionType.TRIAL,
            unlimited_posting_end_date=subscription.unlimited_posting_end_date,
            network_access_end_date=subscription.network_access_end_date,
            auto_renew=bool(subscription.auto_renew),
            renewal_period=subscription.renewal_period,
            days_until_expiry=entitlements.days_until_expiry(subscription, now),
        )

    # Mutations

    def update_employer_subscription(
        self,
        employer_id: int,
        subscription_type,
        stripe_customer_id: Optional[str] = None,
        stripe_session_id: Optional[str] = None,
        commit: bool = True,
    ) -> EmployerSubscription:
        """Apply the effects of a purchased plan.

        Credit plans only add credits. Time-based plans replace the plan type
        and start a fresh term from now. Calling this twice for one purchase
        applies it twice; callers dedupe on the checkout session id.
        """

        plan = get_plan(subscription_type)
        subscription = self.require_record(employer_id)
        logger.info(
            "Updating employer subscription: employer_id=%s plan=%s session_id=%s",
            employer_id,
            plan.key.value,
            stripe_session_id,
        )

        if plan.is_credits:
            subscription.job_credits = EmployerSubscription.job_credits + plan.credits
        else:
            now = self.clock()
            subscription.subscription_type = plan.key
            subscription.subscription_start_date = now
            set_entitlement_end_dates(
                subscription, plan, now + timedelta(days=plan.duration_days or 0)
            )
            subscription.auto_renew = plan.auto_renew
            subscription.renewal_period = plan.renewal_period

        if stripe_customer_id:
            subscription.stripe_customer_id = stripe_customer_id
        if stripe_session_id:
            subscription.stripe_session_id = stripe_session_id

        if commit:
            self.session.commit()
        else:
            self.session.flush()
        return subscription

    def initialize_trial_subscription(
        self, employer_id: int, user_role: Optional[str] = None
    ) -> EmployerSubscription:
        """Put a freshly created employer or agency on the trial.

        Employers start without posting capacity; agencies, and accounts
        whose role cannot be resolved, start with free credits.
        """

        subscription = self.require_record(employer_id)

        role = user_role
        if not role:
            user = self.session.get(User, employer_id)
            role = user.role if user else None
        role = (role or "").strip().lower()

        if role == "employer":
            credits = 0
        else:
            credits = AGENCY_TRIAL_CREDITS

        subscription.subscription_type = SubscriptionType.TRIAL
        subscription.subscription_start_date = self.clock()
        subscription.job_post_limit = credits
        subscription.job_credits = credits
        subscription.jobs_posted_count = 0
        self.session.commit()

        logger.info(
            "Initialized trial for employer %s (role=%s, credits=%s)",
            employer_id,
            role or "unknown",
            credits,
        )
        return subscription

    def cancel_subscription(self, employer_id: int) -> EmployerSubscription:
        """Stop future renewals. Current entitlements run to their end dates."""

        subscription = self.require_record(employer_id)
        subscription.auto_renew = False
        self.session.commit()
        logger.info("Cancelled auto-renewal for employer %s", employer_id)
        return subscription
