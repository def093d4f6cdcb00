"""Scheduled auto-renewal of time-based plans."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from models.employer_profile import EmployerProfile
from models.employer_subscription import EmployerSubscription
from utils.clock import Clock, utcnow

from .exceptions import AutoRenewDisabled, EmployerNotFound, PlanNotRenewable
from .ledger import BillingLedger
from .plans import get_plan
from .service import set_entitlement_end_dates

logger = logging.getLogger(__name__)

RENEWAL_WINDOW_DAYS = 3


@dataclass(frozen=True)
class RenewalResult:
    renewed_count: int
    failed_count: int

    def to_dict(self) -> dict:
        return {"renewed_count": self.renewed_count, "failed_count": self.failed_count}


class RenewalScheduler:
    def __init__(self, session: Session, ledger: BillingLedger, clock: Clock = utcnow):
        self.session = session
        self.ledger = ledger
        self.clock = clock

    def due_for_renewal(self) -> list[int]:
        """Employer ids whose auto-renewing entitlement ends within the window."""

        now = self.clock()
        horizon = now + timedelta(days=RENEWAL_WINDOW_DAYS)
        rows = (
            self.session.query(EmployerSubscription.user_id)
            .filter(
                EmployerSubscription.auto_renew.is_(True),
                or_(
                    and_(
                        EmployerSubscription.unlimited_posting_end_date >= now,
                        EmployerSubscription.unlimited_posting_end_date <= horizon,
                    ),
                    and_(
                        EmployerSubscription.network_access_end_date >= now,
                        EmployerSubscription.network_access_end_date <= horizon,
                    ),
                ),
            )
            .order_by(EmployerSubscription.id)
            .all()
        )
        return [row.user_id for row in rows]

    def process_subscription_renewals(self) -> RenewalResult:
        """Renew every due subscription; one failure never stops the rest."""

        renewed_count = 0
        failed_count = 0
        for employer_id in self.due_for_renewal():
            try:
                self.renew_subscription(employer_id)
                renewed_count += 1
            except Exception:
                self.session.rollback()
                logger.exception("Failed to renew subscription for employer %s", employer_id)
                failed_count += 1

        logger.info(
            "Subscription renewals processed: renewed=%s failed=%s",
            renewed_count,
            failed_count,
        )
        return RenewalResult(renewed_count=renewed_count, failed_count=failed_count)

    def renew_subscription(self, employer_id: int) -> EmployerSubscription:
        """Start a fresh term from now and record the renewal charge.

        The new term is measured from the moment of renewal, not from the old
        end date.
        """

        subscription = (
            self.session.query(EmployerSubscription).filter_by(user_id=employer_id).first()
        )
        if subscription is None:
            raise EmployerNotFound()
        if not subscription.auto_renew:
            raise AutoRenewDisabled()

        plan = get_plan(subscription.subscription_type)
        if plan.is_credits or not plan.auto_renew or not plan.duration_days:
            raise PlanNotRenewable()

        profile = (
            self.session.query(EmployerProfile).filter_by(user_id=employer_id).first()
        )
        if profile is None:
            raise EmployerNotFound()

        new_end_date = self.clock() + timedelta(days=plan.duration_days)
        set_entitlement_end_dates(subscription, plan, new_end_date)
        self.ledger.create_billing_record(
            profile.id,
            plan.price,
            f"{plan.name} - Renewal",
            plan.key,
        )
        self.session.commit()

        logger.info(
            "Renewed subscription for employer %s until %s",
            employer_id,
            new_end_date.isoformat(),
        )
        return subscription
