"""Pure entitlement checks against a stored subscription record.

Each function takes the record and the moment to evaluate at, so callers
(and tests) decide what "now" means. End dates are inclusive.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from models.employer_subscription import EmployerSubscription, SubscriptionType

from .plans import TRIAL_DURATION_DAYS


def _not_expired(end_date: Optional[datetime], now: datetime) -> bool:
    return end_date is not None and now <= end_date


def trial_end_date(subscription: EmployerSubscription) -> Optional[datetime]:
    start = subscription.period_start
    if start is None:
        return None
    return start + timedelta(days=TRIAL_DURATION_DAYS)


def subscription_is_active(subscription: EmployerSubscription, now: datetime) -> bool:
    if subscription.subscription_type == SubscriptionType.TRIAL:
        return _not_expired(trial_end_date(subscription), now)
    return _not_expired(subscription.subscription_end_date, now)


def network_access_is_active(subscription: EmployerSubscription, now: datetime) -> bool:
    return _not_expired(subscription.network_access_end_date, now)


def unlimited_posting_is_active(subscription: EmployerSubscription, now: datetime) -> bool:
    # Network access includes unlimited posting.
    return _not_expired(
        subscription.unlimited_posting_end_date, now
    ) or network_access_is_active(subscription, now)


def days_until_expiry(subscription: EmployerSubscription, now: datetime) -> Optional[int]:
    """Whole days (rounded up) until the earliest future entitlement end date."""

    upcoming = [
        end_date
        for end_date in (
            subscription.unlimited_posting_end_date,
            subscription.network_access_end_date,
        )
        if end_date is not None and end_date > now
    ]
    if not upcoming:
        return None
    remaining = min(upcoming) - now
    return math.ceil(remaining.total_seconds() / 86400)
