"""Static catalog of purchasable plans."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Dict, Optional

from models.employer_subscription import RenewalPeriod, SubscriptionType

from .exceptions import UnknownPlan


@dataclass(frozen=True)
class PlanDefinition:
    """Describes a plan's price, term and the entitlements it grants."""

    key: SubscriptionType
    name: str
    price: Decimal
    description: str
    is_credits: bool = False
    credits: int = 0
    duration_days: Optional[int] = None
    job_limit: Optional[int] = None
    has_unlimited_posting: bool = False
    has_network_access: bool = False
    auto_renew: bool = False
    renewal_period: Optional[RenewalPeriod] = None
    listing_duration_days: Optional[int] = None

    @property
    def is_free(self) -> bool:
        return self.price == 0

    @property
    def price_cents(self) -> int:
        return int((self.price * 100).to_integral_value())

    @property
    def billing_description(self) -> str:
        return f"{self.name} - {self.description}"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["key"] = self.key.value
        data["price"] = float(self.price)
        data["renewal_period"] = self.renewal_period.value if self.renewal_period else None
        return data


TRIAL_DURATION_DAYS = 30
AGENCY_TRIAL_CREDITS = 5

PLAN_CATALOG: Dict[SubscriptionType, PlanDefinition] = {
    SubscriptionType.TRIAL: PlanDefinition(
        key=SubscriptionType.TRIAL,
        name="30-Day Trial",
        price=Decimal("0"),
        description=f"{AGENCY_TRIAL_CREDITS} job posts for {TRIAL_DURATION_DAYS} days",
        duration_days=TRIAL_DURATION_DAYS,
        job_limit=AGENCY_TRIAL_CREDITS,
    ),
    SubscriptionType.SPOTLIGHT: PlanDefinition(
        key=SubscriptionType.SPOTLIGHT,
        name="Spotlight",
        price=Decimal("250"),
        description="1 job post credit (45-day listings, no expiration)",
        is_credits=True,
        credits=1,
        listing_duration_days=45,
    ),
    SubscriptionType.BUNDLE: PlanDefinition(
        key=SubscriptionType.BUNDLE,
        name="Hiring Bundle",
        price=Decimal("750"),
        description="4 job post credits (45-day listings, no expiration)",
        is_credits=True,
        credits=4,
        listing_duration_days=45,
    ),
    SubscriptionType.UNLIMITED: PlanDefinition(
        key=SubscriptionType.UNLIMITED,
        name="Unlimited (Annual)",
        price=Decimal("1500"),
        description="Unlimited job posting for 1 year (45-day listings, auto-renew)",
        duration_days=365,
        has_unlimited_posting=True,
        auto_renew=True,
        renewal_period=RenewalPeriod.ANNUAL,
        listing_duration_days=45,
    ),
    SubscriptionType.NETWORK: PlanDefinition(
        key=SubscriptionType.NETWORK,
        name="Network Access Membership (Annual)",
        price=Decimal("17500"),
        description=(
            "Annual Network Access: Unlimited posting + full profiles + "
            "direct messaging (auto-renew)"
        ),
        duration_days=365,
        has_unlimited_posting=True,
        has_network_access=True,
        auto_renew=True,
        renewal_period=RenewalPeriod.ANNUAL,
        listing_duration_days=45,
    ),
    SubscriptionType.NETWORK_QUARTERLY: PlanDefinition(
        key=SubscriptionType.NETWORK_QUARTERLY,
        name="Network Access Membership (Quarterly)",
        price=Decimal("5000"),
        description=(
            "Quarterly Network Access: Unlimited posting + full profiles + "
            "direct messaging (auto-renew)"
        ),
        duration_days=90,
        has_unlimited_posting=True,
        has_network_access=True,
        auto_renew=True,
        renewal_period=RenewalPeriod.QUARTERLY,
        listing_duration_days=45,
    ),
}


def parse_subscription_type(value) -> SubscriptionType:
    """Coerce a raw value (e.g. gateway metadata) into a plan key."""

    if isinstance(value, SubscriptionType):
        return value
    try:
        return SubscriptionType(str(value).strip().upper())
    except ValueError as exc:
        raise UnknownPlan(f"Unknown subscription type: {value}") from exc


def get_plan(subscription_type) -> PlanDefinition:
    """Return a plan definition, raising if unsupported."""

    return PLAN_CATALOG[parse_subscription_type(subscription_type)]
