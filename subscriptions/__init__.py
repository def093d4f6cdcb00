"""Subscription, entitlement and billing engine for employer accounts."""

from .exceptions import (
    AutoRenewDisabled,
    BillingRecordNotFound,
    EmployerNotFound,
    InvalidStateError,
    InvalidWebhook,
    NoPostingCapacity,
    NotFoundError,
    PaymentGatewayError,
    PlanNotPurchasable,
    PlanNotRenewable,
    SubscriptionError,
    UnknownPlan,
)
from .ledger import BillingLedger
from .plans import PLAN_CATALOG, PlanDefinition, get_plan, parse_subscription_type
from .reconciliation import PaymentReconciler
from .renewals import RENEWAL_WINDOW_DAYS, RenewalResult, RenewalScheduler
from .service import SubscriptionService, SubscriptionStatus, SubscriptionSummary

__all__ = [
    "AutoRenewDisabled",
    "BillingLedger",
    "BillingRecordNotFound",
    "EmployerNotFound",
    "InvalidStateError",
    "InvalidWebhook",
    "NoPostingCapacity",
    "NotFoundError",
    "PLAN_CATALOG",
    "PaymentGatewayError",
    "PaymentReconciler",
    "PlanDefinition",
    "PlanNotPurchasable",
    "PlanNotRenewable",
    "RENEWAL_WINDOW_DAYS",
    "RenewalResult",
    "RenewalScheduler",
    "SubscriptionError",
    "SubscriptionService",
    "SubscriptionStatus",
    "SubscriptionSummary",
    "UnknownPlan",
    "get_plan",
    "parse_subscription_type",
]
