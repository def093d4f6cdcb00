"""Errors raised by the subscription engine."""
from __future__ import annotations

from http import HTTPStatus


class SubscriptionError(Exception):
    """Base error carrying a machine code and an HTTP status for API callers."""

    code = "subscription_error"
    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class NotFoundError(SubscriptionError):
    code = "not_found"
    status_code = HTTPStatus.NOT_FOUND


class EmployerNotFound(NotFoundError):
    """Employer profile not found."""

    code = "employer_not_found"


class BillingRecordNotFound(NotFoundError):
    """Billing record not found."""

    code = "billing_record_not_found"


class InvalidStateError(SubscriptionError):
    code = "invalid_state"
    status_code = HTTPStatus.CONFLICT


class NoPostingCapacity(InvalidStateError):
    """No credits available and no unlimited posting subscription."""

    code = "SUBSCRIPTION_LIMIT_REACHED"
    status_code = HTTPStatus.PAYMENT_REQUIRED


class PlanNotPurchasable(InvalidStateError):
    """Cannot create checkout session for free plan."""

    code = "plan_not_purchasable"
    status_code = HTTPStatus.BAD_REQUEST


class PlanNotRenewable(InvalidStateError):
    """Cannot renew credit-based plans."""

    code = "plan_not_renewable"


class AutoRenewDisabled(InvalidStateError):
    """Auto-renew is not enabled for this employer."""

    code = "auto_renew_disabled"


class UnknownPlan(InvalidStateError):
    """Invalid subscription type."""

    code = "unknown_plan"
    status_code = HTTPStatus.BAD_REQUEST


class PaymentGatewayError(SubscriptionError):
    """The payment provider could not complete the request."""

    code = "payment_gateway_error"
    status_code = HTTPStatus.BAD_GATEWAY


class InvalidWebhook(SubscriptionError):
    """Invalid webhook signature."""

    code = "invalid_webhook"
    status_code = HTTPStatus.BAD_REQUEST
