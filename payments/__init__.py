"""Payment gateway backends."""

from .abstract_gateway import AbstractPaymentGateway, CheckoutSession, LineItem
from .stripe_gateway import StripeGateway

__all__ = ["AbstractPaymentGateway", "CheckoutSession", "LineItem", "StripeGateway"]
