"""Payment gateway abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence


@dataclass(frozen=True)
class LineItem:
    """A single priced item on a checkout session."""

    name: str
    description: str
    unit_amount_cents: int
    currency: str = "usd"
    quantity: int = 1


@dataclass(frozen=True)
class CheckoutSession:
    """The gateway's view of a checkout session."""

    id: str
    url: Optional[str] = None
    payment_status: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"


class AbstractPaymentGateway(ABC):
    """Interface for payment providers."""

    @abstractmethod
    def create_checkout_session(
        self,
        line_items: Sequence[LineItem],
        success_url: str,
        cancel_url: str,
        metadata: Mapping[str, str],
    ) -> CheckoutSession:
        """Create a one-time payment checkout session."""

    @abstractmethod
    def retrieve_session(self, session_id: str) -> CheckoutSession:
        """Fetch a checkout session with its payment status and metadata."""

    @abstractmethod
    def construct_event(self, payload: bytes, signature: Optional[str]) -> Mapping[str, Any]:
        """Verify a webhook payload and return the parsed event."""

    @abstractmethod
    def create_customer(self, email: str, name: str, metadata: Mapping[str, str]) -> str:
        """Create a customer and return its identifier."""

    @abstractmethod
    def create_invoice(
        self, customer_id: str, amount_cents: int, description: str, currency: str
    ) -> str:
        """Create and finalize an invoice for a single charge, returning its id."""

    @abstractmethod
    def get_invoice_url(self, invoice_id: str) -> Optional[str]:
        """Return a downloadable URL for the invoice, if available."""
