"""Payment gateway port (abstract interface).

Defines the contract every checkout adapter implements, so ``FakeGateway``
(dev/test) and ``StripeGateway`` (production) are interchangeable.
Amounts are always integer minor units (cents).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str | None
    payment_status: str  # "paid", "unpaid" or "no_payment_required"
    amount_total: int
    payment_intent: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def paid(self) -> bool:
        return self.payment_status == "paid"


@dataclass(frozen=True)
class WebhookEvent:
    type: str
    session: CheckoutSession | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def create_checkout_session(
        self,
        *,
        amount: int,
        description: str,
        customer_email: str | None,
        metadata: dict[str, str],
    ) -> CheckoutSession:
        """Open a hosted checkout for a single line of ``amount`` minor units."""
        ...

    @abstractmethod
    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession | None:
        """Fetch a session, or ``None`` when the gateway does not know it."""
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str | None) -> WebhookEvent:
        """Verify a webhook signature and parse the event.

        Raises ``ValidationError`` when the signature does not match.
        """
        ...
