"""Payment gateway port (abstract interface).

Each supported payment method is served by one adapter implementing this
contract. The reconciler never branches on the method: it looks the adapter
up and talks to it through these four calls.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


class GatewayEventType(Enum):
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    OTHER = "other"


@dataclass(frozen=True)
class PaymentIntent:
    """What the gateway hands back when a payment is started.

    ``client_credential`` is what the buyer's client needs to complete the
    payment: a Stripe client secret or a PayPal approval URL.
    """

    gateway_id: str
    client_credential: str | None = None


@dataclass(frozen=True)
class RefundReceipt:
    refund_id: str
    status: str | None = None


@dataclass(frozen=True)
class GatewayEvent:
    """A verified webhook, reduced to what reconciliation needs."""

    type: GatewayEventType
    raw_type: str
    gateway_id: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def payment_id(self) -> str | None:
        return self.metadata.get("payment_id")

    @property
    def order_id(self) -> str | None:
        return self.metadata.get("order_id")


def normalize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


class PaymentGateway(ABC):
    name: str = "gateway"

    @abstractmethod
    def create_intent(self, amount: float, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        """Open a payment with the gateway. Raises ``GatewayError`` on failure."""
        ...

    @abstractmethod
    def create_refund(self, gateway_transaction_id: str, amount: float, currency: str) -> RefundReceipt:
        """Refund a completed payment in full. Raises ``GatewayError`` on failure."""
        ...

    @abstractmethod
    def verify_and_parse(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        """Authenticate a webhook, then interpret it.

        Raises ``WebhookVerificationError`` before looking at the payload's
        meaning when authentication fails.
        """
        ...

    def accepts_transaction_id(self, gateway_transaction_id: str | None) -> bool:
        """Whether a stored transaction id can be refunded through this gateway."""
        return bool(gateway_transaction_id)

    def close(self) -> None:  # noqa: B027
        """Release network resources held by the adapter."""
