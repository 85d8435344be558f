"""Payment aggregate — the money side of an order, one payment per order.

State Machine:
    PENDING → SUCCESS | FAILED          (gateway webhook)
    SUCCESS → REFUNDED                  (explicit refund)
    SUCCESS ↔ FAILED                    (later webhook contradicts an earlier one)

The last line is the only way out of a terminal state besides the refund:
the gateway's latest signal wins over what was stored, and the reconciler
logs it as a possible inconsistency. REFUNDED is final.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStatusTransition, PaymentError, RefundError
from marketplace.payment.events import PaymentInitiated, PaymentRefunded, PaymentStatusReconciled


class PaymentMethod(Enum):
    STRIPE = "STRIPE"
    PAYPAL = "PAYPAL"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


_VALID_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.SUCCESS, PaymentStatus.FAILED},
    PaymentStatus.SUCCESS: {PaymentStatus.REFUNDED, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.SUCCESS},
    PaymentStatus.REFUNDED: set(),  # terminal
}

SETTLED_STATES = {PaymentStatus.SUCCESS, PaymentStatus.FAILED}


@marketplace.aggregate
class Payment:
    order_id = Identifier(required=True, unique=True)
    method = String(choices=PaymentMethod)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="usd")
    gateway_transaction_id = String(max_length=255)
    refund_transaction_id = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open_for_order(cls, order_id: str, amount: float, currency: str = "usd"):
        now = datetime.now(UTC)
        return cls(
            order_id=order_id,
            amount=amount,
            currency=currency,
            status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    @property
    def current_status(self) -> PaymentStatus:
        return PaymentStatus(self.status)

    def _assert_can_transition(self, target: PaymentStatus) -> None:
        current = self.current_status
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStatusTransition({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def start(self, method: PaymentMethod, gateway_transaction_id: str) -> None:
        """Record the gateway-side payment that was opened for this order."""
        if self.current_status != PaymentStatus.PENDING:
            raise PaymentError({"status": [f"Payment {self.id} is not in PENDING state"]})

        now = datetime.now(UTC)
        self.method = method.value
        self.gateway_transaction_id = gateway_transaction_id
        self.updated_at = now
        self.raise_(
            PaymentInitiated(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                method=method.value,
                gateway_transaction_id=gateway_transaction_id,
                amount=self.amount,
                initiated_at=now,
            )
        )

    def reconcile(self, target: PaymentStatus, gateway_transaction_id: str | None = None) -> None:
        self._assert_can_transition(target)

        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        if gateway_transaction_id:
            self.gateway_transaction_id = gateway_transaction_id
        self.updated_at = now
        self.raise_(
            PaymentStatusReconciled(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                previous_status=previous,
                new_status=target.value,
                gateway_transaction_id=self.gateway_transaction_id,
                reconciled_at=now,
            )
        )

    def mark_refunded(self, refund_transaction_id: str) -> None:
        if self.current_status != PaymentStatus.SUCCESS:
            raise RefundError({"status": [f"Payment {self.id} is not in SUCCESS status"]})

        now = datetime.now(UTC)
        self.status = PaymentStatus.REFUNDED.value
        self.refund_transaction_id = refund_transaction_id
        self.updated_at = now
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=self.amount,
                refund_transaction_id=refund_transaction_id,
                refunded_at=now,
            )
        )
