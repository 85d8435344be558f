"""Order cancellation — command and handler.

Stock always goes back. A paid order is refunded on a best-effort basis:
a refund that fails is logged and reported in the result, and the order is
cancelled regardless so the follow-up can happen manually.
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.catalogue.ledger import InventoryLedger
from marketplace.domain import marketplace
from marketplace.exceptions import RefundError, first_message
from marketplace.order.access import ensure_owner_or_admin, find_order
from marketplace.order.order import Order, OrderStatus
from marketplace.order.queries import materialize
from marketplace.payment.payment import Payment, PaymentStatus
from marketplace.payment.refund import refund_payment

logger = structlog.get_logger(__name__)


class RefundOutcome(Enum):
    NOT_REQUIRED = "NOT_REQUIRED"
    REFUNDED = "REFUNDED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class CancellationResult:
    order: dict
    refund_outcome: RefundOutcome
    refund_error: str | None = None

    @property
    def refund_pending(self) -> bool:
        return self.refund_outcome == RefundOutcome.FAILED


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    requester_role = String(max_length=50)
    reason = String(max_length=500)


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = find_order(command.order_id)
        ensure_owner_or_admin(order, command.requester_id, command.requester_role)

        payment = current_domain.repository_for(Payment).for_order(order.id)
        if order.current_status == OrderStatus.CANCELLED:
            return CancellationResult(order=materialize(order, payment), refund_outcome=RefundOutcome.NOT_REQUIRED)

        refund_required = payment is not None and payment.current_status == PaymentStatus.SUCCESS
        # Raises for SHIPPED / DELIVERED before anything is touched
        order.cancel(refund_required=refund_required, reason=command.reason)

        InventoryLedger().release_lines(order.stock_lines(), order_id=str(order.id))

        outcome, refund_error = RefundOutcome.NOT_REQUIRED, None
        if refund_required:
            try:
                refund_payment(payment)
                outcome = RefundOutcome.REFUNDED
            except RefundError as exc:
                outcome, refund_error = RefundOutcome.FAILED, first_message(exc)
                logger.error(
                    "cancellation_refund_failed",
                    order_id=str(order.id),
                    payment_id=str(payment.id),
                    error=refund_error,
                )

        current_domain.repository_for(Order).add(order)
        logger.info("order_cancelled", order_id=str(order.id), refund_outcome=outcome.value)
        return CancellationResult(order=materialize(order, payment), refund_outcome=outcome, refund_error=refund_error)
