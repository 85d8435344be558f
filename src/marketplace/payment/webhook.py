"""Payment webhook reconciliation.

Gateways deliver at-least-once and in no particular order, so
reconciliation is idempotent: repeats are absorbed, data that cannot be
found is logged and dropped rather than raised (an error response would
only make the gateway retry forever), and a contradicting late signal
overwrites the stored status with a warning.

Follow-up on the order:
    SUCCESS → order PROCESSING (a CANCELLED order stays cancelled and is
              flagged for a manual refund)
    FAILED  → order CANCELLED and its reserved stock restored, when the
              order has not shipped yet
"""

from collections.abc import Mapping
from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.catalogue.ledger import InventoryLedger
from marketplace.domain import marketplace
from marketplace.gateway import get_gateway
from marketplace.gateway.port import GatewayEventType
from marketplace.order.order import Order, OrderStatus
from marketplace.payment.payment import SETTLED_STATES, Payment, PaymentStatus

logger = structlog.get_logger(__name__)


class ReconciliationOutcome(Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


_TARGETS = {
    GatewayEventType.PAYMENT_SUCCEEDED: PaymentStatus.SUCCESS,
    GatewayEventType.PAYMENT_FAILED: PaymentStatus.FAILED,
}


@marketplace.command(part_of="Payment")
class ReconcilePayment:
    """Apply a verified gateway signal to a payment and its order."""

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    target_status = String(required=True, choices=PaymentStatus)
    gateway_transaction_id = String(max_length=255)
    source_event = String(max_length=100)


@marketplace.command_handler(part_of=Payment)
class ReconcilePaymentHandler:
    @handle(ReconcilePayment)
    def reconcile(self, command):
        log = logger.bind(payment_id=command.payment_id, order_id=command.order_id, event=command.source_event)
        payments = current_domain.repository_for(Payment)
        orders = current_domain.repository_for(Order)

        try:
            payment = payments.get(command.payment_id)
            order = orders.get(command.order_id)
        except ObjectNotFoundError:
            log.warning("webhook_target_missing")
            return ReconciliationOutcome.IGNORED.value
        if str(payment.order_id) != str(order.id):
            log.warning("webhook_order_mismatch", payment_order_id=str(payment.order_id))
            return ReconciliationOutcome.IGNORED.value

        target = PaymentStatus(command.target_status)
        current = payment.current_status
        if current == target:
            log.info("webhook_duplicate_ignored", status=current.value)
            return ReconciliationOutcome.DUPLICATE.value
        if current == PaymentStatus.REFUNDED:
            log.warning("webhook_for_refunded_payment_ignored", target_status=target.value)
            return ReconciliationOutcome.IGNORED.value
        if current in SETTLED_STATES:
            log.warning("payment_status_overwritten", previous_status=current.value, target_status=target.value)

        payment.reconcile(target, command.gateway_transaction_id)
        payments.add(payment)

        if target == PaymentStatus.SUCCESS:
            self._after_success(order, log)
        else:
            self._after_failure(order, log)

        log.info("payment_reconciled", status=target.value, order_status=order.status)
        return ReconciliationOutcome.APPLIED.value

    def _after_success(self, order, log) -> None:
        if order.current_status == OrderStatus.CANCELLED:
            log.warning("payment_succeeded_for_cancelled_order", action="manual refund required")
            return
        if order.mark_paid():
            current_domain.repository_for(Order).add(order)

    def _after_failure(self, order, log) -> None:
        if order.current_status not in (OrderStatus.PENDING, OrderStatus.PROCESSING):
            if order.current_status != OrderStatus.CANCELLED:
                log.warning("payment_failed_after_shipping", order_status=order.status)
            return
        order.cancel(reason="payment failed")
        InventoryLedger().release_lines(order.stock_lines(), order_id=str(order.id))
        current_domain.repository_for(Order).add(order)


def handle_gateway_webhook(method: str, payload: bytes, headers: Mapping[str, str]) -> str:
    """Verify, interpret and reconcile one webhook delivery from ``method``'s gateway.

    Raises ``WebhookVerificationError`` when the delivery is not authentic;
    otherwise returns the reconciliation outcome.
    """
    gateway = get_gateway(method)
    event = gateway.verify_and_parse(payload, headers)

    target = _TARGETS.get(event.type)
    if target is None:
        logger.info("webhook_event_ignored", gateway=gateway.name, event_type=event.raw_type)
        return ReconciliationOutcome.IGNORED.value
    if not event.payment_id or not event.order_id:
        logger.warning("webhook_metadata_missing", gateway=gateway.name, event_type=event.raw_type)
        return ReconciliationOutcome.IGNORED.value

    return current_domain.process(
        ReconcilePayment(
            payment_id=event.payment_id,
            order_id=event.order_id,
            target_status=target.value,
            gateway_transaction_id=event.gateway_id,
            source_event=event.raw_type,
        ),
        asynchronous=False,
    )
