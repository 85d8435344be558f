"""Payment refunds — full refund of a successful payment through its gateway.

``refund_payment`` is shared by the explicit refund command and by order
cancellation, so both run the refund inside their own unit of work.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.exceptions import (
    GatewayError,
    PaymentError,
    PaymentNotFound,
    RefundError,
    UnauthorizedAccess,
    first_message,
)
from marketplace.gateway import get_gateway
from marketplace.order.access import is_admin
from marketplace.payment.payment import Payment, PaymentStatus

logger = structlog.get_logger(__name__)


def refund_payment(payment: Payment) -> Payment:
    """Refund ``payment`` in full and stage it as REFUNDED.

    Raises ``RefundError`` and leaves the payment untouched when the payment
    is not refundable or the gateway refuses.
    """
    if payment.current_status != PaymentStatus.SUCCESS:
        raise RefundError({"status": [f"Payment {payment.id} is not in SUCCESS status"]})

    try:
        gateway = get_gateway(payment.method)
    except PaymentError as exc:
        raise RefundError({"method": [first_message(exc)]}) from exc

    if not gateway.accepts_transaction_id(payment.gateway_transaction_id):
        raise RefundError(
            {"gateway_transaction_id": [f"Payment {payment.id} has a missing or invalid gateway transaction id"]}
        )

    try:
        receipt = gateway.create_refund(payment.gateway_transaction_id, payment.amount, payment.currency)
    except GatewayError as exc:
        logger.error("refund_rejected_by_gateway", payment_id=str(payment.id), gateway=gateway.name)
        raise RefundError({"gateway": [f"Refund failed: {first_message(exc)}"]}) from exc

    payment.mark_refunded(receipt.refund_id)
    current_domain.repository_for(Payment).add(payment)
    logger.info("payment_refunded", payment_id=str(payment.id), refund_id=receipt.refund_id, amount=payment.amount)
    return payment


@marketplace.command(part_of="Payment")
class RefundPayment:
    payment_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    requester_role = String(max_length=50)


@marketplace.command_handler(part_of=Payment)
class RefundPaymentHandler:
    @handle(RefundPayment)
    def refund(self, command):
        if not is_admin(command.requester_role):
            raise UnauthorizedAccess({"requester_role": ["Only administrators may issue refunds"]})
        try:
            payment = current_domain.repository_for(Payment).get(command.payment_id)
        except ObjectNotFoundError as exc:
            raise PaymentNotFound({"payment_id": [f"Payment {command.payment_id} not found"]}) from exc

        payment = refund_payment(payment)
        return {
            "payment_id": str(payment.id),
            "status": payment.status,
            "refund_transaction_id": payment.refund_transaction_id,
            "amount": payment.amount,
        }
