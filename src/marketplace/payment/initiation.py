"""Payment initiation — open the order's payment with the chosen gateway."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.exceptions import GatewayError, PaymentError, PaymentNotFound, UnauthorizedAccess, first_message
from marketplace.gateway import get_gateway
from marketplace.order.access import find_order
from marketplace.payment.payment import Payment, PaymentMethod, PaymentStatus

logger = structlog.get_logger(__name__)

# What the buyer's client receives to complete the payment, per method
_CREDENTIAL_KEYS = {
    PaymentMethod.STRIPE: "client_secret",
    PaymentMethod.PAYPAL: "approval_url",
}


@marketplace.command(part_of="Payment")
class InitiatePayment:
    order_id = Identifier(required=True)
    payment_method = String(required=True, max_length=20)
    requester_id = Identifier(required=True)


@marketplace.command_handler(part_of=Payment)
class InitiatePaymentHandler:
    @handle(InitiatePayment)
    def initiate(self, command):
        order = find_order(command.order_id)
        if not order.is_owned_by(command.requester_id):
            raise UnauthorizedAccess({"requester_id": [f"Not allowed to pay for order {order.id}"]})

        repo = current_domain.repository_for(Payment)
        payment = repo.for_order(order.id)
        if payment is None:
            raise PaymentNotFound({"order_id": [f"No payment found for order {order.id}"]})
        if payment.current_status != PaymentStatus.PENDING:
            raise PaymentError({"status": [f"Payment {payment.id} is not in PENDING state"]})

        try:
            method = PaymentMethod(command.payment_method.upper())
        except ValueError as exc:
            raise PaymentError({"payment_method": [f"Unsupported payment method: {command.payment_method}"]}) from exc

        gateway = get_gateway(method.value)
        try:
            intent = gateway.create_intent(
                payment.amount,
                payment.currency,
                metadata={
                    "payment_id": str(payment.id),
                    "order_id": str(order.id),
                    "order_number": order.order_number,
                },
            )
        except GatewayError as exc:
            raise PaymentError({"gateway": [f"Payment initiation failed: {first_message(exc)}"]}) from exc

        payment.start(method, intent.gateway_id)
        repo.add(payment)
        logger.info(
            "payment_initiated",
            payment_id=str(payment.id),
            order_id=str(order.id),
            method=method.value,
            gateway_transaction_id=intent.gateway_id,
        )

        result = {
            "payment_id": str(payment.id),
            "payment_method": method.value,
            "gateway_transaction_id": intent.gateway_id,
            "amount": payment.amount,
            "currency": payment.currency,
            _CREDENTIAL_KEYS[method]: intent.client_credential,
        }
        if method == PaymentMethod.PAYPAL:
            result["paypal_order_id"] = intent.gateway_id
        return result
