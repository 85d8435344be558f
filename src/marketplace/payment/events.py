"""Payment domain events."""

from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Payment")
class PaymentInitiated:
    """A payment was opened with an external gateway."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    method = String(required=True)
    gateway_transaction_id = String(required=True)
    amount = Float(required=True)
    initiated_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentStatusReconciled:
    """A gateway webhook moved the payment to a new status."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    gateway_transaction_id = String()
    reconciled_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentRefunded:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    refund_transaction_id = String(required=True)
    refunded_at = DateTime(required=True)
