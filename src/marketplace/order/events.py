"""Order domain events — immutable facts about order state changes."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order and its stock was reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    total_amount = Float(required=True)
    item_count = Integer(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    reason = String()
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; stock goes back and a paid order is refunded."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    refund_required = Boolean(default=False)
    reason = String()
    cancelled_at = DateTime(required=True)
