"""Order aggregate — a customer's purchase from a single seller.

State Machine:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    {PENDING, PROCESSING} → CANCELLED
    {PENDING, PROCESSING} → SHIPPED        (shipment booked)
    {PENDING, PROCESSING} → DELIVERED      (carrier reports delivery)

Only the forward single steps are available to sellers and admins as manual
updates; everything else is driven by placement, cancellation and the
payment/shipment reconcilers.
"""

import time
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStatusTransition, OrderCancellationError
from marketplace.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged


class OrderStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # terminal
    OrderStatus.CANCELLED: set(),  # terminal
}

# Manual status updates move one step forward at a time
_MANUAL_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

_NOT_CANCELLABLE = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}


def generate_order_number() -> str:
    """``ORD-<epoch millis>-<4 random hex chars>``, e.g. ``ORD-1718000000000-3FA2``."""
    return f"ORD-{int(time.time() * 1000)}-{uuid4().hex[:4].upper()}"


def money(value: float) -> float:
    return round(value, 2)


@marketplace.entity(part_of="Order")
class OrderItem:
    """A line of an order. The price is the product price at the moment of purchase."""

    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    price_at_purchase = Float(required=True, min_value=0.0)

    @property
    def line_total(self) -> float:
        return money(self.price_at_purchase * self.quantity)


@marketplace.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    customer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    payment_id = Identifier()
    total_amount = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="usd")
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_items(self):
        if not self.items:
            return
        expected = money(sum(item.price_at_purchase * item.quantity for item in self.items))
        if abs((self.total_amount or 0.0) - expected) > 0.005:
            raise ValidationError({"total_amount": [f"Order total {self.total_amount} does not match items ({expected})"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id: str,
        seller_id: str,
        shipping_address_id: str,
        billing_address_id: str,
        lines: list[dict],
        currency: str = "usd",
    ):
        """Create a PENDING order from priced lines.

        Each line is ``{"product_id", "product_name", "quantity", "price_at_purchase"}``.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(),
            customer_id=customer_id,
            seller_id=seller_id,
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id,
            status=OrderStatus.PENDING.value,
            currency=currency,
            created_at=now,
            updated_at=now,
        )
        with atomic_change(order):
            for line in lines:
                order.add_items(OrderItem(**line))
            order.total_amount = money(sum(line["price_at_purchase"] * line["quantity"] for line in lines))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=customer_id,
                seller_id=seller_id,
                total_amount=order.total_amount,
                item_count=len(lines),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def is_owned_by(self, customer_id: str | None) -> bool:
        return customer_id is not None and str(self.customer_id) == str(customer_id)

    def stock_lines(self) -> list[tuple[str, int]]:
        return [(str(item.product_id), item.quantity) for item in self.items]

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus, table=_VALID_TRANSITIONS) -> None:
        current = self.current_status
        if target not in table.get(current, set()):
            raise InvalidStatusTransition({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def _move_to(self, target: OrderStatus, reason: str | None = None) -> None:
        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                reason=reason,
                changed_at=now,
            )
        )

    def update_status(self, target: OrderStatus) -> bool:
        """Manual forward step by a seller or admin. Returns False when already there."""
        if target == self.current_status:
            return False
        if target == OrderStatus.CANCELLED:
            raise InvalidStatusTransition({"status": ["Orders are cancelled through cancellation, not a status update"]})
        self._assert_can_transition(target, _MANUAL_TRANSITIONS)
        self._move_to(target, reason="manual update")
        return True

    def mark_paid(self) -> bool:
        """Payment succeeded. Orders already past PENDING are left alone."""
        if self.current_status != OrderStatus.PENDING:
            return False
        self._move_to(OrderStatus.PROCESSING, reason="payment succeeded")
        return True

    def mark_shipped(self) -> bool:
        if self.current_status == OrderStatus.SHIPPED:
            return False
        self._assert_can_transition(OrderStatus.SHIPPED)
        self._move_to(OrderStatus.SHIPPED, reason="shipment created")
        return True

    def mark_delivered(self) -> bool:
        if self.current_status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
            return False
        self._move_to(OrderStatus.DELIVERED, reason="carrier reported delivery")
        return True

    def cancel(self, refund_required: bool = False, reason: str | None = None) -> bool:
        """Move to CANCELLED. Returns False when the order was already cancelled."""
        current = self.current_status
        if current == OrderStatus.CANCELLED:
            return False
        if current in _NOT_CANCELLABLE:
            raise OrderCancellationError({"status": [f"Cannot cancel an order that is {current.value}"]})

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=current.value,
                refund_required=refund_required,
                reason=reason,
                cancelled_at=now,
            )
        )
        return True
