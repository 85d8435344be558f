"""Order placement — command and handler.

Every check (customer, addresses, products, seller, stock) runs before the
first write, so a rejected order leaves stock exactly as it was. The stock
reservation, the order and its PENDING payment are then written in the
handler's unit of work.
"""

import json
from collections import Counter

import structlog
from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.ledger import InventoryLedger, combine_quantities
from marketplace.config import get_settings
from marketplace.directory.lookup import find_customer, find_customer_address
from marketplace.domain import marketplace
from marketplace.exceptions import MultiSellerOrderError, OrderCreationError
from marketplace.order.order import Order
from marketplace.order.queries import materialize
from marketplace.payment.payment import Payment

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of {"product_id", "quantity"}


def _parse_items(raw: str) -> list[dict]:
    try:
        items = json.loads(raw)
    except ValueError as exc:
        raise OrderCreationError({"items": ["Items must be a JSON list"]}) from exc
    if not isinstance(items, list) or not items:
        raise OrderCreationError({"items": ["An order needs at least one item"]})
    for item in items:
        if not isinstance(item, dict) or not item.get("product_id"):
            raise OrderCreationError({"items": ["Every item needs a product_id"]})
        quantity = item.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise OrderCreationError({"quantity": [f"Quantity for product {item['product_id']} must be at least 1"]})
    return items


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        customer = find_customer(command.customer_id)
        find_customer_address(customer, command.shipping_address_id, field="shipping_address_id")
        find_customer_address(customer, command.billing_address_id, field="billing_address_id")
        requested = _parse_items(command.items)

        ledger = InventoryLedger()
        seller_id: str | None = None
        wanted: Counter = Counter()
        lines = []
        for item in requested:
            product = ledger.get(item["product_id"])
            if product.seller_id:
                if seller_id is None:
                    seller_id = str(product.seller_id)
                elif str(product.seller_id) != seller_id:
                    raise MultiSellerOrderError(
                        {"items": [f"Product {product.id} belongs to a different seller; an order has exactly one seller"]}
                    )
            wanted[str(product.id)] += item["quantity"]
            product.ensure_available(wanted[str(product.id)])
            lines.append(
                {
                    "product_id": str(product.id),
                    "product_name": product.name,
                    "quantity": item["quantity"],
                    "price_at_purchase": product.price,
                }
            )

        if seller_id is None:
            raise OrderCreationError({"seller_id": ["Could not determine the seller for this order"]})

        currency = get_settings().currency
        order = Order.place(
            customer_id=str(customer.id),
            seller_id=seller_id,
            shipping_address_id=command.shipping_address_id,
            billing_address_id=command.billing_address_id,
            lines=lines,
            currency=currency,
        )
        for product_id, quantity in combine_quantities(
            (line["product_id"], line["quantity"]) for line in lines
        ).items():
            ledger.reserve(product_id, quantity, order_id=str(order.id))

        payment = Payment.open_for_order(order_id=str(order.id), amount=order.total_amount, currency=currency)
        order.payment_id = str(payment.id)
        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(Payment).add(payment)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(customer.id),
            seller_id=seller_id,
            total_amount=order.total_amount,
        )
        return materialize(order, payment)
