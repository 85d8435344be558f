"""Read side of orders: the materialized representation and listings."""

from protean.utils.globals import current_domain

from marketplace.order.access import ensure_owner_or_admin, find_order
from marketplace.order.order import Order
from marketplace.payment.payment import Payment
from marketplace.shipment.shipment import Shipment


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def materialize(order: Order, payment: Payment | None = None) -> dict:
    """Order with its items, payment summary and shipments, as plain data."""
    if payment is None:
        payment = current_domain.repository_for(Payment).for_order(order.id)
    shipments = current_domain.repository_for(Shipment).for_order(order.id)

    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "total_amount": order.total_amount,
        "currency": order.currency,
        "customer_id": str(order.customer_id),
        "seller_id": str(order.seller_id),
        "shipping_address_id": str(order.shipping_address_id),
        "billing_address_id": str(order.billing_address_id),
        "payment_id": str(order.payment_id) if order.payment_id else None,
        "items": [
            {
                "id": str(item.id),
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "quantity": item.quantity,
                "price_at_purchase": item.price_at_purchase,
            }
            for item in order.items
        ],
        "payment": (
            {
                "id": str(payment.id),
                "status": payment.status,
                "method": payment.method,
                "amount": payment.amount,
                "gateway_transaction_id": payment.gateway_transaction_id,
                "refund_transaction_id": payment.refund_transaction_id,
            }
            if payment
            else None
        ),
        "shipments": [
            {
                "id": str(shipment.id),
                "carrier": shipment.carrier,
                "tracking_number": shipment.tracking_number,
                "status": shipment.status,
                "label_url": shipment.label_url,
            }
            for shipment in shipments
        ],
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


def get_order(order_id: str, requester_id: str | None, requester_role: str | None = None) -> dict:
    order = find_order(order_id)
    ensure_owner_or_admin(order, requester_id, requester_role)
    return materialize(order)


def list_orders_for_customer(customer_id: str) -> list[dict]:
    return [materialize(order) for order in current_domain.repository_for(Order).for_customer(customer_id)]


def list_orders_for_seller(seller_id: str) -> list[dict]:
    return [materialize(order) for order in current_domain.repository_for(Order).for_seller(seller_id)]


def list_all_orders() -> list[dict]:
    return [materialize(order) for order in current_domain.repository_for(Order).newest_first()]
