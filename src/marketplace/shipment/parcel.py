"""Parcel planning — where a shipment leaves from and what it weighs.

The sender is the seller's registered warehouse. Items without recorded
measurements count as a small default box (0.5 kg, 10 x 10 x 5 cm) per unit.
Units are stacked: the footprint is the largest item's, the height is the
sum of all units' heights.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.carrier.port import Parcel, PostalAddress
from marketplace.catalogue.product import Product
from marketplace.directory.customer import Address, Customer
from marketplace.directory.seller import Seller
from marketplace.exceptions import ShipmentCreationError
from marketplace.order.order import Order

DEFAULT_ITEM_WEIGHT_KG = 0.5
DEFAULT_ITEM_LENGTH_CM = 10.0
DEFAULT_ITEM_WIDTH_CM = 10.0
DEFAULT_ITEM_HEIGHT_CM = 5.0


def sender_address(seller: Seller | None) -> PostalAddress:
    if seller is None or seller.warehouse_address is None:
        raise ShipmentCreationError({"seller": ["Seller has no registered warehouse address to ship from"]})
    warehouse = seller.warehouse_address
    return PostalAddress(
        name=seller.company_name,
        street_address=warehouse.street_address,
        city=warehouse.city,
        state=warehouse.state,
        postal_code=warehouse.postal_code,
        country=warehouse.country,
        phone_number=warehouse.phone_number,
    )


def recipient_address(customer: Customer, address: Address) -> PostalAddress:
    return PostalAddress(
        name=customer.name,
        street_address=address.street_address,
        city=address.city,
        state=address.state,
        postal_code=address.postal_code,
        country=address.country,
        phone_number=address.phone_number,
    )


def plan_parcel(lines: list[tuple[Product | None, int]]) -> Parcel:
    """Combine ``(product, quantity)`` lines into one parcel."""
    weight = length = width = height = 0.0
    for product, quantity in lines:
        item_weight = (product.weight_kg if product else None) or DEFAULT_ITEM_WEIGHT_KG
        item_length = (product.length_cm if product else None) or DEFAULT_ITEM_LENGTH_CM
        item_width = (product.width_cm if product else None) or DEFAULT_ITEM_WIDTH_CM
        item_height = (product.height_cm if product else None) or DEFAULT_ITEM_HEIGHT_CM

        weight += item_weight * quantity
        length = max(length, item_length)
        width = max(width, item_width)
        height += item_height * quantity

    return Parcel(
        weight_kg=round(weight, 3),
        length_cm=round(length, 2),
        width_cm=round(width, 2),
        height_cm=round(height, 2),
    )


def parcel_for_order(order: Order) -> Parcel:
    """Plan the parcel from the order's items and current product measurements."""
    products = current_domain.repository_for(Product)
    lines = []
    for item in order.items:
        try:
            product = products.get(item.product_id)
        except ObjectNotFoundError:
            product = None
        lines.append((product, item.quantity))
    return plan_parcel(lines)
