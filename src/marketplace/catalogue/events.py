"""Stock movement events raised by the Product aggregate."""

from protean.fields import Identifier, Integer

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class StockReserved:
    """Units were taken out of sellable stock for an order."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)
    order_id = Identifier()


@marketplace.event(part_of="Product")
class StockReleased:
    """Units went back into sellable stock, typically after a cancellation."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)
    order_id = Identifier()
