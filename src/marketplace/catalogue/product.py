"""Product aggregate — a sellable item, its price and its stock level.

Only the parts of a catalogue entry the order flow needs live here: the
current price (snapshotted onto order lines), the owning seller, stock and
the physical measurements used to plan parcels.
"""

from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String

from marketplace.catalogue.events import StockReleased, StockReserved
from marketplace.domain import marketplace
from marketplace.exceptions import InsufficientStock


@marketplace.aggregate
class Product:
    name = String(required=True, max_length=255)
    seller_id = Identifier()
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    weight_kg = Float(min_value=0.0)
    length_cm = Float(min_value=0.0)
    width_cm = Float(min_value=0.0)
    height_cm = Float(min_value=0.0)

    def ensure_available(self, quantity: int) -> None:
        if quantity > self.stock_quantity:
            raise InsufficientStock(
                {
                    "stock_quantity": [
                        f"Insufficient stock for product {self.name}: "
                        f"requested {quantity}, available {self.stock_quantity}"
                    ]
                }
            )

    def reserve(self, quantity: int, order_id: str | None = None) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity to reserve must be at least 1"]})
        self.ensure_available(quantity)
        self.stock_quantity -= quantity
        self.raise_(
            StockReserved(
                product_id=str(self.id),
                quantity=quantity,
                remaining=self.stock_quantity,
                order_id=order_id,
            )
        )

    def release(self, quantity: int, order_id: str | None = None) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity to release must be at least 1"]})
        self.stock_quantity += quantity
        self.raise_(
            StockReleased(
                product_id=str(self.id),
                quantity=quantity,
                remaining=self.stock_quantity,
                order_id=order_id,
            )
        )
