"""Inventory ledger — the single place stock quantities are changed.

Callers run inside a command handler, so every reserve/release lands in the
handler's unit of work together with the order or payment change that
caused it.
"""

from collections import Counter
from collections.abc import Iterable

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product
from marketplace.exceptions import ProductNotFound

logger = structlog.get_logger(__name__)


def combine_quantities(lines: Iterable[tuple[str, int]]) -> dict[str, int]:
    """Sum quantities per product so repeated lines move stock once."""
    totals: Counter = Counter()
    for product_id, quantity in lines:
        totals[str(product_id)] += quantity
    return dict(totals)


class InventoryLedger:
    def __init__(self) -> None:
        self._repo = current_domain.repository_for(Product)

    def get(self, product_id: str) -> Product:
        try:
            return self._repo.get(product_id)
        except ObjectNotFoundError as exc:
            raise ProductNotFound({"product_id": [f"Product {product_id} not found"]}) from exc

    def reserve(self, product_id: str, quantity: int, order_id: str | None = None) -> Product:
        product = self.get(product_id)
        product.reserve(quantity, order_id=order_id)
        self._repo.add(product)
        logger.debug("stock_reserved", product_id=product_id, quantity=quantity, remaining=product.stock_quantity)
        return product

    def release(self, product_id: str, quantity: int, order_id: str | None = None) -> Product | None:
        """Put units back. A product that no longer exists is logged and skipped."""
        try:
            product = self.get(product_id)
        except ProductNotFound:
            logger.warning("stock_release_skipped_missing_product", product_id=product_id, order_id=order_id)
            return None
        product.release(quantity, order_id=order_id)
        self._repo.add(product)
        logger.debug("stock_released", product_id=product_id, quantity=quantity, remaining=product.stock_quantity)
        return product

    def release_lines(self, lines: Iterable[tuple[str, int]], order_id: str | None = None) -> None:
        for product_id, quantity in combine_quantities(lines).items():
            self.release(product_id, quantity, order_id=order_id)
