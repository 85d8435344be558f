from marketplace.domain import marketplace
from marketplace.payment.payment import Payment


@marketplace.repository(part_of=Payment)
class PaymentRepository:
    def for_order(self, order_id: str) -> Payment | None:
        results = self._dao.query.filter(order_id=str(order_id)).all().items
        return results[0] if results else None
