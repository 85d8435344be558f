from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.repository(part_of=Order)
class OrderRepository:
    def for_customer(self, customer_id: str) -> list[Order]:
        return self._dao.query.filter(customer_id=str(customer_id)).order_by("-created_at").all().items

    def for_seller(self, seller_id: str) -> list[Order]:
        return self._dao.query.filter(seller_id=str(seller_id)).order_by("-created_at").all().items

    def newest_first(self) -> list[Order]:
        return self._dao.query.order_by("-created_at").all().items
