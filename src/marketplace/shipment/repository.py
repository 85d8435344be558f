from marketplace.domain import marketplace
from marketplace.shipment.shipment import Shipment


@marketplace.repository(part_of=Shipment)
class ShipmentRepository:
    def by_tracking_number(self, tracking_number: str, carrier: str | None = None) -> Shipment | None:
        criteria = {"tracking_number": tracking_number}
        if carrier:
            criteria["carrier"] = carrier
        results = self._dao.query.filter(**criteria).all().items
        return results[0] if results else None

    def for_order(self, order_id: str) -> list[Shipment]:
        return self._dao.query.filter(order_id=str(order_id)).order_by("created_at").all().items
