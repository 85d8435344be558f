"""Shipment aggregate — a parcel booked with a carrier for an order.

The carrier owns the shipment's progress: status changes arrive only through
carrier webhooks, already mapped onto ShipmentStatus, so no transition table
is enforced here.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String

from marketplace.domain import marketplace
from marketplace.shipment.events import ShipmentCreated, ShipmentStatusUpdated


class ShipmentStatus(Enum):
    PROCESSING = "PROCESSING"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    FAILED_DELIVERY = "FAILED_DELIVERY"
    RETURNED = "RETURNED"


@marketplace.aggregate
class Shipment:
    order_id = Identifier(required=True)
    logistics_provider_id = Identifier()
    carrier = String(required=True, max_length=100)
    tracking_number = String(required=True, max_length=255)
    label_url = String(max_length=1000)
    status = String(choices=ShipmentStatus, default=ShipmentStatus.PROCESSING.value)
    status_details = String(max_length=1000)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def book(
        cls,
        order_id: str,
        carrier: str,
        tracking_number: str,
        status: ShipmentStatus,
        label_url: str | None = None,
        logistics_provider_id: str | None = None,
    ):
        now = datetime.now(UTC)
        shipment = cls(
            order_id=order_id,
            logistics_provider_id=logistics_provider_id,
            carrier=carrier,
            tracking_number=tracking_number,
            label_url=label_url,
            status=status.value,
            created_at=now,
            updated_at=now,
        )
        shipment.raise_(
            ShipmentCreated(
                shipment_id=str(shipment.id),
                order_id=order_id,
                carrier=carrier,
                tracking_number=tracking_number,
                label_url=label_url,
                status=status.value,
                created_at=now,
            )
        )
        return shipment

    @property
    def current_status(self) -> ShipmentStatus:
        return ShipmentStatus(self.status)

    def record_status(
        self,
        status: ShipmentStatus,
        details: str | None = None,
        external_status: str | None = None,
    ) -> bool:
        """Apply a carrier-reported status. Returns False when nothing changed."""
        if status == self.current_status:
            return False

        previous = self.status
        now = datetime.now(UTC)
        self.status = status.value
        self.status_details = details
        self.updated_at = now
        self.raise_(
            ShipmentStatusUpdated(
                shipment_id=str(self.id),
                order_id=str(self.order_id),
                tracking_number=self.tracking_number,
                previous_status=previous,
                new_status=status.value,
                external_status=external_status,
                details=details,
                updated_at=now,
            )
        )
        return True
