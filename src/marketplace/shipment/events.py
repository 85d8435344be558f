"""Shipment domain events."""

from protean.fields import DateTime, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Shipment")
class ShipmentCreated:
    """A shipment was booked with the carrier and a label was issued."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    carrier = String(required=True)
    tracking_number = String(required=True)
    label_url = String()
    status = String(required=True)
    created_at = DateTime(required=True)


@marketplace.event(part_of="Shipment")
class ShipmentStatusUpdated:
    """The carrier reported a new status for the shipment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    external_status = String()
    details = String()
    updated_at = DateTime(required=True)
