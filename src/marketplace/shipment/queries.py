"""Shipment lookups and their plain-data representation."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.directory.logistics import LogisticsProvider
from marketplace.exceptions import ShipmentNotFound
from marketplace.shipment.shipment import Shipment


def find_shipment_by_tracking_number(tracking_number: str, carrier: str | None = None) -> Shipment:
    shipment = current_domain.repository_for(Shipment).by_tracking_number(tracking_number, carrier)
    if shipment is None:
        raise ShipmentNotFound({"tracking_number": [f"No shipment with tracking number {tracking_number}"]})
    return shipment


def tracking_url(shipment: Shipment) -> str | None:
    if not shipment.logistics_provider_id:
        return None
    try:
        provider = current_domain.repository_for(LogisticsProvider).get(shipment.logistics_provider_id)
    except ObjectNotFoundError:
        return None
    return provider.tracking_url(shipment.tracking_number)


def shipment_view(shipment: Shipment) -> dict:
    return {
        "id": str(shipment.id),
        "order_id": str(shipment.order_id),
        "logistics_provider_id": str(shipment.logistics_provider_id) if shipment.logistics_provider_id else None,
        "carrier": shipment.carrier,
        "tracking_number": shipment.tracking_number,
        "tracking_url": tracking_url(shipment),
        "label_url": shipment.label_url,
        "status": shipment.status,
        "status_details": shipment.status_details,
        "created_at": shipment.created_at.isoformat() if shipment.created_at else None,
        "updated_at": shipment.updated_at.isoformat() if shipment.updated_at else None,
    }


def get_shipment_status(tracking_number: str) -> dict:
    return shipment_view(find_shipment_by_tracking_number(tracking_number))


def list_shipments_for_order(order_id: str) -> list[dict]:
    return [shipment_view(s) for s in current_domain.repository_for(Shipment).for_order(order_id)]
