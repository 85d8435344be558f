"""Carrier tracking updates — command, handler and on-demand refresh.

Processes carrier webhook updates and polled tracking snapshots. Unknown
carrier statuses never fail the update; they map to IN_TRANSIT.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import String
from protean.utils.globals import current_domain

from marketplace.carrier import get_carrier
from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.shipment.queries import find_shipment_by_tracking_number, shipment_view
from marketplace.shipment.shipment import Shipment, ShipmentStatus
from marketplace.shipment.status_mapping import normalize_status

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Shipment")
class RecordCarrierUpdate:
    """Record a status reported by the carrier for a tracking number."""

    tracking_number = String(required=True, max_length=255)
    external_status = String(max_length=100)
    details = String(max_length=1000)


@marketplace.command_handler(part_of=Shipment)
class CarrierUpdateHandler:
    @handle(RecordCarrierUpdate)
    def record_update(self, command):
        shipment = find_shipment_by_tracking_number(command.tracking_number)
        status = normalize_status(command.external_status)

        if not shipment.record_status(status, details=command.details, external_status=command.external_status):
            logger.debug("shipment_status_unchanged", tracking_number=command.tracking_number, status=status.value)
            return shipment_view(shipment)

        current_domain.repository_for(Shipment).add(shipment)
        logger.info(
            "shipment_status_updated",
            tracking_number=command.tracking_number,
            external_status=command.external_status,
            status=status.value,
        )

        if status == ShipmentStatus.DELIVERED:
            self._deliver_order(shipment)
        return shipment_view(shipment)

    def _deliver_order(self, shipment: Shipment) -> None:
        orders = current_domain.repository_for(Order)
        try:
            order = orders.get(shipment.order_id)
        except ObjectNotFoundError:
            logger.warning("delivered_shipment_without_order", shipment_id=str(shipment.id))
            return
        if order.mark_delivered():
            orders.add(order)


def refresh_tracking(tracking_number: str) -> dict:
    """Poll the carrier for the shipment's status and record it like a webhook."""
    find_shipment_by_tracking_number(tracking_number)
    snapshot = get_carrier().get_tracking(tracking_number)
    return current_domain.process(
        RecordCarrierUpdate(
            tracking_number=tracking_number,
            external_status=snapshot.status,
            details=snapshot.details,
        ),
        asynchronous=False,
    )
