"""Shipment creation — book the order's parcel with the carrier.

The carrier is called before anything is staged: if booking fails, no
shipment is stored and the order keeps its status.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.carrier import get_carrier
from marketplace.directory.lookup import find_customer, find_logistics_provider, find_seller
from marketplace.domain import marketplace
from marketplace.exceptions import CarrierError, ShipmentCreationError, first_message
from marketplace.order.access import find_order
from marketplace.order.order import Order, OrderStatus
from marketplace.shipment.parcel import parcel_for_order, recipient_address, sender_address
from marketplace.shipment.queries import shipment_view
from marketplace.shipment.shipment import Shipment
from marketplace.shipment.status_mapping import normalize_status

logger = structlog.get_logger(__name__)

_UNSHIPPABLE = {OrderStatus.CANCELLED, OrderStatus.DELIVERED}


@marketplace.command(part_of="Shipment")
class CreateShipment:
    order_id = Identifier(required=True)
    logistics_provider_id = Identifier(required=True)
    carrier = String(required=True, max_length=100)


@marketplace.command_handler(part_of=Shipment)
class CreateShipmentHandler:
    @handle(CreateShipment)
    def create_shipment(self, command):
        order = find_order(command.order_id)
        if order.current_status in _UNSHIPPABLE:
            raise ShipmentCreationError({"order": [f"Cannot ship an order that is {order.status}"]})
        provider = find_logistics_provider(command.logistics_provider_id)

        customer = find_customer(order.customer_id)
        destination = customer.address(order.shipping_address_id) if order.shipping_address_id else None
        if destination is None:
            raise ShipmentCreationError({"shipping_address_id": [f"Order {order.id} has no shipping address"]})

        from_address = sender_address(find_seller(order.seller_id))
        to_address = recipient_address(customer, destination)
        parcel = parcel_for_order(order)

        try:
            label = get_carrier().create_shipment(from_address, to_address, parcel, command.carrier)
        except CarrierError as exc:
            logger.error("carrier_booking_failed", order_id=str(order.id), carrier=command.carrier)
            raise ShipmentCreationError({"carrier": [f"Shipment creation failed: {first_message(exc)}"]}) from exc

        shipments = current_domain.repository_for(Shipment)
        if shipments.by_tracking_number(label.tracking_number, command.carrier) is not None:
            raise ShipmentCreationError(
                {"tracking_number": [f"Tracking number {label.tracking_number} already exists for {command.carrier}"]}
            )

        shipment = Shipment.book(
            order_id=str(order.id),
            carrier=command.carrier,
            tracking_number=label.tracking_number,
            status=normalize_status(label.initial_status),
            label_url=label.label_url,
            logistics_provider_id=str(provider.id),
        )
        shipments.add(shipment)

        if order.mark_shipped():
            current_domain.repository_for(Order).add(order)

        logger.info(
            "shipment_created",
            order_id=str(order.id),
            shipment_id=str(shipment.id),
            carrier=command.carrier,
            tracking_number=label.tracking_number,
            weight_kg=parcel.weight_kg,
        )
        return shipment_view(shipment)
