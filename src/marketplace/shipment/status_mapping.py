"""Carrier status vocabulary → internal shipment status.

Carriers report free-form strings ("in_transit", "Out For Delivery",
"return_to_sender", ...). Matching ignores case, underscores, spaces and
hyphens. Anything unrecognised is treated as still moving (IN_TRANSIT) and
logged, never rejected.
"""

import re

import structlog

from marketplace.shipment.shipment import ShipmentStatus

logger = structlog.get_logger(__name__)

_STATUS_TABLE = {
    "processing": ShipmentStatus.PROCESSING,
    "pretransit": ShipmentStatus.PROCESSING,
    "labelcreated": ShipmentStatus.PROCESSING,
    "intransit": ShipmentStatus.IN_TRANSIT,
    "pickup": ShipmentStatus.PICKED_UP,
    "pickedup": ShipmentStatus.PICKED_UP,
    "outfordelivery": ShipmentStatus.OUT_FOR_DELIVERY,
    "delivered": ShipmentStatus.DELIVERED,
    "failure": ShipmentStatus.FAILED_DELIVERY,
    "deliveryfailed": ShipmentStatus.FAILED_DELIVERY,
    "faileddelivery": ShipmentStatus.FAILED_DELIVERY,
    "returned": ShipmentStatus.RETURNED,
    "returntosender": ShipmentStatus.RETURNED,
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def _key(external_status: str) -> str:
    return _SEPARATORS.sub("", external_status).lower()


def normalize_status(external_status: str | None) -> ShipmentStatus:
    if external_status is None or not external_status.strip():
        return ShipmentStatus.PROCESSING

    status = _STATUS_TABLE.get(_key(external_status))
    if status is None:
        logger.warning("unknown_carrier_status", external_status=external_status, fallback=ShipmentStatus.IN_TRANSIT.value)
        return ShipmentStatus.IN_TRANSIT
    return status
