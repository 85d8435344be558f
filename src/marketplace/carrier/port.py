"""Carrier port — abstract interface for shipping carrier integrations.

All carrier adapters implement this interface. Shipment code programs
against the port; the adapter is chosen through configuration.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class PostalAddress:
    street_address: str
    city: str
    postal_code: str
    country: str
    state: str | None = None
    name: str | None = None
    phone_number: str | None = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Parcel:
    weight_kg: float
    length_cm: float
    width_cm: float
    height_cm: float

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CarrierLabel:
    """A booked shipment as reported by the carrier."""

    tracking_number: str
    label_url: str | None = None
    initial_status: str | None = None


@dataclass(frozen=True)
class TrackingSnapshot:
    status: str
    details: str | None = None


class CarrierPort(ABC):
    @abstractmethod
    def create_shipment(
        self,
        from_address: PostalAddress,
        to_address: PostalAddress,
        parcel: Parcel,
        carrier: str,
    ) -> CarrierLabel:
        """Book a shipment and buy its label. Raises ``CarrierError`` on failure."""
        ...

    @abstractmethod
    def get_tracking(self, tracking_number: str) -> TrackingSnapshot:
        """Fetch the carrier's current view of a shipment."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify that a webhook callback is authentic."""
        ...

    def close(self) -> None:  # noqa: B027
        pass
