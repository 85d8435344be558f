"""Fake carrier adapter — deterministic carrier for testing and development.

Generates mock tracking numbers and labels. Configurable success/failure
behavior; records every booking in ``calls``.
"""

from uuid import uuid4

from marketplace.carrier.port import CarrierLabel, CarrierPort, Parcel, PostalAddress, TrackingSnapshot
from marketplace.exceptions import CarrierError


class FakeCarrier(CarrierPort):
    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.initial_status = "processing"
        self.next_tracking_number: str | None = None
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_shipment(
        self,
        from_address: PostalAddress,
        to_address: PostalAddress,
        parcel: Parcel,
        carrier: str,
    ) -> CarrierLabel:
        self.calls.append(
            {
                "method": "create_shipment",
                "from_address": from_address,
                "to_address": to_address,
                "parcel": parcel,
                "carrier": carrier,
            }
        )
        if not self.should_succeed:
            raise CarrierError({"carrier": [self.failure_reason]})

        tracking_number = self.next_tracking_number or f"FAKE-{uuid4().hex[:12].upper()}"
        self.next_tracking_number = None
        return CarrierLabel(
            tracking_number=tracking_number,
            label_url=f"https://fake-carrier.example.com/labels/{tracking_number}.pdf",
            initial_status=self.initial_status,
        )

    def get_tracking(self, tracking_number: str) -> TrackingSnapshot:  # noqa: ARG002
        if not self.should_succeed:
            raise CarrierError({"carrier": [self.failure_reason]})
        return TrackingSnapshot(status="in_transit", details="Package is moving")

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:  # noqa: ARG002
        # Accepts any signature, including an empty one
        return True
