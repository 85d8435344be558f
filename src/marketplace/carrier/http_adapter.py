"""HTTP carrier adapter — a shipping aggregator API reached over httpx.

Webhooks are signed with HMAC-SHA256 over the raw body using the shared
webhook secret, hex encoded in the ``X-Carrier-Signature`` header.
"""

import hashlib
import hmac

import httpx
import structlog

from marketplace.carrier.port import CarrierLabel, CarrierPort, Parcel, PostalAddress, TrackingSnapshot
from marketplace.exceptions import CarrierError

logger = structlog.get_logger(__name__)


def sign_payload(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


class HttpCarrier(CarrierPort):
    def __init__(self, client: httpx.Client, webhook_secret: str) -> None:
        self.client = client
        self.webhook_secret = webhook_secret

    @classmethod
    def from_settings(cls, settings) -> "HttpCarrier":
        client = httpx.Client(
            base_url=settings.carrier_api_url,
            timeout=settings.gateway_timeout_seconds,
            headers={"Authorization": f"Bearer {settings.carrier_api_key}"},
        )
        return cls(client, settings.carrier_webhook_secret)

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("carrier_request_rejected", path=path, status_code=exc.response.status_code)
            raise CarrierError({"carrier": [f"Carrier rejected the request ({exc.response.status_code})"]}) from exc
        except httpx.HTTPError as exc:
            logger.error("carrier_request_failed", path=path, error=str(exc))
            raise CarrierError({"carrier": [f"Carrier is unreachable: {exc}"]}) from exc
        return response.json()

    def create_shipment(
        self,
        from_address: PostalAddress,
        to_address: PostalAddress,
        parcel: Parcel,
        carrier: str,
    ) -> CarrierLabel:
        body = self._request(
            "POST",
            "/shipments",
            json={
                "from_address": from_address.as_dict(),
                "to_address": to_address.as_dict(),
                "parcel": parcel.as_dict(),
                "carrier": carrier,
            },
        )
        if not body.get("tracking_number"):
            raise CarrierError({"carrier": ["Carrier response did not include a tracking number"]})
        return CarrierLabel(
            tracking_number=body["tracking_number"],
            label_url=body.get("label_url"),
            initial_status=body.get("status"),
        )

    def get_tracking(self, tracking_number: str) -> TrackingSnapshot:
        body = self._request("GET", f"/trackers/{tracking_number}")
        return TrackingSnapshot(status=body.get("status", ""), details=body.get("status_detail"))

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not signature or not self.webhook_secret:
            return False
        return hmac.compare_digest(sign_payload(payload, self.webhook_secret), signature)

    def close(self) -> None:
        self.client.close()
