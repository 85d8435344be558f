"""PayPal adapter — Orders v2, capture refunds and webhook verification.

Talks to the PayPal REST API over an injected ``httpx.Client`` whose base
URL and timeout come from settings. Correlation metadata travels in the
purchase unit's ``custom_id`` as ``<payment_id>:<order_id>`` and comes back
on capture webhooks.
"""

import json
from collections.abc import Mapping

import httpx
import structlog

from marketplace.exceptions import GatewayError, WebhookVerificationError
from marketplace.gateway.port import (
    GatewayEvent,
    GatewayEventType,
    PaymentGateway,
    PaymentIntent,
    RefundReceipt,
    normalize_headers,
)

logger = structlog.get_logger(__name__)

_EVENT_TYPES = {
    "PAYMENT.CAPTURE.COMPLETED": GatewayEventType.PAYMENT_SUCCEEDED,
    "PAYMENT.CAPTURE.DENIED": GatewayEventType.PAYMENT_FAILED,
    "PAYMENT.CAPTURE.DECLINED": GatewayEventType.PAYMENT_FAILED,
}

# Header name -> field of the verify-webhook-signature request body
_TRANSMISSION_HEADERS = {
    "paypal-auth-algo": "auth_algo",
    "paypal-cert-url": "cert_url",
    "paypal-transmission-id": "transmission_id",
    "paypal-transmission-sig": "transmission_sig",
    "paypal-transmission-time": "transmission_time",
}


def encode_custom_id(metadata: dict[str, str]) -> str:
    return f"{metadata.get('payment_id', '')}:{metadata.get('order_id', '')}"


def decode_custom_id(custom_id: str | None) -> dict[str, str]:
    if not custom_id or ":" not in custom_id:
        return {}
    payment_id, _, order_id = custom_id.partition(":")
    return {key: value for key, value in (("payment_id", payment_id), ("order_id", order_id)) if value}


class PayPalGateway(PaymentGateway):
    name = "paypal"

    def __init__(self, client: httpx.Client, client_id: str, client_secret: str, webhook_id: str) -> None:
        self.client = client
        self.client_id = client_id
        self.client_secret = client_secret
        self.webhook_id = webhook_id

    @classmethod
    def from_settings(cls, settings) -> "PayPalGateway":
        client = httpx.Client(
            base_url=settings.paypal_base_url,
            timeout=settings.gateway_timeout_seconds,
        )
        return cls(
            client,
            client_id=settings.paypal_client_id,
            client_secret=settings.paypal_client_secret,
            webhook_id=settings.paypal_webhook_id,
        )

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    def _access_token(self) -> str:
        response = self.client.post(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
        )
        response.raise_for_status()
        return response.json()["access_token"]

    def _post(self, path: str, body: dict) -> dict:
        try:
            token = self._access_token()
            response = self.client.post(path, json=body, headers={"Authorization": f"Bearer {token}"})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("paypal_request_rejected", path=path, status_code=exc.response.status_code)
            raise GatewayError({"paypal": [f"PayPal rejected the request ({exc.response.status_code})"]}) from exc
        except httpx.HTTPError as exc:
            logger.error("paypal_request_failed", path=path, error=str(exc))
            raise GatewayError({"paypal": [f"PayPal is unreachable: {exc}"]}) from exc
        return response.json()

    # -------------------------------------------------------------------
    # Gateway contract
    # -------------------------------------------------------------------
    def create_intent(self, amount: float, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        body = self._post(
            "/v2/checkout/orders",
            {
                "intent": "CAPTURE",
                "purchase_units": [
                    {
                        "reference_id": metadata.get("order_id", "default"),
                        "custom_id": encode_custom_id(metadata),
                        "amount": {"currency_code": currency.upper(), "value": f"{amount:.2f}"},
                    }
                ],
            },
        )
        approve_url = next(
            (link["href"] for link in body.get("links", []) if link.get("rel") in ("approve", "payer-action")),
            None,
        )
        return PaymentIntent(gateway_id=body["id"], client_credential=approve_url)

    def create_refund(self, gateway_transaction_id: str, amount: float, currency: str) -> RefundReceipt:
        body = self._post(
            f"/v2/payments/captures/{gateway_transaction_id}/refund",
            {"amount": {"currency_code": currency.upper(), "value": f"{amount:.2f}"}},
        )
        return RefundReceipt(refund_id=body["id"], status=body.get("status"))

    def verify_and_parse(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        lowered = normalize_headers(headers)
        missing = [name for name in _TRANSMISSION_HEADERS if not lowered.get(name)]
        if missing:
            raise WebhookVerificationError({"headers": [f"Missing PayPal headers: {', '.join(missing)}"]})
        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise WebhookVerificationError({"payload": ["Malformed PayPal event payload"]}) from exc

        verification = {field: lowered[name] for name, field in _TRANSMISSION_HEADERS.items()}
        verification.update(webhook_id=self.webhook_id, webhook_event=event)
        try:
            result = self._post("/v1/notifications/verify-webhook-signature", verification)
        except GatewayError as exc:
            raise WebhookVerificationError({"signature": ["PayPal signature could not be verified"]}) from exc
        if result.get("verification_status") != "SUCCESS":
            raise WebhookVerificationError({"signature": ["Invalid PayPal signature"]})

        resource = event.get("resource") or {}
        return GatewayEvent(
            type=_EVENT_TYPES.get(event.get("event_type", ""), GatewayEventType.OTHER),
            raw_type=event.get("event_type", ""),
            gateway_id=resource.get("id"),
            metadata=decode_custom_id(resource.get("custom_id")),
        )

    def close(self) -> None:
        self.client.close()
