"""Configurable fake payment gateway for development and testing.

Simulates a gateway without any external calls. Webhooks are authenticated
by a fixed ``X-Webhook-Signature: test-signature`` header and carry a flat
JSON body::

    {"type": "payment_succeeded", "transaction_id": "...",
     "metadata": {"payment_id": "...", "order_id": "..."}}
"""

import json
from collections.abc import Mapping
from uuid import uuid4

from marketplace.exceptions import GatewayError, WebhookVerificationError
from marketplace.gateway.port import (
    GatewayEvent,
    GatewayEventType,
    PaymentGateway,
    PaymentIntent,
    RefundReceipt,
    normalize_headers,
)

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    def __init__(self, name: str = "fake", transaction_prefix: str = "fake_") -> None:
        self.name = name
        self.transaction_prefix = transaction_prefix
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _fail_if_configured(self) -> None:
        if not self.should_succeed:
            raise GatewayError({self.name: [self.failure_reason]})

    def create_intent(self, amount: float, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        self.calls.append({"method": "create_intent", "amount": amount, "currency": currency, "metadata": metadata})
        self._fail_if_configured()
        gateway_id = f"{self.transaction_prefix}{uuid4().hex[:16]}"
        return PaymentIntent(gateway_id=gateway_id, client_credential=f"{gateway_id}_secret")

    def create_refund(self, gateway_transaction_id: str, amount: float, currency: str) -> RefundReceipt:
        self.calls.append(
            {
                "method": "create_refund",
                "gateway_transaction_id": gateway_transaction_id,
                "amount": amount,
                "currency": currency,
            }
        )
        self._fail_if_configured()
        return RefundReceipt(refund_id=f"re_{uuid4().hex[:16]}", status="succeeded")

    def verify_and_parse(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        if normalize_headers(headers).get("x-webhook-signature") != TEST_SIGNATURE:
            raise WebhookVerificationError({"signature": ["Invalid webhook signature"]})
        try:
            body = json.loads(payload)
        except ValueError as exc:
            raise WebhookVerificationError({"payload": ["Malformed webhook payload"]}) from exc

        raw_type = body.get("type", "")
        try:
            event_type = GatewayEventType(raw_type)
        except ValueError:
            event_type = GatewayEventType.OTHER
        return GatewayEvent(
            type=event_type,
            raw_type=raw_type,
            gateway_id=body.get("transaction_id"),
            metadata={key: str(value) for key, value in (body.get("metadata") or {}).items()},
        )
