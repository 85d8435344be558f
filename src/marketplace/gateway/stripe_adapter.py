"""Stripe adapter — PaymentIntents, refunds and signed webhooks.

Uses an explicitly constructed ``stripe.StripeClient`` rather than the
module-level ``stripe.api_key`` so that several clients (or a mocked one in
tests) can coexist in one process.
"""

from collections.abc import Mapping

import stripe
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
    "payment_intent.succeeded": GatewayEventType.PAYMENT_SUCCEEDED,
    "payment_intent.payment_failed": GatewayEventType.PAYMENT_FAILED,
}


def to_minor_units(amount: float) -> int:
    """Stripe takes amounts in the smallest currency unit (cents)."""
    return int(round(amount * 100))


class StripeGateway(PaymentGateway):
    name = "stripe"

    def __init__(self, client: stripe.StripeClient, webhook_secret: str) -> None:
        self.client = client
        self.webhook_secret = webhook_secret

    @classmethod
    def from_settings(cls, settings) -> "StripeGateway":
        client = stripe.StripeClient(
            settings.stripe_api_key,
            http_client=stripe.RequestsClient(timeout=settings.gateway_timeout_seconds),
        )
        return cls(client, settings.stripe_webhook_secret)

    def create_intent(self, amount: float, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        try:
            intent = self.client.payment_intents.create(
                params={
                    "amount": to_minor_units(amount),
                    "currency": currency.lower(),
                    "metadata": metadata,
                    "automatic_payment_methods": {"enabled": True},
                }
            )
        except stripe.StripeError as exc:
            logger.error("stripe_intent_failed", error=str(exc), **metadata)
            raise GatewayError({"stripe": [exc.user_message or str(exc)]}) from exc
        return PaymentIntent(gateway_id=intent.id, client_credential=intent.client_secret)

    def create_refund(self, gateway_transaction_id: str, amount: float, currency: str) -> RefundReceipt:
        try:
            refund = self.client.refunds.create(
                params={
                    "payment_intent": gateway_transaction_id,
                    "amount": to_minor_units(amount),
                }
            )
        except stripe.StripeError as exc:
            logger.error("stripe_refund_failed", payment_intent=gateway_transaction_id, error=str(exc))
            raise GatewayError({"stripe": [exc.user_message or str(exc)]}) from exc
        return RefundReceipt(refund_id=refund.id, status=refund.status)

    def verify_and_parse(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        signature = normalize_headers(headers).get("stripe-signature", "")
        if not signature:
            raise WebhookVerificationError({"stripe-signature": ["Missing Stripe signature header"]})
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise WebhookVerificationError({"stripe-signature": ["Invalid Stripe signature"]}) from exc
        except ValueError as exc:
            raise WebhookVerificationError({"payload": ["Malformed Stripe event payload"]}) from exc

        # StripeObject has no dict methods
        intent = event["data"]["object"].to_dict()
        metadata = intent.get("metadata") or {}
        return GatewayEvent(
            type=_EVENT_TYPES.get(event["type"], GatewayEventType.OTHER),
            raw_type=event["type"],
            gateway_id=intent.get("id"),
            metadata={key: str(value) for key, value in metadata.items()},
        )

    def accepts_transaction_id(self, gateway_transaction_id: str | None) -> bool:
        return bool(gateway_transaction_id) and gateway_transaction_id.startswith("pi_")
