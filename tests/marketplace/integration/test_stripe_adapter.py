"""StripeGateway against a mocked StripeClient and real webhook signatures."""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import stripe
from marketplace.exceptions import GatewayError, WebhookVerificationError
from marketplace.gateway.port import GatewayEventType
from marketplace.gateway.stripe_adapter import StripeGateway, to_minor_units

SECRET = "whsec_test_secret"


def _signed(payload: bytes, secret: str = SECRET, timestamp: int | None = None) -> str:
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def _event(event_type: str, metadata: dict | None = None) -> bytes:
    return json.dumps(
        {
            "id": "evt_1",
            "object": "event",
            "type": event_type,
            "data": {
                "object": {
                    "id": "pi_abc",
                    "object": "payment_intent",
                    "metadata": metadata or {"payment_id": "pay-1", "order_id": "ord-1"},
                }
            },
        }
    ).encode()


@pytest.fixture()
def client():
    return MagicMock()


@pytest.fixture()
def gateway(client):
    return StripeGateway(client, webhook_secret=SECRET)


class TestAmounts:
    @pytest.mark.parametrize("amount, cents", [(10.0, 1000), (79.97, 7997), (0.29, 29), (19.999, 2000)])
    def test_minor_units(self, amount, cents):
        assert to_minor_units(amount) == cents


class TestCreateIntent:
    def test_creates_payment_intent(self, gateway, client):
        client.payment_intents.create.return_value = SimpleNamespace(id="pi_123", client_secret="pi_123_secret_x")

        intent = gateway.create_intent(59.99, "USD", {"payment_id": "pay-1", "order_id": "ord-1"})

        assert intent.gateway_id == "pi_123"
        assert intent.client_credential == "pi_123_secret_x"
        params = client.payment_intents.create.call_args.kwargs["params"]
        assert params["amount"] == 5999
        assert params["currency"] == "usd"
        assert params["metadata"]["order_id"] == "ord-1"

    def test_stripe_error_becomes_gateway_error(self, gateway, client):
        client.payment_intents.create.side_effect = stripe.StripeError("Invalid API key")
        with pytest.raises(GatewayError):
            gateway.create_intent(10.0, "usd", {})


class TestCreateRefund:
    def test_refunds_full_amount(self, gateway, client):
        client.refunds.create.return_value = SimpleNamespace(id="re_1", status="succeeded")

        receipt = gateway.create_refund("pi_123", 25.5, "usd")

        assert receipt.refund_id == "re_1"
        params = client.refunds.create.call_args.kwargs["params"]
        assert params == {"payment_intent": "pi_123", "amount": 2550}

    def test_refund_error(self, gateway, client):
        client.refunds.create.side_effect = stripe.StripeError("Charge already refunded")
        with pytest.raises(GatewayError):
            gateway.create_refund("pi_123", 25.5, "usd")

    def test_only_payment_intents_are_refundable(self, gateway):
        assert gateway.accepts_transaction_id("pi_123")
        assert not gateway.accepts_transaction_id("ch_123")
        assert not gateway.accepts_transaction_id(None)


class TestWebhookVerification:
    def test_succeeded_event(self, gateway):
        payload = _event("payment_intent.succeeded")
        event = gateway.verify_and_parse(payload, {"Stripe-Signature": _signed(payload)})

        assert event.type == GatewayEventType.PAYMENT_SUCCEEDED
        assert event.gateway_id == "pi_abc"
        assert event.payment_id == "pay-1"
        assert event.order_id == "ord-1"

    def test_event_without_metadata(self, gateway):
        payload = json.dumps(
            {
                "id": "evt_2",
                "object": "event",
                "type": "payment_intent.succeeded",
                "data": {"object": {"id": "pi_bare", "object": "payment_intent"}},
            }
        ).encode()
        event = gateway.verify_and_parse(payload, {"stripe-signature": _signed(payload)})

        assert event.gateway_id == "pi_bare"
        assert event.metadata == {}
        assert event.payment_id is None

    def test_failed_event(self, gateway):
        payload = _event("payment_intent.payment_failed")
        event = gateway.verify_and_parse(payload, {"stripe-signature": _signed(payload)})
        assert event.type == GatewayEventType.PAYMENT_FAILED

    def test_other_event(self, gateway):
        payload = _event("charge.refunded")
        event = gateway.verify_and_parse(payload, {"stripe-signature": _signed(payload)})
        assert event.type == GatewayEventType.OTHER
        assert event.raw_type == "charge.refunded"

    def test_wrong_secret(self, gateway):
        payload = _event("payment_intent.succeeded")
        with pytest.raises(WebhookVerificationError):
            gateway.verify_and_parse(payload, {"stripe-signature": _signed(payload, secret="whsec_other")})

    def test_tampered_payload(self, gateway):
        payload = _event("payment_intent.payment_failed")
        signature = _signed(payload)
        tampered = _event("payment_intent.succeeded")
        with pytest.raises(WebhookVerificationError):
            gateway.verify_and_parse(tampered, {"stripe-signature": signature})

    def test_stale_timestamp(self, gateway):
        payload = _event("payment_intent.succeeded")
        with pytest.raises(WebhookVerificationError):
            gateway.verify_and_parse(payload, {"stripe-signature": _signed(payload, timestamp=int(time.time()) - 3600)})

    def test_missing_header(self, gateway):
        with pytest.raises(WebhookVerificationError, match="Missing"):
            gateway.verify_and_parse(_event("payment_intent.succeeded"), {})
