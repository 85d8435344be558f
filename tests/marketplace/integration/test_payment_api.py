"""Integration tests for payment endpoints, including gateway webhooks."""

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from marketplace.api.errors import register_exception_handlers
from marketplace.api.routes import payment_router
from marketplace.gateway.fake_adapter import TEST_SIGNATURE
from marketplace.order.order import Order
from marketplace.payment.payment import Payment
from protean import current_domain


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(payment_router)
    register_exception_handlers(app)
    return TestClient(app)


def _webhook_body(event_type, payment_id, order_id):
    return json.dumps(
        {"type": event_type, "transaction_id": "pi_webhook", "metadata": {"payment_id": payment_id, "order_id": order_id}}
    )


class TestInitiateEndpoint:
    def test_initiate_stripe(self, client, customer, place_order):
        placed = place_order()
        response = client.post(
            f"/payments/initiate/{placed['id']}",
            headers={"X-User-Id": str(customer.id)},
            json={"payment_method": "STRIPE"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["client_secret"]
        assert data["approval_url"] is None

    def test_initiate_for_someone_elses_order(self, client, place_order):
        placed = place_order()
        response = client.post(
            f"/payments/initiate/{placed['id']}",
            headers={"X-User-Id": "intruder"},
            json={"payment_method": "STRIPE"},
        )
        assert response.status_code == 403

    def test_unsupported_method(self, client, customer, place_order):
        placed = place_order()
        response = client.post(
            f"/payments/initiate/{placed['id']}",
            headers={"X-User-Id": str(customer.id)},
            json={"payment_method": "CASH"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "PaymentError"


class TestRefundEndpoint:
    def test_admin_refund(self, client, paid_order):
        response = client.post(
            f"/payments/{paid_order['payment']['id']}/refund",
            headers={"X-User-Id": "staff-1", "X-User-Role": "ADMIN"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "REFUNDED"

    def test_customer_cannot_refund(self, client, customer, paid_order):
        response = client.post(
            f"/payments/{paid_order['payment']['id']}/refund",
            headers={"X-User-Id": str(customer.id)},
        )
        assert response.status_code == 403


class TestGatewayWebhooks:
    def test_stripe_success(self, client, place_order):
        placed = place_order()
        response = client.post(
            "/payments/webhook/stripe",
            content=_webhook_body("payment_succeeded", placed["payment"]["id"], placed["id"]),
            headers={"X-Webhook-Signature": TEST_SIGNATURE},
        )
        assert response.status_code == 200
        assert response.json() == {"status": "applied"}
        assert current_domain.repository_for(Payment).get(placed["payment"]["id"]).status == "SUCCESS"
        assert current_domain.repository_for(Order).get(placed["id"]).status == "PROCESSING"

    def test_duplicate_delivery(self, client, place_order):
        placed = place_order()
        body = _webhook_body("payment_succeeded", placed["payment"]["id"], placed["id"])
        headers = {"X-Webhook-Signature": TEST_SIGNATURE}
        client.post("/payments/webhook/stripe", content=body, headers=headers)
        response = client.post("/payments/webhook/stripe", content=body, headers=headers)
        assert response.json() == {"status": "duplicate"}

    def test_paypal_failure(self, client, place_order):
        placed = place_order()
        response = client.post(
            "/payments/webhook/paypal",
            content=_webhook_body("payment_failed", placed["payment"]["id"], placed["id"]),
            headers={"X-Webhook-Signature": TEST_SIGNATURE},
        )
        assert response.status_code == 200
        assert current_domain.repository_for(Order).get(placed["id"]).status == "CANCELLED"

    def test_bad_signature_is_unauthorized(self, client, place_order):
        placed = place_order()
        response = client.post(
            "/payments/webhook/stripe",
            content=_webhook_body("payment_succeeded", placed["payment"]["id"], placed["id"]),
            headers={"X-Webhook-Signature": "forged"},
        )
        assert response.status_code == 401
        assert current_domain.repository_for(Payment).get(placed["payment"]["id"]).status == "PENDING"

    def test_unknown_payment_is_acknowledged(self, client):
        response = client.post(
            "/payments/webhook/stripe",
            content=_webhook_body("payment_succeeded", "missing", "missing"),
            headers={"X-Webhook-Signature": TEST_SIGNATURE},
        )
        assert response.status_code == 200
        assert response.json() == {"status": "ignored"}
