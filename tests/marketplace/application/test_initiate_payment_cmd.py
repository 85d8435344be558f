"""Application tests for payment initiation."""

import pytest
from marketplace.exceptions import OrderNotFound, PaymentError, UnauthorizedAccess
from marketplace.gateway import PAYPAL, STRIPE, get_gateway
from marketplace.payment.initiation import InitiatePayment
from marketplace.payment.payment import Payment
from protean import current_domain


def _initiate(order_id, requester_id, method="STRIPE"):
    return current_domain.process(
        InitiatePayment(order_id=order_id, payment_method=method, requester_id=requester_id),
        asynchronous=False,
    )


class TestInitiatePayment:
    def test_stripe_returns_client_secret(self, place_order, customer):
        placed = place_order()
        result = _initiate(placed["id"], str(customer.id), "STRIPE")

        assert result["payment_method"] == "STRIPE"
        assert result["gateway_transaction_id"].startswith("pi_")
        assert result["client_secret"]
        assert "approval_url" not in result
        assert result["amount"] == placed["total_amount"]

        payment = current_domain.repository_for(Payment).get(result["payment_id"])
        assert payment.method == "STRIPE"
        assert payment.status == "PENDING"
        assert payment.gateway_transaction_id == result["gateway_transaction_id"]

    def test_paypal_returns_approval_url(self, place_order, customer):
        placed = place_order()
        result = _initiate(placed["id"], str(customer.id), "paypal")

        assert result["payment_method"] == "PAYPAL"
        assert result["approval_url"]
        assert result["paypal_order_id"] == result["gateway_transaction_id"]

    def test_gateway_receives_correlation_metadata(self, place_order, customer):
        placed = place_order()
        result = _initiate(placed["id"], str(customer.id))

        call = get_gateway(STRIPE).calls[-1]
        assert call["metadata"] == {
            "payment_id": result["payment_id"],
            "order_id": placed["id"],
            "order_number": placed["order_number"],
        }
        assert call["amount"] == placed["total_amount"]

    def test_initiating_again_while_pending_switches_method(self, place_order, customer):
        placed = place_order()
        _initiate(placed["id"], str(customer.id), "STRIPE")
        result = _initiate(placed["id"], str(customer.id), "PAYPAL")
        payment = current_domain.repository_for(Payment).get(result["payment_id"])
        assert payment.method == "PAYPAL"


class TestInitiatePaymentRejections:
    def test_only_the_buyer_may_pay(self, place_order):
        placed = place_order()
        with pytest.raises(UnauthorizedAccess):
            _initiate(placed["id"], "someone-else")

    def test_settled_payment_cannot_be_reinitiated(self, paid_order, customer):
        with pytest.raises(PaymentError, match="not in PENDING"):
            _initiate(paid_order["id"], str(customer.id))

    def test_unsupported_method(self, place_order, customer):
        placed = place_order()
        with pytest.raises(PaymentError, match="Unsupported payment method"):
            _initiate(placed["id"], str(customer.id), "BITCOIN")

    def test_gateway_failure_leaves_payment_untouched(self, place_order, customer):
        placed = place_order()
        get_gateway(PAYPAL).configure(should_succeed=False, failure_reason="Service unavailable")

        with pytest.raises(PaymentError, match="Service unavailable"):
            _initiate(placed["id"], str(customer.id), "PAYPAL")

        payment = current_domain.repository_for(Payment).for_order(placed["id"])
        assert payment.method is None
        assert payment.gateway_transaction_id is None

    def test_missing_order(self, customer):
        with pytest.raises(OrderNotFound):
            _initiate("missing", str(customer.id))
