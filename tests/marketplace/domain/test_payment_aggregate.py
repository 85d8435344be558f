"""Tests for the Payment aggregate state machine."""

import pytest
from marketplace.exceptions import InvalidStatusTransition, PaymentError, RefundError
from marketplace.payment.events import PaymentInitiated, PaymentRefunded, PaymentStatusReconciled
from marketplace.payment.payment import Payment, PaymentMethod, PaymentStatus


def _make_payment():
    return Payment.open_for_order(order_id="ord-001", amount=50.0)


def _settled(status: PaymentStatus) -> Payment:
    payment = _make_payment()
    payment.start(PaymentMethod.STRIPE, "pi_123")
    payment.reconcile(status)
    payment._events.clear()
    return payment


class TestPaymentStart:
    def test_new_payment_is_pending(self):
        payment = _make_payment()
        assert payment.current_status == PaymentStatus.PENDING
        assert payment.method is None
        assert payment.currency == "usd"

    def test_start_records_method_and_transaction(self):
        payment = _make_payment()
        payment.start(PaymentMethod.PAYPAL, "5O190127TN364715T")
        assert payment.method == "PAYPAL"
        assert payment.gateway_transaction_id == "5O190127TN364715T"
        assert payment.current_status == PaymentStatus.PENDING
        assert isinstance(payment._events[-1], PaymentInitiated)

    def test_cannot_start_settled_payment(self):
        payment = _settled(PaymentStatus.SUCCESS)
        with pytest.raises(PaymentError, match="not in PENDING"):
            payment.start(PaymentMethod.STRIPE, "pi_456")


class TestPaymentReconciliation:
    @pytest.mark.parametrize("target", [PaymentStatus.SUCCESS, PaymentStatus.FAILED])
    def test_pending_settles(self, target):
        payment = _make_payment()
        payment.reconcile(target, "pi_999")
        assert payment.current_status == target
        assert payment.gateway_transaction_id == "pi_999"
        event = payment._events[-1]
        assert isinstance(event, PaymentStatusReconciled)
        assert event.previous_status == "PENDING"

    def test_late_failure_overwrites_success(self):
        payment = _settled(PaymentStatus.SUCCESS)
        payment.reconcile(PaymentStatus.FAILED)
        assert payment.current_status == PaymentStatus.FAILED

    def test_late_success_overwrites_failure(self):
        payment = _settled(PaymentStatus.FAILED)
        payment.reconcile(PaymentStatus.SUCCESS)
        assert payment.current_status == PaymentStatus.SUCCESS

    def test_reconcile_keeps_transaction_id_when_absent(self):
        payment = _settled(PaymentStatus.FAILED)
        payment.reconcile(PaymentStatus.SUCCESS, None)
        assert payment.gateway_transaction_id == "pi_123"

    def test_refunded_is_final(self):
        payment = _settled(PaymentStatus.SUCCESS)
        payment.mark_refunded("re_1")
        with pytest.raises(InvalidStatusTransition):
            payment.reconcile(PaymentStatus.FAILED)

    def test_cannot_move_back_to_pending(self):
        payment = _settled(PaymentStatus.SUCCESS)
        with pytest.raises(InvalidStatusTransition):
            payment.reconcile(PaymentStatus.PENDING)


class TestPaymentRefund:
    def test_refund_successful_payment(self):
        payment = _settled(PaymentStatus.SUCCESS)
        payment.mark_refunded("re_123")
        assert payment.current_status == PaymentStatus.REFUNDED
        assert payment.refund_transaction_id == "re_123"
        event = payment._events[-1]
        assert isinstance(event, PaymentRefunded)
        assert event.amount == 50.0

    @pytest.mark.parametrize("status", [PaymentStatus.FAILED])
    def test_only_successful_payments_refund(self, status):
        payment = _settled(status)
        with pytest.raises(RefundError, match="not in SUCCESS"):
            payment.mark_refunded("re_123")

    def test_pending_payment_cannot_refund(self):
        with pytest.raises(RefundError):
            _make_payment().mark_refunded("re_123")
