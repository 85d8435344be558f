"""Shared BDD fixtures and step definitions for the marketplace."""

import pytest
from marketplace.catalogue.product import Product
from marketplace.gateway import STRIPE, get_gateway
from marketplace.order.order import Order
from marketplace.order.status import UpdateOrderStatus
from marketplace.payment.initiation import InitiatePayment
from marketplace.payment.payment import Payment
from marketplace.shipment.creation import CreateShipment
from protean import current_domain
from pytest_bdd import given, parsers, then



@pytest.fixture()
def error():
    """Container for the error a When step captured."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("an order for {quantity:d} widgets was placed"), target_fixture="order")
def _(place_order, quantity):
    return place_order(("widget", quantity))


@given(parsers.cfparse('payment was initiated through "{method}"'))
def _(order, customer, method):
    current_domain.process(
        InitiatePayment(order_id=order["id"], payment_method=method, requester_id=str(customer.id)),
        asynchronous=False,
    )


@given("the order was paid through Stripe")
def _(order, customer, settle_payment):
    current_domain.process(
        InitiatePayment(order_id=order["id"], payment_method="STRIPE", requester_id=str(customer.id)),
        asynchronous=False,
    )
    settle_payment(order["id"], "SUCCESS")


@given(parsers.cfparse('the seller moved the order to "{status}"'))
def _(order, seller, status):
    current_domain.process(
        UpdateOrderStatus(
            order_id=order["id"],
            new_status=status,
            requester_id=str(seller.id),
            requester_role="SELLER",
        ),
        asynchronous=False,
    )


@given("the gateway declines every request")
def _():
    get_gateway(STRIPE).configure(should_succeed=False, failure_reason="Declined by issuer")


@given("the order was booked with the carrier", target_fixture="shipment")
def _(order, logistics_provider):
    return current_domain.process(
        CreateShipment(order_id=order["id"], logistics_provider_id=str(logistics_provider.id), carrier="UPS"),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert current_domain.repository_for(Order).get(order["id"]).status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def _(order, status):
    assert current_domain.repository_for(Payment).for_order(order["id"]).status == status


@then(parsers.cfparse("the widget stock is {count:d}"))
def _(products, count):
    assert current_domain.repository_for(Product).get(products["widget"].id).stock_quantity == count


@then(parsers.cfparse('the order is rejected with "{error_name}"'))
def _(error, error_name):
    assert error["exc"] is not None
    assert type(error["exc"]).__name__ == error_name
