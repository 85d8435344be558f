import json

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    from marketplace.carrier import reset_carrier
    from marketplace.gateway import reset_gateways

    with marketplace_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()
        reset_gateways()
        reset_carrier()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------
@pytest.fixture()
def seller():
    from marketplace.directory.seller import Seller, WarehouseAddress
    from protean import current_domain

    seller = Seller(
        company_name="Acme Goods",
        contact_email="ops@acme.test",
        warehouse_address=WarehouseAddress(
            street_address="1 Dock Road",
            city="Portland",
            state="OR",
            postal_code="97201",
            country="US",
            phone_number="+1-503-555-0100",
        ),
    )
    current_domain.repository_for(Seller).add(seller)
    return seller


@pytest.fixture()
def other_seller():
    from marketplace.directory.seller import Seller
    from protean import current_domain

    seller = Seller(company_name="Globex", contact_email="hello@globex.test")
    current_domain.repository_for(Seller).add(seller)
    return seller


@pytest.fixture()
def customer():
    from marketplace.directory.customer import Customer
    from protean import current_domain

    customer = Customer.register(
        name="Jane Buyer",
        email="jane@example.com",
        addresses=[
            {
                "street_address": "742 Evergreen Terrace",
                "city": "Springfield",
                "state": "IL",
                "postal_code": "62704",
                "country": "US",
                "phone_number": "+1-217-555-0199",
                "is_default": True,
            },
            {
                "street_address": "1 Billing Plaza",
                "city": "Chicago",
                "state": "IL",
                "postal_code": "60601",
                "country": "US",
            },
        ],
    )
    current_domain.repository_for(Customer).add(customer)
    return current_domain.repository_for(Customer).get(customer.id)


@pytest.fixture()
def shipping_address_id(customer):
    return next(str(a.id) for a in customer.addresses if a.is_default)


@pytest.fixture()
def billing_address_id(customer):
    return next(str(a.id) for a in customer.addresses if not a.is_default)


@pytest.fixture()
def products(seller, other_seller):
    from marketplace.catalogue.product import Product
    from protean import current_domain

    catalogue = {
        "widget": Product(
            name="Widget",
            seller_id=str(seller.id),
            price=25.0,
            stock_quantity=10,
            weight_kg=1.2,
            length_cm=30.0,
            width_cm=20.0,
            height_cm=10.0,
        ),
        "gadget": Product(name="Gadget", seller_id=str(seller.id), price=9.99, stock_quantity=5),
        "gizmo": Product(name="Gizmo", seller_id=str(other_seller.id), price=40.0, stock_quantity=3),
    }
    for product in catalogue.values():
        current_domain.repository_for(Product).add(product)
    return catalogue


@pytest.fixture()
def logistics_provider():
    from marketplace.directory.logistics import LogisticsProvider
    from protean import current_domain

    provider = LogisticsProvider(
        company_name="Parcel Co",
        tracking_url_pattern="https://track.parcel.test/{tracking_number}",
    )
    current_domain.repository_for(LogisticsProvider).add(provider)
    return provider


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def place_order(customer, products, shipping_address_id, billing_address_id):
    """Place an order through the command; lines are ``(product key, quantity)``."""
    from marketplace.order.creation import PlaceOrder
    from protean import current_domain

    def _place(*lines, customer_id=None):
        lines = lines or (("widget", 2),)
        return current_domain.process(
            PlaceOrder(
                customer_id=customer_id or str(customer.id),
                shipping_address_id=shipping_address_id,
                billing_address_id=billing_address_id,
                items=json.dumps([{"product_id": str(products[key].id), "quantity": qty} for key, qty in lines]),
            ),
            asynchronous=False,
        )

    return _place


@pytest.fixture()
def settle_payment():
    """Apply a gateway outcome to an order's payment, as a verified webhook would."""
    from marketplace.payment.payment import Payment
    from marketplace.payment.webhook import ReconcilePayment
    from protean import current_domain

    def _settle(order_id, status="SUCCESS", gateway_transaction_id=None):
        payment = current_domain.repository_for(Payment).for_order(order_id)
        return current_domain.process(
            ReconcilePayment(
                payment_id=str(payment.id),
                order_id=str(order_id),
                target_status=status,
                gateway_transaction_id=gateway_transaction_id or payment.gateway_transaction_id,
                source_event="test",
            ),
            asynchronous=False,
        )

    return _settle


@pytest.fixture()
def paid_order(place_order, customer, settle_payment):
    """An order paid through Stripe: payment SUCCESS, order PROCESSING."""
    from marketplace.payment.initiation import InitiatePayment
    from protean import current_domain

    order = place_order()
    current_domain.process(
        InitiatePayment(order_id=order["id"], payment_method="STRIPE", requester_id=str(customer.id)),
        asynchronous=False,
    )
    settle_payment(order["id"], "SUCCESS")
    return order
