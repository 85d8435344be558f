"""Order retrieval and listings."""

import pytest
from marketplace.exceptions import OrderNotFound, UnauthorizedAccess
from marketplace.order.queries import get_order, list_all_orders, list_orders_for_customer, list_orders_for_seller


class TestGetOrder:
    def test_owner_sees_order(self, place_order, customer):
        placed = place_order()
        order = get_order(placed["id"], str(customer.id))
        assert order["order_number"] == placed["order_number"]
        assert order["items"][0]["quantity"] == 2
        assert order["payment"]["status"] == "PENDING"
        assert order["shipments"] == []

    @pytest.mark.parametrize("role", ["ADMIN", "ROLE_ADMIN", "admin"])
    def test_admin_sees_any_order(self, place_order, role):
        placed = place_order()
        assert get_order(placed["id"], "staff-1", role)["id"] == placed["id"]

    def test_other_customer_is_refused(self, place_order):
        placed = place_order()
        with pytest.raises(UnauthorizedAccess):
            get_order(placed["id"], "someone-else", "CUSTOMER")

    def test_missing_order(self, customer):
        with pytest.raises(OrderNotFound):
            get_order("does-not-exist", str(customer.id))


class TestListings:
    def test_customer_listing(self, place_order, customer):
        place_order(("widget", 1))
        place_order(("gadget", 1))
        assert len(list_orders_for_customer(str(customer.id))) == 2
        assert list_orders_for_customer("someone-else") == []

    def test_seller_listing(self, place_order, seller, other_seller):
        place_order()
        assert len(list_orders_for_seller(str(seller.id))) == 1
        assert list_orders_for_seller(str(other_seller.id)) == []

    def test_all_orders_newest_first(self, place_order):
        first = place_order(("widget", 1))
        second = place_order(("gadget", 1))
        listed = [order["id"] for order in list_all_orders()]
        assert set(listed) == {first["id"], second["id"]}
