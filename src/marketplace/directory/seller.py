"""Seller aggregate — a merchant whose products are ordered and shipped from its warehouse."""

from protean.fields import String, ValueObject

from marketplace.domain import marketplace


@marketplace.value_object(part_of="Seller")
class WarehouseAddress:
    """The address parcels are collected from."""

    street_address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone_number = String(max_length=30)


@marketplace.aggregate
class Seller:
    company_name = String(required=True, max_length=200)
    contact_email = String(max_length=254)
    warehouse_address = ValueObject(WarehouseAddress)
