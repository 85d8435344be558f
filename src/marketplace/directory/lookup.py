"""Lookups against the directory that translate misses into domain errors."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.directory.customer import Address, Customer
from marketplace.directory.logistics import LogisticsProvider
from marketplace.directory.seller import Seller
from marketplace.exceptions import (
    AddressNotFound,
    CustomerNotFound,
    LogisticsProviderNotFound,
)


def find_customer(customer_id: str) -> Customer:
    try:
        return current_domain.repository_for(Customer).get(customer_id)
    except ObjectNotFoundError as exc:
        raise CustomerNotFound({"customer_id": [f"Customer {customer_id} not found"]}) from exc


def find_customer_address(customer: Customer, address_id: str, field: str = "address_id") -> Address:
    """Resolve an address that must belong to ``customer``."""
    address = customer.address(address_id)
    if address is None:
        raise AddressNotFound({field: [f"Address {address_id} not found for customer {customer.id}"]})
    return address


def find_seller(seller_id: str) -> Seller | None:
    try:
        return current_domain.repository_for(Seller).get(seller_id)
    except ObjectNotFoundError:
        return None


def find_logistics_provider(provider_id: str) -> LogisticsProvider:
    try:
        return current_domain.repository_for(LogisticsProvider).get(provider_id)
    except ObjectNotFoundError as exc:
        raise LogisticsProviderNotFound(
            {"logistics_provider_id": [f"Logistics provider {provider_id} not found"]}
        ) from exc
