"""Customer aggregate — a buyer and the addresses they ship and bill to."""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, HasMany, String

from marketplace.domain import marketplace


@marketplace.entity(part_of="Customer")
class Address:
    street_address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone_number = String(max_length=30)
    is_default = Boolean(default=False)


@marketplace.aggregate
class Customer:
    name = String(required=True, max_length=150)
    email = String(required=True, max_length=254)
    addresses = HasMany(Address)
    created_at = DateTime()

    @classmethod
    def register(cls, name: str, email: str, addresses: list[dict] | None = None):
        customer = cls(name=name, email=email, created_at=datetime.now(UTC))
        for address_data in addresses or []:
            customer.add_addresses(Address(**address_data))
        return customer

    def address(self, address_id: str) -> Address | None:
        """Return the address with this id if the customer owns it."""
        return next((a for a in self.addresses if str(a.id) == str(address_id)), None)
