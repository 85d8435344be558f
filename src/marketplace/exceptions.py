"""Error taxonomy for the marketplace domain.

Every error is raised with a ``{field: [message, ...]}`` dict, the shape
Protean uses for its own validation errors. ``ValidationError`` keeps it in
``messages``; the other Protean bases keep it in ``args``. ``error_messages``
reads either, so the API layer can render all of them uniformly.

Lookups that miss raise a subclass of ``ObjectNotFoundError``. Business rule
violations raise a subclass of ``ValidationError``. Authorization, webhook
authenticity and upstream failures have their own branches.
"""

from protean.exceptions import ObjectNotFoundError, ProteanException, ValidationError


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class CustomerNotFound(ObjectNotFoundError):
    pass


class AddressNotFound(ObjectNotFoundError):
    pass


class ProductNotFound(ObjectNotFoundError):
    pass


class OrderNotFound(ObjectNotFoundError):
    pass


class PaymentNotFound(ObjectNotFoundError):
    pass


class ShipmentNotFound(ObjectNotFoundError):
    pass


class LogisticsProviderNotFound(ObjectNotFoundError):
    pass


# ---------------------------------------------------------------------------
# Business rule violations
# ---------------------------------------------------------------------------
class InsufficientStock(ValidationError):
    pass


class MultiSellerOrderError(ValidationError):
    pass


class OrderCreationError(ValidationError):
    pass


class OrderCancellationError(ValidationError):
    pass


class InvalidStatusTransition(ValidationError):
    pass


class PaymentError(ValidationError):
    pass


class RefundError(ValidationError):
    pass


# ---------------------------------------------------------------------------
# Access, authenticity and upstream failures
# ---------------------------------------------------------------------------
class UnauthorizedAccess(ProteanException):
    pass


class WebhookVerificationError(ProteanException):
    pass


class GatewayError(ProteanException):
    """An external payment gateway rejected a call or could not be reached."""


class CarrierError(ProteanException):
    """The shipping carrier rejected a call or could not be reached."""


class ShipmentCreationError(ProteanException):
    pass


def error_messages(exc: ProteanException) -> dict | list | str:
    """Return the payload a domain error was raised with."""
    messages = getattr(exc, "messages", None)
    if messages is not None:
        return messages
    if exc.args:
        return exc.args[0]
    return str(exc)


def first_message(exc: ProteanException) -> str:
    """Return the first human-readable message carried by a domain error."""
    messages = error_messages(exc)
    if isinstance(messages, dict):
        for value in messages.values():
            if isinstance(value, list | tuple) and value:
                return str(value[0])
            if value:
                return str(value)
    return str(messages)
