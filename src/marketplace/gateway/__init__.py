"""Payment gateway registry.

Maps each payment method to the adapter that serves it. With
``MARKETPLACE_PAYMENT_GATEWAYS=live`` the Stripe and PayPal adapters are
built from settings; otherwise each method gets its own FakeGateway.
Use set_gateway() / reset_gateways() to swap implementations in tests.
"""

from marketplace.config import Settings, get_settings
from marketplace.exceptions import PaymentError
from marketplace.gateway.fake_adapter import FakeGateway
from marketplace.gateway.port import PaymentGateway

STRIPE = "STRIPE"
PAYPAL = "PAYPAL"

_gateways: dict[str, PaymentGateway] = {}


def build_gateways(settings: Settings) -> dict[str, PaymentGateway]:
    if settings.payment_gateways == "live":
        from marketplace.gateway.paypal_adapter import PayPalGateway
        from marketplace.gateway.stripe_adapter import StripeGateway

        return {
            STRIPE: StripeGateway.from_settings(settings),
            PAYPAL: PayPalGateway.from_settings(settings),
        }
    if settings.payment_gateways == "fake":
        return {
            STRIPE: FakeGateway(name="stripe", transaction_prefix="pi_"),
            PAYPAL: FakeGateway(name="paypal", transaction_prefix="PAYID-"),
        }
    raise ValueError(f"Unknown payment gateway mode: {settings.payment_gateways}")


def get_gateway(method: str) -> PaymentGateway:
    if not _gateways:
        _gateways.update(build_gateways(get_settings()))
    key = (method or "").upper()
    if key not in _gateways:
        raise PaymentError({"payment_method": [f"Unsupported payment method: {method}"]})
    return _gateways[key]


def set_gateway(method: str, gateway: PaymentGateway) -> None:
    if not _gateways:
        _gateways.update(build_gateways(get_settings()))
    _gateways[method.upper()] = gateway


def reset_gateways() -> None:
    """Close and forget every adapter; the next lookup rebuilds from settings."""
    for gateway in _gateways.values():
        gateway.close()
    _gateways.clear()
