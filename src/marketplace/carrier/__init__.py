"""Carrier adapter abstraction — pluggable shipping carrier integration."""

import os

from marketplace.carrier.port import CarrierPort
from marketplace.config import get_settings

_carrier_instance: CarrierPort | None = None


def get_carrier() -> CarrierPort:
    """Return the configured carrier adapter (singleton).

    Uses FakeCarrier by default; ``CARRIER_ADAPTER=http`` selects the
    HTTP carrier built from settings.
    """
    global _carrier_instance
    if _carrier_instance is None:
        adapter = os.environ.get("CARRIER_ADAPTER", "fake")
        if adapter == "fake":
            from marketplace.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier()
        elif adapter == "http":
            from marketplace.carrier.http_adapter import HttpCarrier

            _carrier_instance = HttpCarrier.from_settings(get_settings())
        else:
            raise ValueError(f"Unknown carrier adapter: {adapter}")
    return _carrier_instance


def set_carrier(carrier: CarrierPort) -> None:
    global _carrier_instance
    _carrier_instance = carrier


def reset_carrier() -> None:
    """Close and forget the carrier singleton."""
    global _carrier_instance
    if _carrier_instance is not None:
        _carrier_instance.close()
    _carrier_instance = None
