"""Runtime settings for external integrations.

Values are read from the environment with the ``MARKETPLACE_`` prefix
(e.g. ``MARKETPLACE_STRIPE_API_KEY``) or from a local ``.env`` file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MARKETPLACE_", env_file=".env", extra="ignore")

    # "fake" wires the in-memory gateways, "live" the Stripe/PayPal adapters
    payment_gateways: str = "fake"
    currency: str = "usd"
    gateway_timeout_seconds: float = 10.0

    # Stripe
    stripe_api_key: str = ""
    stripe_webhook_secret: str = ""

    # PayPal
    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    paypal_webhook_id: str = ""
    paypal_base_url: str = "https://api-m.sandbox.paypal.com"

    # Carrier
    carrier_api_url: str = "https://api.carrier.example.com"
    carrier_api_key: str = ""
    carrier_webhook_secret: str = ""


@lru_cache
def get_settings() -> Settings:
    return Settings()
