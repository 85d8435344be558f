"""Pydantic API schemas for the marketplace.

These are the external API contracts — separate from domain commands.
The API layer translates between these schemas and domain commands.
"""

from pydantic import BaseModel, ConfigDict, Field, StrictInt


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    product_id: str
    quantity: StrictInt


class PlaceOrderRequest(BaseModel):
    shipping_address_id: str
    billing_address_id: str
    items: list[OrderItemRequest]


class UpdateOrderStatusRequest(BaseModel):
    status: str


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class InitiatePaymentRequest(BaseModel):
    payment_method: str


class CreateShipmentRequest(BaseModel):
    order_id: str
    logistics_provider_id: str
    carrier: str


class CarrierTrackingData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tracking_code: str = Field(alias="trackingCode")
    status: str | None = None
    status_detail: str | None = Field(default=None, alias="statusDetail")


class CarrierWebhookPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_type: str | None = Field(default=None, alias="eventType")
    data: CarrierTrackingData


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: str | None = None
    quantity: int
    price_at_purchase: float


class PaymentSummary(BaseModel):
    id: str
    status: str
    method: str | None = None
    amount: float
    gateway_transaction_id: str | None = None
    refund_transaction_id: str | None = None


class ShipmentSummary(BaseModel):
    id: str
    carrier: str
    tracking_number: str
    status: str
    label_url: str | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    status: str
    total_amount: float
    currency: str
    customer_id: str
    seller_id: str
    shipping_address_id: str
    billing_address_id: str
    payment_id: str | None = None
    items: list[OrderItemResponse]
    payment: PaymentSummary | None = None
    shipments: list[ShipmentSummary] = []
    created_at: str | None = None
    updated_at: str | None = None


class CancellationResponse(BaseModel):
    order: OrderResponse
    refund_outcome: str
    refund_error: str | None = None


class PaymentInitiationResponse(BaseModel):
    payment_id: str
    payment_method: str
    gateway_transaction_id: str
    amount: float
    currency: str
    client_secret: str | None = None
    approval_url: str | None = None
    paypal_order_id: str | None = None


class RefundResponse(BaseModel):
    payment_id: str
    status: str
    refund_transaction_id: str | None = None
    amount: float


class ShipmentResponse(BaseModel):
    id: str
    order_id: str
    logistics_provider_id: str | None = None
    carrier: str
    tracking_number: str
    tracking_url: str | None = None
    label_url: str | None = None
    status: str
    status_details: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class WebhookAckResponse(BaseModel):
    status: str
