"""FastAPI routes for orders, payments and shipments.

The caller's identity arrives in ``X-User-Id`` / ``X-User-Role`` headers,
set by the gateway in front of this service.

Routes that reach Stripe, PayPal or the carrier are plain ``def`` (or hand
the work to ``run_in_threadpool``) so a slow upstream blocks a worker thread
rather than the event loop.
"""

import json

from fastapi import APIRouter, Header, HTTPException, Request
from protean.utils.globals import current_domain
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from marketplace.api.schemas import (
    CancellationResponse,
    CancelOrderRequest,
    CarrierWebhookPayload,
    CreateShipmentRequest,
    InitiatePaymentRequest,
    OrderResponse,
    PaymentInitiationResponse,
    PlaceOrderRequest,
    RefundResponse,
    ShipmentResponse,
    UpdateOrderStatusRequest,
    WebhookAckResponse,
)
from marketplace.carrier import get_carrier
from marketplace.exceptions import UnauthorizedAccess
from marketplace.order.access import is_admin
from marketplace.order.cancellation import CancelOrder
from marketplace.order.creation import PlaceOrder
from marketplace.order.queries import get_order, list_all_orders, list_orders_for_customer, list_orders_for_seller
from marketplace.order.status import UpdateOrderStatus
from marketplace.payment.initiation import InitiatePayment
from marketplace.payment.refund import RefundPayment
from marketplace.payment.webhook import handle_gateway_webhook
from marketplace.shipment.creation import CreateShipment
from marketplace.shipment.queries import get_shipment_status, list_shipments_for_order
from marketplace.shipment.tracking import RecordCarrierUpdate, refresh_tracking


class Requester(BaseModel):
    id: str
    role: str | None = None


def requester_from_headers(x_user_id: str, x_user_role: str) -> Requester:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return Requester(id=x_user_id, role=x_user_role or None)


def _ensure_self_or_admin(requester: Requester, subject_id: str) -> None:
    if requester.id != subject_id and not is_admin(requester.role):
        raise UnauthorizedAccess({"requester_id": ["Not allowed to list these orders"]})


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(
    body: PlaceOrderRequest,
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=""),
) -> OrderResponse:
    """Place an order for the calling customer; stock is reserved immediately."""
    requester = requester_from_headers(x_user_id, x_user_role)
    command = PlaceOrder(
        customer_id=requester.id,
        shipping_address_id=body.shipping_address_id,
        billing_address_id=body.billing_address_id,
        items=json.dumps([item.model_dump() for item in body.items]),
    )
    return current_domain.process(command, asynchronous=False)


@order_router.get("", response_model=list[OrderResponse])
async def all_orders(x_user_id: str = Header(default=""), x_user_role: str = Header(default="")):
    requester = requester_from_headers(x_user_id, x_user_role)
    if not is_admin(requester.role):
        raise UnauthorizedAccess({"requester_role": ["Only administrators may list all orders"]})
    return list_all_orders()


@order_router.get("/customer/{customer_id}", response_model=list[OrderResponse])
async def customer_orders(customer_id: str, x_user_id: str = Header(default=""), x_user_role: str = Header(default="")):
    _ensure_self_or_admin(requester_from_headers(x_user_id, x_user_role), customer_id)
    return list_orders_for_customer(customer_id)


@order_router.get("/seller/{seller_id}", response_model=list[OrderResponse])
async def seller_orders(seller_id: str, x_user_id: str = Header(default=""), x_user_role: str = Header(default="")):
    _ensure_self_or_admin(requester_from_headers(x_user_id, x_user_role), seller_id)
    return list_orders_for_seller(seller_id)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def order_detail(order_id: str, x_user_id: str = Header(default=""), x_user_role: str = Header(default="")):
    requester = requester_from_headers(x_user_id, x_user_role)
    return get_order(order_id, requester.id, requester.role)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=""),
):
    """Move an order one step forward (seller of the order or admin)."""
    requester = requester_from_headers(x_user_id, x_user_role)
    command = UpdateOrderStatus(
        order_id=order_id,
        new_status=body.status,
        requester_id=requester.id,
        requester_role=requester.role,
    )
    return current_domain.process(command, asynchronous=False)


@order_router.put("/{order_id}/cancel", response_model=CancellationResponse)
def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=""),
):
    """Cancel an order that has not shipped; stock returns and a paid order is refunded."""
    requester = requester_from_headers(x_user_id, x_user_role)
    command = CancelOrder(
        order_id=order_id,
        requester_id=requester.id,
        requester_role=requester.role,
        reason=body.reason if body else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return CancellationResponse(
        order=result.order,
        refund_outcome=result.refund_outcome.value,
        refund_error=result.refund_error,
    )


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/initiate/{order_id}", response_model=PaymentInitiationResponse)
def initiate_payment(
    order_id: str,
    body: InitiatePaymentRequest,
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=""),
):
    """Open the order's payment with Stripe or PayPal and return the client credentials."""
    requester = requester_from_headers(x_user_id, x_user_role)
    command = InitiatePayment(
        order_id=order_id,
        payment_method=body.payment_method,
        requester_id=requester.id,
    )
    return current_domain.process(command, asynchronous=False)


@payment_router.post("/{payment_id}/refund", response_model=RefundResponse)
def refund_payment(payment_id: str, x_user_id: str = Header(default=""), x_user_role: str = Header(default="")):
    requester = requester_from_headers(x_user_id, x_user_role)
    command = RefundPayment(payment_id=payment_id, requester_id=requester.id, requester_role=requester.role)
    return current_domain.process(command, asynchronous=False)


@payment_router.post("/webhook/stripe", response_model=WebhookAckResponse)
async def stripe_webhook(request: Request) -> WebhookAckResponse:
    """Stripe event delivery; authenticated by the ``Stripe-Signature`` header."""
    outcome = await run_in_threadpool(handle_gateway_webhook, "STRIPE", await request.body(), request.headers)
    return WebhookAckResponse(status=outcome)


@payment_router.post("/webhook/paypal", response_model=WebhookAckResponse)
async def paypal_webhook(request: Request) -> WebhookAckResponse:
    """PayPal event delivery; authenticated through PayPal's verification API."""
    outcome = await run_in_threadpool(handle_gateway_webhook, "PAYPAL", await request.body(), request.headers)
    return WebhookAckResponse(status=outcome)


# ---------------------------------------------------------------------------
# Shipments
# ---------------------------------------------------------------------------
shipment_router = APIRouter(prefix="/shipments", tags=["shipments"])


@shipment_router.post("", status_code=201, response_model=ShipmentResponse)
def create_shipment(body: CreateShipmentRequest):
    """Book the order's parcel with the carrier and mark the order SHIPPED."""
    command = CreateShipment(
        order_id=body.order_id,
        logistics_provider_id=body.logistics_provider_id,
        carrier=body.carrier,
    )
    return current_domain.process(command, asynchronous=False)


@shipment_router.get("/order/{order_id}", response_model=list[ShipmentResponse])
async def order_shipments(order_id: str):
    return list_shipments_for_order(order_id)


@shipment_router.get("/{tracking_number}", response_model=ShipmentResponse)
async def shipment_status(tracking_number: str):
    return get_shipment_status(tracking_number)


@shipment_router.post("/{tracking_number}/refresh", response_model=ShipmentResponse)
def refresh_shipment(tracking_number: str):
    """Pull the latest status from the carrier instead of waiting for a webhook."""
    return refresh_tracking(tracking_number)


# ---------------------------------------------------------------------------
# Carrier webhooks
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/shipments", response_model=WebhookAckResponse)
async def carrier_webhook(request: Request, x_carrier_signature: str = Header(default="")) -> WebhookAckResponse:
    """Carrier tracking update for a shipment."""
    raw = await request.body()
    if not get_carrier().verify_webhook_signature(raw, x_carrier_signature):
        raise HTTPException(status_code=401, detail="Invalid carrier webhook signature")

    try:
        payload = CarrierWebhookPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Malformed carrier webhook payload") from exc

    command = RecordCarrierUpdate(
        tracking_number=payload.data.tracking_code,
        external_status=payload.data.status,
        details=payload.data.status_detail,
    )
    await run_in_threadpool(current_domain.process, command, asynchronous=False)
    return WebhookAckResponse(status="processed")
