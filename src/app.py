"""Marketplace fulfillment FastAPI application.

Single-domain web server that processes commands synchronously via HTTP.
Every request runs inside the marketplace domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

import structlog

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from marketplace.domain import marketplace
from marketplace.utils.logging import bind_context, clear_context, configure_logging

configure_logging()
logger = structlog.get_logger(__name__)

marketplace.init()


@asynccontextmanager
async def lifespan(app: FastAPI):
    from marketplace.carrier import reset_carrier
    from marketplace.gateway import reset_gateways

    logger.info("marketplace_api_started", domain=marketplace.name)
    yield
    # Release pooled HTTP connections held by the adapters
    reset_gateways()
    reset_carrier()
    logger.info("marketplace_api_stopped")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace Fulfillment API",
    description="Orders, payments and shipments for a multi-seller marketplace",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the marketplace domain context for each request."""
    clear_context()
    bind_context(method=request.method, path=request.url.path)
    with marketplace.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from marketplace.api.errors import register_exception_handlers  # noqa: E402
from marketplace.api.routes import (  # noqa: E402
    order_router,
    payment_router,
    shipment_router,
    webhook_router,
)

app.include_router(order_router)
app.include_router(payment_router)
app.include_router(shipment_router)
app.include_router(webhook_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": marketplace.name})
