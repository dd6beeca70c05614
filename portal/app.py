# portal/app.py
"""
FastAPI entrypoint for the Akáshico reading portal.

Exposes:
- GET  /api/ping                   → health check
- POST /api/lectura                → generate + email directly (no payment)
- POST /api/create-checkout-session → Stripe checkout, returns {url}
- POST /api/finalizar-lectura      → confirm Stripe session, fulfil
- POST /api/paypal/create-order    → PayPal order, returns {id, url}
- POST /api/paypal/capture-order   → capture PayPal order, fulfil if completed

Single process: pending orders live in memory (OrderStore) and are lost on
restart.
"""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.checkout import CheckoutFlow
from portal.config import settings
from portal.errors import OrderNotFound, PortalError, ValidationError
from portal.fulfillment import FulfillmentOrchestrator
from portal.mail_gateway import MailGateway
from portal.models import (
    CaptureOrderRequest,
    CaptureOrderResponse,
    CheckoutSessionResponse,
    FinalizeReadingRequest,
    FulfillmentResult,
    PayPalOrderResponse,
    PingResponse,
    ReadingRequest,
)
from portal.order_store import OrderStore
from portal.payment_gateway import PayPalOrdersGateway, StripeCheckoutGateway
from portal.reading_generator import ReadingGenerator

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("portal")

# ---------------------------------------------------------------------------
# App & dependencies wiring
# ---------------------------------------------------------------------------

app = FastAPI(title="Portal Akáshico", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Shared in-process singletons
order_store = OrderStore()
orchestrator = FulfillmentOrchestrator(
    generator=ReadingGenerator(),
    mail_gateway=MailGateway(),
)
stripe_flow = CheckoutFlow(StripeCheckoutGateway(), order_store, orchestrator)
paypal_flow = CheckoutFlow(PayPalOrdersGateway(), order_store, orchestrator)

logger.info(
    "Configured: openai=%s stripe=%s paypal=%s resend=%s base_url=%s",
    bool(settings.OPENAI_API_KEY),
    bool(settings.STRIPE_SECRET_KEY),
    bool(settings.PAYPAL_CLIENT_ID and settings.PAYPAL_CLIENT_SECRET),
    bool(settings.RESEND_API_KEY),
    settings.BASE_URL,
)


def get_orchestrator() -> FulfillmentOrchestrator:
    return orchestrator


def get_stripe_flow() -> CheckoutFlow:
    return stripe_flow


def get_paypal_flow() -> CheckoutFlow:
    return paypal_flow


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log("%s %s → %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s → malformed body: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Datos del formulario inválidos."})


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/api/ping", response_model=PingResponse)
async def ping() -> PingResponse:
    return PingResponse(message="Portal Akáshico online 🌌")


@app.post("/api/lectura", response_model=FulfillmentResult)
async def lectura(
    req: ReadingRequest,
    fulfillment: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> FulfillmentResult:
    """
    Direct generation without payment, kept for testing the prompts.
    """
    return await fulfillment.fulfill(req)


@app.post("/api/create-checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    req: ReadingRequest,
    flow: CheckoutFlow = Depends(get_stripe_flow),
) -> CheckoutSessionResponse:
    order = await flow.start(req)
    return CheckoutSessionResponse(url=order.approval_url)


@app.post("/api/finalizar-lectura", response_model=FulfillmentResult)
async def finalizar_lectura(
    req: FinalizeReadingRequest,
    flow: CheckoutFlow = Depends(get_stripe_flow),
) -> FulfillmentResult:
    """
    Called by success.html with the Stripe `session_id`.
    """
    if not req.session_id:
        raise ValidationError("Falta el session_id de Stripe.")

    outcome = await flow.finish(req.session_id)
    if not outcome.paid:
        raise OrderNotFound("El pago aún no está completado.")
    return outcome.result


@app.post("/api/paypal/create-order", response_model=PayPalOrderResponse)
async def paypal_create_order(
    req: ReadingRequest,
    flow: CheckoutFlow = Depends(get_paypal_flow),
) -> PayPalOrderResponse:
    order = await flow.start(req)
    return PayPalOrderResponse(id=order.order_id, url=order.approval_url)


@app.post(
    "/api/paypal/capture-order",
    response_model=CaptureOrderResponse,
    response_model_exclude_none=True,
)
async def paypal_capture_order(
    req: CaptureOrderRequest,
    flow: CheckoutFlow = Depends(get_paypal_flow),
) -> CaptureOrderResponse:
    if not req.order_id:
        raise ValidationError("Falta el orderID de PayPal.")

    outcome = await flow.finish(req.order_id)
    return CaptureOrderResponse(status=outcome.confirmation.status, resultado=outcome.result)


# For local dev convenience:
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "portal.app:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=True,
    )
