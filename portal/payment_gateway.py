# portal/payment_gateway.py
"""
Payment Gateways

One interface, two providers:
- StripeCheckoutGateway: hosted checkout session, confirmed by retrieving
  the session and checking `payment_status`.
- PayPalOrdersGateway: order + capture over the REST API, authenticated
  with a client-credentials token.

Both charge the fixed configured price; nothing about the amount comes from
the request. Provider failures surface as ProviderError, unknown ids as
OrderNotFound. Neither ever reports a payment as paid on failure.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import httpx
import stripe
from fastapi.concurrency import run_in_threadpool

from .config import settings
from .errors import OrderNotFound, ProviderError
from .models import CreatedOrder, PaymentConfirmation, RequestRecord
from .profiles import resolve_profile

logger = logging.getLogger(__name__)

# Currencies charged in whole units (Stripe's zero-decimal list; PayPal
# rejects decimals for HUF, JPY and TWD).
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF", "CLP", "DJF", "GNF", "HUF", "JPY", "KMF", "KRW", "MGA",
        "PYG", "RWF", "TWD", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)


def is_zero_decimal(currency: str) -> bool:
    return currency.upper() in ZERO_DECIMAL_CURRENCIES


def minor_units(amount: Decimal, currency: str) -> int:
    """Amount in the currency's smallest unit, as Stripe expects it."""
    factor = 1 if is_zero_decimal(currency) else 100
    return int((amount * factor).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(amount: Decimal, currency: str) -> str:
    """Amount as the decimal string PayPal expects."""
    exponent = Decimal("1") if is_zero_decimal(currency) else Decimal("0.01")
    return str(amount.quantize(exponent, rounding=ROUND_HALF_UP))


class PaymentGateway(ABC):
    """Common surface of every payment provider."""

    provider: str = "base"

    @abstractmethod
    async def create_order(self, record: RequestRecord) -> CreatedOrder:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def confirm_order(self, order_id: str) -> PaymentConfirmation:  # pragma: no cover - interface
        ...


# ---------------------------------------------------------------------------
# Stripe
# ---------------------------------------------------------------------------

class StripeCheckoutGateway(PaymentGateway):
    provider = "stripe"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        price_id: Optional[str] = None,
        amount: Optional[str] = None,
        currency: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.price_id = price_id if price_id is not None else settings.STRIPE_PRICE_ID
        self.amount = Decimal(amount or settings.PRICE_AMOUNT)
        self.currency = (currency or settings.PRICE_CURRENCY).lower()
        self.base_url = (base_url or settings.BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    def _line_item(self, record: RequestRecord) -> Dict[str, Any]:
        if self.price_id:
            return {"price": self.price_id, "quantity": 1}

        _, profile = resolve_profile(record.reading_type)
        return {
            "price_data": {
                "currency": self.currency,
                "unit_amount": minor_units(self.amount, self.currency),
                "product_data": {"name": profile.title},
            },
            "quantity": 1,
        }

    async def _call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        # The SDK is blocking; run it off the event loop with a hard bound.
        if not self.api_key:
            raise ProviderError("Stripe no está configurado.")
        try:
            return await asyncio.wait_for(
                run_in_threadpool(func, *args, api_key=self.api_key, **kwargs),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderError("Stripe no respondió a tiempo.") from exc

    async def create_order(self, record: RequestRecord) -> CreatedOrder:
        try:
            session = await self._call(
                stripe.checkout.Session.create,
                mode="payment",
                payment_method_types=["card"],
                line_items=[self._line_item(record)],
                customer_email=record.email,
                success_url=f"{self.base_url}/success.html?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{self.base_url}/",
                metadata={
                    "tipoLectura": record.reading_type.value,
                    "name": record.name,
                    "email": record.email,
                    "birthdate": record.birthdate,
                },
            )
        except stripe.StripeError as exc:
            logger.exception("Stripe checkout session could not be created for %s", record.email)
            raise ProviderError("No se pudo crear la sesión de pago.") from exc

        logger.info("Stripe checkout session created: %s", session.id)
        return CreatedOrder(order_id=session.id, approval_url=session.url)

    async def confirm_order(self, order_id: str) -> PaymentConfirmation:
        try:
            session = await self._call(stripe.checkout.Session.retrieve, order_id)
        except stripe.InvalidRequestError as exc:
            if getattr(exc, "code", None) == "resource_missing":
                logger.warning("Stripe session %s unknown to provider", order_id)
                raise OrderNotFound("La sesión de pago no existe.") from exc
            logger.exception("Stripe rejected retrieval of session %s", order_id)
            raise ProviderError("No se pudo verificar el pago.") from exc
        except stripe.StripeError as exc:
            logger.exception("Stripe session %s could not be retrieved", order_id)
            raise ProviderError("No se pudo verificar el pago.") from exc

        status = session.payment_status or "unpaid"
        return PaymentConfirmation(order_id=order_id, status=status, paid=status == "paid")


# ---------------------------------------------------------------------------
# PayPal
# ---------------------------------------------------------------------------

PAYPAL_API_BASES = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}

# Refresh the token this many seconds before PayPal says it expires.
TOKEN_EXPIRY_MARGIN = 60

# PayPal order ids are alphanumeric; anything else is rejected before any request.
PAYPAL_ORDER_ID_RE = re.compile(r"[A-Za-z0-9-]+")


def _paypal_issue(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "UNPROCESSABLE_ENTITY"
    if not isinstance(body, dict):
        return "UNPROCESSABLE_ENTITY"
    details = body.get("details") or []
    if details and details[0].get("issue"):
        return str(details[0]["issue"])
    return str(body.get("name") or "UNPROCESSABLE_ENTITY")


class PayPalOrdersGateway(PaymentGateway):
    provider = "paypal"

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        *,
        mode: Optional[str] = None,
        amount: Optional[str] = None,
        currency: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.client_id = client_id or settings.PAYPAL_CLIENT_ID
        self.client_secret = client_secret or settings.PAYPAL_CLIENT_SECRET
        mode = (mode or settings.PAYPAL_MODE).lower()
        self.api_base = PAYPAL_API_BASES.get(mode, PAYPAL_API_BASES["sandbox"])
        self.amount = Decimal(amount or settings.PRICE_AMOUNT)
        self.currency = (currency or settings.PRICE_CURRENCY).upper()
        self.base_url = (base_url or settings.BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self.transport = transport

        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_base, timeout=self.timeout, transport=self.transport
        )

    async def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        if not self.client_id or not self.client_secret:
            raise ProviderError("PayPal no está configurado.")

        try:
            async with self._client() as client:
                resp = await client.post(
                    "/v1/oauth2/token",
                    data={"grant_type": "client_credentials"},
                    auth=(self.client_id, self.client_secret),
                )
                resp.raise_for_status()
                data = resp.json()
            token = data["access_token"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.exception("PayPal token exchange failed")
            raise ProviderError("No se pudo autenticar con PayPal.") from exc

        self._token = token
        expires_in = int(data.get("expires_in", 0))
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0)
        return self._token

    async def _post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        token = await self._access_token()
        async with self._client() as client:
            resp = await client.post(
                path,
                json=payload if payload is not None else {},
                headers={"Authorization": f"Bearer {token}"},
            )
            if resp.status_code == 401:
                # Revoked or expired early; fetch a fresh token next call.
                self._token = None
                self._token_expires_at = 0.0
            resp.raise_for_status()
            data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected PayPal response body: {data!r}")
        return data

    async def create_order(self, record: RequestRecord) -> CreatedOrder:
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "description": resolve_profile(record.reading_type)[1].title,
                    "amount": {
                        "currency_code": self.currency,
                        "value": format_amount(self.amount, self.currency),
                    },
                }
            ],
            "application_context": {
                "return_url": f"{self.base_url}/success-paypal.html",
                "cancel_url": f"{self.base_url}/",
            },
        }

        try:
            data = await self._post("/v2/checkout/orders", payload)
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("PayPal order could not be created for %s", record.email)
            raise ProviderError("No se pudo crear la orden de PayPal.") from exc

        order_id = data.get("id")
        approval_url = next(
            (
                link.get("href")
                for link in data.get("links", [])
                if link.get("rel") in ("approve", "payer-action")
            ),
            None,
        )
        if not order_id or not approval_url:
            logger.error("PayPal order response missing id or approval link: %s", data)
            raise ProviderError("No se pudo crear la orden de PayPal.")

        logger.info("PayPal order created: %s", order_id)
        return CreatedOrder(order_id=order_id, approval_url=approval_url)

    async def confirm_order(self, order_id: str) -> PaymentConfirmation:
        if not PAYPAL_ORDER_ID_RE.fullmatch(order_id or ""):
            logger.warning("Rejected malformed PayPal order id %r", order_id)
            raise OrderNotFound("La orden de PayPal no existe.")

        try:
            data = await self._post(f"/v2/checkout/orders/{quote(order_id, safe='')}/capture")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                logger.warning("PayPal order %s unknown to provider", order_id)
                raise OrderNotFound("La orden de PayPal no existe.") from exc
            if exc.response.status_code == 422:
                # Not approved by the payer yet (ORDER_NOT_APPROVED and friends)
                status = _paypal_issue(exc.response)
                logger.warning("PayPal order %s not capturable: %s", order_id, status)
                return PaymentConfirmation(order_id=order_id, status=status, paid=False)
            logger.exception("PayPal capture failed for %s", order_id)
            raise ProviderError("No se pudo capturar el pago de PayPal.") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("PayPal capture failed for %s", order_id)
            raise ProviderError("No se pudo capturar el pago de PayPal.") from exc

        status = str(data.get("status") or "UNKNOWN")
        return PaymentConfirmation(order_id=order_id, status=status, paid=status == "COMPLETED")
