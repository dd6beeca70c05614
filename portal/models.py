# portal/models.py
"""
Pydantic models for request/response bodies and the records that travel
between intake, the pending-order store and fulfillment.

JSON field names follow the public form (`tipoLectura`, `estadoActual`, ...);
Python attributes use snake_case through aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReadingType(str, Enum):
    AKASHICA = "akashica"
    VIDAS = "vidas"
    FUTURO = "futuro"
    ALMA = "alma"


DEFAULT_READING_TYPE = ReadingType.AKASHICA


class ReadingRequest(BaseModel):
    """
    Raw form submission as posted by the frontend.

    Every field is optional here so that missing data is reported by intake
    as a 400 with a readable message instead of a schema error.
    """
    model_config = ConfigDict(populate_by_name=True)

    reading_type: Optional[str] = Field(default=None, alias="tipoLectura")
    name: Optional[str] = None
    email: Optional[str] = None
    birthdate: Optional[str] = None
    current_state: Optional[str] = Field(default=None, alias="estadoActual")
    personality: Optional[str] = Field(default=None, alias="personalidad")
    goal: Optional[str] = Field(default=None, alias="objetivo")
    question: Optional[str] = Field(default=None, alias="pregunta")


class RequestRecord(BaseModel):
    """
    A validated submission, captured before payment.

    Read-only once created; the pending-order store owns it until
    fulfillment consumes it.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    reading_type: ReadingType = Field(default=DEFAULT_READING_TYPE, alias="tipoLectura")
    name: str
    email: str
    birthdate: str
    current_state: Optional[str] = Field(default=None, alias="estadoActual")
    personality: Optional[str] = Field(default=None, alias="personalidad")
    goal: Optional[str] = Field(default=None, alias="objetivo")
    question: Optional[str] = Field(default=None, alias="pregunta")


class FulfillmentResult(BaseModel):
    """
    Outcome of one fulfillment: the generated reading plus whether the email
    went out. Returned to the caller, never stored.
    """
    model_config = ConfigDict(populate_by_name=True)

    reading_type: ReadingType = Field(..., alias="tipoLectura")
    title: str = Field(..., alias="titulo")
    text: str = Field(..., alias="lectura")
    delivered: bool = Field(..., alias="emailEnviado")


class CreatedOrder(BaseModel):
    """What a payment provider hands back when an order/session is opened."""
    order_id: str
    approval_url: str


class PaymentConfirmation(BaseModel):
    order_id: str
    status: str
    paid: bool


# ---------------------------------------------------------------------------
# HTTP bodies
# ---------------------------------------------------------------------------

class FinalizeReadingRequest(BaseModel):
    session_id: Optional[str] = None


class CaptureOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(default=None, alias="orderID")


class CheckoutSessionResponse(BaseModel):
    url: str


class PayPalOrderResponse(BaseModel):
    id: str
    url: str


class CaptureOrderResponse(BaseModel):
    status: str
    resultado: Optional[FulfillmentResult] = None


class PingResponse(BaseModel):
    message: str
