# portal/errors.py
"""
Error taxonomy.

Each error carries the HTTP status it maps to and a message that is safe to
show to the customer. The FastAPI app turns any PortalError into
`{"error": message}` with that status.
"""

from __future__ import annotations


class PortalError(Exception):
    status_code: int = 500
    default_message: str = "Error interno del servidor."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PortalError):
    """Missing or malformed intake data (client-caused)."""

    status_code = 400
    default_message = "Faltan datos básicos (nombre, fecha, correo)."


class OrderNotFound(PortalError):
    """Unknown order/session id, unpaid order, or no stored form data."""

    status_code = 400
    default_message = "No se encontró la orden de pago."


class ProviderError(PortalError):
    """Payment processor network/API failure."""

    status_code = 500
    default_message = "No se pudo completar la operación con el proveedor de pago."


class GenerationError(PortalError):
    """Text-generation API failure. Aborts fulfillment before any email."""

    status_code = 500
    default_message = "No se pudo generar la lectura."


class DeliveryError(PortalError):
    # Never reaches the client: MailGateway absorbs it into delivered=False.
    status_code = 500
    default_message = "No se pudo enviar el correo."
