# portal/checkout.py
"""
CheckoutFlow

Links a payment provider order to the form data submitted before payment.

start():  intake → gateway.create_order → store.put(order_id, record)
finish(): gateway.confirm_order → store.take(order_id) → fulfillment

The same flow serves every provider; only the PaymentGateway differs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import PortalError, ValidationError
from .fulfillment import FulfillmentOrchestrator
from .intake import Submission, validate_submission
from .models import CreatedOrder, FulfillmentResult, PaymentConfirmation
from .order_store import OrderStore
from .payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


@dataclass
class CheckoutOutcome:
    """
    Result of finishing a checkout.

    `result` is None when the provider does not report the order as paid.
    """
    confirmation: PaymentConfirmation
    result: Optional[FulfillmentResult] = None

    @property
    def paid(self) -> bool:
        return self.confirmation.paid


class CheckoutFlow:
    def __init__(
        self,
        gateway: PaymentGateway,
        store: OrderStore,
        orchestrator: FulfillmentOrchestrator,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.orchestrator = orchestrator

    async def start(self, submission: Submission) -> CreatedOrder:
        """
        Validate the submission, open a provider order and remember the
        submission under the provider's id.

        Validation happens before any provider call, so invalid data never
        creates an order.
        """
        record = validate_submission(submission)
        order = await self.gateway.create_order(record)
        self.store.put(order.order_id, record)
        logger.info(
            "%s order %s pending for %s", self.gateway.provider, order.order_id, record.email
        )
        return order

    async def finish(self, order_id: Optional[str]) -> CheckoutOutcome:
        """
        Confirm payment and, if paid, fulfil the stored submission.

        The stored record is taken before fulfillment starts: a second call
        for the same id raises OrderNotFound even if this one fails later.
        """
        order_id = (order_id or "").strip()
        if not order_id:
            raise ValidationError("Falta el identificador de la orden de pago.")

        confirmation = await self.gateway.confirm_order(order_id)
        if not confirmation.paid:
            logger.warning(
                "%s order %s not paid yet (status=%s)",
                self.gateway.provider,
                order_id,
                confirmation.status,
            )
            return CheckoutOutcome(confirmation=confirmation)

        try:
            record = self.store.take(order_id)
        except PortalError:
            logger.error(
                "%s order %s is paid but has no stored form data",
                self.gateway.provider,
                order_id,
            )
            raise

        try:
            result = await self.orchestrator.fulfill(record)
        except PortalError as exc:
            logger.error(
                "Fulfillment failed for paid %s order %s (%s): %s | record=%s",
                self.gateway.provider,
                order_id,
                type(exc).__name__,
                exc.message,
                record.model_dump_json(),
            )
            raise

        logger.info(
            "%s order %s fulfilled (delivered=%s)",
            self.gateway.provider,
            order_id,
            result.delivered,
        )
        return CheckoutOutcome(confirmation=confirmation, result=result)
