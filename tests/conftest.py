from itertools import count
from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from portal.fulfillment import FulfillmentOrchestrator
from portal.models import CreatedOrder, PaymentConfirmation, RequestRecord
from portal.order_store import OrderStore
from portal.payment_gateway import PaymentGateway


class FakeGateway(PaymentGateway):
    """
    Deterministic provider double: ids are issued sequentially and an order
    is paid once `approve()` is called for it.
    """

    provider = "fake"

    def __init__(self) -> None:
        self._ids = count(1)
        self.created: List[str] = []
        self.approved: Dict[str, bool] = {}

    async def create_order(self, record: RequestRecord) -> CreatedOrder:
        order_id = f"ord_{next(self._ids)}"
        self.created.append(order_id)
        self.approved[order_id] = False
        return CreatedOrder(order_id=order_id, approval_url=f"https://pay.example/{order_id}")

    async def confirm_order(self, order_id: str) -> PaymentConfirmation:
        from portal.errors import OrderNotFound

        if order_id not in self.approved:
            raise OrderNotFound("La sesión de pago no existe.")
        paid = self.approved[order_id]
        return PaymentConfirmation(
            order_id=order_id, status="paid" if paid else "unpaid", paid=paid
        )

    def approve(self, order_id: str) -> None:
        self.approved[order_id] = True


@pytest.fixture
def ana_payload():
    return {
        "name": "Ana",
        "email": "a@x.com",
        "birthdate": "1990-01-01",
        "tipoLectura": "alma",
    }


@pytest.fixture
def ana_record():
    return RequestRecord(
        reading_type="alma",
        name="Ana",
        email="a@x.com",
        birthdate="1990-01-01",
    )


@pytest.fixture
def store():
    return OrderStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def generator():
    gen = MagicMock()
    gen.generate = AsyncMock(return_value="Tu lectura.\nCon amor.")
    return gen


@pytest.fixture
def mail_gateway():
    mailer = MagicMock()
    mailer.send = AsyncMock(return_value=True)
    return mailer


@pytest.fixture
def orchestrator(generator, mail_gateway):
    return FulfillmentOrchestrator(generator=generator, mail_gateway=mail_gateway)
