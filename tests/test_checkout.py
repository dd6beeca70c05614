import asyncio

import pytest

from portal.checkout import CheckoutFlow
from portal.errors import GenerationError, OrderNotFound, ProviderError, ValidationError
from portal.profiles import PROFILES
from portal.models import ReadingType


@pytest.fixture
def flow(gateway, store, orchestrator):
    return CheckoutFlow(gateway, store, orchestrator)


def test_start_stores_record_under_provider_id(flow, gateway, store, ana_payload):
    order = asyncio.run(flow.start(ana_payload))

    assert order.order_id == "ord_1"
    assert len(store) == 1
    stored = store.peek("ord_1")
    assert stored.name == "Ana"
    assert stored.reading_type is ReadingType.ALMA


@pytest.mark.parametrize("missing", ["name", "email", "birthdate"])
def test_invalid_submission_creates_no_order(flow, gateway, store, ana_payload, missing):
    payload = dict(ana_payload)
    payload.pop(missing)

    with pytest.raises(ValidationError):
        asyncio.run(flow.start(payload))

    assert gateway.created == []
    assert len(store) == 0


def test_provider_failure_stores_nothing(flow, gateway, store, ana_payload):
    async def boom(record):
        raise ProviderError()

    gateway.create_order = boom

    with pytest.raises(ProviderError):
        asyncio.run(flow.start(ana_payload))
    assert len(store) == 0


def test_finish_paid_order_fulfils_and_consumes(flow, gateway, store, generator, ana_payload):
    order = asyncio.run(flow.start(ana_payload))
    gateway.approve(order.order_id)

    outcome = asyncio.run(flow.finish(order.order_id))

    assert outcome.paid is True
    assert outcome.result.title == PROFILES[ReadingType.ALMA].title
    assert order.order_id not in store
    generator.generate.assert_awaited_once()


def test_finish_unpaid_order_keeps_record(flow, gateway, store, generator, ana_payload):
    order = asyncio.run(flow.start(ana_payload))

    outcome = asyncio.run(flow.finish(order.order_id))

    assert outcome.paid is False
    assert outcome.result is None
    assert order.order_id in store
    generator.generate.assert_not_called()


def test_finish_unknown_order_is_not_found(flow, generator):
    with pytest.raises(OrderNotFound):
        asyncio.run(flow.finish("never-created"))
    generator.generate.assert_not_called()


def test_finish_blank_id_is_validation_error(flow):
    with pytest.raises(ValidationError):
        asyncio.run(flow.finish("  "))


def test_paid_order_without_stored_record(flow, gateway, store, ana_payload):
    order = asyncio.run(flow.start(ana_payload))
    gateway.approve(order.order_id)
    store.take(order.order_id)

    with pytest.raises(OrderNotFound) as exc_info:
        asyncio.run(flow.finish(order.order_id))
    assert "contáctame" in exc_info.value.message


def test_order_is_fulfilled_at_most_once_even_on_failure(
    flow, gateway, store, generator, mail_gateway, ana_payload
):
    order = asyncio.run(flow.start(ana_payload))
    gateway.approve(order.order_id)
    generator.generate.side_effect = GenerationError()

    with pytest.raises(GenerationError):
        asyncio.run(flow.finish(order.order_id))

    generator.generate.side_effect = None
    with pytest.raises(OrderNotFound):
        asyncio.run(flow.finish(order.order_id))

    assert generator.generate.await_count == 1
    mail_gateway.send.assert_not_called()


def test_pending_fulfillment_does_not_block_other_orders(
    flow, gateway, store, generator, ana_payload
):
    async def scenario():
        first = await flow.start(ana_payload)
        second = await flow.start(dict(ana_payload, name="Bea", email="b@x.com"))
        gateway.approve(first.order_id)
        gateway.approve(second.order_id)

        release = asyncio.Event()
        finished = []

        async def fake_generate(record):
            if record.name == "Ana":
                await release.wait()
            return f"Lectura de {record.name}"

        generator.generate.side_effect = fake_generate

        async def finish(order_id):
            outcome = await flow.finish(order_id)
            finished.append(order_id)
            return outcome

        async def second_then_release():
            outcome = await finish(second.order_id)
            # Ana's reading is still waiting on the generator at this point.
            assert finished == [second.order_id]
            assert not release.is_set()
            release.set()
            return outcome

        return first, second, finished, await asyncio.gather(
            finish(first.order_id), second_then_release()
        )

    first, second, finished, (first_outcome, second_outcome) = asyncio.run(scenario())

    assert finished == [second.order_id, first.order_id]
    assert second_outcome.result.text == "Lectura de Bea"
    assert first_outcome.result.text == "Lectura de Ana"
    assert len(store) == 0
