import asyncio

import pytest

from portal.errors import GenerationError, ValidationError
from portal.models import ReadingType
from portal.profiles import PROFILES


def test_fulfill_generates_then_sends(orchestrator, generator, mail_gateway, ana_payload):
    calls = []

    def fake_generate(record):
        calls.append("generate")
        return "Texto"

    def fake_send(*args, **kwargs):
        calls.append("send")
        return True

    generator.generate.side_effect = fake_generate
    mail_gateway.send.side_effect = fake_send

    result = asyncio.run(orchestrator.fulfill(ana_payload))

    assert calls == ["generate", "send"]
    assert result.reading_type is ReadingType.ALMA
    assert result.title == PROFILES[ReadingType.ALMA].title
    assert result.text == "Texto"
    assert result.delivered is True

    record = mail_gateway.send.call_args.args[0]
    assert record.email == "a@x.com"
    assert mail_gateway.send.call_args.kwargs == {
        "title": PROFILES[ReadingType.ALMA].title,
        "subject": PROFILES[ReadingType.ALMA].subject,
        "text": "Texto",
    }


def test_generation_failure_prevents_delivery(orchestrator, generator, mail_gateway, ana_record):
    generator.generate.side_effect = GenerationError()

    with pytest.raises(GenerationError):
        asyncio.run(orchestrator.fulfill(ana_record))

    mail_gateway.send.assert_not_called()


def test_delivery_failure_keeps_the_reading(orchestrator, mail_gateway, ana_record):
    mail_gateway.send.return_value = False

    result = asyncio.run(orchestrator.fulfill(ana_record))

    assert result.delivered is False
    assert result.text == "Tu lectura.\nCon amor."


def test_invalid_submission_never_reaches_generator(orchestrator, generator):
    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.fulfill({"name": "Ana"}))
    generator.generate.assert_not_called()


def test_unknown_type_uses_default_profile(orchestrator, ana_payload):
    result = asyncio.run(orchestrator.fulfill(dict(ana_payload, tipoLectura="runas")))

    assert result.reading_type is ReadingType.AKASHICA
    assert result.title == PROFILES[ReadingType.AKASHICA].title


def test_result_serializes_with_public_names(orchestrator, ana_record):
    result = asyncio.run(orchestrator.fulfill(ana_record))

    assert result.model_dump(by_alias=True, mode="json") == {
        "tipoLectura": "alma",
        "titulo": PROFILES[ReadingType.ALMA].title,
        "lectura": "Tu lectura.\nCon amor.",
        "emailEnviado": True,
    }
