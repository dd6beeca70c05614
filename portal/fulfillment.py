# portal/fulfillment.py
"""
FulfillmentOrchestrator

The single place where a validated submission becomes a delivered reading.

Responsibilities:
- Validate the submission (Form Intake rules).
- Resolve the reading profile for its reading type.
- Generate the reading text (ReadingGenerator).
- Email it (MailGateway).
- Return a FulfillmentResult.

This module does NOT:
- Deal with HTTP / FastAPI directly (that happens in app.py).
- Know about payment providers or the pending-order store (checkout.py).
"""

from __future__ import annotations

import logging

from .intake import Submission, validate_submission
from .mail_gateway import MailGateway
from .models import FulfillmentResult
from .profiles import resolve_profile
from .reading_generator import ReadingGenerator

logger = logging.getLogger(__name__)


class FulfillmentOrchestrator:
    """
    Generate-then-send. Create once at startup and reuse for all requests.
    """

    def __init__(self, generator: ReadingGenerator, mail_gateway: MailGateway) -> None:
        self.generator = generator
        self.mail_gateway = mail_gateway

    async def fulfill(self, submission: Submission) -> FulfillmentResult:
        """
        Flow:
        - Validate → RequestRecord (ValidationError on missing fields).
        - Generate the text. A GenerationError propagates and nothing is sent.
        - Send the email. A failed send only sets delivered=False.
        """
        record = validate_submission(submission)
        reading_type, profile = resolve_profile(record.reading_type)

        logger.info("Fulfilling %s reading for %s", reading_type.value, record.email)
        text = await self.generator.generate(record)

        delivered = await self.mail_gateway.send(
            record,
            title=profile.title,
            subject=profile.subject,
            text=text,
        )

        return FulfillmentResult(
            reading_type=reading_type,
            title=profile.title,
            text=text,
            delivered=delivered,
        )
