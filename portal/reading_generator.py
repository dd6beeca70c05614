# portal/reading_generator.py
"""
Reading Generator

Wraps the OpenAI call that turns a RequestRecord into the narrative text of
a reading:
- system message: the instruction set of the record's reading profile
- user message: a fixed template filled with everything the customer wrote

We keep this layer separate so you can:
- Swap models or sampling parameters through settings
- Change prompts without touching the payment flow
- Unit-test prompt assembly with a fake client
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from .config import settings
from .errors import GenerationError
from .models import RequestRecord
from .profiles import instructions_for, resolve_profile

logger = logging.getLogger(__name__)


CONTEXT_TEMPLATE = """
Datos del consultante:
- Nombre: {name}
- Fecha de nacimiento: {birthdate}
- Correo: {email}
- Tipo de lectura: {title}
- Momento actual: {current_state}
- Personalidad: {personality}
- Objetivo: {goal}
- Pregunta central: {question}
""".strip()

USER_TEMPLATE = """
Genera una lectura para {name}.

Contexto que la persona escribió en el formulario (úsalo como base de TODO):
{context}

Instrucciones:
- Extensión aproximada: 700–1000 palabras.
- Habla en segunda persona ("tú").
- No sigas una estructura rígida.
- Da entre 2 y 4 recomendaciones prácticas al final, integradas de forma natural en el texto.
""".strip()


class ReadingGenerator:
    """
    Generates the reading text with the chat completions API.

    Sampling parameters are fixed per process (model, temperature, max tokens).
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> None:
        self._client = client
        self.model = model or settings.OPENAI_MODEL
        self.temperature = settings.OPENAI_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or settings.OPENAI_MAX_TOKENS

    @property
    def client(self) -> Any:
        # Built on first use so the app can start without an API key.
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise GenerationError("OpenAI no está configurado.")
            self._client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
                max_retries=0,
            )
        return self._client

    def build_messages(self, record: RequestRecord) -> List[Dict[str, str]]:
        _, profile = resolve_profile(record.reading_type)

        context = CONTEXT_TEMPLATE.format(
            name=record.name,
            birthdate=record.birthdate,
            email=record.email,
            title=profile.title,
            current_state=record.current_state or "no especificado",
            personality=record.personality or "no especificada",
            goal=record.goal or "no especificado",
            question=record.question or "no especificada",
        )

        return [
            {"role": "system", "content": instructions_for(profile)},
            {"role": "user", "content": USER_TEMPLATE.format(name=record.name, context=context)},
        ]

    async def generate(self, record: RequestRecord) -> str:
        """
        Return the generated reading, stripped. An empty string is a valid
        result; an API failure raises GenerationError.
        """
        messages = self.build_messages(record)

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                messages=messages,
            )
        except OpenAIError as exc:
            logger.exception(
                "Generation failed for %s (%s)", record.email, record.reading_type.value
            )
            raise GenerationError() from exc

        if not completion.choices:
            return ""
        content = completion.choices[0].message.content or ""
        return content.strip()
