"""Generation backends.

Every backend answers the same question: given a model identifier and the full
transcript (system prompt first), what is the next assistant turn? Failures of
any kind surface as :class:`~tickchat.errors.GenerationError` so that callers
only ever have one exception type to contain.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, Protocol

import openai
from loguru import logger
from openai import AsyncOpenAI

from tickchat.config import Settings, validate_backend
from tickchat.errors import GenerationError
from tickchat.transcript import ConversationTurn, Role

ECHO_GREETING = "Hello! Say something and I will say it back."


class GenerationClient(Protocol):
    async def complete(self, model: str, turns: Sequence[ConversationTurn]) -> ConversationTurn:
        """Return the next assistant turn for ``turns`` or raise ``GenerationError``."""
        ...


class OpenAIGenerationClient:
    """Chat-completions adapter backed by ``openai.AsyncOpenAI``."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        timeout_seconds: float | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=api_base)
        self._timeout_seconds = timeout_seconds

    async def complete(self, model: str, turns: Sequence[ConversationTurn]) -> ConversationTurn:
        messages: list[Any] = [turn.to_message() for turn in turns]
        logger.debug("generation.request model={} turns={}", model, len(messages))
        request = self._client.chat.completions.create(model=model, messages=messages)
        try:
            if self._timeout_seconds is None:
                response = await request
            else:
                response = await asyncio.wait_for(request, timeout=self._timeout_seconds)
        except TimeoutError as exc:
            raise GenerationError(f"model did not answer within {self._timeout_seconds}s") from exc
        except openai.OpenAIError as exc:
            raise GenerationError(f"model request failed: {exc}") from exc

        if not response.choices:
            raise GenerationError("model returned no choices")
        message = response.choices[0].message
        if message.content is None:
            raise GenerationError("model returned a reply without text content")
        return ConversationTurn(Role.ASSISTANT, message.content, getattr(message, "name", None))


class EchoGenerationClient:
    """Offline backend that repeats the latest user turn."""

    async def complete(self, model: str, turns: Sequence[ConversationTurn]) -> ConversationTurn:
        _ = model
        for turn in reversed(turns):
            if turn.role is Role.USER:
                return ConversationTurn.assistant(turn.content)
        return ConversationTurn.assistant(ECHO_GREETING)


def build_generation_client(settings: Settings) -> GenerationClient:
    """Build the backend selected by ``settings.backend``."""
    validate_backend(settings)
    if settings.backend == "echo":
        return EchoGenerationClient()
    return OpenAIGenerationClient(
        api_key=settings.api_key,
        api_base=settings.api_base,
        timeout_seconds=settings.model_timeout_seconds,
    )
