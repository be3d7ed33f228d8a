"""Transcript rules shared by the networked session and the console chat."""

from __future__ import annotations

from loguru import logger

from tickchat.errors import GenerationError
from tickchat.generation import GenerationClient
from tickchat.transcript import ConversationTurn, Role, Transcript


def format_reply(prefix: str, turn: ConversationTurn) -> str:
    return f"{prefix}{turn.content.strip()}"


class Conversation:
    """Extend a transcript one exchange at a time."""

    def __init__(self, client: GenerationClient, model: str, transcript: Transcript) -> None:
        self._client = client
        self._model = model
        self.transcript = transcript

    async def greet(self) -> ConversationTurn:
        """Ask the backend to open the conversation from the system prompt alone."""
        return await self._generate()

    async def reply(self, text: str) -> ConversationTurn:
        """Record ``text`` as a user turn and return the assistant's answer."""
        self.transcript.append(ConversationTurn.user(text))
        return await self._generate()

    async def _generate(self) -> ConversationTurn:
        turn = await self._client.complete(self._model, self.transcript.snapshot())
        if turn.role is not Role.ASSISTANT:
            raise GenerationError(f"backend answered with role {turn.role.value!r} instead of assistant")
        self.transcript.append(turn)
        logger.debug("conversation.turn turns={} chars={}", len(self.transcript), len(turn.content))
        return turn
