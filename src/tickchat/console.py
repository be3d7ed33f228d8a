"""Interactive console chat.

The same conversation rules as a networked session, driven from the terminal:
no listener, no heartbeat, one user.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from tickchat.config import SessionConfig
from tickchat.conversation import Conversation, format_reply
from tickchat.errors import GenerationError
from tickchat.generation import GenerationClient
from tickchat.transcript import ConversationTurn, Transcript

QUIT_COMMANDS = frozenset({"quit", "exit", "q"})


class ChatRenderer(Protocol):
    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def welcome(self, model: str) -> None: ...

    def assistant_message(self, message: str) -> None: ...

    async def get_user_input(self) -> str: ...


class ConsoleChat:
    def __init__(self, client: GenerationClient, config: SessionConfig, renderer: ChatRenderer) -> None:
        self.config = config
        self.transcript = Transcript(config.system_prompt)
        self._conversation = Conversation(client, config.model, self.transcript)
        self._renderer = renderer

    async def run(self) -> int:
        """Chat until the user quits; returns the process exit code."""
        self._renderer.welcome(self.config.model)
        try:
            await self._say(await self._conversation.greet())
            while True:
                try:
                    user_input = await self._renderer.get_user_input()
                except (KeyboardInterrupt, EOFError):
                    break
                text = user_input.strip()
                if not text:
                    continue
                if text.lower() in QUIT_COMMANDS:
                    break
                await self._say(await self._conversation.reply(user_input))
        except GenerationError as exc:
            logger.error("console.generation.error error={}", exc)
            self._renderer.error(str(exc))
            return 1
        self._renderer.info("Goodbye!")
        return 0

    async def _say(self, turn: ConversationTurn) -> None:
        self._renderer.assistant_message(format_reply(self.config.reply_prefix, turn))
