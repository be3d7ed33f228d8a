"""Conversation turns and the append-only transcript."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """One role-tagged unit of conversation content."""

    role: Role
    content: str
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> ConversationTurn:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> ConversationTurn:
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> ConversationTurn:
        return cls(Role.ASSISTANT, content)

    def to_message(self) -> dict[str, str]:
        """Render as a chat-completions message mapping."""
        message = {"role": self.role.value, "content": self.content}
        if self.name is not None:
            message["name"] = self.name
        return message


class Transcript:
    """Ordered history of turns for one conversation.

    The first entry is the system turn given at construction. Turns are only
    ever appended, and the full sequence is the request payload sent to the
    generation backend on every call.
    """

    def __init__(self, system_prompt: str) -> None:
        self._turns: list[ConversationTurn] = [ConversationTurn.system(system_prompt)]

    @property
    def system(self) -> ConversationTurn:
        return self._turns[0]

    def append(self, turn: ConversationTurn) -> None:
        if not isinstance(turn.role, Role):
            raise ValueError(f"unknown role: {turn.role!r}")
        self._turns.append(turn)

    def snapshot(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(self.snapshot())
