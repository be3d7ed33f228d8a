"""Frame model and the channel interface sessions talk through."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


class FrameKind(StrEnum):
    TEXT = "text"
    BINARY = "binary"
    CLOSE = "close"
    CONTROL = "control"


@dataclass(frozen=True)
class Frame:
    """One inbound message, already decoded to text."""

    kind: FrameKind
    payload: str = ""

    @classmethod
    def text(cls, payload: str) -> Frame:
        return cls(FrameKind.TEXT, payload)

    @classmethod
    def binary(cls, data: bytes) -> Frame:
        try:
            payload = data.decode("utf-8")
        except UnicodeDecodeError:
            payload = f"Binary<length={len(data)}>"
        return cls(FrameKind.BINARY, payload)

    @classmethod
    def close(cls) -> Frame:
        return cls(FrameKind.CLOSE)

    @property
    def carries_content(self) -> bool:
        return self.kind in (FrameKind.TEXT, FrameKind.BINARY)


class FrameChannel(Protocol):
    """Framed duplex connection owned by exactly one session.

    ``receive`` returns ``None`` once the inbound side is exhausted. Both
    ``receive`` and ``send`` raise :class:`~tickchat.errors.ChannelError` on
    transport failures.
    """

    @property
    def peer(self) -> str: ...

    async def receive(self) -> Frame | None: ...

    async def send(self, text: str) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...
