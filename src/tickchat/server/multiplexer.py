"""Per-session event loop.

The multiplexer waits on two sources, the next inbound frame and the heartbeat
deadline, and runs exactly one handler at a time. Handlers are awaited inline,
so the outbound side of the channel only ever has one writer.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum

from loguru import logger

from tickchat.server.frames import Frame, FrameChannel, FrameKind

MessageHandler = Callable[[str], Awaitable[None]]
TickHandler = Callable[[], Awaitable[None]]


class LoopExit(StrEnum):
    PEER_CLOSED = "peer_closed"
    EXHAUSTED = "exhausted"


class Heartbeat:
    """Fixed-interval deadline that never bursts.

    The first tick is due immediately. A tick missed while the owner was busy
    fires once as soon as it checks again, and the next one lands back on the
    ``start + k * interval`` grid.
    """

    def __init__(self, interval: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if interval <= 0:
            raise ValueError(f"heartbeat interval must be positive, got {interval}")
        self.interval = interval
        self._clock = clock
        self._deadline = clock()

    def due(self) -> bool:
        return self._clock() >= self._deadline

    def remaining(self) -> float:
        return max(0.0, self._deadline - self._clock())

    def advance(self) -> None:
        now = self._clock()
        deadline = self._deadline + self.interval
        if deadline <= now:
            deadline = now + self.interval - ((now - self._deadline) % self.interval)
        self._deadline = deadline


class EventMultiplexer:
    """Race inbound frames against heartbeat ticks until the peer goes away."""

    def __init__(
        self,
        channel: FrameChannel,
        heartbeat: Heartbeat,
        *,
        on_message: MessageHandler,
        on_tick: TickHandler,
    ) -> None:
        self._channel = channel
        self._heartbeat = heartbeat
        self._on_message = on_message
        self._on_tick = on_tick
        # Set after a frame is handled so a due tick wins the next tie, and vice versa.
        self._prefer_tick = False

    async def run(self) -> LoopExit:
        receiving: asyncio.Future[Frame | None] | None = None
        try:
            while True:
                if receiving is None:
                    receiving = asyncio.ensure_future(self._channel.receive())
                if not self._heartbeat.due():
                    await asyncio.wait({receiving}, timeout=self._heartbeat.remaining())

                frame_ready = receiving.done()
                if self._heartbeat.due() and (self._prefer_tick or not frame_ready):
                    self._heartbeat.advance()
                    self._prefer_tick = False
                    await self._on_tick()
                    continue
                if not frame_ready:
                    continue

                frame = receiving.result()
                receiving = None
                self._prefer_tick = True
                exit_reason = await self._dispatch(frame)
                if exit_reason is not None:
                    return exit_reason
        finally:
            if receiving is not None and not receiving.done():
                receiving.cancel()

    async def _dispatch(self, frame: Frame | None) -> LoopExit | None:
        if frame is None:
            return LoopExit.EXHAUSTED
        if frame.kind is FrameKind.CLOSE:
            return LoopExit.PEER_CLOSED
        if frame.carries_content:
            await self._on_message(frame.payload)
            return None
        logger.debug("multiplexer.ignore kind={}", frame.kind)
        return None
