"""One connection's conversation."""

from __future__ import annotations

import contextlib
from enum import StrEnum

from loguru import logger
from websockets.frames import CloseCode

from tickchat.config import SessionConfig
from tickchat.conversation import Conversation, format_reply
from tickchat.errors import ChannelError, GenerationError
from tickchat.generation import GenerationClient
from tickchat.server.frames import FrameChannel
from tickchat.server.multiplexer import EventMultiplexer, Heartbeat, LoopExit
from tickchat.transcript import Transcript


class SessionState(StrEnum):
    HANDSHAKING = "handshaking"
    ACTIVE = "active"
    CLOSED = "closed"


class Session:
    """Own one connection's transcript and drive it from greeting to close."""

    def __init__(self, channel: FrameChannel, client: GenerationClient, config: SessionConfig) -> None:
        self.peer = channel.peer
        self.config = config
        self.state = SessionState.HANDSHAKING
        self.transcript = Transcript(config.system_prompt)
        self._channel = channel
        self._conversation = Conversation(client, config.model, self.transcript)

    async def run(self) -> LoopExit | None:
        """Run until the connection ends; returns how the loop exited, ``None`` on error."""
        try:
            await self._handshake()
            self.state = SessionState.ACTIVE
            multiplexer = EventMultiplexer(
                self._channel,
                Heartbeat(self.config.heartbeat_interval),
                on_message=self._handle_message,
                on_tick=self._handle_tick,
            )
            exit_reason = await multiplexer.run()
        except GenerationError as exc:
            logger.error("session.generation.error peer={} error={}", self.peer, exc)
            await self._report_failure(exc)
            return None
        except ChannelError as exc:
            if exc.benign:
                logger.debug("session.disconnect peer={} detail={}", self.peer, exc)
            else:
                logger.error("session.connection.error peer={} error={}", self.peer, exc)
            return None
        finally:
            self.state = SessionState.CLOSED
            await self._channel.close()
        logger.info("session.close peer={} reason={} turns={}", self.peer, exit_reason, len(self.transcript))
        return exit_reason

    async def _handshake(self) -> None:
        greeting = await self._conversation.greet()
        await self._channel.send(format_reply(self.config.reply_prefix, greeting))
        logger.info("session.open peer={}", self.peer)

    async def _handle_message(self, text: str) -> None:
        logger.info("session.inbound peer={} chars={}", self.peer, len(text))
        reply = await self._conversation.reply(text)
        await self._channel.send(format_reply(self.config.reply_prefix, reply))

    async def _handle_tick(self) -> None:
        await self._channel.send(self.config.heartbeat_text)

    async def _report_failure(self, exc: GenerationError) -> None:
        with contextlib.suppress(ChannelError):
            await self._channel.send(f"{self.config.error_prefix}{exc}")
        await self._channel.close(CloseCode.INTERNAL_ERROR, "generation failed")
