"""Accept connections and run one session per connection."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger
from websockets.asyncio.server import Server, ServerConnection, serve

from tickchat.config import DEFAULT_MAX_MESSAGE_SIZE
from tickchat.errors import ListenerBindError
from tickchat.server.frames import FrameChannel
from tickchat.server.session import Session
from tickchat.server.websocket import WebSocketChannel, format_peer

SessionFactory = Callable[[FrameChannel], Session]


class Listener:
    """WebSocket listener; sessions share nothing but the factory that made them."""

    def __init__(
        self,
        host: str,
        port: int,
        session_factory: SessionFactory,
        *,
        max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self.host = host
        self.port = port
        self.max_message_size = max_message_size
        self._session_factory = session_factory
        self._server: Server | None = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    async def start(self) -> None:
        try:
            self._server = await serve(self._accept, self.host, self.port, max_size=self.max_message_size)
        except OSError as exc:
            raise ListenerBindError(f"cannot listen on {self.address}: {exc}") from exc
        sockets = list(self._server.sockets)
        if sockets:
            self.port = sockets[0].getsockname()[1]
        logger.info("listener.start address={}", self.address)

    async def serve(self, stop: asyncio.Event | None = None) -> None:
        """Accept connections until ``stop`` is set, or forever when it is ``None``."""
        await self.start()
        try:
            if stop is None:
                await asyncio.Future()
            else:
                await stop.wait()
        finally:
            await self.close()

    async def close(self) -> None:
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        await server.wait_closed()
        logger.info("listener.stop address={}", self.address)

    async def _accept(self, connection: ServerConnection) -> None:
        peer = format_peer(connection.remote_address)
        with logger.contextualize(peer=peer):
            logger.info("listener.accept peer={}", peer)
            session = self._session_factory(WebSocketChannel(connection))
            try:
                await session.run()
            except Exception:
                logger.exception("session.crash peer={}", peer)
