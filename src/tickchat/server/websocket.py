"""``websockets`` adapter for the frame channel interface."""

from __future__ import annotations

from typing import Any

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.frames import CloseCode

from tickchat.errors import ChannelError
from tickchat.server.frames import Frame

BENIGN_CLOSE_CODES = frozenset({CloseCode.PROTOCOL_ERROR, CloseCode.INVALID_DATA})


def format_peer(address: Any) -> str:
    if isinstance(address, tuple) and len(address) >= 2:
        host, port = address[0], address[1]
        return f"[{host}]:{port}" if ":" in str(host) else f"{host}:{port}"
    return str(address) if address else "<unknown>"


def closed_by_peer(exc: ConnectionClosed) -> bool:
    """Whether the peer started the close handshake, whatever code it chose."""
    return exc.rcvd is not None and (exc.sent is None or bool(exc.rcvd_then_sent))


def is_benign_close(exc: ConnectionClosed) -> bool:
    """Whether a closed connection ended in one of the ordinary ways."""
    if isinstance(exc, ConnectionClosedOK) or closed_by_peer(exc):
        return True
    if exc.rcvd is None and exc.sent is None:
        # Peer went away without a close handshake.
        return True
    codes = {frame.code for frame in (exc.rcvd, exc.sent) if frame is not None}
    return bool(codes & BENIGN_CLOSE_CODES)


def channel_error(exc: ConnectionClosed) -> ChannelError:
    return ChannelError(f"connection closed: {exc}", benign=is_benign_close(exc))


class WebSocketChannel:
    """Frame channel over one accepted ``websockets`` server connection."""

    def __init__(self, connection: ServerConnection) -> None:
        self._connection = connection
        self._peer = format_peer(connection.remote_address)

    @property
    def peer(self) -> str:
        return self._peer

    async def receive(self) -> Frame | None:
        try:
            message = await self._connection.recv()
        except ConnectionClosed as exc:
            if closed_by_peer(exc):
                return Frame.close()
            if isinstance(exc, ConnectionClosedOK):
                return None
            raise channel_error(exc) from exc
        if isinstance(message, bytes):
            return Frame.binary(message)
        return Frame.text(message)

    async def send(self, text: str) -> None:
        try:
            await self._connection.send(text)
        except ConnectionClosed as exc:
            raise channel_error(exc) from exc

    async def close(self, code: int = CloseCode.NORMAL_CLOSURE, reason: str = "") -> None:
        await self._connection.close(code, reason)
