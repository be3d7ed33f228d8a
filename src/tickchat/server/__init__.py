"""WebSocket server: listener, per-connection sessions and their event loop."""

from tickchat.server.frames import Frame, FrameChannel, FrameKind
from tickchat.server.listener import Listener
from tickchat.server.multiplexer import EventMultiplexer, Heartbeat, LoopExit
from tickchat.server.session import Session, SessionState

__all__ = [
    "EventMultiplexer",
    "Frame",
    "FrameChannel",
    "FrameKind",
    "Heartbeat",
    "Listener",
    "LoopExit",
    "Session",
    "SessionState",
]
