"""tickchat - talk to a model over a WebSocket, one tick at a time."""

from .config import SessionConfig, Settings
from .transcript import ConversationTurn, Role, Transcript

__version__ = "0.1.0"

__all__ = ["ConversationTurn", "Role", "SessionConfig", "Settings", "Transcript"]
