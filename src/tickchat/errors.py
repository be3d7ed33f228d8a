"""Application-level exception types for tickchat."""

from __future__ import annotations


class TickchatError(Exception):
    """Base exception for tickchat."""


class ConfigurationError(TickchatError):
    """Base exception for configuration and startup validation errors."""


class ApiKeyNotConfiguredError(ConfigurationError):
    """Raised when the selected backend needs an API key and none is configured."""


class SystemPromptNotFoundError(ConfigurationError):
    """Raised when the initial system prompt resource cannot be read."""


class ListenerBindError(TickchatError):
    """Raised when the listener cannot bind its address."""


class GenerationError(TickchatError):
    """Raised when the generation backend fails or returns an unusable response."""


class ChannelError(TickchatError):
    """Raised when sending to or receiving from a connection fails.

    ``benign`` marks ordinary ways for a connection to end (clean close, peer
    vanishing without a close handshake, protocol or payload violations by the
    peer). Sessions end silently on those and log everything else.
    """

    def __init__(self, message: str, *, benign: bool = False) -> None:
        super().__init__(message)
        self.benign = benign
