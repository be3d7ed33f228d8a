"""Runtime logging helpers."""

from __future__ import annotations

import sys
from logging import Handler
from typing import Literal

import loguru
from loguru import logger
from rich import get_console
from rich.logging import RichHandler

LogProfile = Literal["server", "chat"]

_PROFILE_FORMATS: dict[LogProfile, str] = {
    "chat": "{message}",
    "server": "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<6} | {name}:{function}:{line} | {extra[peer]} | {message}",
}
_CONFIGURED_PROFILE: LogProfile | None = None


def _build_chat_handler() -> Handler:
    return RichHandler(
        console=get_console(),
        show_level=True,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def _inject_peer(record: loguru.Record) -> None:
    # Records logged outside ``logger.contextualize(peer=...)`` still render.
    record["extra"].setdefault("peer", "-")


def configure_logging(level: str = "INFO", *, profile: LogProfile = "server") -> None:
    """Configure process-level logging once."""
    global _CONFIGURED_PROFILE
    if profile == _CONFIGURED_PROFILE:
        return

    level = level.upper()
    logger.remove()
    if profile == "chat":
        logger.add(
            _build_chat_handler(),
            level=level,
            format=_PROFILE_FORMATS[profile],
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stderr,
            level=level,
            format=_PROFILE_FORMATS[profile],
            backtrace=False,
            diagnose=False,
        )
    logger.configure(patcher=_inject_peer)
    _CONFIGURED_PROFILE = profile
