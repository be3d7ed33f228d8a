from __future__ import annotations

from collections.abc import Iterator

import pytest
from fakes import SYSTEM_PROMPT
from loguru import logger

from tickchat.config import SessionConfig


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(model="test-model", system_prompt=SYSTEM_PROMPT, heartbeat_interval=60.0)


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    try:
        yield messages
    finally:
        logger.remove(handler_id)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    # Keep a developer's .env and exported keys out of the settings under test.
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))
    for name in ("TICKCHAT_API_KEY", "OPENAI_API_KEY", "OPENAI_KEY", "TICKCHAT_BACKEND", "TICKCHAT_PORT"):
        monkeypatch.delenv(name, raising=False)
