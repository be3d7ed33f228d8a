"""Configuration management for tickchat."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tickchat.errors import ApiKeyNotConfiguredError, ConfigurationError, SystemPromptNotFoundError

DEFAULT_PROMPT_RESOURCE = "initial-prompt.md"
DEFAULT_MAX_MESSAGE_SIZE = 64 * 1024 * 1024

Backend = Literal["openai", "echo"]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="TICKCHAT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),
    )

    # Listener
    host: str = Field(default="127.0.0.1", description="Address the listener binds to")
    port: int = Field(default=9002, ge=0, le=65535, description="Port the listener binds to")
    max_message_size: int = Field(
        default=DEFAULT_MAX_MESSAGE_SIZE, gt=0, description="Largest inbound message in bytes, after reassembly"
    )

    # Generation backend
    backend: Backend = Field(default="openai", description="Generation backend ('openai' or 'echo')")
    model: str = Field(default="gpt-3.5-turbo", description="Model identifier sent with every request")
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TICKCHAT_API_KEY", "OPENAI_API_KEY", "OPENAI_KEY"),
        description="API key for the generation backend",
    )
    api_base: str | None = Field(default=None, description="Optional API base URL")
    model_timeout_seconds: float | None = Field(
        default=None, gt=0, description="Deadline for one generation call; unset means no deadline"
    )

    # Session protocol
    heartbeat_interval: float = Field(default=1.0, gt=0, description="Seconds between heartbeat frames")
    heartbeat_text: str = Field(default="Tick", description="Text of the heartbeat frame")
    reply_prefix: str = Field(default="AI: ", description="Prefix of every assistant reply frame")
    error_prefix: str = Field(default="Error: ", description="Prefix of the frame sent when generation fails")
    system_prompt_path: Path | None = Field(default=None, description="Override for the initial system prompt")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")


@dataclass(frozen=True)
class SessionConfig:
    """Per-connection protocol settings, built once at startup."""

    model: str
    system_prompt: str
    heartbeat_interval: float = 1.0
    heartbeat_text: str = "Tick"
    reply_prefix: str = "AI: "
    error_prefix: str = "Error: "

    @classmethod
    def from_settings(cls, settings: Settings, system_prompt: str) -> SessionConfig:
        return cls(
            model=settings.model,
            system_prompt=system_prompt,
            heartbeat_interval=settings.heartbeat_interval,
            heartbeat_text=settings.heartbeat_text,
            reply_prefix=settings.reply_prefix,
            error_prefix=settings.error_prefix,
        )


def get_settings(**overrides: Any) -> Settings:
    """Get application settings.

    Args:
        **overrides: Values that take precedence over the environment, ``None``
            values are ignored so CLI options can be passed through unchanged.

    Returns:
        Settings instance
    """
    try:
        return Settings(**{key: value for key, value in overrides.items() if value is not None})
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc


def load_system_prompt(settings: Settings) -> str:
    """Read the initial system prompt, from the configured path or the bundled resource."""
    try:
        if settings.system_prompt_path is not None:
            return settings.system_prompt_path.read_text(encoding="utf-8")
        return resources.files("tickchat.prompts").joinpath(DEFAULT_PROMPT_RESOURCE).read_text(encoding="utf-8")
    except OSError as exc:
        source = settings.system_prompt_path or DEFAULT_PROMPT_RESOURCE
        raise SystemPromptNotFoundError(f"cannot read system prompt {source}: {exc}") from exc


def validate_backend(settings: Settings) -> None:
    if settings.backend == "openai" and not settings.api_key:
        raise ApiKeyNotConfiguredError(
            "API key not configured. Set TICKCHAT_API_KEY (or OPENAI_API_KEY) in your environment or .env file."
        )
