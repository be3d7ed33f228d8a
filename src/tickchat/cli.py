"""Command-line entry points."""

from __future__ import annotations

import asyncio
import signal

import typer
from loguru import logger

from tickchat.config import SessionConfig, Settings, get_settings, load_system_prompt
from tickchat.console import ConsoleChat
from tickchat.errors import TickchatError
from tickchat.generation import GenerationClient, build_generation_client
from tickchat.logging_utils import configure_logging
from tickchat.render import Renderer
from tickchat.server import Listener, Session
from tickchat.server.frames import FrameChannel

app = typer.Typer(
    name="tickchat",
    help="WebSocket chat server with heartbeats.",
    add_completion=False,
    no_args_is_help=True,
)


def _exit_with_error(exc: TickchatError) -> typer.Exit:
    typer.secho(f"tickchat: {exc}", err=True, fg=typer.colors.RED)
    return typer.Exit(1)


def _prepare(settings: Settings) -> tuple[GenerationClient, SessionConfig]:
    system_prompt = load_system_prompt(settings)
    client = build_generation_client(settings)
    return client, SessionConfig.from_settings(settings, system_prompt)


def build_listener(settings: Settings, client: GenerationClient, config: SessionConfig) -> Listener:
    def session_factory(channel: FrameChannel) -> Session:
        return Session(channel, client, config)

    return Listener(settings.host, settings.port, session_factory, max_message_size=settings.max_message_size)


async def _serve(listener: Listener) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            continue
    await listener.serve(stop)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Address to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    backend: str | None = typer.Option(None, "--backend", help="Generation backend: openai or echo"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model identifier"),
) -> None:
    """Run the WebSocket chat server."""
    try:
        settings = get_settings(host=host, port=port, backend=backend, model=model)
        configure_logging(settings.log_level, profile="server")
        client, config = _prepare(settings)
        listener = build_listener(settings, client, config)
        asyncio.run(_serve(listener))
    except TickchatError as exc:
        logger.error("startup.error error={}", exc)
        raise _exit_with_error(exc) from exc


@app.command()
def chat(
    backend: str | None = typer.Option(None, "--backend", help="Generation backend: openai or echo"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model identifier"),
) -> None:
    """Chat in the terminal, without the network."""
    try:
        settings = get_settings(backend=backend, model=model)
        configure_logging(settings.log_level, profile="chat")
        client, config = _prepare(settings)
    except TickchatError as exc:
        raise _exit_with_error(exc) from exc
    exit_code = asyncio.run(ConsoleChat(client, config, Renderer()).run())
    if exit_code:
        raise typer.Exit(exit_code)
