"""Command line entry points for the workspace chat client."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from .config.loader import load_config
from .config.paths import config_file
from .config.runtime import get_runtime_settings
from .config.settings import ChatConfig
from .core.errors import ChatClientError, ParseError, user_message_for
from .runtime.dispatcher import FALLBACK_REPLY, PARSE_FAILURE_REPLY
from .services.api import WorkspaceAPI
from .services.schemas import ChatMode, ChatRequest
from .state.session import SessionManager

T = TypeVar("T")

cli = typer.Typer(name="workspace-chat", help="Chat with a remote LLM workspace")

ConfigOption = typer.Option(None, "--config", help="Path to config.json")


def _load(path: Optional[Path]) -> ChatConfig:
    return load_config(path or config_file())


def _build_api(config: ChatConfig) -> WorkspaceAPI:
    return WorkspaceAPI(config, timeout=get_runtime_settings().request_timeout)


def _require_complete(config: ChatConfig) -> None:
    missing = config.missing_fields()
    if missing:
        typer.echo(f"Config incomplete, missing: {', '.join(missing)}", err=True)
        raise typer.Exit(code=1)


def _call(config: ChatConfig, action: Callable[[WorkspaceAPI], Awaitable[T]]) -> T:
    async def _runner() -> T:
        api = _build_api(config)
        try:
            return await action(api)
        finally:
            await api.close()

    return asyncio.run(_runner())


@cli.command()
def run(config: Optional[Path] = ConfigOption) -> None:
    """Open the chat window."""
    from .app import run as run_app

    run_app(config)


@cli.command()
def ping(config: Optional[Path] = ConfigOption) -> None:
    """Check that the URL, workspace slug and API key work."""
    chat_config = _load(config)
    _require_complete(chat_config)
    try:
        _call(chat_config, lambda api: api.test_connection())
    except ChatClientError as exc:
        typer.echo(f"✗ API connection failed: {exc}")
        raise typer.Exit(code=1)
    typer.echo("✓ API connection test successful")


@cli.command()
def workspaces(config: Optional[Path] = ConfigOption) -> None:
    """List the workspaces visible to the API key."""
    chat_config = _load(config)
    _require_complete(chat_config)
    try:
        data: Any = _call(chat_config, lambda api: api.list_workspaces())
    except ChatClientError as exc:
        typer.echo(f"Could not retrieve workspaces: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


@cli.command()
def ask(
    message: str,
    config: Optional[Path] = ConfigOption,
    query: bool = typer.Option(False, "--query", help="Use query mode instead of chat"),
) -> None:
    """Send one message and print the reply."""
    chat_config = _load(config)
    _require_complete(chat_config)
    request = ChatRequest(
        message=message,
        mode=ChatMode.QUERY if query else ChatMode.CHAT,
        session_id=SessionManager(prefix="cli-session").current_session_id,
    )
    try:
        response = _call(chat_config, lambda api: api.chat(request))
    except ParseError:
        typer.echo(PARSE_FAILURE_REPLY, err=True)
        raise typer.Exit(code=1)
    except ChatClientError as exc:
        typer.echo(user_message_for(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo(response.text_or(FALLBACK_REPLY))


@cli.command("config")
def show_config(config: Optional[Path] = ConfigOption) -> None:
    """Print the effective config (API key masked)."""
    chat_config = _load(config)
    payload = {**chat_config.describe(), "missing": chat_config.missing_fields()}
    typer.echo(json.dumps(payload, indent=2))


def main() -> None:
    cli()
