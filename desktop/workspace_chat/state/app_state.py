"""Shared state model for the chat client."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..config.settings import AppSettings, ChatConfig


@dataclass(slots=True)
class AppState:
    """Global state for the client."""

    settings: AppSettings = field(default_factory=AppSettings)
    config: ChatConfig = field(default_factory=ChatConfig)
    processing: bool = False
    listening: bool = False
    speaking: bool = False
