"""Persistence helpers for client settings."""

from __future__ import annotations

import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

from ..core.logger import get_logger
from .paths import data_dir
from .settings import AppSettings, AudioSettings, ChatSettings, ShortcutSettings

LOGGER = get_logger("client")


def _settings_path() -> Path:
    """Primary path for persisted settings."""
    return data_dir() / "client_settings.json"


def _known(cls: type, payload: Any) -> dict[str, Any]:
    """Keep only the keys the dataclass declares."""
    if not isinstance(payload, dict):
        return {}
    names = {item.name for item in fields(cls)}
    return {key: value for key, value in payload.items() if key in names}


def load_settings(path: Path | None = None) -> AppSettings:
    """Load settings from disk (defaults when missing or unreadable)."""
    path = path or _settings_path()
    if not path.exists():
        return AppSettings()

    try:
        data = json.loads(path.read_text(encoding="utf-8").lstrip("\ufeff"))
    except (OSError, ValueError) as exc:
        LOGGER.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return AppSettings()
    if not isinstance(data, dict):
        LOGGER.warning("Ignoring settings file %s: not a JSON object", path)
        return AppSettings()

    return AppSettings(
        chat=ChatSettings(**_known(ChatSettings, data.get("chat"))),
        audio=AudioSettings(**_known(AudioSettings, data.get("audio"))),
        shortcuts=ShortcutSettings(**_known(ShortcutSettings, data.get("shortcuts"))),
    )


def save_settings(settings: AppSettings, path: Path | None = None) -> None:
    """Persist settings to disk."""
    path = path or _settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
