"""Filesystem helpers for the chat client."""

from __future__ import annotations

from pathlib import Path

from .runtime import get_runtime_settings


def package_root() -> Path:
    """Return the root folder of the chat client package."""
    return Path(__file__).resolve().parents[1]


def resources_dir() -> Path:
    """Folder holding files bundled with the client."""
    return package_root() / "resources"


def config_file() -> Path:
    """Bundled chat config (base URL, workspace slug, API key)."""
    override = get_runtime_settings().config_file
    return override if override is not None else resources_dir() / "config.json"


def data_dir() -> Path:
    """Per-user directory for settings and diagnostics."""
    override = get_runtime_settings().data_dir
    root = override if override is not None else Path.home() / ".workspace_chat"
    root.mkdir(parents=True, exist_ok=True)
    return root


def log_dir() -> Path:
    """Directory receiving the JSON log files."""
    override = get_runtime_settings().log_dir
    root = override if override is not None else data_dir() / "logs"
    root.mkdir(parents=True, exist_ok=True)
    return root


def models_dir() -> Path:
    """Directory storing speech models (Piper voices, Whisper weights)."""
    root = data_dir() / "models"
    root.mkdir(parents=True, exist_ok=True)
    return root


def response_file() -> Path:
    """File overwritten with the last raw chat response."""
    return data_dir() / get_runtime_settings().response_file_name
