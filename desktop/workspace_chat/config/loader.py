"""Load the bundled chat config (``baseUrl``, ``workspaceSlug``, ``apiKey``).

The file is optional. Missing or malformed files are logged and the defaults
stay in place; a field from the file only wins when it is a non-blank string.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from ..core.errors import ConfigMissing
from ..core.logger import get_logger
from .settings import ChatConfig

LOGGER = get_logger("client")

_FILE_KEYS = {
    "baseUrl": "base_url",
    "workspaceSlug": "workspace_slug",
    "apiKey": "api_key",
}


def read_config_file(path: Path) -> dict[str, Any]:
    """Read and decode the config file, raising ConfigMissing on any failure."""
    try:
        raw_text = path.read_text(encoding="utf-8").lstrip("\ufeff")
    except FileNotFoundError as exc:
        raise ConfigMissing(f"Config file not found at: {path}") from exc
    except OSError as exc:
        raise ConfigMissing(f"Error reading config file {path}: {exc}") from exc

    if not raw_text.strip():
        raise ConfigMissing(f"Config file {path} is empty")
    try:
        data = json.loads(raw_text)
    except ValueError as exc:
        raise ConfigMissing(f"Failed to parse config JSON {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigMissing(f"Config file {path} must contain a JSON object")
    return data


def merge_config(defaults: ChatConfig, loaded: Mapping[str, Any]) -> ChatConfig:
    """Overlay non-blank file values on top of defaults and normalize them."""
    values = {
        "base_url": defaults.base_url,
        "workspace_slug": defaults.workspace_slug,
        "api_key": defaults.api_key,
    }
    for file_key, attr in _FILE_KEYS.items():
        value = loaded.get(file_key)
        if isinstance(value, str) and value.strip():
            values[attr] = value

    return ChatConfig(
        base_url=values["base_url"].strip().rstrip("/"),
        workspace_slug=values["workspace_slug"].strip(),
        api_key=values["api_key"].strip(),
    )


def load_config(path: Path, defaults: ChatConfig | None = None) -> ChatConfig:
    """Load the config file over ``defaults``; never raises."""
    defaults = defaults or ChatConfig()
    LOGGER.debug("Loading chat config from: %s", path)
    try:
        loaded = read_config_file(path)
    except ConfigMissing as exc:
        LOGGER.error("%s", exc)
        LOGGER.warning("Config JSON empty or missing. Using existing default values if any.")
        config = merge_config(defaults, {})
    else:
        config = merge_config(defaults, loaded)
        LOGGER.info("Config loaded: %s", config.describe())

    missing = config.missing_fields()
    if missing:
        LOGGER.warning(
            "Config fields empty (%s). Requests will fail until config.json is filled.",
            ", ".join(missing),
        )
    return config
