from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from desktop.workspace_chat.config.loader import load_config, merge_config, read_config_file
from desktop.workspace_chat.config.settings import ChatConfig
from desktop.workspace_chat.core.errors import ConfigMissing


def test_blank_fields_do_not_overwrite_defaults() -> None:
    defaults = ChatConfig(base_url="http://a", workspace_slug="b", api_key="c")
    merged = merge_config(defaults, {"workspaceSlug": "", "apiKey": "x"})
    assert merged == ChatConfig(base_url="http://a", workspace_slug="b", api_key="x")


def test_values_are_normalized() -> None:
    merged = merge_config(
        ChatConfig(),
        {"baseUrl": "http://localhost:3001/api/", "workspaceSlug": "  team  ", "apiKey": " KEY\n"},
    )
    assert merged.base_url == "http://localhost:3001/api"
    assert merged.workspace_slug == "team"
    assert merged.api_key == "KEY"
    assert merged.chat_url == "http://localhost:3001/api/v1/workspace/team/chat"


def test_non_string_values_are_ignored() -> None:
    merged = merge_config(ChatConfig(workspace_slug="keep"), {"workspaceSlug": 12, "apiKey": None})
    assert merged.workspace_slug == "keep"
    assert merged.api_key == ""


def test_read_config_file_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigMissing):
        read_config_file(tmp_path / "absent.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigMissing):
        read_config_file(broken)

    listing = tmp_path / "list.json"
    listing.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigMissing):
        read_config_file(listing)


def test_load_config_keeps_defaults_when_file_missing(tmp_path: Path) -> None:
    defaults = ChatConfig(base_url="http://a", workspace_slug="b", api_key="c")
    assert load_config(tmp_path / "absent.json", defaults) == defaults


def test_load_config_reads_file_with_bom(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    payload = {"baseUrl": "http://llm/api", "workspaceSlug": "demo", "apiKey": "k"}
    path.write_text("\ufeff" + json.dumps(payload), encoding="utf-8")
    config = load_config(path)
    assert config.is_complete
    assert config.describe()["api_key"] == "(loaded)"


def test_load_config_warns_on_incomplete(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"baseUrl": "http://llm/api"}), encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="workspace_chat.client"):
        config = load_config(path)
    assert config.missing_fields() == ["workspace_slug", "api_key"]
    assert any("workspace_slug, api_key" in record.getMessage() for record in caplog.records)
