from __future__ import annotations

import json
import os
import tempfile
from typing import Callable, Optional

# Keep logs, settings and diagnostics out of the user's home during tests.
os.environ.setdefault("WORKSPACE_CHAT_DATA_DIR", tempfile.mkdtemp(prefix="workspace-chat-tests-"))

import httpx
import pytest

from desktop.workspace_chat.config.settings import AppSettings, ChatConfig
from desktop.workspace_chat.runtime.voice import VoiceState
from desktop.workspace_chat.services.api import WorkspaceAPI
from desktop.workspace_chat.services.schemas import AudioClip, TranscriptEvent
from desktop.workspace_chat.state.app_state import AppState


Handler = Callable[[httpx.Request], httpx.Response]


class FakeView:
    """Records everything the controller draws."""

    def __init__(self) -> None:
        self.transcript = ""
        self.statuses: list[str] = []
        self.scrolls: list[str] = []
        self.layouts = 0
        self.busy: list[bool] = []
        self.voice_states: list[VoiceState] = []

    @property
    def status(self) -> str:
        return self.statuses[-1] if self.statuses else ""

    def set_transcript(self, markup: str) -> None:
        self.transcript = markup

    def refresh_layout(self) -> None:
        self.layouts += 1

    def scroll_to_bottom(self) -> None:
        self.scrolls.append("bottom")

    def scroll_to_top(self) -> None:
        self.scrolls.append("top")

    def set_status(self, text: str) -> None:
        self.statuses.append(text)

    def set_busy(self, busy: bool) -> None:
        self.busy.append(busy)

    def set_voice_state(self, state: VoiceState) -> None:
        self.voice_states.append(state)


class FakeRecorder:
    def __init__(self) -> None:
        self.callback: Optional[Callable[[TranscriptEvent], None]] = None
        self.calls: list[str] = []

    def bind(self, callback: Callable[[TranscriptEvent], None]) -> None:
        self.callback = callback

    def start_recording(self) -> None:
        self.calls.append("start")

    def stop_recording_and_process(self) -> None:
        self.calls.append("stop")

    def cancel(self) -> None:
        self.calls.append("cancel")

    def finish(self, text: str) -> None:
        assert self.callback is not None
        self.callback(TranscriptEvent(text=text))


class FakeEngine:
    def __init__(self, seconds: float = 0.05) -> None:
        self.seconds = seconds
        self.texts: list[str] = []

    async def synthesize(self, text: str, voice: Optional[str] = None) -> Optional[AudioClip]:
        self.texts.append(text)
        frames = int(22_050 * self.seconds)
        return AudioClip(pcm=b"\x01\x00" * frames, sample_rate=22_050)


class FakeSink:
    def __init__(self) -> None:
        self.played: list[AudioClip] = []
        self.stopped = 0
        self._playing = False

    @property
    def is_playing(self) -> bool:
        return self._playing

    def play_clip(self, clip: AudioClip) -> None:
        self.played.append(clip)
        self._playing = True

    def stop(self) -> None:
        self.stopped += 1
        self._playing = False


def json_response(payload: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"))


def make_config() -> ChatConfig:
    return ChatConfig(base_url="http://llm.test/api", workspace_slug="demo", api_key="secret-key")


def make_api(handler: Handler, config: Optional[ChatConfig] = None) -> WorkspaceAPI:
    return WorkspaceAPI(config or make_config(), transport=httpx.MockTransport(handler))


@pytest.fixture
def view() -> FakeView:
    return FakeView()


@pytest.fixture
def app_state() -> AppState:
    settings = AppSettings()
    settings.chat.typing_speed = 1000.0
    return AppState(settings=settings, config=make_config())
