from __future__ import annotations

import pytest

from conftest import FakeRecorder, FakeView
from desktop.workspace_chat.runtime import status as status_text
from desktop.workspace_chat.runtime.status import StatusReporter
from desktop.workspace_chat.runtime.voice import VoiceInputController, VoiceState
from desktop.workspace_chat.state.app_state import AppState


class Harness:
    def __init__(self, view: FakeView, state: AppState, recorder: FakeRecorder | None) -> None:
        self.turns = 0
        self.submitted: list[str] = []
        self.controller = VoiceInputController(
            recorder,
            StatusReporter(view),
            state,
            on_turn_start=self._turn,
            submit=self._submit,
            on_state_changed=view.set_voice_state,
        )

    def _turn(self) -> None:
        self.turns += 1

    async def _submit(self, text: str) -> None:
        self.submitted.append(text)


@pytest.mark.asyncio
async def test_press_release_transcribe_submits(view: FakeView, app_state: AppState) -> None:
    recorder = FakeRecorder()
    harness = Harness(view, app_state, recorder)
    voice = harness.controller

    assert voice.press() is True
    assert voice.state is VoiceState.RECORDING
    assert app_state.listening is True
    assert view.status == status_text.LISTENING
    assert harness.turns == 1

    assert voice.release() is True
    assert voice.state is VoiceState.TRANSCRIBING
    assert app_state.listening is False
    assert view.status == status_text.TRANSCRIBING

    await voice.on_transcription("  what time is it ")
    assert voice.state is VoiceState.IDLE
    assert harness.submitted == ["what time is it"]
    assert view.status == status_text.THINKING
    assert recorder.calls == ["start", "stop"]
    assert view.voice_states == [VoiceState.RECORDING, VoiceState.TRANSCRIBING, VoiceState.IDLE]


@pytest.mark.asyncio
async def test_empty_transcript_shows_retry_message(view: FakeView, app_state: AppState) -> None:
    harness = Harness(view, app_state, FakeRecorder())
    voice = harness.controller
    voice.press()
    voice.release()
    await voice.on_transcription("   ")
    assert voice.state is VoiceState.IDLE
    assert harness.submitted == []
    assert view.status == status_text.VOICE_NOT_UNDERSTOOD


@pytest.mark.asyncio
async def test_press_refused_while_processing(view: FakeView, app_state: AppState) -> None:
    recorder = FakeRecorder()
    harness = Harness(view, app_state, recorder)
    app_state.processing = True
    assert harness.controller.press() is False
    assert harness.controller.state is VoiceState.IDLE
    assert recorder.calls == []
    assert harness.turns == 0


def test_release_without_press_is_ignored(view: FakeView, app_state: AppState) -> None:
    recorder = FakeRecorder()
    harness = Harness(view, app_state, recorder)
    assert harness.controller.release() is False
    assert recorder.calls == []


def test_press_twice_starts_one_recording(view: FakeView, app_state: AppState) -> None:
    recorder = FakeRecorder()
    harness = Harness(view, app_state, recorder)
    assert harness.controller.press() is True
    assert harness.controller.press() is False
    assert recorder.calls == ["start"]


def test_press_without_recorder_does_nothing(view: FakeView, app_state: AppState) -> None:
    harness = Harness(view, app_state, None)
    assert harness.controller.press() is False
    assert harness.turns == 0
    assert view.voice_states == []


@pytest.mark.asyncio
async def test_late_transcript_after_cancel_is_dropped(view: FakeView, app_state: AppState) -> None:
    recorder = FakeRecorder()
    harness = Harness(view, app_state, recorder)
    voice = harness.controller
    voice.press()
    voice.release()
    voice.cancel()
    assert recorder.calls == ["start", "stop", "cancel"]
    assert view.status == ""

    await voice.on_transcription("too late")
    assert harness.submitted == []
