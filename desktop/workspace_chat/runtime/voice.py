"""Push-to-talk state machine."""

from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from ..core.logger import get_logger
from ..state.app_state import AppState
from . import status as status_text
from .status import StatusReporter

LOGGER = get_logger("audio")

VOICE_ERROR_DISPLAY_SECONDS = 3.0


class VoiceState(str, Enum):
    """Voice button state."""

    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class Recorder(Protocol):
    """Speech-to-text collaborator; reports its result through a callback."""

    def start_recording(self) -> None: ...

    def stop_recording_and_process(self) -> None: ...

    def cancel(self) -> None: ...


class VoiceInputController:
    """Idle -> Recording -> Transcribing -> Idle, driven by press/release."""

    def __init__(
        self,
        recorder: Optional[Recorder],
        status: StatusReporter,
        state: AppState,
        *,
        on_turn_start: Callable[[], None],
        submit: Callable[[str], Awaitable[object]],
        on_state_changed: Optional[Callable[[VoiceState], None]] = None,
    ) -> None:
        self.recorder = recorder
        self._status = status
        self._app_state = state
        self._on_turn_start = on_turn_start
        self._submit = submit
        self._on_state_changed = on_state_changed
        self._state = VoiceState.IDLE

    @property
    def state(self) -> VoiceState:
        return self._state

    def press(self) -> bool:
        """Begin recording; refused unless idle and no request is in flight."""
        if self._state is not VoiceState.IDLE or self._app_state.processing:
            return False
        if self.recorder is None:
            LOGGER.warning("No speech recognizer configured; voice input ignored.")
            return False

        self._on_turn_start()
        try:
            self.recorder.start_recording()
        except Exception as exc:  # pragma: no cover - audio device failures
            LOGGER.exception("Unable to start recording")
            self._status.flash(f"Microphone error: {exc}", VOICE_ERROR_DISPLAY_SECONDS)
            return False
        self._set_state(VoiceState.RECORDING)
        self._status.set(status_text.LISTENING)
        return True

    def release(self) -> bool:
        """Stop recording and hand the audio to the transcriber."""
        if self._state is not VoiceState.RECORDING or self.recorder is None:
            return False
        self.recorder.stop_recording_and_process()
        self._set_state(VoiceState.TRANSCRIBING)
        self._status.set(status_text.TRANSCRIBING)
        return True

    async def on_transcription(self, text: Optional[str]) -> None:
        """Feed a finished transcript to the send path."""
        if self._state is not VoiceState.TRANSCRIBING:
            LOGGER.debug("Ignoring transcription received in state %s", self._state.value)
            return
        self._set_state(VoiceState.IDLE)
        transcript = (text or "").strip()
        if not transcript:
            self._status.flash(status_text.VOICE_NOT_UNDERSTOOD, VOICE_ERROR_DISPLAY_SECONDS)
            return
        self._status.set(status_text.THINKING)
        await self._submit(transcript)

    def cancel(self) -> None:
        """Abort any recording or pending transcription."""
        if self._state is VoiceState.IDLE:
            return
        if self.recorder is not None:
            self.recorder.cancel()
        self._set_state(VoiceState.IDLE)
        self._status.clear_if(status_text.LISTENING)
        self._status.clear_if(status_text.TRANSCRIBING)

    def _set_state(self, new_state: VoiceState) -> None:
        self._state = new_state
        self._app_state.listening = new_state is VoiceState.RECORDING
        if self._on_state_changed is not None:
            self._on_state_changed(new_state)
