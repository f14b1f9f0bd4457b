"""Speak assistant replies through a synthesis engine and an audio sink."""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from ..config.settings import ChatSettings
from ..core.errors import EngineUnavailable
from ..core.logger import get_logger
from ..services.schemas import AudioClip
from ..state.app_state import AppState
from ..utils.text import sanitize_for_speech
from . import status as status_text
from .status import StatusReporter

LOGGER = get_logger("audio")


class SpeechEngine(Protocol):
    """Text-to-speech backend."""

    async def synthesize(self, text: str, voice: Optional[str] = None) -> Optional[AudioClip]: ...


class AudioSink(Protocol):
    """Audio output device."""

    @property
    def is_playing(self) -> bool: ...

    def play_clip(self, clip: AudioClip) -> None: ...

    def stop(self) -> None: ...


class SpeechPlaybackController:
    """Synthesize, play, and hold the "speaking" status for the clip length."""

    def __init__(
        self,
        engine: Optional[SpeechEngine],
        sink: Optional[AudioSink],
        status: StatusReporter,
        state: AppState,
        settings: ChatSettings,
        *,
        voice: Optional[str] = None,
    ) -> None:
        self.engine = engine
        self.sink = sink
        self._status = status
        self._state = state
        self._settings = settings
        self._voice = voice
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def is_speaking(self) -> bool:
        return self._state.speaking

    def start(self, text: str) -> asyncio.Task[None]:
        """Run ``speak`` in the background, replacing any earlier utterance."""
        self.stop_if_speaking()
        self._task = asyncio.get_running_loop().create_task(self.speak(text))
        return self._task

    async def speak(self, text: str) -> None:
        if self.engine is None or self.sink is None:
            LOGGER.warning("TTS not properly configured. Skipping speech.")
            return

        to_speak = sanitize_for_speech(text) if self._settings.strip_symbols_for_tts else text
        if not to_speak.strip():
            return

        try:
            clip = await self.engine.synthesize(to_speak, self._voice)
        except EngineUnavailable as exc:
            LOGGER.warning("Speech synthesis unavailable: %s", exc)
            return
        except Exception:
            LOGGER.exception("Speech synthesis failed")
            return
        if clip is None or not clip.pcm:
            return

        try:
            self.sink.play_clip(clip)
        except Exception:
            LOGGER.exception("Speech playback failed")
            return
        self._state.speaking = True
        self._status.set(status_text.SPEAKING)
        try:
            await asyncio.sleep(clip.duration)
        finally:
            self._state.speaking = False
            self._status.clear_if(status_text.SPEAKING)

    def stop_if_speaking(self) -> None:
        """Cut playback now (the user is about to talk)."""
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
        if self.sink is not None and (self.sink.is_playing or self._state.speaking):
            self.sink.stop()
        self._state.speaking = False
        self._status.clear_if(status_text.SPEAKING)
