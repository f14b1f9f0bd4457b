"""Orchestrates the transcript, the chat API, speech and voice input."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import threading
from concurrent.futures import CancelledError as FutureCancelledError
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from ..config.runtime import get_runtime_settings
from ..config.settings import AppSettings
from ..core.logger import get_logger
from ..services.api import WorkspaceAPI
from ..services.schemas import TranscriptEvent
from ..state.app_state import AppState
from ..state.session import SessionManager
from . import status as status_text
from .dispatcher import ChatDispatcher
from .speech import AudioSink, SpeechEngine, SpeechPlaybackController
from .status import StatusReporter, StatusView
from .transcript import TranscriptRenderer, TranscriptView
from .voice import VoiceInputController, VoiceState

LOGGER = get_logger("client")

TOGGLE_STATUS_SECONDS = 2.0
NEW_SESSION_STATUS_SECONDS = 2.0

TranscriptCallback = Callable[[TranscriptEvent], None]


class ChatView(TranscriptView, StatusView, Protocol):
    """Everything the controller drives on screen."""

    def set_busy(self, busy: bool) -> None: ...

    def set_voice_state(self, state: VoiceState) -> None: ...


class TranscribingRecorder(Protocol):
    """Recorder that reports transcripts through a bound callback."""

    def bind(self, callback: TranscriptCallback) -> None: ...

    def start_recording(self) -> None: ...

    def stop_recording_and_process(self) -> None: ...

    def cancel(self) -> None: ...


class ChatController:
    """High-level coordinator for the chat client.

    All orchestration runs on one asyncio loop. GUI code calls ``post`` to
    schedule work on that loop from its own thread.
    """

    def __init__(
        self,
        state: AppState,
        view: ChatView,
        *,
        api: Optional[WorkspaceAPI] = None,
        recorder: Optional[TranscribingRecorder] = None,
        speech_engine: Optional[SpeechEngine] = None,
        audio_sink: Optional[AudioSink] = None,
        response_path: Optional[Path] = None,
        on_settings_changed: Optional[Callable[[AppSettings], None]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.state = state
        self.view = view
        if loop is not None:
            self.loop = loop
            self._owns_loop = False
            self._loop_thread: Optional[threading.Thread] = None
        else:
            self.loop = asyncio.new_event_loop()
            self._owns_loop = True
            self._loop_thread = threading.Thread(target=self._run_loop, daemon=True)
            self._loop_thread.start()

        chat_settings = state.settings.chat
        self.session = SessionManager()
        self.status = StatusReporter(view)
        self.renderer = TranscriptRenderer(view, self.session, self.status, chat_settings)
        self.api = api or WorkspaceAPI(state.config, timeout=get_runtime_settings().request_timeout)
        self.speech = SpeechPlaybackController(
            speech_engine,
            audio_sink,
            self.status,
            state,
            chat_settings,
            voice=state.settings.audio.tts_voice,
        )
        self.dispatcher = ChatDispatcher(
            self.api,
            state,
            self.session,
            self.renderer,
            self.status,
            chat_settings,
            speech=self.speech,
            response_path=response_path,
            on_busy_changed=view.set_busy,
        )
        self.voice = VoiceInputController(
            recorder,
            self.status,
            state,
            on_turn_start=self._begin_voice_turn,
            submit=self.dispatcher.send,
            on_state_changed=view.set_voice_state,
        )
        if recorder is not None:
            recorder.bind(self._handle_transcript)
        self._on_settings_changed = on_settings_changed
        self._tasks: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------ #
    # Public API (call on the controller loop, or through ``post``)
    # ------------------------------------------------------------------ #
    async def start(self) -> None:
        """Prepare an empty transcript and report the target endpoint."""
        if self.state.settings.chat.clear_chat_on_new_session:
            self.renderer.clear()
        LOGGER.info("API URL: %s", self.state.config.chat_url)
        LOGGER.info("Session ID: %s", self.session.current_session_id)

    async def send_text(self, text: str) -> Optional[str]:
        return await self.dispatcher.send(text)

    async def test_connection(self) -> bool:
        return await self.dispatcher.test_connection()

    def start_new_session(self) -> bool:
        """Clear the transcript and switch to a new session id."""
        if self.state.processing:
            return False
        self.voice.cancel()
        self.renderer.clear()
        self.session.new_session()
        self.status.flash(status_text.NEW_SESSION, NEW_SESSION_STATUS_SECONDS)
        LOGGER.info("Started new chat session %s", self.session.current_session_id)
        return True

    def press_voice(self) -> bool:
        return self.voice.press()

    def release_voice(self) -> bool:
        return self.voice.release()

    def toggle_auto_scroll(self) -> bool:
        chat = self.state.settings.chat
        chat.auto_scroll = not chat.auto_scroll
        self.status.flash(f"Auto-scroll: {'ON' if chat.auto_scroll else 'OFF'}", TOGGLE_STATUS_SECONDS)
        if chat.auto_scroll:
            self.renderer.request_scroll()
        self._settings_changed()
        return chat.auto_scroll

    def toggle_typing_effect(self) -> bool:
        chat = self.state.settings.chat
        chat.use_typing_effect = not chat.use_typing_effect
        self.status.flash(f"Typing effect: {'ON' if chat.use_typing_effect else 'OFF'}", TOGGLE_STATUS_SECONDS)
        self._settings_changed()
        return chat.use_typing_effect

    def scroll_to_top(self) -> None:
        self.renderer.scroll_to_top()

    def scroll_to_bottom(self) -> None:
        self.renderer.scroll_to_bottom()

    async def aclose(self) -> None:
        """Cancel background work and close the HTTP client."""
        self.voice.cancel()
        self.speech.stop_if_speaking()
        for task in list(self._tasks):
            task.cancel()
        for task in list(self._tasks):
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()
        await self.renderer.aclose()
        self.status.cancel()
        await self.api.close()

    # ------------------------------------------------------------------ #
    # Thread bridge
    # ------------------------------------------------------------------ #
    def post(self, func: Callable[..., Any], *args: Any) -> Future[Any]:
        """Run ``func(*args)`` on the controller loop from any thread."""

        async def _invoke() -> Any:
            result = func(*args)
            if inspect.isawaitable(result):
                result = await result
            return result

        future = asyncio.run_coroutine_threadsafe(_invoke(), self.loop)
        future.add_done_callback(self._log_future_error)
        return future

    def shutdown(self) -> None:
        """Release resources and stop the owned loop."""
        if self.loop.is_running():
            future = asyncio.run_coroutine_threadsafe(self.aclose(), self.loop)
            with contextlib.suppress(Exception):
                future.result(timeout=2)
        if self._owns_loop and self._loop_thread:
            self.loop.call_soon_threadsafe(self.loop.stop)
            self._loop_thread.join(timeout=1)
            self._loop_thread = None

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _begin_voice_turn(self) -> None:
        self.start_new_session()
        self.speech.stop_if_speaking()

    def _handle_transcript(self, event: TranscriptEvent) -> None:
        if event.error:
            LOGGER.warning("Transcription failed: %s", event.error)
        task = asyncio.get_running_loop().create_task(self.voice.on_transcription(event.text))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _settings_changed(self) -> None:
        if self._on_settings_changed is None:
            return
        try:
            self._on_settings_changed(self.state.settings)
        except OSError as exc:
            LOGGER.error("Failed to persist settings: %s", exc)

    def _log_future_error(self, future: Future[Any]) -> None:
        try:
            future.result()
        except (asyncio.CancelledError, FutureCancelledError):
            return
        except Exception:  # pragma: no cover - surfaced in logs
            LOGGER.exception("Controller task failed")

    def _run_loop(self) -> None:
        """Run the owned asyncio loop in a dedicated thread."""
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()
