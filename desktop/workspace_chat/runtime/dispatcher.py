"""Send user messages to the workspace and render the outcome."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from ..config.settings import ChatSettings
from ..core.errors import (
    ChatClientError,
    ConfigIncomplete,
    NetworkError,
    ParseError,
    ServerError,
    user_message_for,
)
from ..core.logger import get_logger
from ..services.api import WorkspaceAPI
from ..services.schemas import ChatMode, ChatRequest
from ..state.app_state import AppState
from ..state.session import SessionManager
from . import status as status_text
from .speech import SpeechPlaybackController
from .status import StatusReporter
from .transcript import SENDER_AI, SENDER_SYSTEM, SENDER_USER, TranscriptRenderer

LOGGER = get_logger("client")

CONFIG_INCOMPLETE_MESSAGE = "Config not loaded or incomplete. Please check config.json."
FALLBACK_REPLY = "I didn't get a response. Could you try again?"
PARSE_FAILURE_REPLY = "Sorry, I had trouble understanding the response."
CONNECTION_OK_MESSAGE = "✓ API connection test successful"
ERROR_STATUS_SECONDS = 3.0
TEST_STATUS_SECONDS = 2.0


class ChatDispatcher:
    """Single-flight chat sender; every failure ends up in the transcript."""

    def __init__(
        self,
        api: WorkspaceAPI,
        state: AppState,
        session: SessionManager,
        renderer: TranscriptRenderer,
        status: StatusReporter,
        settings: ChatSettings,
        *,
        speech: Optional[SpeechPlaybackController] = None,
        response_path: Optional[Path] = None,
        on_busy_changed: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self.api = api
        self._state = state
        self._session = session
        self._renderer = renderer
        self._status = status
        self._settings = settings
        self._speech = speech
        self._response_path = response_path
        self._on_busy_changed = on_busy_changed

    @property
    def is_processing(self) -> bool:
        return self._state.processing

    async def send(self, message: str) -> Optional[str]:
        """Send ``message``; returns the rendered reply, or None when nothing was sent."""
        if self.is_processing:
            LOGGER.debug("Send ignored: a request is already in flight")
            return None
        message = message.strip()
        if not message:
            return None

        self._renderer.append(SENDER_USER, message, animated=False)

        try:
            self._require_config()
        except ConfigIncomplete as exc:
            self._report_incomplete_config(exc)
            return None

        request = ChatRequest(
            message=message,
            mode=ChatMode.CHAT,
            session_id=self._session.current_session_id,
        )
        self._set_busy(True)
        self._status.set(status_text.THINKING)
        try:
            response = await self.api.chat(request)
        except ParseError as exc:
            self._persist_response(exc.raw)
            LOGGER.error("JSON parse error: %s | raw: %s", exc, exc.raw)
            self._status.clear()
            self._renderer.append(SENDER_AI, PARSE_FAILURE_REPLY, animated=False)
            return PARSE_FAILURE_REPLY
        except (NetworkError, ServerError) as exc:
            await self._report_failure(exc)
            return None
        finally:
            self._set_busy(False)

        self._status.clear()
        self._persist_response(response.raw)
        reply = response.text_or(FALLBACK_REPLY)
        self._renderer.append(SENDER_AI, reply, animated=self._settings.use_typing_effect)
        if self._speech is not None:
            self._speech.start(reply)
        return reply

    async def test_connection(self) -> bool:
        """Check URL, workspace and key with a throwaway query."""
        if self.is_processing:
            return False
        try:
            self._require_config()
        except ConfigIncomplete as exc:
            self._report_incomplete_config(exc)
            return False
        self._set_busy(True)
        self._status.set(status_text.TESTING_CONNECTION)
        try:
            await self.api.test_connection()
        except ChatClientError as exc:
            LOGGER.warning("Connection test failed: %s", exc)
            self._renderer.append(SENDER_SYSTEM, f"✗ API connection failed: {exc}", animated=False)
            self._status.flash("Connection test failed", TEST_STATUS_SECONDS)
            return False
        finally:
            self._set_busy(False)
        self._renderer.append(SENDER_SYSTEM, CONNECTION_OK_MESSAGE, animated=False)
        self._status.flash("Connection test passed", TEST_STATUS_SECONDS)
        return True

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _require_config(self) -> None:
        missing = self._state.config.missing_fields()
        if missing:
            raise ConfigIncomplete(missing)

    def _report_incomplete_config(self, exc: ConfigIncomplete) -> None:
        LOGGER.warning("Request blocked: %s", exc)
        self._renderer.append(SENDER_SYSTEM, CONFIG_INCOMPLETE_MESSAGE, animated=False)
        self._status.clear()

    async def _report_failure(self, exc: ChatClientError) -> None:
        status_code = exc.status_code if isinstance(exc, ServerError) else None
        LOGGER.error("API request failed (status=%s): %s", status_code, exc)
        self._renderer.append(SENDER_AI, user_message_for(exc), animated=False)
        self._status.flash(status_text.ERROR, ERROR_STATUS_SECONDS)
        if isinstance(exc, ServerError) and "workspace" in exc.body.lower():
            await self._log_available_workspaces()

    async def _log_available_workspaces(self) -> None:
        LOGGER.error("Workspace might be invalid. Checking available workspaces...")
        try:
            workspaces = await self.api.list_workspaces()
        except ChatClientError as exc:
            LOGGER.error("Could not retrieve workspaces: %s", exc)
            return
        LOGGER.info("Available workspaces: %s", workspaces)

    def _persist_response(self, raw: str) -> None:
        if self._response_path is None:
            return
        try:
            self._response_path.parent.mkdir(parents=True, exist_ok=True)
            self._response_path.write_text(raw, encoding="utf-8")
        except OSError as exc:
            LOGGER.error("Failed to save response JSON to %s: %s", self._response_path, exc)
        else:
            LOGGER.debug("Saved response JSON to: %s", self._response_path)

    def _set_busy(self, busy: bool) -> None:
        self._state.processing = busy
        if self._on_busy_changed is not None:
            self._on_busy_changed(busy)
