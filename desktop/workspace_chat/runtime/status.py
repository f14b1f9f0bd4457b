"""Transient status line shown under the transcript."""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol


LISTENING = "🎤 Listening..."
TRANSCRIBING = "📝 Transcribing..."
THINKING = "Thinking..."
SPEAKING = "🔊 Speaking..."
ERROR = "Error occurred"
VOICE_NOT_UNDERSTOOD = "Couldn't understand voice input. Please try again."
NEW_SESSION = "New chat session started"
TESTING_CONNECTION = "Testing API connection..."


class StatusView(Protocol):
    """Widget displaying the status string."""

    def set_status(self, text: str) -> None: ...


class StatusReporter:
    """Hold the current status and clear it immediately or after a delay."""

    def __init__(self, view: StatusView) -> None:
        self._view = view
        self._text = ""
        self._clear_task: Optional[asyncio.Task[None]] = None

    @property
    def text(self) -> str:
        return self._text

    def set(self, text: str) -> None:
        """Show ``text`` until something else replaces or clears it."""
        self._cancel_pending_clear()
        self._apply(text)

    def clear(self) -> None:
        self.set("")

    def clear_if(self, text: str) -> None:
        """Clear only when ``text`` is still the one displayed."""
        if self._text == text:
            self.clear()

    def flash(self, text: str, delay: float) -> None:
        """Show ``text`` and clear it after ``delay`` seconds."""
        self.set(text)
        self._clear_task = asyncio.get_running_loop().create_task(self._clear_after(delay))

    def cancel(self) -> None:
        self._cancel_pending_clear()

    async def _clear_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._clear_task = None
        self._apply("")

    def _cancel_pending_clear(self) -> None:
        if self._clear_task is not None and not self._clear_task.done():
            self._clear_task.cancel()
        self._clear_task = None

    def _apply(self, text: str) -> None:
        self._text = text
        self._view.set_status(text)
