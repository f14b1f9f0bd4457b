"""Conversation transcript with instant append and typing reveal."""

from __future__ import annotations

import asyncio
import contextlib
import html
from typing import Optional, Protocol

from ..config.settings import ChatSettings
from ..core.logger import get_logger
from ..state.session import SessionManager
from .status import StatusReporter

LOGGER = get_logger("client")

SENDER_USER = "You"
SENDER_AI = "AI"
SENDER_SYSTEM = "System"

# One display refresh at 60 Hz.
FRAME_INTERVAL = 1 / 60


class TranscriptView(Protocol):
    """Scrollable widget showing the transcript markup."""

    def set_transcript(self, markup: str) -> None: ...

    def refresh_layout(self) -> None: ...

    def scroll_to_bottom(self) -> None: ...

    def scroll_to_top(self) -> None: ...


def format_header(sender: str) -> str:
    return f"\n<b>{html.escape(sender)}:</b> "


class TranscriptRenderer:
    """Single growing rich-text buffer with sender headers.

    Body text is escaped one character at a time, so a cancelled reveal can
    only ever stop between two complete entities.
    """

    def __init__(
        self,
        view: TranscriptView,
        session: SessionManager,
        status: StatusReporter,
        settings: ChatSettings,
    ) -> None:
        self._view = view
        self._session = session
        self._status = status
        self._settings = settings
        self._buffer = ""
        self._reveal_task: Optional[asyncio.Task[None]] = None
        self._scroll_task: Optional[asyncio.Task[None]] = None

    @property
    def text(self) -> str:
        return self._buffer

    @property
    def is_revealing(self) -> bool:
        return self._reveal_task is not None and not self._reveal_task.done()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def append(self, sender: str, text: str, animated: bool = False) -> Optional[asyncio.Task[None]]:
        """Add a message; returns the reveal task when ``animated``."""
        self.cancel_reveal()
        if not animated:
            self._write(format_header(sender) + html.escape(text))
            return None
        self._write(format_header(sender))
        self._reveal_task = asyncio.get_running_loop().create_task(self.reveal(sender, text))
        return self._reveal_task

    async def reveal(self, sender: str, text: str) -> None:
        """Type ``text`` out at ``typing_speed`` characters per second."""
        typing_status = f"{sender} is typing..."
        self._status.set(typing_status)
        delay = 1.0 / max(self._settings.typing_speed, 1.0)
        try:
            for char in text:
                self._write(html.escape(char))
                await asyncio.sleep(delay)
        finally:
            self._status.clear_if(typing_status)

    def cancel_reveal(self) -> None:
        task = self._reveal_task
        self._reveal_task = None
        if task is not None and not task.done():
            task.cancel()

    def clear(self) -> None:
        """Empty the transcript; the next message starts a fresh log."""
        self.cancel_reveal()
        self._buffer = ""
        self._session.mark_fresh()
        self._view.set_transcript(self._buffer)
        self._view.refresh_layout()

    def request_scroll(self) -> None:
        """Snap to the bottom, then again once layout has caught up."""
        if not self._settings.auto_scroll:
            return
        if self._scroll_task is not None and not self._scroll_task.done():
            self._scroll_task.cancel()
        self._scroll_task = asyncio.get_running_loop().create_task(self._snap_to_bottom())

    def scroll_to_top(self) -> None:
        self._view.scroll_to_top()

    def scroll_to_bottom(self) -> None:
        self._view.scroll_to_bottom()

    async def aclose(self) -> None:
        """Cancel the background reveal and scroll tasks."""
        for task in (self._reveal_task, self._scroll_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._reveal_task = None
        self._scroll_task = None

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _write(self, chunk: str) -> None:
        if self._session.should_clear_before_next_append():
            if self._settings.clear_chat_on_new_session:
                self._buffer = chunk.lstrip("\n")
            else:
                self._buffer += chunk
            self._session.on_first_message_rendered()
        else:
            self._buffer += chunk
        self._view.set_transcript(self._buffer)
        self._view.refresh_layout()
        self.request_scroll()

    async def _snap_to_bottom(self) -> None:
        self._view.scroll_to_bottom()
        await asyncio.sleep(FRAME_INTERVAL)
        self._view.refresh_layout()
        self._view.scroll_to_bottom()
