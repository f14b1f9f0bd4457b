"""Conversation session tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from ..core.logger import get_logger

LOGGER = get_logger("client")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Session:
    """One conversation thread sent to the workspace."""

    id: str
    started_at: datetime = field(default_factory=_now)
    is_fresh: bool = True


class SessionManager:
    """Own the current session id and the clear-before-next-append flag."""

    def __init__(self, prefix: str = "chat-session") -> None:
        self._prefix = prefix
        self._session = self._create()

    def _create(self) -> Session:
        return Session(id=f"{self._prefix}-{uuid4().hex[:8]}")

    def new_session(self) -> str:
        """Start a new conversation and return its id."""
        self._session = self._create()
        LOGGER.debug("New session ID: %s", self._session.id)
        return self._session.id

    @property
    def session(self) -> Session:
        return self._session

    @property
    def current_session_id(self) -> str:
        return self._session.id

    def should_clear_before_next_append(self) -> bool:
        return self._session.is_fresh

    def on_first_message_rendered(self) -> None:
        self._session.is_fresh = False

    def mark_fresh(self) -> None:
        """Make the next rendered message replace the transcript."""
        self._session.is_fresh = True
