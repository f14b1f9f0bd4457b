"""Data schemas exchanged with the workspace API and the audio collaborators."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..core.errors import ParseError


class ChatMode(str, Enum):
    """Workspace chat mode."""

    CHAT = "chat"
    QUERY = "query"


@dataclass(frozen=True, slots=True)
class ChatRequest:
    """Outbound chat call, immutable once built."""

    message: str
    mode: ChatMode
    session_id: str
    attachments: tuple[Any, ...] = ()
    reset: bool = False

    def to_payload(self) -> dict[str, Any]:
        """Serialize the request for the API."""
        return {
            "message": self.message,
            "mode": self.mode.value if isinstance(self.mode, ChatMode) else str(self.mode),
            "sessionId": self.session_id,
            "attachments": list(self.attachments),
            "reset": self.reset,
        }


@dataclass(slots=True)
class ChatResponse:
    """Parsed reply body."""

    text_response: Optional[str] = None
    raw: str = ""

    @classmethod
    def from_json(cls, raw: str) -> "ChatResponse":
        """Parse a reply body, raising ParseError when it is not a JSON object."""
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise ParseError(f"Invalid JSON response: {exc}", raw=raw) from exc
        if not isinstance(payload, dict):
            raise ParseError("Response JSON is not an object", raw=raw)
        value = payload.get("textResponse")
        if value is not None and not isinstance(value, str):
            value = str(value)
        return cls(text_response=value, raw=raw)

    def text_or(self, fallback: str) -> str:
        """Reply text, or ``fallback`` when absent or blank."""
        if self.text_response and self.text_response.strip():
            return self.text_response
        return fallback


@dataclass(slots=True)
class AudioClip:
    """Synthesized mono/stereo PCM s16le audio."""

    pcm: bytes
    sample_rate: int
    channels: int = 1

    @property
    def duration(self) -> float:
        """Clip length in seconds."""
        if self.sample_rate <= 0 or self.channels <= 0:
            return 0.0
        return len(self.pcm) / (self.sample_rate * self.channels * 2)


@dataclass(slots=True)
class TranscriptEvent:
    """Completed transcription of one push-to-talk recording."""

    text: str
    error: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
