"""Local configuration models for the chat client."""

from __future__ import annotations

from dataclasses import dataclass, field


REQUIRED_CONFIG_FIELDS = ("base_url", "workspace_slug", "api_key")


@dataclass(slots=True)
class ChatConfig:
    """Connection settings for the remote workspace API."""

    base_url: str = ""
    workspace_slug: str = ""
    api_key: str = ""

    def missing_fields(self) -> list[str]:
        """Names of the required fields that are still blank."""
        return [name for name in REQUIRED_CONFIG_FIELDS if not getattr(self, name).strip()]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/v1/workspace/{self.workspace_slug}/chat"

    def describe(self) -> dict[str, str]:
        """Loggable view of the config with the API key masked."""
        return {
            "base_url": self.base_url,
            "workspace_slug": self.workspace_slug,
            "api_key": "(loaded)" if self.api_key else "(empty)",
        }


@dataclass(slots=True)
class ChatSettings:
    """Transcript and conversation behaviour."""

    clear_chat_on_new_session: bool = True
    use_typing_effect: bool = True
    typing_speed: float = 30.0
    auto_scroll: bool = True
    strip_symbols_for_tts: bool = True


@dataclass(slots=True)
class AudioSettings:
    """Audio capture, transcription and synthesis settings."""

    input_device: str | None = None
    output_device: str | None = None
    asr_model: str = "faster-whisper-tiny"
    asr_device: str = "cpu"
    asr_compute_type: str = "int8"
    asr_language: str | None = None
    tts_enabled: bool = True
    tts_voice: str = "en_US-lessac-medium"
    tts_length_scale: float = 1.0


@dataclass(slots=True)
class ShortcutSettings:
    """Keyboard shortcuts for the client."""

    new_session: str = "Ctrl+N"
    test_connection: str = "Ctrl+Shift+C"
    toggle_auto_scroll: str = "Ctrl+Shift+A"
    toggle_typing_effect: str = "Ctrl+Shift+T"
    push_to_talk: str = "V"
    scroll_top: str = "Home"
    scroll_bottom: str = "End"


@dataclass(slots=True)
class AppSettings:
    """Full set of persisted settings for the client."""

    chat: ChatSettings = field(default_factory=ChatSettings)
    audio: AudioSettings = field(default_factory=AudioSettings)
    shortcuts: ShortcutSettings = field(default_factory=ShortcutSettings)
