"""Entry point for the PySide6 chat client."""

from __future__ import annotations

from pathlib import Path

from PySide6.QtWidgets import QApplication

from .audio.capture import CaptureConfig, MicrophoneCapture
from .audio.playback import PlaybackConfig, SpeechPlayback
from .audio.transcriber import FasterWhisperEngine, PushToTranscribe, WhisperConfig
from .audio.tts import PiperSpeechEngine
from .config.loader import load_config
from .config.paths import config_file, models_dir
from .config.settings import AudioSettings
from .config.store import load_settings
from .state.app_state import AppState
from .ui.main_window import ChatWindow


def resolve_asr_model(name: str) -> Path | str:
    """Local model folder when installed, otherwise the faster-whisper size name."""
    local = models_dir() / "asr" / name
    if local.exists():
        return local
    return name.removeprefix("faster-whisper-")


def build_recorder(audio: AudioSettings) -> PushToTranscribe:
    capture = MicrophoneCapture(CaptureConfig(device_name=audio.input_device))

    def _engine() -> FasterWhisperEngine:
        return FasterWhisperEngine(
            WhisperConfig(
                model_path=resolve_asr_model(audio.asr_model),
                device=audio.asr_device,
                compute_type=audio.asr_compute_type,
                language=audio.asr_language,
            )
        )

    return PushToTranscribe(capture, _engine)


def build_speech_engine(audio: AudioSettings) -> PiperSpeechEngine | None:
    if not audio.tts_enabled:
        return None
    return PiperSpeechEngine(models_dir() / "tts", length_scale=audio.tts_length_scale)


def build_audio_sink(audio: AudioSettings) -> SpeechPlayback:
    return SpeechPlayback(PlaybackConfig(device_name=audio.output_device))


def run(config_path: Path | None = None) -> None:
    """Start the chat UI."""
    app = QApplication.instance() or QApplication([])
    settings = load_settings()
    state = AppState(settings=settings, config=load_config(config_path or config_file()))
    window = ChatWindow(
        state,
        recorder=build_recorder(settings.audio),
        speech_engine=build_speech_engine(settings.audio),
        audio_sink=build_audio_sink(settings.audio),
    )
    window.show()
    app.exec()
