"""Push-to-talk transcription powered by faster-whisper."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

import numpy as np
from faster_whisper import WhisperModel

from ..core.logger import get_logger
from ..services.schemas import TranscriptEvent
from .capture import MicrophoneCapture

LOGGER = get_logger("audio")

TranscriptCallback = Callable[[TranscriptEvent], None]


@dataclass(slots=True)
class WhisperConfig:
    """Configuration for the faster-whisper engine."""

    model_path: Path | str
    device: str = "cpu"
    compute_type: str = "int8"
    language: str | None = None


class FasterWhisperEngine:
    """Thin wrapper around WhisperModel."""

    def __init__(self, config: WhisperConfig) -> None:
        self.config = config
        self.model = WhisperModel(
            str(config.model_path),
            device=config.device,
            compute_type=config.compute_type,
        )

    def transcribe(self, audio: Iterable[float]) -> str:
        """Transcribe an audio stream into text."""
        segments, _ = self.model.transcribe(audio, language=self.config.language)
        return " ".join(segment.text.strip() for segment in segments).strip()


def pcm16_to_float(pcm: bytes) -> np.ndarray:
    """Convert s16le PCM to the float32 [-1, 1] samples Whisper expects."""
    return np.frombuffer(pcm, dtype=np.int16).astype(np.float32) / 32768.0


class PushToTranscribe:
    """Record while the button is held, transcribe on release.

    ``stop_recording_and_process`` must be called from the event loop; the
    bound callback is invoked on that same loop once transcription finishes.
    """

    def __init__(
        self,
        capture: MicrophoneCapture,
        engine_factory: Callable[[], FasterWhisperEngine],
    ) -> None:
        self.capture = capture
        self._engine_factory = engine_factory
        self._engine: Optional[FasterWhisperEngine] = None
        self._engine_lock = threading.Lock()
        self._frames: list[bytes] = []
        self._frames_lock = threading.Lock()
        self._callback: Optional[TranscriptCallback] = None
        self._generation = 0
        self.capture.bind(self._on_frame)

    def bind(self, callback: TranscriptCallback) -> None:
        self._callback = callback

    def start_recording(self) -> None:
        with self._frames_lock:
            self._frames = []
        self._generation += 1
        self.capture.start()

    def stop_recording_and_process(self) -> None:
        self.capture.stop()
        with self._frames_lock:
            pcm = b"".join(self._frames)
            self._frames = []
        generation = self._generation
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self._transcribe, pcm)
        future.add_done_callback(lambda fut: self._deliver(fut, generation))

    def cancel(self) -> None:
        """Drop the current recording and any transcription still running."""
        self._generation += 1
        self.capture.stop()
        with self._frames_lock:
            self._frames = []

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _on_frame(self, frame: bytes) -> None:
        with self._frames_lock:
            self._frames.append(frame)

    def _ensure_engine(self) -> FasterWhisperEngine:
        with self._engine_lock:
            if self._engine is None:
                self._engine = self._engine_factory()
            return self._engine

    def _transcribe(self, pcm: bytes) -> str:
        if not pcm:
            return ""
        return self._ensure_engine().transcribe(pcm16_to_float(pcm))

    def _deliver(self, future: "asyncio.Future[str]", generation: int) -> None:
        if generation != self._generation or self._callback is None:
            return
        try:
            text = future.result()
        except Exception as exc:  # pragma: no cover - model/runtime failures
            LOGGER.exception("Transcription failed")
            event = TranscriptEvent(text="", error=str(exc))
        else:
            event = TranscriptEvent(text=text)
        self._callback(event)
