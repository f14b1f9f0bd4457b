"""Text-to-speech helpers using Piper."""

from __future__ import annotations

import asyncio
import threading
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from piper import PiperVoice, SynthesisConfig

from ..core.errors import EngineUnavailable
from ..core.logger import get_logger
from ..services.schemas import AudioClip

LOGGER = get_logger("audio")


@dataclass(slots=True)
class PiperConfig:
    """Piper model configuration."""

    model_path: Path
    config_path: Path
    speaker_id: int | None = None
    length_scale: float = 1.0


class PiperTTS:
    """Thin wrapper around PiperVoice."""

    def __init__(self, config: PiperConfig) -> None:
        self.config = config
        self._voice = self._load_voice(config)

    def synthesize(self, text: str) -> AudioClip:
        """Generate PCM audio for the given text."""
        pcm = bytearray()
        sample_rate = 0
        channels = 1
        for chunk, rate, chunk_channels in self.synthesize_stream(text):
            pcm.extend(chunk)
            sample_rate = rate
            channels = chunk_channels
        return AudioClip(pcm=bytes(pcm), sample_rate=sample_rate, channels=channels)

    def synthesize_stream(self, text: str) -> Iterator[tuple[bytes, int, int]]:
        """Yield audio chunks (bytes, sample_rate, channels)."""
        text = self._normalize_text(text)
        if not text.strip():
            return
        kwargs = {}
        if self.config.speaker_id is not None:
            kwargs["speaker_id"] = self.config.speaker_id
        if self.config.length_scale != 1.0:
            kwargs["length_scale"] = self.config.length_scale
        syn_config = SynthesisConfig(**kwargs) if kwargs else None
        for chunk in self._voice.synthesize(text, syn_config=syn_config):
            yield chunk.audio_int16_bytes, chunk.sample_rate, chunk.sample_channels or 1

    @staticmethod
    def _load_voice(config: PiperConfig) -> PiperVoice:
        if not config.model_path.exists():
            raise FileNotFoundError(f"Piper model not found: {config.model_path}")
        if not config.config_path.exists():
            raise FileNotFoundError(f"Piper config not found: {config.config_path}")
        return PiperVoice.load(str(config.model_path), str(config.config_path))

    @staticmethod
    def _normalize_text(text: str) -> str:
        return unicodedata.normalize("NFC", text)


class PiperSpeechEngine:
    """Speech engine loading Piper voices from ``voices_dir/<voice>``."""

    def __init__(self, voices_dir: Path, *, length_scale: float = 1.0) -> None:
        self.voices_dir = voices_dir
        self.length_scale = max(0.5, min(2.0, length_scale))
        self._voices: dict[str, PiperTTS] = {}
        self._lock = threading.Lock()

    async def synthesize(self, text: str, voice: Optional[str] = None) -> Optional[AudioClip]:
        """Synthesize off the event loop."""
        if voice is None:
            raise EngineUnavailable("No Piper voice selected")
        loop = asyncio.get_running_loop()
        clip = await loop.run_in_executor(None, self._synthesize_blocking, text, voice)
        return clip if clip.pcm else None

    def _synthesize_blocking(self, text: str, voice: str) -> AudioClip:
        return self._ensure_voice(voice).synthesize(text)

    def _ensure_voice(self, voice: str) -> PiperTTS:
        """Load the Piper voice if missing."""
        with self._lock:
            if voice in self._voices:
                return self._voices[voice]
            base = self.voices_dir / voice
            try:
                model_path = self._find_file(base, ".onnx")
                config_path = self._find_file(base, ".onnx.json")
                tts = PiperTTS(
                    PiperConfig(
                        model_path=model_path,
                        config_path=config_path,
                        length_scale=self.length_scale,
                    )
                )
            except FileNotFoundError as exc:
                raise EngineUnavailable(str(exc)) from exc
            LOGGER.info("Loaded Piper voice %s", model_path)
            self._voices[voice] = tts
            return tts

    @staticmethod
    def _find_file(root: Path, extension: str) -> Path:
        for candidate in sorted(root.rglob(f"*{extension}")):
            return candidate
        raise FileNotFoundError(f"No {extension} file found under {root}")
