"""Text cleanup before speech synthesis."""

from __future__ import annotations

import re
import unicodedata

SPEECH_PUNCTUATION = frozenset(",.!?;:'\"-()[]{}")

_WHITESPACE_RE = re.compile(r"\s+")


def _is_speakable(ch: str) -> bool:
    if ch.isspace() or ch in SPEECH_PUNCTUATION:
        return True
    category = unicodedata.category(ch)
    return category.startswith("L") or category == "Nd"


def sanitize_for_speech(text: str | None) -> str:
    """Drop symbols (``*``, ``#``, ``@``, emoji...) so the TTS voice does not read them.

    Letters, decimal digits, whitespace and ``, . ! ? ; : ' " - ( ) [ ] { }``
    survive; whitespace runs collapse to one space and the ends are trimmed.
    """
    if not text:
        return ""
    kept = "".join(ch for ch in text if _is_speakable(ch))
    return _WHITESPACE_RE.sub(" ", kept).strip()
