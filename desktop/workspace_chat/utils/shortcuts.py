"""Keyboard shortcut helpers."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterable

from ..config.settings import ShortcutSettings


@dataclass(slots=True)
class Shortcut:
    """Keyboard shortcut descriptor."""

    name: str
    sequence: str


def validate_shortcut(sequence: str, existing: Iterable[str]) -> bool:
    """Return True when the shortcut does not conflict with existing ones."""
    normalized = sequence.strip().lower()
    return normalized not in (s.strip().lower() for s in existing)


def shortcut_table(settings: ShortcutSettings) -> list[Shortcut]:
    """List the configured shortcuts in declaration order."""
    return [Shortcut(name=item.name, sequence=getattr(settings, item.name)) for item in fields(settings)]


def find_conflicts(shortcuts: Iterable[Shortcut]) -> list[tuple[str, str]]:
    """Return (kept, rejected) name pairs for shortcuts bound to the same keys."""
    seen: dict[str, str] = {}
    conflicts: list[tuple[str, str]] = []
    for shortcut in shortcuts:
        if not shortcut.sequence.strip():
            continue
        if not validate_shortcut(shortcut.sequence, seen):
            conflicts.append((seen[shortcut.sequence.strip().lower()], shortcut.name))
            continue
        seen[shortcut.sequence.strip().lower()] = shortcut.name
    return conflicts
