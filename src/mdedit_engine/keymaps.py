"""Keyboard shortcuts the editing session handles itself."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

_MODIFIER_ALIASES = {"control": "ctrl", "cmd": "meta", "command": "meta", "option": "alt"}

# Strokes an IME may still be consuming while composing.
COMPOSITION_SENSITIVE = frozenset({"newline", "backspace", "delete_forward"})


def _normalize_modifiers(modifiers: Iterable[str]) -> tuple[str, ...]:
    values = []
    for modifier in modifiers:
        cleaned = modifier.strip().lower()
        if cleaned:
            values.append(_MODIFIER_ALIASES.get(cleaned, cleaned))
    return tuple(sorted(dict.fromkeys(values)))


@dataclass(frozen=True, slots=True)
class KeyStroke:
    """Single normalized key press."""

    key: str
    modifiers: tuple[str, ...] = ()
    composing: bool = False

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("key cannot be empty")
        object.__setattr__(self, "key", self.key.lower())
        object.__setattr__(self, "modifiers", _normalize_modifiers(self.modifiers))

    @property
    def token(self) -> str:
        if self.modifiers:
            return "+".join((*self.modifiers, self.key))
        return self.key

    @classmethod
    def parse(cls, token: str, *, composing: bool = False) -> "KeyStroke":
        """Parse ``"ctrl+shift+z"`` style tokens; the last part is the key."""

        parts = [part for part in token.split("+") if part]
        if not parts:
            raise ValueError("token cannot be empty")
        return cls(parts[-1], tuple(parts[:-1]), composing=composing)


DEFAULT_SHORTCUTS: Mapping[str, str] = MappingProxyType(
    {
        "ctrl+z": "undo",
        "meta+z": "undo",
        "ctrl+y": "redo",
        "meta+y": "redo",
        "ctrl+shift+z": "redo",
        "meta+shift+z": "redo",
        "tab": "indent",
        "enter": "newline",
        "backspace": "backspace",
        "delete": "delete_forward",
    }
)


def resolve_shortcut(
    stroke: KeyStroke, shortcuts: Mapping[str, str] = DEFAULT_SHORTCUTS
) -> Optional[str]:
    """Return the session action bound to ``stroke``, if any."""

    action = shortcuts.get(stroke.token)
    if action is None:
        return None
    if stroke.composing and action in COMPOSITION_SENSITIVE:
        return None
    return action


__all__ = ["COMPOSITION_SENSITIVE", "DEFAULT_SHORTCUTS", "KeyStroke", "resolve_shortcut"]
