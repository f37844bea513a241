"""Textual host integration; the demo app lives in ``.app`` and needs ``textual``."""

from .controller import EditorUIHooks, TextualEditorAdapter

__all__ = ["EditorUIHooks", "TextualEditorAdapter"]
