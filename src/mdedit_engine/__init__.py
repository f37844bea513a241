"""UI-agnostic editing history and layout estimation engine for Markdown editors."""

__all__ = [
    "adapters",
    "drop",
    "history",
    "keymaps",
    "layout",
    "runtime",
    "session",
]

__version__ = "0.1.0"
