"""Layout oracle for fixed-width glyphs with soft wrapping."""

from __future__ import annotations

import math

from .oracle import StyleSignature


class MonospaceOracle:
    """Counts wrapped rows instead of asking a renderer.

    Every glyph is ``font_size * char_width + letter_spacing`` wide and lines
    break on ``\\n`` or when a row is full. A terminal host uses
    ``char_width=1`` with ``font_size=1`` so widths and tops are in cells.
    """

    def __init__(self, *, char_width: float = 0.6, padding_top: float = 0.0) -> None:
        self.char_width = char_width
        self.padding_top = padding_top

    def columns(self, signature: StyleSignature, width: float) -> int:
        cell = signature.font_size * self.char_width + signature.letter_spacing
        if cell <= 0:
            return 1
        return max(1, int(width // cell))

    def measure_top(
        self, prefix_text: str, signature: StyleSignature, width: float
    ) -> float:
        rows = self.rows_before_marker(prefix_text, self.columns(signature, width))
        return self.padding_top + rows * signature.resolved_line_height

    @staticmethod
    def rows_before_marker(prefix_text: str, columns: int) -> int:
        lines = prefix_text.split("\n")
        rows = sum(max(1, math.ceil(len(line) / columns)) for line in lines[:-1])
        return rows + len(lines[-1]) // columns


__all__ = ["MonospaceOracle"]
