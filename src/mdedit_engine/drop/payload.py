"""Drag-and-drop payload types and text extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from pathlib import PurePath
from typing import Literal, Mapping, Optional, Sequence, Tuple, Union

PLAIN_TEXT = "text/plain"
HTML_TEXT = "text/html"

_BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "div", "dl", "dt", "dd",
        "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6",
        "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section",
        "table", "tr", "ul",
    }
)
_SKIPPED_TAGS = frozenset({"script", "style", "template", "head", "title"})


@dataclass(frozen=True, slots=True)
class DroppedFile:
    name: str
    content_type: str = "application/octet-stream"
    data: bytes = b""

    @property
    def stem(self) -> str:
        return PurePath(self.name).stem or self.name


@dataclass(frozen=True, slots=True)
class DataTransfer:
    """What the host's drop event carried: files and/or typed string data."""

    files: Sequence[DroppedFile] = ()
    data: Mapping[str, str] = field(default_factory=dict)

    def get_data(self, mime_type: str) -> str:
        return self.data.get(mime_type, "") or ""

    @property
    def has_files(self) -> bool:
        return bool(self.files)

    @property
    def has_text(self) -> bool:
        return bool(self.get_data(PLAIN_TEXT) or self.get_data(HTML_TEXT))


@dataclass(frozen=True, slots=True)
class DropPayload:
    kind: Literal["files", "text"]
    content: Union[Tuple[DroppedFile, ...], str]

    @property
    def files(self) -> Tuple[DroppedFile, ...]:
        return self.content if isinstance(self.content, tuple) else ()

    @property
    def text(self) -> str:
        return self.content if isinstance(self.content, str) else ""


class _TextExtractor(HTMLParser):
    """Collects text; whitespace-only runs touching a block edge are dropped."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []
        self._skip_depth = 0
        self._pending_space = ""
        self._at_block_edge = True

    def handle_starttag(self, tag, attrs):
        if tag in _SKIPPED_TAGS:
            self._skip_depth += 1
        elif tag == "br":
            self._block_edge(newline=True)
        elif tag in _BLOCK_TAGS:
            self._block_edge(newline=False)

    def handle_endtag(self, tag):
        if tag in _SKIPPED_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
        elif tag in _BLOCK_TAGS:
            self._block_edge(newline=True)

    def handle_data(self, data):
        if self._skip_depth:
            return
        if not data.strip():
            if not self._at_block_edge:
                self._pending_space += data
            return
        self.parts.append(self._pending_space)
        self.parts.append(data)
        self._pending_space = ""
        self._at_block_edge = False

    def _block_edge(self, *, newline: bool) -> None:
        self._pending_space = ""
        self._at_block_edge = True
        if newline:
            self.parts.append("\n")


def normalize_newlines(text: str) -> str:
    return re.sub(r"\r\n?", "\n", text)


def html_to_plain_text(html: str) -> str:
    """Strip markup, keep block boundaries as line breaks, cap blank runs at two."""

    parser = _TextExtractor()
    parser.feed(html)
    parser.close()
    text = normalize_newlines("".join(parser.parts))
    return re.sub(r"\n{4,}", "\n\n\n", text)


def extract_text(transfer: DataTransfer) -> str:
    plain = transfer.get_data(PLAIN_TEXT)
    if plain:
        return normalize_newlines(plain)
    html = transfer.get_data(HTML_TEXT)
    if html:
        return html_to_plain_text(html)
    return ""


def resolve_payload(transfer: DataTransfer) -> Optional[DropPayload]:
    """Files win over text; ``None`` when the transfer carries nothing usable."""

    if transfer.has_files:
        return DropPayload(kind="files", content=tuple(transfer.files))
    text = extract_text(transfer)
    if text:
        return DropPayload(kind="text", content=text)
    return None


__all__ = [
    "DataTransfer",
    "DropPayload",
    "DroppedFile",
    "HTML_TEXT",
    "PLAIN_TEXT",
    "extract_text",
    "html_to_plain_text",
    "normalize_newlines",
    "resolve_payload",
]
