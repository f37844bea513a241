"""Insertion-point tracking and commit logic for drops onto the editor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional

from mdedit_engine.runtime import telemetry

from .payload import DataTransfer, DroppedFile, resolve_payload

if TYPE_CHECKING:  # pragma: no cover
    from mdedit_engine.session import EditorSession


@dataclass(frozen=True, slots=True)
class ConvertedFile:
    reference_text: str


Converter = Callable[[DroppedFile], Awaitable[ConvertedFile]]
Uploader = Callable[[DroppedFile], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class InsertionIndicator:
    index: int
    line_top: Optional[float]


@dataclass(slots=True)
class DropOutcome:
    kind: Optional[str]
    index: int
    inserted: int = 0
    failures: List[str] = field(default_factory=list)


def accept_images(file: DroppedFile) -> bool:
    return file.content_type.startswith("image/")


def image_link_converter(upload: Uploader) -> Converter:
    """Turn an ``upload(file) -> url`` coroutine into a Markdown image converter."""

    async def convert(file: DroppedFile) -> ConvertedFile:
        url = await upload(file)
        return ConvertedFile(reference_text=f"![{file.stem}]({url})")

    return convert


def failure_marker(file: DroppedFile, reason: str) -> str:
    return f"<!-- upload failed: {file.name} : {reason} -->\n"


def _with_trailing_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


class DropResolver:
    """Tracks the pointer during a drag and inserts the payload on drop."""

    def __init__(
        self,
        session: "EditorSession",
        convert: Optional[Converter] = None,
        *,
        accept: Callable[[DroppedFile], bool] = accept_images,
        logger_name: Optional[str] = None,
    ) -> None:
        self.session = session
        self.convert = convert
        self.accept = accept
        self._logger_name = logger_name
        self._last_pointer_y: Optional[float] = None
        self.indicator: Optional[InsertionIndicator] = None

    def resolve_insertion_point(self, pointer_y: float) -> int:
        return self.session.offset_at_y(pointer_y)

    def drag_over(self, pointer_y: float) -> InsertionIndicator:
        index = self.resolve_insertion_point(pointer_y)
        self._last_pointer_y = pointer_y
        self.indicator = InsertionIndicator(
            index=index, line_top=self.session.line_top_at_offset(index)
        )
        return self.indicator

    def drag_leave(self) -> None:
        self._last_pointer_y = None
        self.indicator = None

    async def drop(
        self, transfer: DataTransfer, pointer_y: Optional[float] = None
    ) -> DropOutcome:
        """Insert the payload at the pointer, one history entry per inserted block."""

        y = pointer_y if pointer_y is not None else self._last_pointer_y
        self.drag_leave()
        if y is not None:
            self.session.set_selection(self.resolve_insertion_point(y))
        index = self.session.selection.start

        payload = resolve_payload(transfer)
        outcome = DropOutcome(kind=payload.kind if payload else None, index=index)
        if payload is None:
            return outcome

        with telemetry.span(
            "drop",
            "commit",
            logger_name=self._logger_name,
            kind=payload.kind,
            index=index,
        ):
            if payload.kind == "files":
                await self._insert_files(payload.files, outcome)
            else:
                self.session.insert_at_cursor(_with_trailing_newline(payload.text))
                outcome.inserted = 1

        telemetry.record_event(
            "drop.commit",
            data={
                "kind": outcome.kind,
                "inserted": outcome.inserted,
                "failures": len(outcome.failures),
            },
            logger_name=self._logger_name,
        )
        return outcome

    async def _insert_files(
        self, files: tuple[DroppedFile, ...], outcome: DropOutcome
    ) -> None:
        for file in files:
            if not self.accept(file):
                continue
            try:
                if self.convert is None:
                    raise RuntimeError("no converter configured")
                converted = await self.convert(file)
                text = _with_trailing_newline(converted.reference_text)
            except Exception as exc:
                telemetry.record_event(
                    "drop.convert_failed",
                    level="warning",
                    data={"file": file.name, "reason": str(exc)},
                    logger_name=self._logger_name,
                )
                outcome.failures.append(file.name)
                text = failure_marker(file, str(exc))
            self.session.insert_at_cursor(text)
            outcome.inserted += 1


__all__ = [
    "ConvertedFile",
    "Converter",
    "DropOutcome",
    "DropResolver",
    "InsertionIndicator",
    "Uploader",
    "accept_images",
    "failure_marker",
    "image_link_converter",
]
