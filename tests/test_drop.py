from __future__ import annotations

import pytest

from mdedit_engine.drop import (
    ConvertedFile,
    DataTransfer,
    DroppedFile,
    DropResolver,
    html_to_plain_text,
    image_link_converter,
    resolve_payload,
)
from mdedit_engine.layout import LayoutContext, MonospaceOracle, StyleSignature
from mdedit_engine.session import EditorSession

LINE = StyleSignature(font_family="mono", font_size=10, line_height=10)


def make_session(content: str, timers) -> EditorSession:
    return EditorSession(
        content,
        scheduler=timers,
        oracle=MonospaceOracle(char_width=1.0),
        layout=LayoutContext(signature=LINE, width=1000),
    )


def png(name: str) -> DroppedFile:
    return DroppedFile(name=name, content_type="image/png", data=b"\x89PNG")


async def fake_convert(file: DroppedFile) -> ConvertedFile:
    if file.name.startswith("broken"):
        raise ValueError("413 payload too large")
    return ConvertedFile(reference_text=f"![{file.stem}](/uploads/{file.name})")


def test_payload_prefers_files_over_text() -> None:
    transfer = DataTransfer(files=(png("a.png"),), data={"text/plain": "ignored"})

    payload = resolve_payload(transfer)

    assert payload is not None
    assert payload.kind == "files"
    assert payload.files == (png("a.png"),)


def test_payload_prefers_plain_text_over_html() -> None:
    transfer = DataTransfer(data={"text/plain": "a\r\nb", "text/html": "<p>rich</p>"})

    payload = resolve_payload(transfer)

    assert payload is not None
    assert payload.kind == "text"
    assert payload.text == "a\nb"


def test_payload_falls_back_to_stripped_html() -> None:
    transfer = DataTransfer(data={"text/html": "<p>Tom &amp; <b>Jerry</b></p>"})

    payload = resolve_payload(transfer)

    assert payload is not None
    assert payload.text == "Tom & Jerry\n"


def test_empty_transfer_has_no_payload() -> None:
    assert resolve_payload(DataTransfer()) is None
    assert resolve_payload(DataTransfer(data={"text/plain": ""})) is None


def test_html_to_plain_text_handles_structure() -> None:
    html = (
        "<style>p{color:red}</style><h1>Title</h1>"
        "<p>one<br>two<br/>three</p>\r\n<div></div><div></div><div></div><p>end</p>"
    )

    text = html_to_plain_text(html)

    assert "color" not in text
    assert text.startswith("Title\none\ntwo\nthree\n")
    assert "\n\n\n\n" not in text
    assert text.endswith("end\n")


@pytest.mark.asyncio
async def test_drop_two_files_second_fails(timers) -> None:
    session = make_session("intro\n", timers)
    resolver = DropResolver(session, fake_convert)

    outcome = await resolver.drop(
        DataTransfer(files=(png("cat.png"), png("broken.png"))), pointer_y=15
    )

    assert session.value == (
        "intro\n"
        "![cat](/uploads/cat.png)\n"
        "<!-- upload failed: broken.png : 413 payload too large -->\n"
    )
    assert outcome.kind == "files"
    assert outcome.inserted == 2
    assert outcome.failures == ["broken.png"]
    assert len(session.history) == 3

    session.undo()
    assert session.value == "intro\n![cat](/uploads/cat.png)\n"


@pytest.mark.asyncio
async def test_drop_skips_files_that_are_not_accepted(timers) -> None:
    session = make_session("", timers)
    resolver = DropResolver(session, fake_convert)
    notes = DroppedFile(name="notes.pdf", content_type="application/pdf")

    outcome = await resolver.drop(DataTransfer(files=(notes, png("a.png"))))

    assert session.value == "![a](/uploads/a.png)\n"
    assert outcome.inserted == 1


@pytest.mark.asyncio
async def test_drop_without_converter_inserts_error_marker(timers) -> None:
    session = make_session("", timers)
    resolver = DropResolver(session)

    outcome = await resolver.drop(DataTransfer(files=(png("a.png"),)))

    assert outcome.failures == ["a.png"]
    assert session.value.startswith("<!-- upload failed: a.png")


@pytest.mark.asyncio
async def test_text_drop_lands_at_pointer_with_trailing_newline(timers) -> None:
    session = make_session("line1\nline2", timers)
    resolver = DropResolver(session)

    outcome = await resolver.drop(
        DataTransfer(data={"text/plain": "dropped"}), pointer_y=5
    )

    assert outcome.index == 5
    assert session.value == "line1dropped\n\nline2"
    assert session.selection.start == 5 + len("dropped\n")
    assert len(session.history) == 2


@pytest.mark.asyncio
async def test_text_drop_keeps_existing_trailing_newline(timers) -> None:
    session = make_session("", timers)
    resolver = DropResolver(session)

    await resolver.drop(DataTransfer(data={"text/plain": "block\n"}))

    assert session.value == "block\n"


@pytest.mark.asyncio
async def test_drag_over_tracks_indicator_and_drop_reuses_last_sample(timers) -> None:
    session = make_session("aaaa\nbbbb\ncccc", timers)
    resolver = DropResolver(session)

    indicator = resolver.drag_over(15)
    assert indicator.index == 9
    assert indicator.line_top == 10

    await resolver.drop(DataTransfer(data={"text/plain": "X"}))

    assert session.value == "aaaa\nbbbbX\n\ncccc"
    assert resolver.indicator is None


@pytest.mark.asyncio
async def test_drop_flushes_pending_typing_first(timers) -> None:
    session = make_session("", timers)
    session.type_text("a")
    resolver = DropResolver(session)

    await resolver.drop(DataTransfer(data={"text/plain": "b"}))

    assert session.value == "ab\n"
    session.undo()
    assert session.value == "a"


@pytest.mark.asyncio
async def test_image_link_converter_builds_markdown_reference() -> None:
    async def upload(file: DroppedFile) -> str:
        return f"https://cdn.example/{file.name}"

    convert = image_link_converter(upload)

    result = await convert(png("holiday.photo.jpg"))

    assert result.reference_text == "![holiday.photo](https://cdn.example/holiday.photo.jpg)"


def test_html_list_drops_indentation_between_tags() -> None:
    html = "<ul>\n  <li>a</li>\n  <li>b</li>\n</ul>"

    assert html_to_plain_text(html) == "a\nb\n\n"


def test_html_keeps_spaces_between_inline_elements() -> None:
    assert html_to_plain_text("<p><b>Tom</b> <i>Jerry</i></p>") == "Tom Jerry\n"
