"""Tests for Markdown rendering."""

from __future__ import annotations

import yaml

from src.file_parser.markdown import render_markdown
from src.file_parser.model import (
    Document,
    Heading,
    ImageBlock,
    InlineStyle,
    ListBlock,
    ListItem,
    Meta,
    Paragraph,
    Table,
    TableCell,
    TableRow,
    TextInline,
    Unrecognized,
    UploadedSource,
)


def _document(*blocks, warnings: tuple[str, ...] = ()) -> Document:
    meta = Meta(source=UploadedSource("a.txt"), content_type="text/plain", warnings=warnings)
    return Document(id="doc-1", title="T", meta=meta, blocks=tuple(blocks))


def _cell(text: str) -> TableCell:
    return TableCell((TextInline(text),))


def test_render_markdown_covers_every_block_kind() -> None:
    document = _document(
        Heading(level=2, inlines=(TextInline("Intro"),)),
        Paragraph(
            (
                TextInline("Plain "),
                TextInline("bold", InlineStyle(bold=True)),
                TextInline(" and "),
                TextInline("code", InlineStyle(code=True)),
            )
        ),
        ListBlock(items=(ListItem((TextInline("one"),)), ListItem((TextInline("nested"),), level=1))),
        Table(rows=(TableRow((_cell("A"), _cell("B"))), TableRow((_cell("1"), _cell("2"))))),
        ImageBlock(alt="diagram", source="img.png"),
        Unrecognized(content_type="application/octet-stream"),
    )

    assert render_markdown(document) == (
        "## Intro\n"
        "\n"
        "Plain **bold** and `code`\n"
        "\n"
        "- one\n"
        "  - nested\n"
        "\n"
        "| A | B |\n"
        "| --- | --- |\n"
        "| 1 | 2 |\n"
        "\n"
        "![diagram](img.png)\n"
    )


def test_inline_styles_compose_with_edge_whitespace_outside_markers() -> None:
    document = _document(
        Paragraph(
            (
                TextInline("bold ", InlineStyle(bold=True)),
                TextInline("site", InlineStyle(italic=True, link="https://example.com")),
                TextInline(" "),
                TextInline("gone", InlineStyle(strikethrough=True)),
                TextInline(" under", InlineStyle(underline=True)),
            )
        )
    )

    assert render_markdown(document) == "**bold** [*site*](https://example.com) ~~gone~~ under\n"


def test_paragraph_text_ends_with_single_newline() -> None:
    document = _document(Paragraph((TextInline("Hello, HyperSpot!"),)))

    assert render_markdown(document) == "Hello, HyperSpot!\n"


def test_empty_document_renders_empty_string() -> None:
    assert render_markdown(_document(Paragraph())) == ""


def test_table_cells_escape_pipes_and_pad_short_rows() -> None:
    document = _document(Table(rows=(TableRow((_cell("a|b"), _cell("c"))), TableRow((_cell("d"),)))))

    assert render_markdown(document) == "| a\\|b | c |\n| --- | --- |\n| d |  |\n"


def test_front_matter_carries_document_identity() -> None:
    document = _document(Paragraph((TextInline("Body"),)), warnings=("page 2 skipped",))

    rendered = render_markdown(document, front_matter=True)

    assert rendered.startswith("---\n")
    _, header, body = rendered.split("---\n", 2)
    front = yaml.safe_load(header)
    assert front == {
        "id": "doc-1",
        "title": "T",
        "source": {"type": "uploaded", "original_name": "a.txt"},
        "content_type": "text/plain",
        "warnings": ["page 2 skipped"],
    }
    assert body == "\nBody\n"


def test_rendering_is_deterministic() -> None:
    document = _document(
        Heading(level=1, inlines=(TextInline("Same"),)),
        Paragraph((TextInline("text", InlineStyle(bold=True, italic=True)),)),
    )

    assert render_markdown(document) == render_markdown(document)
    assert render_markdown(document) == "# Same\n\n***text***\n"
