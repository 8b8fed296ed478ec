"""Deterministic Markdown serialization for parsed documents."""

from __future__ import annotations

import yaml

from .model import (
    Block,
    Document,
    Heading,
    ImageBlock,
    Inline,
    ListBlock,
    Paragraph,
    Table,
    Unrecognized,
    source_to_dict,
)

_FRONT_MATTER_DELIMITER = "---\n"


def render_markdown(document: Document, *, front_matter: bool = False) -> str:
    """Render ``document`` as Markdown, optionally preceded by YAML front matter."""

    segments = [_render_block(block) for block in document.blocks]
    body = "\n\n".join(segment for segment in segments if segment)
    if body:
        body = body.rstrip() + "\n"
    if not front_matter:
        return body
    return f"{_FRONT_MATTER_DELIMITER}{_build_front_matter(document)}{_FRONT_MATTER_DELIMITER}\n{body}"


def _build_front_matter(document: Document) -> str:
    payload: dict[str, object] = {
        "id": document.id,
        "title": document.title,
        "source": source_to_dict(document.meta.source),
        "content_type": document.meta.content_type,
    }
    if document.meta.warnings:
        payload["warnings"] = list(document.meta.warnings)
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True, default_flow_style=False)


def _render_block(block: Block) -> str:
    if isinstance(block, Heading):
        text = _single_line(render_inlines(block.inlines))
        return f"{'#' * block.level} {text}" if text else ""
    if isinstance(block, Paragraph):
        return render_inlines(block.inlines)
    if isinstance(block, ListBlock):
        return _render_list(block)
    if isinstance(block, Table):
        return _render_table(block)
    if isinstance(block, ImageBlock):
        image = f"![{block.alt}]({block.source or ''})"
        caption = render_inlines(block.inlines)
        return f"{image}\n{caption}" if caption else image
    if isinstance(block, Unrecognized):
        return ""
    raise TypeError(f"Unsupported block type: {type(block)!r}")


def _render_list(block: ListBlock) -> str:
    lines: list[str] = []
    for item in block.items:
        indent = "  " * item.level
        text = render_inlines(item.inlines).replace("\n", f"\n{indent}  ")
        lines.append(f"{indent}- {text}".rstrip())
    return "\n".join(lines)


def _render_table(table: Table) -> str:
    rows = [
        [_table_cell(render_inlines(cell.inlines)) for cell in row.cells]
        for row in table.rows
    ]
    width = max((len(row) for row in rows), default=0)
    if width == 0:
        return ""
    lines: list[str] = []
    for index, row in enumerate(rows):
        padded = row + [""] * (width - len(row))
        lines.append("| " + " | ".join(padded) + " |")
        if index == 0:
            lines.append("| " + " | ".join(["---"] * width) + " |")
    return "\n".join(lines)


def render_inlines(inlines: tuple[Inline, ...]) -> str:
    return "".join(_render_inline(inline) for inline in inlines)


def _render_inline(inline: Inline) -> str:
    style = inline.style
    if style.is_plain():
        return inline.text

    # Markers must hug the text, so edge whitespace stays outside them.
    core = inline.text.strip()
    if not core:
        return inline.text
    leading = inline.text[: len(inline.text) - len(inline.text.lstrip())]
    trailing = inline.text[len(inline.text.rstrip()) :]

    if style.code:
        fence = "``" if "`" in core else "`"
        core = f"{fence}{core}{fence}"
    if style.strikethrough:
        core = f"~~{core}~~"
    if style.italic:
        core = f"*{core}*"
    if style.bold:
        core = f"**{core}**"
    if style.link:
        core = f"[{core}]({style.link})"
    return f"{leading}{core}{trailing}"


def _single_line(text: str) -> str:
    return " ".join(text.split())


def _table_cell(text: str) -> str:
    return _single_line(text).replace("|", "\\|")


__all__ = ["render_markdown", "render_inlines"]
