"""HTML parser built on BeautifulSoup's tolerant tree builder."""

from __future__ import annotations

from dataclasses import dataclass, replace

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from . import utils
from .base import BackendKind, DocumentBuilder, ParseHints
from .model import (
    PLAIN,
    Block,
    Document,
    Heading,
    ImageBlock,
    InlineStyle,
    ListBlock,
    ListItem,
    Paragraph,
    Table,
    TableCell,
    TableRow,
    TextInline,
)
from .registry import registry

_SKIPPED_TAGS = frozenset(
    {"script", "style", "head", "title", "meta", "link", "noscript", "template", "iframe", "object"}
)
_HEADING_LEVELS = {f"h{level}": level for level in range(1, 7)}
_LIST_TAGS = frozenset({"ul", "ol"})
_CONTAINER_TAGS = frozenset(
    {
        "p",
        "div",
        "section",
        "article",
        "main",
        "header",
        "footer",
        "aside",
        "nav",
        "blockquote",
        "pre",
        "figure",
        "figcaption",
        "address",
        "form",
        "fieldset",
        "center",
        "dl",
        "dt",
        "dd",
        "body",
        "html",
    }
)
_BLOCK_TAGS = _CONTAINER_TAGS | _LIST_TAGS | frozenset(_HEADING_LEVELS) | {"table", "hr"}
_IGNORED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


@dataclass(slots=True)
class HtmlParser:
    kind: BackendKind = BackendKind.HTML

    def parse(self, data: bytes, hints: ParseHints) -> Document:
        builder = DocumentBuilder(hints)
        if not data.strip():
            return builder.build()

        soup = BeautifulSoup(data, "html.parser")
        if soup.title is not None and soup.title.string:
            builder.properties["html_title"] = soup.title.string.strip()

        root = soup.body or soup
        walker = _BlockWalker(builder, hints)
        walker.walk(root)
        walker.flush()
        return builder.build()


class _InlineCollector:
    """Accumulate styled text with browser-like whitespace collapsing."""

    def __init__(self, *, preserve_whitespace: bool = False) -> None:
        self.preserve_whitespace = preserve_whitespace
        self.spans: list[TextInline] = []
        self.images: list[ImageBlock] = []

    def add_text(self, text: str, style: InlineStyle) -> None:
        if not self.preserve_whitespace:
            text = utils.collapse_whitespace(text)
            if text.startswith(" ") and self._ends_with_space():
                text = text[1:]
        if not text:
            return
        if self.spans and self.spans[-1].style == style:
            previous = self.spans.pop()
            text = previous.text + text
        self.spans.append(TextInline(text, style))

    def newline(self) -> None:
        if not self.spans:
            return
        last = self.spans.pop()
        self.spans.append(TextInline(last.text.rstrip(" ") + "\n", last.style))

    def _ends_with_space(self) -> bool:
        if not self.spans:
            return True
        return self.spans[-1].text.endswith((" ", "\n"))

    def finish(self) -> tuple[TextInline, ...]:
        spans = list(self.spans)
        if spans and not self.preserve_whitespace:
            spans[0] = TextInline(spans[0].text.lstrip(), spans[0].style)
            spans[-1] = TextInline(spans[-1].text.rstrip(), spans[-1].style)
        elif spans:
            spans[0] = TextInline(spans[0].text.lstrip("\n"), spans[0].style)
            spans[-1] = TextInline(spans[-1].text.rstrip("\n"), spans[-1].style)
        return tuple(span for span in spans if span.text)


class _BlockWalker:
    def __init__(self, builder: DocumentBuilder, hints: ParseHints) -> None:
        self.builder = builder
        self.hints = hints
        self.pending = _InlineCollector()

    def walk(self, element: Tag) -> None:
        for child in element.children:
            if isinstance(child, _IGNORED_STRINGS):
                continue
            if isinstance(child, NavigableString):
                self.pending.add_text(str(child), PLAIN)
                continue
            if not isinstance(child, Tag):
                continue
            self._visit(child)

    def _visit(self, tag: Tag) -> None:
        name = tag.name.lower()
        if name in _SKIPPED_TAGS:
            return
        if name == "br":
            self.pending.newline()
            return
        if name not in _BLOCK_TAGS and name != "img":
            _collect_inlines(tag, PLAIN, self.pending)
            return

        self.flush()
        self.hints.checkpoint()
        if name in _HEADING_LEVELS:
            inlines = _inlines_of(tag)
            self.builder.add_block(Heading(level=_HEADING_LEVELS[name], inlines=inlines.finish()))
            self.builder.extend_blocks(inlines.images)
        elif name in _LIST_TAGS:
            items = _collect_list_items(tag, level=0)
            if items:
                self.builder.add_block(ListBlock(items=tuple(items), ordered=name == "ol"))
        elif name == "table":
            table = _collect_table(tag)
            if table is not None:
                self.builder.add_block(table)
        elif name == "img":
            self.builder.add_block(_image_block(tag))
        elif name == "hr":
            return
        elif tag.find(list(_BLOCK_TAGS)) is not None:
            self.walk(tag)
            self.flush()
        else:
            inlines = _inlines_of(tag, preserve_whitespace=name == "pre")
            self._emit_paragraph(inlines)

    def flush(self) -> None:
        collector = self.pending
        self.pending = _InlineCollector()
        self._emit_paragraph(collector)

    def _emit_paragraph(self, collector: _InlineCollector) -> None:
        inlines = collector.finish()
        if inlines:
            self.builder.add_block(Paragraph(inlines=inlines))
        self.builder.extend_blocks(collector.images)


def _inlines_of(
    tag: Tag,
    *,
    preserve_whitespace: bool = False,
    skip: frozenset[str] = frozenset(),
) -> _InlineCollector:
    collector = _InlineCollector(preserve_whitespace=preserve_whitespace)
    _collect_inlines(tag, PLAIN, collector, skip=skip, include_self=False)
    return collector


def _collect_inlines(
    tag: Tag,
    style: InlineStyle,
    collector: _InlineCollector,
    *,
    skip: frozenset[str] = frozenset(),
    include_self: bool = True,
) -> None:
    if include_self:
        style = _apply_style(tag, style)
    for child in tag.children:
        if isinstance(child, _IGNORED_STRINGS):
            continue
        if isinstance(child, NavigableString):
            collector.add_text(str(child), style)
            continue
        if not isinstance(child, Tag):
            continue
        name = child.name.lower()
        if name in _SKIPPED_TAGS or name in skip:
            continue
        if name == "br":
            collector.newline()
        elif name == "img":
            collector.images.append(_image_block(child))
        else:
            _collect_inlines(child, style, collector, skip=skip)


def _apply_style(tag: Tag, style: InlineStyle) -> InlineStyle:
    name = tag.name.lower()
    if name in {"b", "strong"}:
        return replace(style, bold=True)
    if name in {"i", "em", "cite", "var", "dfn"}:
        return replace(style, italic=True)
    if name in {"u", "ins"}:
        return replace(style, underline=True)
    if name in {"s", "strike", "del"}:
        return replace(style, strikethrough=True)
    if name in {"code", "kbd", "samp", "tt"}:
        return replace(style, code=True)
    if name == "a":
        href = tag.get("href")
        if isinstance(href, str) and href.strip():
            return replace(style, link=href.strip())
    return style


def _collect_list_items(tag: Tag, *, level: int) -> list[ListItem]:
    items: list[ListItem] = []
    for child in tag.children:
        if not isinstance(child, Tag):
            continue
        name = child.name.lower()
        if name in _LIST_TAGS:
            items.extend(_collect_list_items(child, level=level + 1))
            continue
        if name != "li":
            continue
        collector = _inlines_of(child, skip=_LIST_TAGS)
        items.append(ListItem(inlines=collector.finish(), level=level))
        for nested in child.find_all(list(_LIST_TAGS), recursive=False):
            items.extend(_collect_list_items(nested, level=level + 1))
    return items


def _collect_table(tag: Tag) -> Table | None:
    rows: list[TableRow] = []
    for row in tag.find_all("tr"):
        if row.find_parent("table") is not tag:
            continue
        cells = tuple(
            TableCell(inlines=_inlines_of(cell).finish())
            for cell in row.find_all(["td", "th"], recursive=False)
        )
        if cells:
            rows.append(TableRow(cells=cells))
    if not rows:
        return None
    return Table(rows=tuple(rows))


def _image_block(tag: Tag) -> Block:
    alt = tag.get("alt")
    src = tag.get("src")
    return ImageBlock(
        alt=alt.strip() if isinstance(alt, str) else "",
        source=src.strip() if isinstance(src, str) and src.strip() else None,
    )


html_parser = HtmlParser()
registry.register_parser(html_parser, replace=True)

__all__ = ["HtmlParser", "html_parser"]
