"""DOCX parser implementation using python-docx."""

from __future__ import annotations

import io
import zlib
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator
from zipfile import BadZipFile

from docx import Document as load_docx
from docx.document import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.ns import qn
from docx.table import Table as DocxTable
from docx.text.hyperlink import Hyperlink as DocxHyperlink
from docx.text.paragraph import Paragraph as DocxParagraph
from docx.text.run import Run as DocxRun
from lxml.etree import XMLSyntaxError

from .base import BackendKind, DocumentBuilder, ParseHints
from .errors import CorruptDocumentError
from .model import (
    PLAIN,
    Document,
    Heading,
    Inline,
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

_CODE_FONTS = frozenset({"courier new", "courier", "consolas", "lucida console", "menlo", "monaco"})


@dataclass(slots=True)
class DocxParser:
    kind: BackendKind = BackendKind.DOCX

    def parse(self, data: bytes, hints: ParseHints) -> Document:
        builder = DocumentBuilder(hints)
        if not data:
            return builder.build()

        try:
            docx_document = load_docx(io.BytesIO(data))
        except (
            PackageNotFoundError,
            BadZipFile,
            XMLSyntaxError,
            zlib.error,
            EOFError,
            KeyError,
            ValueError,
        ) as exc:
            raise CorruptDocumentError(f"Failed to read DOCX package: {exc}") from exc

        numbering = _NumberingFormats(docx_document)
        pending = _PendingList()
        paragraph_count = 0
        table_count = 0

        for element in _iter_document_blocks(docx_document):
            hints.checkpoint()
            if isinstance(element, DocxTable):
                table_count += 1
                builder.extend_blocks(pending.drain())
                table = _convert_table(element)
                if table is not None:
                    builder.add_block(table)
                else:
                    builder.warn("Encountered empty table while parsing DOCX")
                continue

            paragraph_count += 1
            inlines = _paragraph_inlines(element)
            list_info = _list_info(element, numbering)
            if list_info is not None:
                level, ordered = list_info
                builder.extend_blocks(pending.add(ListItem(inlines=inlines, level=level), ordered))
                continue

            builder.extend_blocks(pending.drain())
            if not inlines:
                continue
            heading_level = _detect_heading_level(element)
            if heading_level:
                builder.add_block(Heading(level=heading_level, inlines=inlines))
            else:
                builder.add_block(Paragraph(inlines=inlines))

        builder.extend_blocks(pending.drain())

        builder.properties.update(_extract_core_properties(docx_document))
        builder.properties.update({"paragraph_count": paragraph_count, "table_count": table_count})
        if not builder.blocks:
            builder.warn("DOCX file contained no extractable content")
        return builder.build()


class _PendingList:
    """Group consecutive list paragraphs into a single list block."""

    def __init__(self) -> None:
        self.items: list[ListItem] = []
        self.ordered = False

    def add(self, item: ListItem, ordered: bool) -> list[ListBlock]:
        flushed: list[ListBlock] = []
        if self.items and ordered != self.ordered and item.level == 0:
            flushed = self.drain()
        if not self.items:
            self.ordered = ordered
        self.items.append(item)
        return flushed

    def drain(self) -> list[ListBlock]:
        if not self.items:
            return []
        block = ListBlock(items=tuple(self.items), ordered=self.ordered)
        self.items = []
        return [block]


class _NumberingFormats:
    """Resolve whether a numbering instance renders as bullets or numbers."""

    def __init__(self, document: DocxDocument) -> None:
        try:
            self._element = document.part.numbering_part.element
        except (KeyError, NotImplementedError):
            self._element = None

    def is_ordered(self, num_id: int, level: int) -> bool:
        if self._element is None:
            return False
        abstract_ids = self._element.xpath(f'./w:num[@w:numId="{num_id}"]/w:abstractNumId/@w:val')
        if not abstract_ids:
            return False
        formats = self._element.xpath(
            f'./w:abstractNum[@w:abstractNumId="{abstract_ids[0]}"]'
            f'/w:lvl[@w:ilvl="{level}"]/w:numFmt/@w:val'
        )
        return bool(formats) and formats[0] not in {"bullet", "none"}


def _iter_document_blocks(doc: DocxDocument) -> Iterator[DocxParagraph | DocxTable]:
    """Yield block-level elements preserving document order."""

    body = doc.element.body
    for child in body.iterchildren():
        if child.tag == qn("w:p"):
            yield DocxParagraph(child, doc)
        elif child.tag == qn("w:tbl"):
            yield DocxTable(child, doc)


def _paragraph_inlines(paragraph: DocxParagraph) -> tuple[Inline, ...]:
    spans: list[TextInline] = []
    for item in paragraph.iter_inner_content():
        if isinstance(item, DocxHyperlink):
            link = item.url or None
            for run in item.runs:
                _append_span(spans, run.text, _run_style(run, link=link))
        elif isinstance(item, DocxRun):
            _append_span(spans, item.text, _run_style(item))
    return _strip_edges(spans)


def _append_span(spans: list[TextInline], text: str, style: InlineStyle) -> None:
    if not text:
        return
    if spans and spans[-1].style == style:
        previous = spans.pop()
        text = previous.text + text
    spans.append(TextInline(text, style))


def _strip_edges(spans: list[TextInline]) -> tuple[Inline, ...]:
    if spans:
        spans[0] = TextInline(spans[0].text.lstrip(), spans[0].style)
        spans[-1] = TextInline(spans[-1].text.rstrip(), spans[-1].style)
    return tuple(span for span in spans if span.text)


def _run_style(run: DocxRun, *, link: str | None = None) -> InlineStyle:
    font = run.font
    font_name = (font.name or "").lower()
    style_name = (getattr(run.style, "name", "") or "").lower()
    style = InlineStyle(
        bold=bool(run.bold),
        italic=bool(run.italic),
        underline=bool(run.underline),
        strikethrough=bool(font.strike or font.double_strike),
        code=font_name in _CODE_FONTS or "code" in style_name,
        link=link,
    )
    return PLAIN if style == PLAIN else style


def _detect_heading_level(paragraph: DocxParagraph) -> int | None:
    style = paragraph.style
    if style is None or not style.name:
        return None
    name = style.name.lower()
    if name == "title":
        return 1
    if name.startswith("heading"):
        parts = name.split()
        if len(parts) >= 2 and parts[1].isdigit():
            level = int(parts[1])
            if 1 <= level <= 6:
                return level
    return None


def _list_info(paragraph: DocxParagraph, numbering: _NumberingFormats) -> tuple[int, bool] | None:
    """Return ``(level, ordered)`` when the paragraph is a list item."""

    p_pr = paragraph._p.pPr
    num_pr = p_pr.numPr if p_pr is not None else None
    if num_pr is not None and num_pr.numId is not None:
        num_id = num_pr.numId.val
        if num_id == 0:
            return None
        level = num_pr.ilvl.val if num_pr.ilvl is not None else 0
        return level, numbering.is_ordered(num_id, level)

    for name in _style_lineage(paragraph):
        if "list" in name:
            return _style_list_level(name), "number" in name
    return None


def _style_lineage(paragraph: DocxParagraph) -> Iterator[str]:
    style = paragraph.style
    while style is not None:
        name = (getattr(style, "name", "") or "").lower()
        if name:
            yield name
        style = getattr(style, "base_style", None)


def _style_list_level(name: str) -> int:
    last = name.split()[-1]
    if last.isdigit():
        return max(int(last) - 1, 0)
    return 0


def _convert_table(table: DocxTable) -> Table | None:
    rows: list[TableRow] = []
    for row in table.rows:
        cells: list[TableCell] = []
        previous = None
        for cell in row.cells:
            # Horizontally merged cells repeat the same underlying element.
            if previous is not None and cell._tc is previous:
                continue
            previous = cell._tc
            cells.append(TableCell(inlines=_cell_inlines(cell)))
        rows.append(TableRow(cells=tuple(cells)))
    if not rows:
        return None
    return Table(rows=tuple(rows))


def _cell_inlines(cell: Any) -> tuple[Inline, ...]:
    spans: list[TextInline] = []
    for paragraph in cell.paragraphs:
        inlines = _paragraph_inlines(paragraph)
        if not inlines:
            continue
        if spans:
            _append_span(spans, "\n", PLAIN)
        for inline in inlines:
            _append_span(spans, inline.text, inline.style)
    return tuple(spans)


def _extract_core_properties(doc: DocxDocument) -> dict[str, Any]:
    props = doc.core_properties
    mapping = {
        "title": props.title,
        "subject": props.subject,
        "author": props.author,
        "category": props.category,
        "comments": props.comments,
        "created": getattr(props, "created", None),
        "modified": getattr(props, "modified", None),
        "keywords": props.keywords,
    }
    sanitized: dict[str, Any] = {}
    for key, value in mapping.items():
        if value in (None, ""):
            continue
        if isinstance(value, datetime):
            sanitized[key] = value.isoformat()
        else:
            sanitized[key] = value
    return sanitized


docx_parser = DocxParser()
registry.register_parser(docx_parser, replace=True)

__all__ = ["DocxParser", "docx_parser"]
