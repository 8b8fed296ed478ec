"""Canonical document model shared by every parser backend."""

from __future__ import annotations

import os
import time
import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Union


def new_document_id() -> str:
    """Return a UUIDv7 string; lexical order follows creation time."""

    timestamp_ms = time.time_ns() // 1_000_000
    random_bits = int.from_bytes(os.urandom(10), "big")
    value = (timestamp_ms & 0xFFFF_FFFF_FFFF) << 80
    value |= 0x7 << 76
    value |= ((random_bits >> 62) & 0xFFF) << 64
    value |= 0b10 << 62
    value |= random_bits & ((1 << 62) - 1)
    return str(uuid.UUID(int=value))


@dataclass(frozen=True, slots=True)
class UploadedSource:
    original_name: str


@dataclass(frozen=True, slots=True)
class LocalPathSource:
    path: str


Source = Union[UploadedSource, LocalPathSource]


@dataclass(frozen=True, slots=True)
class InlineStyle:
    """Formatting attributes applied to an inline span."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    code: bool = False
    link: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return only the attributes that are applied."""
        applied: dict[str, Any] = {}
        for name in ("bold", "italic", "underline", "strikethrough", "code"):
            if getattr(self, name):
                applied[name] = True
        if self.link:
            applied["link"] = self.link
        return applied

    def is_plain(self) -> bool:
        return not self.to_dict()


PLAIN = InlineStyle()


@dataclass(frozen=True, slots=True)
class TextInline:
    text: str
    style: InlineStyle = PLAIN


Inline = TextInline


@dataclass(frozen=True, slots=True)
class Paragraph:
    inlines: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Heading:
    level: int
    inlines: tuple[Inline, ...] = ()

    def __post_init__(self) -> None:
        if not 1 <= self.level <= 6:
            raise ValueError(f"Heading level must be between 1 and 6, got {self.level}")


@dataclass(frozen=True, slots=True)
class ListItem:
    inlines: tuple[Inline, ...] = ()
    level: int = 0


@dataclass(frozen=True, slots=True)
class ListBlock:
    items: tuple[ListItem, ...]
    ordered: bool = False


@dataclass(frozen=True, slots=True)
class TableCell:
    inlines: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class TableRow:
    cells: tuple[TableCell, ...] = ()


@dataclass(frozen=True, slots=True)
class Table:
    rows: tuple[TableRow, ...] = ()


@dataclass(frozen=True, slots=True)
class ImageBlock:
    alt: str = ""
    source: str | None = None
    inlines: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Unrecognized:
    """Placeholder for content that could not be extracted."""

    content_type: str
    reason: str | None = None


Block = Union[Paragraph, Heading, ListBlock, Table, ImageBlock, Unrecognized]


@dataclass(frozen=True, slots=True)
class Meta:
    source: Source
    content_type: str
    properties: Mapping[str, Any] = field(default_factory=dict, hash=False)
    warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))


@dataclass(frozen=True, slots=True)
class Document:
    id: str
    title: str
    meta: Meta
    blocks: tuple[Block, ...]

    def __post_init__(self) -> None:
        if not self.blocks:
            raise ValueError("A document must contain at least one block")


def inline_text(inlines: tuple[Inline, ...]) -> str:
    return "".join(inline.text for inline in inlines)


def document_to_dict(document: Document) -> dict[str, Any]:
    """Serialize a document into JSON-compatible primitives."""

    return {
        "id": document.id,
        "title": document.title,
        "meta": {
            "source": source_to_dict(document.meta.source),
            "content_type": document.meta.content_type,
            "properties": dict(document.meta.properties),
            "warnings": list(document.meta.warnings),
        },
        "blocks": [block_to_dict(block) for block in document.blocks],
    }


def block_to_dict(block: Block) -> dict[str, Any]:
    if isinstance(block, Paragraph):
        return {"type": "paragraph", "inlines": _inlines_to_list(block.inlines)}
    if isinstance(block, Heading):
        return {
            "type": "heading",
            "level": block.level,
            "inlines": _inlines_to_list(block.inlines),
        }
    if isinstance(block, ListBlock):
        return {
            "type": "list",
            "ordered": block.ordered,
            "items": [
                {"level": item.level, "inlines": _inlines_to_list(item.inlines)}
                for item in block.items
            ],
        }
    if isinstance(block, Table):
        return {
            "type": "table",
            "rows": [
                {"cells": [{"inlines": _inlines_to_list(cell.inlines)} for cell in row.cells]}
                for row in block.rows
            ],
        }
    if isinstance(block, ImageBlock):
        return {
            "type": "image",
            "alt": block.alt,
            "source": block.source,
            "inlines": _inlines_to_list(block.inlines),
        }
    if isinstance(block, Unrecognized):
        return {"type": "unrecognized", "content_type": block.content_type, "reason": block.reason}
    raise TypeError(f"Unsupported block type: {type(block)!r}")


def _inlines_to_list(inlines: tuple[Inline, ...]) -> list[dict[str, Any]]:
    return [{"type": "text", "text": inline.text, "style": inline.style.to_dict()} for inline in inlines]


def source_to_dict(source: Source) -> dict[str, str]:
    if isinstance(source, UploadedSource):
        return {"type": "uploaded", "original_name": source.original_name}
    return {"type": "local_path", "path": source.path}


__all__ = [
    "new_document_id",
    "UploadedSource",
    "LocalPathSource",
    "Source",
    "InlineStyle",
    "PLAIN",
    "TextInline",
    "Inline",
    "Paragraph",
    "Heading",
    "ListItem",
    "ListBlock",
    "TableCell",
    "TableRow",
    "Table",
    "ImageBlock",
    "Unrecognized",
    "Block",
    "Meta",
    "Document",
    "inline_text",
    "document_to_dict",
    "block_to_dict",
    "source_to_dict",
]
