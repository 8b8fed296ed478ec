"""Core parsing interfaces shared by all backends."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from threading import Event
from typing import Any, Iterable, Protocol

from .config import OcrConfig
from .errors import ParseCancelledError
from .model import (
    Block,
    Document,
    Heading,
    LocalPathSource,
    Meta,
    Paragraph,
    Source,
    UploadedSource,
    inline_text,
    new_document_id,
)


class BackendKind(str, Enum):
    """Closed set of parser backends; one implementation per member."""

    PLAIN_TEXT = "plain_text"
    HTML = "html"
    PDF = "pdf"
    DOCX = "docx"
    IMAGE = "image"
    STUB = "stub"


class CancellationToken:
    """Caller-controlled abort signal checked by backends between units of work."""

    def __init__(self, *, timeout: float | None = None) -> None:
        self._event = Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ParseCancelledError("Parse was cancelled before completion")


@dataclass(frozen=True, slots=True)
class ParseHints:
    """Everything a backend may know about its input besides the bytes."""

    source: Source
    content_type: str
    filename: str | None = None
    ocr: OcrConfig = field(default_factory=OcrConfig)
    cancellation: CancellationToken | None = None

    def checkpoint(self) -> None:
        if self.cancellation is not None:
            self.cancellation.raise_if_cancelled()

    @property
    def display_name(self) -> str | None:
        if self.filename:
            return self.filename
        if isinstance(self.source, UploadedSource):
            return self.source.original_name
        if isinstance(self.source, LocalPathSource):
            return self.source.path
        return None


class DocumentParser(Protocol):
    """Contract shared by all concrete backends."""

    @property
    def kind(self) -> BackendKind:
        ...

    def parse(self, data: bytes, hints: ParseHints) -> Document:
        ...


class DocumentBuilder:
    """Accumulates blocks, metadata and warnings for a single parse call."""

    def __init__(self, hints: ParseHints) -> None:
        self.hints = hints
        self.blocks: list[Block] = []
        self.properties: dict[str, Any] = {}
        self.warnings: list[str] = []

    def add_block(self, block: Block) -> None:
        self.blocks.append(block)

    def extend_blocks(self, items: Iterable[Block]) -> None:
        self.blocks.extend(items)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def build(self) -> Document:
        blocks = tuple(self.blocks) or (Paragraph(),)
        meta = Meta(
            source=self.hints.source,
            content_type=self.hints.content_type,
            properties=self.properties,
            warnings=tuple(self.warnings),
        )
        return Document(
            id=new_document_id(),
            title=_derive_title(blocks, self.hints),
            meta=meta,
            blocks=blocks,
        )


def _derive_title(blocks: tuple[Block, ...], hints: ParseHints) -> str:
    for block in blocks:
        if isinstance(block, Heading):
            text = inline_text(block.inlines).strip()
            if text:
                return text
    name = hints.display_name
    if not name:
        return ""
    return PurePath(name.replace("\\", "/")).stem


__all__ = [
    "BackendKind",
    "CancellationToken",
    "ParseHints",
    "DocumentParser",
    "DocumentBuilder",
]
