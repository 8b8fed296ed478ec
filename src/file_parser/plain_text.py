"""Plain-text parser: blank-line separated paragraphs, no styling."""

from __future__ import annotations

from dataclasses import dataclass

from . import utils
from .base import BackendKind, DocumentBuilder, ParseHints
from .model import Document, Paragraph, TextInline
from .registry import registry


@dataclass(slots=True)
class PlainTextParser:
    kind: BackendKind = BackendKind.PLAIN_TEXT

    def parse(self, data: bytes, hints: ParseHints) -> Document:
        builder = DocumentBuilder(hints)
        text = utils.decode_text(data)
        for chunk in utils.split_paragraphs(text):
            hints.checkpoint()
            builder.add_block(Paragraph(inlines=(TextInline(chunk),)))
        return builder.build()


plain_text_parser = PlainTextParser()
registry.register_parser(plain_text_parser, replace=True)

__all__ = ["PlainTextParser", "plain_text_parser"]
