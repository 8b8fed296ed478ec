"""PDF parser implementation using the pypdf library."""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from pypdf import PasswordType, PdfReader
from pypdf.errors import PyPdfError

from . import utils
from .base import BackendKind, DocumentBuilder, ParseHints
from .errors import CorruptDocumentError
from .image import ImageParser, open_image
from .model import Document, Paragraph, TextInline, Unrecognized
from .registry import registry

logger = logging.getLogger(__name__)

# Errors pypdf raises from damaged object streams while walking a page.
_PAGE_ERRORS = (PyPdfError, ValueError, KeyError, IndexError, TypeError, AttributeError)


@dataclass(slots=True)
class PdfParser:
    """Per-page text extraction with placeholder blocks for damaged pages."""

    images: ImageParser = field(default_factory=ImageParser)
    kind: BackendKind = BackendKind.PDF

    def parse(self, data: bytes, hints: ParseHints) -> Document:
        builder = DocumentBuilder(hints)
        if not data:
            return builder.build()
        if b"%PDF-" not in data[:1024]:
            raise CorruptDocumentError("Input does not start with a PDF header")

        try:
            reader = PdfReader(io.BytesIO(data))
            encrypted = reader.is_encrypted
        except _PAGE_ERRORS as exc:
            raise CorruptDocumentError(f"Failed to read PDF structure: {exc}") from exc

        if encrypted and not _try_decrypt(reader):
            builder.add_block(Unrecognized(content_type=hints.content_type, reason="encrypted PDF"))
            builder.warn("PDF is encrypted and could not be decrypted")
            return builder.build()

        try:
            page_count = len(reader.pages)
        except _PAGE_ERRORS as exc:
            raise CorruptDocumentError(f"Failed to read PDF page tree: {exc}") from exc

        builder.properties["page_count"] = page_count
        builder.properties["pdf_metadata"] = _normalize_pdf_metadata(_read_metadata(reader))
        self._extract_pages(builder, reader, hints)
        return builder.build()

    def _extract_pages(self, builder: DocumentBuilder, reader: PdfReader, hints: ParseHints) -> None:
        for index, page in enumerate(reader.pages, start=1):
            hints.checkpoint()
            try:
                text = _extract_page_text(page)
            except _PAGE_ERRORS as exc:
                logger.info("PDF page %s failed to extract: %s", index, exc)
                builder.add_block(
                    Unrecognized(
                        content_type=hints.content_type,
                        reason=f"page {index} could not be extracted",
                    )
                )
                builder.warn(f"Failed to extract page {index}: {exc}")
                continue

            paragraphs = utils.split_paragraphs(text)
            for paragraph in paragraphs:
                builder.add_block(Paragraph(inlines=(TextInline(paragraph),)))
            if not paragraphs:
                builder.warn(f"Page {index} yielded no extractable text")

            if hints.ocr.enabled and hints.ocr.pdf_embedded_images:
                self._ocr_page_images(builder, page, index, hints)

    def _ocr_page_images(
        self,
        builder: DocumentBuilder,
        page: Any,
        index: int,
        hints: ParseHints,
    ) -> None:
        try:
            images = list(page.images)
        except _PAGE_ERRORS as exc:
            builder.warn(f"Could not enumerate images on page {index}: {exc}")
            return

        for embedded in images:
            hints.checkpoint()
            try:
                image = open_image(embedded.data)
            except CorruptDocumentError:
                builder.warn(f"Skipped unreadable image '{embedded.name}' on page {index}")
                continue
            paragraphs, _reason = self.images.recognize(image, hints)
            builder.extend_blocks(paragraphs)


def _try_decrypt(reader: PdfReader) -> bool:
    try:
        result = reader.decrypt("")
    except (PyPdfError, NotImplementedError, ValueError):
        return False
    return result != PasswordType.NOT_DECRYPTED


def _read_metadata(reader: PdfReader) -> Any:
    try:
        return reader.metadata or {}
    except _PAGE_ERRORS:
        return {}


def _normalize_pdf_metadata(metadata: Any) -> dict[str, str]:
    result: dict[str, str] = {}
    if isinstance(metadata, dict):
        items = metadata.items()
    else:
        items = getattr(metadata, "items", lambda: [])()

    for key, value in items:
        if not isinstance(key, str):
            continue
        key = key.lstrip("/")
        if value is None:
            continue
        result[key] = str(value)
    return result


def _extract_page_text(page: Any) -> str:
    text = page.extract_text()
    if not text:
        return ""
    cleaned = text.replace("\u00a0", " ")
    return _normalize_layout_text(cleaned)


_INTRALINE_WHITESPACE_PATTERN = re.compile(r"[^\S\n]+")


def _normalize_layout_text(text: str) -> str:
    """Collapse excessive spacing without losing paragraph structure."""

    lines = utils.normalize_newlines(text).split("\n")

    result: list[str] = []
    previous_blank = False
    for raw in lines:
        token = _INTRALINE_WHITESPACE_PATTERN.sub(" ", raw.strip())
        if not token:
            if result and not previous_blank:
                result.append("")
            previous_blank = True
            continue
        result.append(token)
        previous_blank = False

    return "\n".join(result).strip()


pdf_parser = PdfParser()
registry.register_parser(pdf_parser, replace=True)

__all__ = ["PdfParser", "pdf_parser"]
