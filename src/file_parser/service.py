"""Parsing pipelines for uploaded bytes and caller-supplied local paths."""

from __future__ import annotations

import logging
from typing import BinaryIO, Mapping

from . import docx, html, plain_text, stub  # noqa: F401  (register backends)
from . import utils
from .base import BackendKind, CancellationToken, ParseHints
from .config import FileParserConfig
from .detection import SNIFF_LENGTH, capabilities, detect_content_type, select_backend
from .errors import FileAccessError, StartupConfigError
from .image import ImageParser, OcrEngine
from .markdown import render_markdown
from .model import Document, LocalPathSource, Source, UploadedSource
from .pdf import PdfParser
from .registry import ParserRegistry, registry as default_registry
from .resolver import LocalPathResolver
from .size_guard import SizeGuard

logger = logging.getLogger(__name__)


class FileParserService:
    """Entry point shared by the request handlers and the CLI.

    Built once at startup from an immutable configuration. A missing or
    unusable base directory aborts construction.
    """

    def __init__(
        self,
        config: FileParserConfig,
        *,
        registry: ParserRegistry | None = None,
        ocr_engine: OcrEngine | None = None,
    ) -> None:
        if config.allowed_local_base_dir is None:
            raise StartupConfigError(
                "allowed_local_base_dir must be configured before the file parser can start"
            )
        self.config = config
        self.resolver = LocalPathResolver(config.allowed_local_base_dir)
        self.size_guard = SizeGuard(config.max_file_size_bytes)

        active = (registry or default_registry).copy()
        if ocr_engine is not None:
            image_parser = ImageParser(ocr=ocr_engine)
            active.register_parser(image_parser, replace=True)
            active.register_parser(PdfParser(images=image_parser), replace=True)
        self._registry = active
        logger.info(
            "File parser ready (max %s MB, backends: %s)",
            config.max_file_size_mb,
            ", ".join(kind.value for kind in active.get_registered_kinds()),
        )

    def capabilities(self) -> Mapping[str, tuple[str, ...]]:
        return capabilities()

    def parse_upload(
        self,
        data: bytes | BinaryIO,
        filename: str | None,
        *,
        content_type: str | None = None,
        declared_length: int | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Document:
        """Parse uploaded bytes, or a readable binary stream, named ``filename``."""

        self.size_guard.check(declared_length)
        if isinstance(data, (bytes, bytearray, memoryview)):
            payload = bytes(data)
            self.size_guard.check(len(payload))
        else:
            payload = self.size_guard.read_bounded(data)

        source = UploadedSource(original_name=filename or "")
        return self._parse(payload, filename, source, content_type, cancellation)

    def parse_local(
        self,
        file_path: str,
        *,
        content_type: str | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Document:
        """Parse a file under the allowed base directory."""

        path = self.resolver.resolve(file_path)
        try:
            size = path.stat().st_size
        except OSError as exc:
            raise FileAccessError(f"Failed to inspect '{file_path}': {exc.strerror}") from exc
        self.size_guard.check(size)

        try:
            with path.open("rb") as handle:
                payload = self.size_guard.read_bounded(handle)
        except OSError as exc:
            raise FileAccessError(f"Failed to read '{file_path}': {exc.strerror}") from exc

        source = LocalPathSource(path=file_path)
        return self._parse(payload, path.name, source, content_type, cancellation)

    def render_markdown(self, document: Document, *, front_matter: bool = False) -> str:
        return render_markdown(document, front_matter=front_matter)

    def _parse(
        self,
        data: bytes,
        filename: str | None,
        source: Source,
        content_type: str | None,
        cancellation: CancellationToken | None,
    ) -> Document:
        extension = utils.file_extension(filename)
        head = data[:SNIFF_LENGTH]
        kind = select_backend(extension, content_type, head)
        detected = detect_content_type(extension, content_type, head)
        parser = self._registry.require_parser(kind)
        selected = BackendKind(parser.kind)
        if selected is not kind:
            logger.info("No '%s' backend registered; using '%s'", kind.value, selected.value)

        hints = ParseHints(
            source=source,
            content_type=detected,
            filename=filename,
            ocr=self.config.ocr,
            cancellation=cancellation,
        )
        hints.checkpoint()
        logger.debug(
            "Dispatching %s (%s bytes, %s) to '%s'",
            hints.display_name or "<unnamed>",
            len(data),
            detected,
            kind.value,
        )
        document = parser.parse(data, hints)
        if document.meta.warnings:
            logger.info(
                "Parsed %s with %s warning(s)", hints.display_name or "<unnamed>", len(document.meta.warnings)
            )
        return document


__all__ = ["FileParserService"]
