"""Backend selection for incoming documents.

Selection order is fixed: a declared content type that unambiguously names a
backend wins, then the file extension, then magic-byte sniffing, and finally
the generic stub. Every input maps to some backend.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from . import utils
from .base import BackendKind

SNIFF_LENGTH = 4096

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
OCTET_STREAM = "application/octet-stream"

_EXTENSIONS: dict[BackendKind, tuple[str, ...]] = {
    BackendKind.PLAIN_TEXT: utils.normalize_suffixes(["txt", "text", "md", "markdown", "log", "csv"]),
    BackendKind.HTML: utils.normalize_suffixes(["html", "htm", "xhtml"]),
    BackendKind.PDF: utils.normalize_suffixes(["pdf"]),
    BackendKind.DOCX: utils.normalize_suffixes(["docx"]),
    BackendKind.IMAGE: utils.normalize_suffixes(
        ["png", "jpg", "jpeg", "gif", "bmp", "tif", "tiff", "webp"]
    ),
    BackendKind.STUB: utils.normalize_suffixes(["doc", "rtf", "odt", "xls", "xlsx", "ppt", "pptx"]),
}

_EXTENSION_TABLE: dict[str, BackendKind] = {
    suffix: kind for kind, suffixes in _EXTENSIONS.items() for suffix in suffixes
}

_CONTENT_TYPE_TABLE: dict[str, BackendKind] = {
    "text/plain": BackendKind.PLAIN_TEXT,
    "text/markdown": BackendKind.PLAIN_TEXT,
    "text/x-markdown": BackendKind.PLAIN_TEXT,
    "text/csv": BackendKind.PLAIN_TEXT,
    "text/html": BackendKind.HTML,
    "application/xhtml+xml": BackendKind.HTML,
    "application/pdf": BackendKind.PDF,
    DOCX_MEDIA_TYPE: BackendKind.DOCX,
    "image/png": BackendKind.IMAGE,
    "image/jpeg": BackendKind.IMAGE,
    "image/gif": BackendKind.IMAGE,
    "image/bmp": BackendKind.IMAGE,
    "image/tiff": BackendKind.IMAGE,
    "image/webp": BackendKind.IMAGE,
    "application/msword": BackendKind.STUB,
    "application/rtf": BackendKind.STUB,
    "text/rtf": BackendKind.STUB,
    "application/vnd.oasis.opendocument.text": BackendKind.STUB,
    "application/vnd.ms-excel": BackendKind.STUB,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": BackendKind.STUB,
    "application/vnd.ms-powerpoint": BackendKind.STUB,
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": BackendKind.STUB,
}

_IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
)

_OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def select_backend(
    file_extension: str | None,
    declared_content_type: str | None,
    magic_bytes: bytes | None = None,
) -> BackendKind:
    """Pick the backend for an input. Never raises."""

    content_type = utils.normalize_content_type(declared_content_type)
    if content_type is not None and content_type in _CONTENT_TYPE_TABLE:
        return _CONTENT_TYPE_TABLE[content_type]

    extension = _normalize_extension(file_extension)
    if extension is not None and extension in _EXTENSION_TABLE:
        return _EXTENSION_TABLE[extension]

    if magic_bytes:
        sniffed = sniff(magic_bytes)
        if sniffed is not None:
            return sniffed[0]

    return BackendKind.STUB


def detect_content_type(
    file_extension: str | None,
    declared_content_type: str | None,
    magic_bytes: bytes | None = None,
) -> str:
    """Return the content type recorded on the produced document."""

    content_type = utils.normalize_content_type(declared_content_type)
    if content_type is not None and content_type != OCTET_STREAM:
        return content_type

    extension = _normalize_extension(file_extension)
    if extension is not None:
        if extension == ".docx":
            return DOCX_MEDIA_TYPE
        guessed = utils.guess_media_type(f"file{extension}")
        if guessed:
            return guessed

    if magic_bytes:
        sniffed = sniff(magic_bytes)
        if sniffed is not None:
            return sniffed[1]

    return OCTET_STREAM


def sniff(data: bytes) -> tuple[BackendKind, str] | None:
    """Classify ``data`` by its leading bytes."""

    head = data[:SNIFF_LENGTH]
    if head.lstrip()[:5] == b"%PDF-":
        return BackendKind.PDF, "application/pdf"

    for signature, media_type in _IMAGE_SIGNATURES:
        if head.startswith(signature):
            return BackendKind.IMAGE, media_type
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return BackendKind.IMAGE, "image/webp"
    if head[:2] == b"BM" and head[6:10] == b"\x00\x00\x00\x00":
        return BackendKind.IMAGE, "image/bmp"

    if head.startswith(b"PK\x03\x04"):
        if b"word/" in head:
            return BackendKind.DOCX, DOCX_MEDIA_TYPE
        return None
    if head.startswith(_OLE_SIGNATURE) or head.startswith(b"{\\rtf"):
        return None

    if b"\x00" in head:
        return None
    try:
        text = head.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        # A multi-byte sequence cut off by the sniff window is still text.
        if exc.start < len(head) - 3:
            return None
        text = head[: exc.start].decode("utf-8-sig")

    prologue = text.lstrip().lower()
    if prologue.startswith("<!doctype html") or prologue.startswith("<html"):
        return BackendKind.HTML, "text/html"
    return BackendKind.PLAIN_TEXT, "text/plain"


def capabilities() -> Mapping[str, tuple[str, ...]]:
    """Static mapping of backend family to supported file extensions."""

    return MappingProxyType({kind.value: suffixes for kind, suffixes in _EXTENSIONS.items()})


def _normalize_extension(value: str | None) -> str | None:
    normalized = utils.normalize_suffixes(value)
    return normalized[0] if normalized else None


__all__ = [
    "SNIFF_LENGTH",
    "select_backend",
    "detect_content_type",
    "sniff",
    "capabilities",
]
