"""Fallback parser for legacy and unrecognized formats.

The stub never fails. It tries a raw-text strip appropriate to the container
(RTF control words, zipped office XML, printable runs in binaries) and
otherwise emits a single placeholder block carrying the content type.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
import zlib
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from . import utils
from .base import BackendKind, DocumentBuilder, ParseHints
from .model import Document, Paragraph, TextInline, Unrecognized
from .registry import registry

logger = logging.getLogger(__name__)

_RTF_TOKEN = re.compile(
    r"\\([a-zA-Z]+)(-?\d+)? ?|\\'([0-9a-fA-F]{2})|\\([^a-zA-Z])|([{}])|([^\\{}\r\n]+)|[\r\n]+"
)
_RTF_SKIPPED_DESTINATIONS = frozenset(
    {
        "fonttbl",
        "colortbl",
        "stylesheet",
        "info",
        "pict",
        "header",
        "footer",
        "object",
        "themedata",
        "datastore",
        "latentstyles",
        "listtable",
        "listoverridetable",
        "rsidtbl",
        "generator",
        "xmlnstbl",
    }
)
_TEXT_ELEMENTS = frozenset({"p", "h", "si"})
_SLIDE_PATTERN = re.compile(r"ppt/slides/slide(\d+)\.xml$")
_ASCII_RUN = re.compile(rb"[\x20-\x7e\t]{6,}")
_UTF16_RUN = re.compile(rb"(?:[\x20-\x7e]\x00){6,}")


@dataclass(slots=True)
class StubParser:
    kind: BackendKind = BackendKind.STUB

    def parse(self, data: bytes, hints: ParseHints) -> Document:
        builder = DocumentBuilder(hints)
        if not data:
            return builder.build()

        paragraphs = utils.split_paragraphs(extract_raw_text(data))
        if paragraphs:
            for paragraph in paragraphs:
                hints.checkpoint()
                builder.add_block(Paragraph(inlines=(TextInline(paragraph),)))
            builder.warn("Best-effort text extraction; structure and formatting were not preserved")
        else:
            logger.debug("No recoverable text for %s", hints.display_name)
            builder.add_block(Unrecognized(content_type=hints.content_type))
        return builder.build()


def extract_raw_text(data: bytes) -> str:
    """Return whatever text can be recovered from ``data``; never raises."""

    if data.lstrip().startswith(b"{\\rtf"):
        return strip_rtf(data.decode("latin-1"))
    if data.startswith(b"PK\x03\x04"):
        text = _zip_text(data)
        if text:
            return text
        return _printable_runs(data)
    if b"\x00" not in data[:4096]:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError:
            pass
    return _printable_runs(data)


def strip_rtf(text: str) -> str:
    output: list[str] = []
    stack: list[bool] = []
    skipping = False
    pending_fallback = 0

    for match in _RTF_TOKEN.finditer(text):
        word, argument, hex_code, symbol, brace, plain = match.groups()
        if brace == "{":
            stack.append(skipping)
        elif brace == "}":
            skipping = stack.pop() if stack else False
        elif symbol is not None:
            if symbol == "*":
                skipping = True
            elif not skipping and symbol in "\\{}":
                output.append(symbol)
            elif not skipping and symbol == "~":
                output.append(" ")
        elif word is not None:
            if word in _RTF_SKIPPED_DESTINATIONS:
                skipping = True
            elif skipping:
                continue
            elif word == "par":
                output.append("\n\n")
            elif word == "line":
                output.append("\n")
            elif word == "tab":
                output.append("\t")
            elif word == "u" and argument is not None:
                output.append(chr(int(argument) % 0x10000))
                pending_fallback = 1
        elif hex_code is not None:
            if pending_fallback:
                pending_fallback -= 1
            elif not skipping:
                output.append(bytes([int(hex_code, 16)]).decode("cp1252", errors="replace"))
        elif plain is not None and not skipping:
            if pending_fallback:
                plain = plain[pending_fallback:]
                pending_fallback = 0
            output.append(plain)

    return "".join(output)


def _zip_text(data: bytes) -> str:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            parts = _content_parts(archive.namelist())
            chunks = [_xml_paragraphs(archive.read(name)) for name in parts]
    except (
        zipfile.BadZipFile,
        zlib.error,
        KeyError,
        RuntimeError,
        EOFError,
        ValueError,
        OSError,
    ) as exc:
        logger.debug("Zip text extraction failed: %s", exc)
        return ""
    return "\n\n".join(chunk for chunk in chunks if chunk)


def _content_parts(names: list[str]) -> list[str]:
    parts = [name for name in ("content.xml", "word/document.xml", "xl/sharedStrings.xml") if name in names]
    slides = sorted(
        (int(match.group(1)), name)
        for name in names
        if (match := _SLIDE_PATTERN.match(name)) is not None
    )
    parts.extend(name for _number, name in slides)
    return parts


def _xml_paragraphs(payload: bytes) -> str:
    try:
        root = ET.fromstring(payload)
    except ET.ParseError:
        return ""
    paragraphs: list[str] = []
    for element in root.iter():
        local_name = element.tag.rsplit("}", 1)[-1] if isinstance(element.tag, str) else ""
        if local_name not in _TEXT_ELEMENTS:
            continue
        text = "".join(element.itertext()).strip()
        if text:
            paragraphs.append(text)
    return "\n\n".join(paragraphs)


def _printable_runs(data: bytes) -> str:
    ascii_runs = [run.decode("ascii").strip() for run in _ASCII_RUN.findall(data)]
    utf16_runs = [run.decode("utf-16-le").strip() for run in _UTF16_RUN.findall(data)]
    runs = utf16_runs if sum(map(len, utf16_runs)) > sum(map(len, ascii_runs)) else ascii_runs
    return "\n\n".join(run for run in runs if run)


stub_parser = StubParser()
registry.register_parser(stub_parser, replace=True)

__all__ = ["StubParser", "stub_parser", "extract_raw_text", "strip_rtf"]
