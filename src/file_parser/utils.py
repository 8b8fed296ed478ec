"""Utility helpers shared across parsing components."""

from __future__ import annotations

import mimetypes
import re
from collections.abc import Sequence
from pathlib import PurePath

_WHITESPACE_PATTERN = re.compile(r"\s+")
_BLANK_LINE_PATTERN = re.compile(r"\n[^\S\n]*\n\s*")


def guess_media_type(name: str) -> str | None:
    media_type, _encoding = mimetypes.guess_type(name, strict=False)
    return media_type


def file_extension(name: str | None) -> str | None:
    """Return the lowercase dotted suffix of ``name`` or ``None``."""

    if not name:
        return None
    suffix = PurePath(name.replace("\\", "/")).suffix
    return suffix.lower() if suffix else None


def normalize_content_type(value: str | None) -> str | None:
    """Strip parameters and casing from a declared content type."""

    if not value:
        return None
    token = value.split(";", 1)[0].strip().lower()
    return token or None


def normalize_suffixes(values: Sequence[str] | str | None) -> tuple[str, ...]:
    """Normalize file suffix tokens to unique lowercase dotted form, keeping order."""

    if not values:
        return ()
    iterator = [values] if isinstance(values, str) else values

    cleaned: list[str] = []
    for raw in iterator:
        token = str(raw).strip().lower()
        if not token:
            continue
        if not token.startswith("."):
            token = f".{token}"
        cleaned.append(token)
    return tuple(dict.fromkeys(cleaned))


def decode_text(data: bytes) -> str:
    """Decode bytes as UTF-8 (BOM aware), replacing invalid sequences."""

    if data.startswith(b"\xff\xfe") or data.startswith(b"\xfe\xff"):
        return data.decode("utf-16", errors="replace")
    return data.decode("utf-8-sig", errors="replace")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_paragraphs(text: str) -> list[str]:
    """Split text on blank-line boundaries, dropping empty chunks."""

    normalized = normalize_newlines(text)
    chunks = _BLANK_LINE_PATTERN.split(normalized)
    return [chunk.strip() for chunk in chunks if chunk.strip()]


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text)
