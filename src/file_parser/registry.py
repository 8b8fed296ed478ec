"""Parser registry mapping each backend kind to its implementation."""

from __future__ import annotations

from typing import Iterator

from .base import BackendKind, DocumentParser


class ParserRegistry:
    """Hold exactly one parser per :class:`BackendKind`."""

    def __init__(self) -> None:
        self._parsers: dict[BackendKind, DocumentParser] = {}

    def register_parser(self, parser: DocumentParser, *, replace: bool = False) -> None:
        kind = BackendKind(parser.kind)
        if not replace and kind in self._parsers:
            raise ValueError(f"Parser for '{kind.value}' already registered")
        self._parsers[kind] = parser

    def get_registered_kinds(self) -> list[BackendKind]:
        return [kind for kind in BackendKind if kind in self._parsers]

    def find_parser(self, kind: BackendKind) -> DocumentParser | None:
        return self._parsers.get(kind)

    def require_parser(self, kind: BackendKind) -> DocumentParser:
        """Return the parser for ``kind``, degrading to the stub when absent."""

        parser = self._parsers.get(kind) or self._parsers.get(BackendKind.STUB)
        if parser is None:
            raise LookupError(f"No parser registered for '{kind.value}' and no stub fallback")
        return parser

    def copy(self) -> "ParserRegistry":
        clone = ParserRegistry()
        clone._parsers = dict(self._parsers)
        return clone

    def __iter__(self) -> Iterator[DocumentParser]:
        for kind in self.get_registered_kinds():
            yield self._parsers[kind]


registry = ParserRegistry()
"""Default global parser registry."""
