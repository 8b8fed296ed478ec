"""Error taxonomy for the file parser."""

from __future__ import annotations


class FileParserError(RuntimeError):
    """Base class for client-facing parser failures."""

    status: int = 500
    title: str = "File Parser Error"

    @property
    def detail(self) -> str:
        return str(self)


class StartupConfigError(RuntimeError):
    """Raised when configuration cannot be established at startup."""


class PathTraversalError(FileParserError):
    """Raised when a requested path is rejected by the resolver gates."""

    status = 403
    title = "Path Traversal Blocked"

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Path '{path}' {reason}")


class DocumentNotFoundError(FileParserError):
    status = 404
    title = "File Not Found"


class SizeExceededError(FileParserError):
    status = 413
    title = "File Too Large"

    def __init__(self, size: int | None, limit: int) -> None:
        self.size = size
        self.limit = limit
        if size is None:
            message = f"Input exceeds the maximum allowed size of {limit} bytes"
        else:
            message = f"Input of {size} bytes exceeds the maximum allowed size of {limit} bytes"
        super().__init__(message)


class ParseError(FileParserError):
    """Raised when a backend cannot produce any document at all."""

    status = 422
    title = "Parse Failed"


class CorruptDocumentError(ParseError):
    """Unreadable container structure with no derivable placeholder."""

    title = "Corrupt Document"


class ParseCancelledError(FileParserError):
    status = 499
    title = "Parse Cancelled"


class InvalidRequestError(FileParserError):
    status = 400
    title = "Invalid Request"


class FileAccessError(FileParserError):
    title = "File Read Failed"


TRAVERSAL_COMPONENT_REASON = "contains '..' traversal component"
OUTSIDE_BASE_DIR_REASON = "is outside the allowed base directory"

__all__ = [
    "FileParserError",
    "StartupConfigError",
    "PathTraversalError",
    "DocumentNotFoundError",
    "SizeExceededError",
    "ParseError",
    "CorruptDocumentError",
    "ParseCancelledError",
    "InvalidRequestError",
    "FileAccessError",
    "TRAVERSAL_COMPONENT_REASON",
    "OUTSIDE_BASE_DIR_REASON",
]
