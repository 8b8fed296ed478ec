"""Document parsing engine: format detection, backends and safe path input."""

from importlib import import_module

from .errors import (
    CorruptDocumentError,
    DocumentNotFoundError,
    FileAccessError,
    FileParserError,
    InvalidRequestError,
    ParseCancelledError,
    ParseError,
    PathTraversalError,
    SizeExceededError,
    StartupConfigError,
)
from .model import (
    Document,
    Heading,
    ImageBlock,
    InlineStyle,
    ListBlock,
    ListItem,
    LocalPathSource,
    Meta,
    Paragraph,
    Table,
    TableCell,
    TableRow,
    TextInline,
    Unrecognized,
    UploadedSource,
    document_to_dict,
)
from .base import BackendKind, CancellationToken, DocumentParser, ParseHints
from .config import FileParserConfig, OcrConfig, load_file_parser_config
from .detection import capabilities, detect_content_type, select_backend
from .registry import ParserRegistry, registry
from .plain_text import PlainTextParser, plain_text_parser
from .html import HtmlParser, html_parser
from .image import ImageParser, OcrEngine, OcrRegion, TesseractOcr, image_parser
from .pdf import PdfParser, pdf_parser
from .docx import DocxParser, docx_parser
from .stub import StubParser, stub_parser
from .resolver import LocalPathResolver
from .size_guard import SizeGuard
from .markdown import render_markdown
from .service import FileParserService
from .api import ApiResponse, handle_info, handle_local, handle_upload

utils = import_module("src.file_parser.utils")

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
    "Document",
    "Meta",
    "UploadedSource",
    "LocalPathSource",
    "Paragraph",
    "Heading",
    "ListBlock",
    "ListItem",
    "Table",
    "TableRow",
    "TableCell",
    "ImageBlock",
    "Unrecognized",
    "TextInline",
    "InlineStyle",
    "document_to_dict",
    "BackendKind",
    "CancellationToken",
    "DocumentParser",
    "ParseHints",
    "FileParserConfig",
    "OcrConfig",
    "load_file_parser_config",
    "select_backend",
    "detect_content_type",
    "capabilities",
    "ParserRegistry",
    "registry",
    "PlainTextParser",
    "plain_text_parser",
    "HtmlParser",
    "html_parser",
    "ImageParser",
    "image_parser",
    "OcrEngine",
    "OcrRegion",
    "TesseractOcr",
    "PdfParser",
    "pdf_parser",
    "DocxParser",
    "docx_parser",
    "StubParser",
    "stub_parser",
    "LocalPathResolver",
    "SizeGuard",
    "render_markdown",
    "FileParserService",
    "ApiResponse",
    "handle_info",
    "handle_upload",
    "handle_local",
    "utils",
]
