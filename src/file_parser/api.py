"""Logical request/response contracts for the file parser.

Transport layers adapt these handlers; every handler returns an
:class:`ApiResponse` and never raises for client-facing failures.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, Mapping

from jsonschema import Draft7Validator, ValidationError

from .detection import capabilities
from .errors import FileParserError, InvalidRequestError
from .model import Document, document_to_dict
from .service import FileParserService

logger = logging.getLogger(__name__)

LOCAL_REQUEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "file_path": {"type": "string", "minLength": 1},
        "render_markdown": {"type": "boolean"},
    },
    "required": ["file_path"],
    "additionalProperties": False,
}

_LOCAL_REQUEST_VALIDATOR = Draft7Validator(LOCAL_REQUEST_SCHEMA)


@dataclass(frozen=True, slots=True)
class ApiResponse:
    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def problem_body(error: FileParserError) -> dict[str, Any]:
    return {"status": error.status, "title": error.title, "detail": error.detail}


def handle_info() -> ApiResponse:
    supported = {family: list(extensions) for family, extensions in capabilities().items()}
    return ApiResponse(200, supported)


def handle_upload(
    service: FileParserService,
    data: bytes | BinaryIO,
    filename: str | None,
    *,
    content_type: str | None = None,
    declared_length: int | None = None,
    render_markdown: bool = False,
) -> ApiResponse:
    return _respond(
        lambda: service.parse_upload(
            data,
            filename,
            content_type=content_type,
            declared_length=declared_length,
        ),
        service,
        render_markdown=render_markdown,
    )


def handle_local(
    service: FileParserService,
    payload: Mapping[str, Any],
    *,
    front_matter: bool = False,
) -> ApiResponse:
    try:
        _LOCAL_REQUEST_VALIDATOR.validate(dict(payload) if isinstance(payload, Mapping) else payload)
    except ValidationError as exc:
        error = InvalidRequestError(_validation_error_message(exc))
        logger.warning("Rejected local parse request: %s", error.detail)
        return ApiResponse(error.status, problem_body(error))

    return _respond(
        lambda: service.parse_local(payload["file_path"]),
        service,
        render_markdown=bool(payload.get("render_markdown", False)),
        front_matter=front_matter,
    )


def _respond(
    parse: Callable[[], Document],
    service: FileParserService,
    *,
    render_markdown: bool,
    front_matter: bool = False,
) -> ApiResponse:
    try:
        document = parse()
    except FileParserError as exc:
        logger.warning("Parse request failed with %s: %s", exc.status, exc.detail)
        return ApiResponse(exc.status, problem_body(exc))

    body: dict[str, Any] = {"document": document_to_dict(document)}
    if render_markdown:
        body["markdown"] = service.render_markdown(document, front_matter=front_matter)
    return ApiResponse(200, body)


def _validation_error_message(exc: ValidationError) -> str:
    path = "".join(f"/{entry}" for entry in exc.absolute_path)
    if path:
        return f"Request validation failed at '{path}': {exc.message}"
    return f"Request validation failed: {exc.message}"


__all__ = [
    "LOCAL_REQUEST_SCHEMA",
    "ApiResponse",
    "problem_body",
    "handle_info",
    "handle_upload",
    "handle_local",
]
