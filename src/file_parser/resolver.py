"""Path-traversal-safe resolution of caller-supplied local paths.

Two gates run in order before any file is opened:

1. a purely syntactic check on the raw string that rejects ``..`` segments
   without touching the filesystem, then
2. a canonicalization check that resolves symlinks and compares path
   components against the canonical base directory.

Rejections name the requested path and the reason but never the base
directory.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .errors import (
    OUTSIDE_BASE_DIR_REASON,
    TRAVERSAL_COMPONENT_REASON,
    DocumentNotFoundError,
    InvalidRequestError,
    PathTraversalError,
    StartupConfigError,
)

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\\/]+")


class LocalPathResolver:
    """Map requested paths onto regular files under a fixed base directory."""

    def __init__(self, base_dir: Path | str) -> None:
        try:
            canonical = Path(base_dir).expanduser().resolve(strict=True)
        except (OSError, RuntimeError) as exc:
            raise StartupConfigError(
                f"allowed_local_base_dir '{base_dir}' cannot be resolved: {exc}"
            ) from exc
        if not canonical.is_dir():
            raise StartupConfigError(f"allowed_local_base_dir '{base_dir}' is not a directory")
        self._base_dir = canonical

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def resolve(self, requested: str) -> Path:
        """Return the canonical path of ``requested`` or raise a typed rejection."""

        if not requested or not requested.strip():
            raise InvalidRequestError("file_path must be a non-empty string")
        if "\x00" in requested:
            raise InvalidRequestError("file_path must not contain NUL bytes")

        check_traversal_syntax(requested)

        candidate = Path(requested)
        if not candidate.is_absolute():
            candidate = self._base_dir / candidate
        try:
            canonical = candidate.resolve(strict=False)
        except (OSError, RuntimeError) as exc:
            logger.warning("Could not canonicalize requested path '%s': %s", requested, exc)
            raise DocumentNotFoundError(f"File '{requested}' could not be resolved") from exc

        if not is_contained(canonical, self._base_dir):
            logger.warning("Rejected path outside base directory: '%s'", requested)
            raise PathTraversalError(requested, OUTSIDE_BASE_DIR_REASON)

        if not canonical.is_file():
            raise DocumentNotFoundError(f"File '{requested}' does not exist or is not a regular file")
        return canonical


def check_traversal_syntax(requested: str) -> None:
    """Reject any ``..`` component, whichever separator style is used."""

    if any(segment == ".." for segment in _SEPARATORS.split(requested)):
        logger.warning("Rejected path with traversal component: '%s'", requested)
        raise PathTraversalError(requested, TRAVERSAL_COMPONENT_REASON)


def is_contained(candidate: Path, base_dir: Path) -> bool:
    base_parts = base_dir.parts
    return candidate.parts[: len(base_parts)] == base_parts


__all__ = ["LocalPathResolver", "check_traversal_syntax", "is_contained"]
