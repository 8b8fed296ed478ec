"""Hard ceiling on input size, enforced before bytes are fully read."""

from __future__ import annotations

import logging
from typing import BinaryIO

from .errors import SizeExceededError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


class SizeGuard:
    def __init__(self, max_bytes: int) -> None:
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        self.max_bytes = max_bytes

    def check(self, length: int | None) -> None:
        """Raise when a known length exceeds the ceiling; unknown lengths pass."""

        if length is not None and length > self.max_bytes:
            logger.warning("Rejected input of %s bytes (limit %s)", length, self.max_bytes)
            raise SizeExceededError(length, self.max_bytes)

    def read_bounded(self, stream: BinaryIO) -> bytes:
        """Read ``stream`` to the end, stopping one byte past the ceiling."""

        remaining = self.max_bytes + 1
        chunks: list[bytes] = []
        while remaining > 0:
            chunk = stream.read(min(_CHUNK_SIZE, remaining))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)

        if remaining <= 0:
            logger.warning("Rejected streamed input past %s bytes", self.max_bytes)
            raise SizeExceededError(None, self.max_bytes)
        return b"".join(chunks)


__all__ = ["SizeGuard"]
