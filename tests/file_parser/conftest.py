"""Shared fixtures for the file parser test suite."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from src.file_parser.config import FileParserConfig
from src.file_parser.image import OcrRegion
from src.file_parser.service import FileParserService


class FakeOcr:
    """OCR engine double returning canned regions for every frame."""

    def __init__(self, regions: list[OcrRegion] | None = None, error: Exception | None = None) -> None:
        self.regions = list(regions or [])
        self.error = error
        self.calls: list[str] = []

    def recognize(self, image: Image.Image, *, language: str) -> list[OcrRegion]:
        self.calls.append(language)
        if self.error is not None:
            raise self.error
        return list(self.regions)


def build_pdf_bytes(pages: list[str]) -> bytes:
    page_ids = [5 + 2 * index for index in range(len(pages))]
    kids = " ".join(f"{page_id} 0 R" for page_id in page_ids)
    bodies: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode("ascii"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Producer (file-parser tests) >>",
    ]
    for page_id, text in zip(page_ids, pages):
        escaped = text.replace("\\", "\\\\").replace("(", r"\(").replace(")", r"\)")
        operations = "BT\n/F1 24 Tf\n72 720 Td\n"
        if text:
            operations += f"({escaped}) Tj\n"
        stream = (operations + "ET\n").encode("latin-1")
        bodies.append(
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Contents {page_id + 1} 0 R /Resources << /Font << /F1 3 0 R >> >> >>".encode("ascii")
        )
        bodies.append(
            f"<< /Length {len(stream)} >>\nstream\n".encode("ascii") + stream + b"endstream"
        )

    content = bytearray(b"%PDF-1.4\n")
    offsets = [0]
    for number, body in enumerate(bodies, start=1):
        offsets.append(len(content))
        content.extend(f"{number} 0 obj\n".encode("ascii") + body + b"\nendobj\n")

    xref_pos = len(content)
    content.extend(f"xref\n0 {len(offsets)}\n".encode("ascii"))
    content.extend(b"0000000000 65535 f \n")
    for offset in offsets[1:]:
        content.extend(f"{offset:010} 00000 n \n".encode("ascii"))
    content.extend(
        f"trailer\n<< /Root 1 0 R /Info 4 0 R /Size {len(offsets)} >>\n".encode("ascii")
        + f"startxref\n{xref_pos}\n%%EOF\n".encode("ascii")
    )
    return bytes(content)


def build_png_bytes(size: tuple[int, int] = (40, 20)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, "white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def pdf_factory() -> Callable[[list[str]], bytes]:
    return build_pdf_bytes


@pytest.fixture
def fake_ocr() -> type[FakeOcr]:
    return FakeOcr


@pytest.fixture
def png_bytes() -> bytes:
    return build_png_bytes()


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    base = tmp_path / "documents"
    base.mkdir()
    return base


@pytest.fixture
def make_service(base_dir: Path) -> Callable[..., FileParserService]:
    def factory(**kwargs) -> FileParserService:
        ocr_engine = kwargs.pop("ocr_engine", None)
        config = FileParserConfig(allowed_local_base_dir=base_dir, **kwargs)
        return FileParserService(config, ocr_engine=ocr_engine)

    return factory


@pytest.fixture
def service(make_service) -> FileParserService:
    return make_service()


@pytest.fixture
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run without a default config file or file parser environment variables."""

    for name in (
        "FILE_PARSER_CONFIG",
        "FILE_PARSER_MAX_FILE_SIZE_MB",
        "FILE_PARSER_ALLOWED_LOCAL_BASE_DIR",
        "FILE_PARSER_OCR_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
