"""Raster image parser backed by Tesseract OCR."""

from __future__ import annotations

import io
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Protocol

import pytesseract
from PIL import Image, ImageSequence, UnidentifiedImageError

from .base import BackendKind, DocumentBuilder, ParseHints
from .errors import CorruptDocumentError
from .model import Document, Paragraph, TextInline, Unrecognized
from .registry import registry

logger = logging.getLogger(__name__)

NO_TEXT_REASON = "no extractable text"


class OcrUnavailableError(RuntimeError):
    """Raised when the OCR engine cannot run in this environment."""


@dataclass(frozen=True, slots=True)
class OcrRegion:
    text: str
    confidence: float


class OcrEngine(Protocol):
    def recognize(self, image: Image.Image, *, language: str) -> list[OcrRegion]:
        ...


class TesseractOcr:
    """Group Tesseract word boxes into paragraph-level text regions."""

    def recognize(self, image: Image.Image, *, language: str) -> list[OcrRegion]:
        try:
            data = pytesseract.image_to_data(
                image,
                lang=language,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractNotFoundError as exc:
            raise OcrUnavailableError("Tesseract executable not found") from exc
        except pytesseract.TesseractError as exc:
            raise OcrUnavailableError(f"Tesseract failed: {exc}") from exc
        return _group_regions(data)


def _group_regions(data: dict[str, list[Any]]) -> list[OcrRegion]:
    regions: "OrderedDict[tuple[int, int], dict[int, list[str]]]" = OrderedDict()
    confidences: dict[tuple[int, int], list[float]] = {}

    for index, word in enumerate(data.get("text", [])):
        token = str(word).strip()
        if not token:
            continue
        try:
            confidence = float(data["conf"][index])
        except (KeyError, IndexError, TypeError, ValueError):
            continue
        if confidence <= 0:
            continue
        key = (int(data["block_num"][index]), int(data["par_num"][index]))
        line = int(data["line_num"][index])
        regions.setdefault(key, {}).setdefault(line, []).append(token)
        confidences.setdefault(key, []).append(confidence)

    result: list[OcrRegion] = []
    for key, lines in regions.items():
        text = "\n".join(" ".join(words) for _line, words in sorted(lines.items()))
        scores = confidences[key]
        result.append(OcrRegion(text=text, confidence=sum(scores) / len(scores)))
    return result


@dataclass(slots=True)
class ImageParser:
    ocr: OcrEngine = field(default_factory=TesseractOcr)
    kind: BackendKind = BackendKind.IMAGE

    def parse(self, data: bytes, hints: ParseHints) -> Document:
        builder = DocumentBuilder(hints)
        if not data:
            return builder.build()

        image = open_image(data)
        builder.properties.update(
            {"width": image.width, "height": image.height, "format": image.format}
        )

        paragraphs, reason = self.recognize(image, hints)
        if paragraphs:
            builder.extend_blocks(paragraphs)
        else:
            builder.add_block(Unrecognized(content_type=hints.content_type, reason=reason))
            if reason != NO_TEXT_REASON:
                builder.warn(f"OCR skipped: {reason}")
        return builder.build()

    def recognize(self, image: Image.Image, hints: ParseHints) -> tuple[list[Paragraph], str]:
        """OCR every frame of ``image``; return paragraphs and the reason when empty."""

        if not hints.ocr.enabled:
            return [], "OCR is disabled"

        paragraphs: list[Paragraph] = []
        for frame in ImageSequence.Iterator(image):
            hints.checkpoint()
            try:
                regions = self.ocr.recognize(frame.convert("RGB"), language=hints.ocr.language)
            except OcrUnavailableError as exc:
                logger.warning("OCR unavailable: %s", exc)
                return [], f"OCR is unavailable ({exc})"
            for region in regions:
                if region.confidence > 0 and region.text.strip():
                    paragraphs.append(Paragraph(inlines=(TextInline(region.text.strip()),)))

        if not paragraphs:
            return [], NO_TEXT_REASON
        return paragraphs, ""


def open_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise CorruptDocumentError(f"Unreadable image data: {exc}") from exc
    return image


image_parser = ImageParser()
registry.register_parser(image_parser, replace=True)

__all__ = [
    "OcrRegion",
    "OcrEngine",
    "OcrUnavailableError",
    "TesseractOcr",
    "ImageParser",
    "image_parser",
    "open_image",
]
