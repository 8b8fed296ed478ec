"""Configuration helpers for the file parser."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import jsonschema
import yaml

from src import paths

from .errors import StartupConfigError

DEFAULT_MAX_FILE_SIZE_MB = 100

ENV_MAX_FILE_SIZE_MB = "FILE_PARSER_MAX_FILE_SIZE_MB"
ENV_ALLOWED_LOCAL_BASE_DIR = "FILE_PARSER_ALLOWED_LOCAL_BASE_DIR"
ENV_OCR_ENABLED = "FILE_PARSER_OCR_ENABLED"

CONFIG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "max_file_size_mb": {"type": "integer", "minimum": 1},
        "allowed_local_base_dir": {"type": ["string", "null"], "minLength": 1},
        "ocr": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "language": {"type": "string", "minLength": 1},
                "pdf_embedded_images": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


@dataclass(frozen=True, slots=True)
class OcrConfig:
    enabled: bool = True
    language: str = "eng"
    # Embedded PDF images are only OCR'd when explicitly requested.
    pdf_embedded_images: bool = False


@dataclass(frozen=True, slots=True)
class FileParserConfig:
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB
    allowed_local_base_dir: Path | None = None
    ocr: OcrConfig = field(default_factory=OcrConfig)

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, base_path: Path | None) -> "FileParserConfig":
        _validate(payload)
        base_dir_value = payload.get("allowed_local_base_dir")
        base_dir = None
        if base_dir_value is not None:
            base_dir = _resolve_path(Path(str(base_dir_value)), base=base_path)

        ocr_payload = payload.get("ocr") or {}
        ocr = OcrConfig(
            enabled=bool(ocr_payload.get("enabled", True)),
            language=str(ocr_payload.get("language", "eng")),
            pdf_embedded_images=bool(ocr_payload.get("pdf_embedded_images", False)),
        )
        return cls(
            max_file_size_mb=int(payload.get("max_file_size_mb", DEFAULT_MAX_FILE_SIZE_MB)),
            allowed_local_base_dir=base_dir,
            ocr=ocr,
        )

    def with_overrides(
        self,
        *,
        max_file_size_mb: int | None = None,
        allowed_local_base_dir: Path | None = None,
    ) -> "FileParserConfig":
        updated = self
        if max_file_size_mb is not None:
            if max_file_size_mb <= 0:
                raise StartupConfigError("max_file_size_mb must be a positive integer")
            updated = replace(updated, max_file_size_mb=max_file_size_mb)
        if allowed_local_base_dir is not None:
            updated = replace(
                updated,
                allowed_local_base_dir=_resolve_path(Path(allowed_local_base_dir), base=None),
            )
        return updated

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "allowed_local_base_dir": (
                str(self.allowed_local_base_dir) if self.allowed_local_base_dir is not None else None
            ),
            "ocr": {
                "enabled": self.ocr.enabled,
                "language": self.ocr.language,
                "pdf_embedded_images": self.ocr.pdf_embedded_images,
            },
        }


def load_file_parser_config(
    config_path: Path | None,
    *,
    environ: Mapping[str, str] | None = None,
) -> FileParserConfig:
    """Load configuration from YAML and the environment, or fall back to defaults."""

    if config_path is not None:
        resolved = Path(config_path).expanduser()
        if not resolved.exists():
            raise StartupConfigError(f"File parser config '{resolved}' does not exist")
        config = _load_yaml(resolved)
    else:
        default_path = paths.get_config_file()
        if default_path.exists():
            config = _load_yaml(default_path)
        else:
            config = FileParserConfig()

    return _apply_environment(config, os.environ if environ is None else environ)


def _load_yaml(path: Path) -> FileParserConfig:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise StartupConfigError(f"File parser config '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(data, Mapping):
        raise StartupConfigError("File parser config must be a mapping")
    return FileParserConfig.from_dict(data, base_path=path.parent)


def _apply_environment(config: FileParserConfig, environ: Mapping[str, str]) -> FileParserConfig:
    max_size = environ.get(ENV_MAX_FILE_SIZE_MB)
    if max_size:
        try:
            parsed = int(max_size)
        except ValueError as exc:
            raise StartupConfigError(f"{ENV_MAX_FILE_SIZE_MB} must be an integer, got '{max_size}'") from exc
        config = config.with_overrides(max_file_size_mb=parsed)

    base_dir = environ.get(ENV_ALLOWED_LOCAL_BASE_DIR)
    if base_dir:
        config = config.with_overrides(allowed_local_base_dir=Path(base_dir))

    ocr_enabled = environ.get(ENV_OCR_ENABLED)
    if ocr_enabled:
        enabled = ocr_enabled.strip().lower() in {"1", "true", "yes", "on"}
        config = replace(config, ocr=replace(config.ocr, enabled=enabled))

    return config


def _validate(payload: Mapping[str, Any]) -> None:
    try:
        jsonschema.validate(instance=dict(payload), schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as exc:
        location = " -> ".join(str(part) for part in exc.path)
        suffix = f" (at {location})" if location else ""
        raise StartupConfigError(f"Invalid file parser config: {exc.message}{suffix}") from exc


def _resolve_path(path: Path, *, base: Path | None) -> Path:
    candidate = path.expanduser()
    if candidate.is_absolute() or base is None:
        return candidate
    return base / candidate


__all__ = [
    "DEFAULT_MAX_FILE_SIZE_MB",
    "OcrConfig",
    "FileParserConfig",
    "load_file_parser_config",
]
