"""Tests for the path-traversal-safe local path resolver."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from src.file_parser.errors import (
    OUTSIDE_BASE_DIR_REASON,
    TRAVERSAL_COMPONENT_REASON,
    DocumentNotFoundError,
    InvalidRequestError,
    PathTraversalError,
    StartupConfigError,
)
from src.file_parser.resolver import LocalPathResolver

posix_only = pytest.mark.skipif(os.name != "posix", reason="POSIX paths and symlinks required")


def _write(path: Path, text: str = "content") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "requested",
    [
        "../secret.txt",
        "some/../../etc/passwd",
        "/allowed/dir/../../../etc/shadow",
        "sub\\..\\..\\secret.txt",
        "..",
    ],
)
def test_rejects_traversal_components(base_dir: Path, requested: str) -> None:
    resolver = LocalPathResolver(base_dir)

    with pytest.raises(PathTraversalError) as excinfo:
        resolver.resolve(requested)

    assert excinfo.value.reason == TRAVERSAL_COMPONENT_REASON
    assert excinfo.value.path == requested


def test_traversal_gate_runs_before_filesystem_access(
    base_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    resolver = LocalPathResolver(base_dir)
    requested = f"{base_dir}/../etc/passwd"

    def _forbidden(*_args, **_kwargs):
        raise AssertionError("filesystem accessed before the syntactic gate")

    monkeypatch.setattr(Path, "resolve", _forbidden)
    monkeypatch.setattr(Path, "is_file", _forbidden)
    monkeypatch.setattr(Path, "stat", _forbidden)

    with pytest.raises(PathTraversalError) as excinfo:
        resolver.resolve(requested)

    assert excinfo.value.reason == TRAVERSAL_COMPONENT_REASON


def test_allows_files_within_base_dir(base_dir: Path) -> None:
    top = _write(base_dir / "hello.txt")
    nested = _write(base_dir / "subdir" / "nested.txt")
    resolver = LocalPathResolver(base_dir)

    assert resolver.resolve(str(top)) == top.resolve()
    assert resolver.resolve(str(nested)) == nested.resolve()


def test_relative_paths_are_anchored_at_base_dir(base_dir: Path) -> None:
    nested = _write(base_dir / "subdir" / "nested.txt")
    resolver = LocalPathResolver(base_dir)

    assert resolver.resolve("subdir/nested.txt") == nested.resolve()


def test_double_dots_inside_a_name_are_not_traversal(base_dir: Path) -> None:
    odd = _write(base_dir / "notes..v2.txt")
    resolver = LocalPathResolver(base_dir)

    assert resolver.resolve(str(odd)) == odd.resolve()


def test_leading_tilde_is_a_literal_name(base_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HOME", raising=False)
    monkeypatch.delenv("USERPROFILE", raising=False)
    draft = _write(base_dir / "~draft.txt")
    lock_file = _write(base_dir / "~$report.docx")
    resolver = LocalPathResolver(base_dir)

    assert resolver.resolve("~draft.txt") == draft.resolve()
    assert resolver.resolve("~$report.docx") == lock_file.resolve()


def test_rejects_file_outside_base_dir(base_dir: Path, tmp_path: Path) -> None:
    outside = _write(tmp_path / "elsewhere" / "secret.txt")
    resolver = LocalPathResolver(base_dir)

    with pytest.raises(PathTraversalError) as excinfo:
        resolver.resolve(str(outside))

    assert excinfo.value.reason == OUTSIDE_BASE_DIR_REASON


def test_prefix_sibling_directory_is_outside(tmp_path: Path) -> None:
    base = tmp_path / "data"
    base.mkdir()
    sibling = _write(tmp_path / "data-evil" / "x.txt")
    resolver = LocalPathResolver(base)

    with pytest.raises(PathTraversalError) as excinfo:
        resolver.resolve(str(sibling))

    assert excinfo.value.reason == OUTSIDE_BASE_DIR_REASON


@posix_only
def test_rejects_absolute_system_path(base_dir: Path) -> None:
    resolver = LocalPathResolver(base_dir)

    with pytest.raises(PathTraversalError) as excinfo:
        resolver.resolve("/etc/hostname")

    assert excinfo.value.reason == OUTSIDE_BASE_DIR_REASON
    assert "/etc/hostname" in str(excinfo.value)


@posix_only
def test_rejects_symlink_escape(base_dir: Path, tmp_path: Path) -> None:
    external = _write(tmp_path / "external" / "secret.txt", "Confidential content")
    link = base_dir / "escape.txt"
    link.symlink_to(external)
    resolver = LocalPathResolver(base_dir)

    with pytest.raises(PathTraversalError) as excinfo:
        resolver.resolve(str(link))

    assert excinfo.value.reason == OUTSIDE_BASE_DIR_REASON


@posix_only
def test_allows_symlink_that_stays_inside(base_dir: Path) -> None:
    target = _write(base_dir / "real.txt")
    link = base_dir / "alias.txt"
    link.symlink_to(target)
    resolver = LocalPathResolver(base_dir)

    assert resolver.resolve("alias.txt") == target.resolve()


def test_error_detail_never_names_base_dir(base_dir: Path, tmp_path: Path) -> None:
    outside = _write(tmp_path / "other" / "data.log")
    resolver = LocalPathResolver(base_dir)

    for requested in ("../data.log", str(outside)):
        with pytest.raises(PathTraversalError) as excinfo:
            resolver.resolve(requested)
        assert str(base_dir.resolve()) not in excinfo.value.detail
        assert requested in excinfo.value.detail


def test_missing_or_non_regular_file_is_not_found(base_dir: Path) -> None:
    (base_dir / "folder").mkdir()
    resolver = LocalPathResolver(base_dir)

    with pytest.raises(DocumentNotFoundError):
        resolver.resolve("missing.txt")
    with pytest.raises(DocumentNotFoundError):
        resolver.resolve("folder")


def test_empty_request_is_invalid(base_dir: Path) -> None:
    resolver = LocalPathResolver(base_dir)

    with pytest.raises(InvalidRequestError):
        resolver.resolve("   ")


def test_base_dir_must_exist_and_be_a_directory(tmp_path: Path) -> None:
    with pytest.raises(StartupConfigError):
        LocalPathResolver(tmp_path / "missing")

    plain_file = _write(tmp_path / "file.txt")
    with pytest.raises(StartupConfigError):
        LocalPathResolver(plain_file)
