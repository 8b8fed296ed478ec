"""CLI commands for the file parser."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import yaml

from src.file_parser.api import ApiResponse, handle_info, handle_local, handle_upload
from src.file_parser.config import load_file_parser_config
from src.file_parser.errors import StartupConfigError
from src.file_parser.service import FileParserService

EXIT_FAILURE = 1
EXIT_STARTUP = 2


def register_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    """Add file parser subcommands to the main CLI parser."""
    _register_info_command(subparsers)
    _register_check_command(subparsers)
    _register_upload_command(subparsers)
    _register_local_command(subparsers)


def _register_info_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "info",
        help="List supported backend families and their file extensions.",
    )
    parser.set_defaults(func=info_cli, command="info")


def _register_check_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "check",
        help="Validate configuration and print the effective settings.",
    )
    parser.set_defaults(func=check_cli, command="check")


def _register_upload_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "upload",
        help="Parse a file's bytes as if they were uploaded.",
    )
    parser.add_argument(
        "file",
        type=Path,
        help="File whose contents are sent as the upload body.",
    )
    parser.add_argument(
        "--content-type",
        help="Declared content type of the upload.",
    )
    parser.add_argument(
        "--markdown",
        action="store_true",
        help="Include the Markdown rendering in the response.",
    )
    parser.set_defaults(func=upload_cli, command="upload")


def _register_local_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "local",
        help="Parse a file under the allowed base directory.",
    )
    parser.add_argument(
        "path",
        help="Path to parse; relative paths are taken from the base directory.",
    )
    parser.add_argument(
        "--markdown",
        action="store_true",
        help="Include the Markdown rendering in the response.",
    )
    parser.add_argument(
        "--front-matter",
        action="store_true",
        help="Prefix the Markdown rendering with YAML front matter.",
    )
    parser.set_defaults(func=local_cli, command="local")


def info_cli(args: argparse.Namespace) -> int:
    """Print the capability listing."""
    return _emit(handle_info())


def check_cli(args: argparse.Namespace) -> int:
    """Validate configuration, including the base directory."""
    try:
        service = _build_service(args)
    except StartupConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_STARTUP

    effective = service.config.to_dict()
    effective["allowed_local_base_dir"] = str(service.resolver.base_dir)
    print(yaml.safe_dump(effective, sort_keys=False), end="")
    return 0


def upload_cli(args: argparse.Namespace) -> int:
    """Parse a file through the upload pipeline."""
    try:
        service = _build_service(args)
    except StartupConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_STARTUP

    path = Path(args.file).expanduser()
    try:
        with path.open("rb") as handle:
            response = handle_upload(
                service,
                handle,
                path.name,
                content_type=args.content_type,
                declared_length=path.stat().st_size,
                render_markdown=args.markdown,
            )
    except OSError as exc:
        print(f"error: cannot read '{path}': {exc.strerror}", file=sys.stderr)
        return EXIT_FAILURE
    return _emit(response)


def local_cli(args: argparse.Namespace) -> int:
    """Parse a file through the local-path pipeline."""
    try:
        service = _build_service(args)
    except StartupConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_STARTUP

    payload: dict[str, Any] = {"file_path": args.path}
    if args.markdown or args.front_matter:
        payload["render_markdown"] = True
    return _emit(handle_local(service, payload, front_matter=args.front_matter))


def _build_service(args: argparse.Namespace) -> FileParserService:
    config = load_file_parser_config(getattr(args, "config", None))
    config = config.with_overrides(
        max_file_size_mb=getattr(args, "max_file_size_mb", None),
        allowed_local_base_dir=getattr(args, "base_dir", None),
    )
    return FileParserService(config)


def _emit(response: ApiResponse) -> int:
    rendered = json.dumps(response.body, indent=2, ensure_ascii=False, default=str)
    if response.ok:
        print(rendered)
        return 0
    print(rendered, file=sys.stderr)
    return EXIT_FAILURE
