#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from src.cli.commands.parse import register_commands


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse documents into a structured model and Markdown.",
        prog="python -m main",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to the file parser configuration (default: $FILE_PARSER_CONFIG or config/file_parser.yaml).",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        help="Override the allowed base directory for local-path parsing.",
    )
    parser.add_argument(
        "--max-file-size-mb",
        type=int,
        help="Override the maximum accepted input size in megabytes.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True
    register_commands(subparsers)
    return parser


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
