"""Centralized path configuration for the application."""

import os
from pathlib import Path

CONFIG_ENV_VAR = "FILE_PARSER_CONFIG"


def get_config_file() -> Path:
    """
    Get the path to the default file parser configuration.

    Respects the FILE_PARSER_CONFIG environment variable.
    If not set, defaults to config/file_parser.yaml under the working directory.
    """
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path("config/file_parser.yaml")
