"""
Configuration loading utilities.

This module reads the declarative files a deployment is built from:

    1. Config file (e.g. deploy.env) - KEY=VALUE pairs that become the
       function's environment variables
    2. Event source file (event_sources.json) - event source mappings and
       scheduled events
    3. Event/context JSON files - used when running a handler locally

Usage:
    from lambda_deployer.core.config_loader import load_event_sources

    event_sources = load_event_sources("event_sources.json")
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import dotenv_values

from .exceptions import ConfigurationError
from .schemas import EventSourceList, normalize_event_sources


def parse_env_file(file_path: str) -> Dict[str, str]:
    """
    Parse a KEY=VALUE file into a dictionary.

    Blank lines and comments are skipped. An empty file yields an empty
    dictionary. A bare key without "=" maps to an empty string.

    Raises:
        ConfigurationError: If the file does not exist
    """
    path = Path(file_path)
    if not path.is_file():
        raise ConfigurationError("Config file not found", config_file=str(file_path))

    values = dotenv_values(path)
    return {key: (value if value is not None else "") for key, value in values.items()}


def load_json_file(file_path: str) -> Any:
    """
    Load a JSON file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or not valid JSON
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read file: {e}", config_file=str(file_path))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON: {e}", config_file=str(file_path))


def load_event_sources(file_path: Optional[str]) -> EventSourceList:
    """
    Load and normalize the event source file.

    Args:
        file_path: Path to event_sources.json, or None/"" when not configured

    Returns:
        EventSourceList (empty when no file is configured)

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    if not file_path:
        return EventSourceList()

    document = load_json_file(file_path)
    return normalize_event_sources(document, source=str(file_path))
