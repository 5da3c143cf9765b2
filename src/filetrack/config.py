"""Filetrack configuration management.

Loads configuration from YAML with sensible defaults.
All settings can be overridden via environment variables (FILETRACK_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. .filetrack.yaml (project-local, relative to the working directory)
3. ~/.config/filetrack/config.yaml (user-global)
4. Built-in defaults

The archive directory name (``.track``) is fixed and not configurable.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from filetrack.errors import config_error

logger = logging.getLogger(__name__)

ENV_PREFIX = "FILETRACK_"

PROJECT_CONFIG_NAME = ".filetrack.yaml"


@dataclass(frozen=True, slots=True)
class TrackConfig:
    """Root configuration for filetrack."""

    context_lines: int = 3
    """Unchanged lines shown around each change in rendered diffs."""

    max_lines: int = 200
    """Maximum rendered diff lines before truncating (0 = unlimited)."""

    lock: bool = False
    """Hold an advisory lock on the archive directory while committing."""

    color: bool = True
    """Colorize terminal output."""

    debug: bool = False
    """Enable debug logging by default."""


def _default_config_paths(cwd: Path) -> list[Path]:
    return [
        cwd / PROJECT_CONFIG_NAME,
        Path.home() / ".config" / "filetrack" / "config.yaml",
    ]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides.

    Examples:
        FILETRACK_CONTEXT_LINES=5
        FILETRACK_LOCK=true
    """
    for f in fields(TrackConfig):
        raw = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if raw is None:
            continue
        config_dict[f.name] = raw
    return config_dict


def _coerce(config_dict: dict[str, Any], source: Path | str) -> TrackConfig:
    """Validate types and build the config, rejecting unknown keys."""
    known = {f.name: f for f in fields(TrackConfig)}
    values: dict[str, Any] = {}

    for key, value in config_dict.items():
        if key not in known:
            raise config_error(source, f"unknown key '{key}'")

        default = getattr(TrackConfig(), key)
        if isinstance(default, bool):
            if isinstance(value, str):
                value = _parse_bool(value)
            elif not isinstance(value, bool):
                raise config_error(source, f"'{key}' must be true or false")
        elif isinstance(default, int):
            try:
                value = int(value)
            except (TypeError, ValueError) as e:
                raise config_error(source, f"'{key}' must be an integer", e) from e
            if value < 0:
                raise config_error(source, f"'{key}' must not be negative")
        values[key] = value

    return TrackConfig(**values)


def load_config(path: Path | str | None = None, *, cwd: Path | None = None) -> TrackConfig:
    """Load configuration from file with env overrides.

    Args:
        path: Explicit config file (must exist when given)
        cwd: Directory searched for the project-local config file

    Returns:
        TrackConfig instance

    Raises:
        TrackError: CONFIG_INVALID if the file is unreadable or malformed
    """
    config_dict: dict[str, Any] = {}
    source: Path | str = "defaults"

    if path is not None:
        candidates = [Path(path)]
    else:
        candidates = [p for p in _default_config_paths(cwd or Path.cwd()) if p.exists()]

    if candidates:
        config_path = candidates[0]
        source = config_path
        try:
            with open(config_path, encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except OSError as e:
            raise config_error(config_path, str(e), e) from e
        except yaml.YAMLError as e:
            raise config_error(config_path, f"malformed YAML: {e}", e) from e

        if not isinstance(file_config, dict):
            raise config_error(config_path, "top level must be a mapping")
        config_dict.update(file_config)
        logger.debug("Loaded config from %s", config_path)

    config_dict = _apply_env_overrides(config_dict)
    return _coerce(config_dict, source)

