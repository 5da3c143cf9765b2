"""Logging configuration for filetrack.

Provides centralized logging setup with sensible defaults:
- Default: WARNING level (quiet operation)
- --debug flag: DEBUG level with full context
- FILETRACK_DEBUG=true or FILETRACK_LOG_LEVEL=DEBUG env vars: Override for CI/scripting

Log records always go to stderr so stdout carries only diff output.

Usage:
    from filetrack.logging import configure_logging
    configure_logging(debug=args.debug)

Priority for level resolution (highest to lowest):
    1. Explicit `level` parameter (programmatic override)
    2. FILETRACK_LOG_LEVEL env var (any level: DEBUG, INFO, WARNING, etc.)
    3. FILETRACK_DEBUG=true env var (simple boolean)
    4. `debug=True` parameter (--debug flag or config file)
    5. WARNING (default)
"""

import logging
import os
import sys

# Format includes module path for tracing issues
_DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_DEFAULT_FORMAT = "%(name)s: %(message)s"


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: object = None,
) -> int:
    """Configure logging for the filetrack CLI.

    Args:
        debug: Enable DEBUG level with detailed format
        level: Override log level (int or string like "DEBUG", "INFO")
        stream: Output stream (default: stderr)

    Returns:
        The resolved log level
    """
    resolved_level: int
    if level is not None:
        resolved_level = _parse_level(level)
    elif env_level := os.environ.get("FILETRACK_LOG_LEVEL"):
        resolved_level = _parse_level(env_level)
    elif os.environ.get("FILETRACK_DEBUG", "").lower() in ("true", "1", "yes"):
        resolved_level = logging.DEBUG
    elif debug:
        resolved_level = logging.DEBUG
    else:
        resolved_level = logging.WARNING

    console_format = _DEBUG_FORMAT if resolved_level <= logging.DEBUG else _DEFAULT_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved_level)
    handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(handler)

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s, debug=%s",
        logging.getLevelName(resolved_level),
        debug,
    )
    return resolved_level


def _parse_level(level: int | str) -> int:
    """Parse log level from int or string."""
    if isinstance(level, int):
        return level
    numeric = getattr(logging, level.upper(), None)
    if isinstance(numeric, int):
        return numeric
    try:
        return int(level)
    except ValueError:
        return logging.WARNING
