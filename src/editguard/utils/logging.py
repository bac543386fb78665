"""Structured logging setup for editguard.

The CLI calls configure_logging() and logs JSON lines to a file. When editguard
is imported as a library and nothing has configured structlog, the library
default applies instead: WARNING and above, written to stderr, so guard
rejections stay visible without DEBUG/INFO chatter on stdout.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

import structlog


VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

LIBRARY_DEFAULT_LEVEL = logging.WARNING


def default_log_file() -> Path:
    return Path.home() / ".cache" / "editguard" / "logs" / "editguard.log"


def resolve_log_level(level: Optional[str] = None) -> str:
    """Explicit level, else EDITGUARD_LOG_LEVEL, else INFO (unknown names fall back to INFO)."""
    log_level = (level or os.environ.get("EDITGUARD_LOG_LEVEL", "INFO")).upper()
    return log_level if log_level in VALID_LEVELS else "INFO"


def _processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ]


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure structlog for JSON logging to ~/.cache/editguard/logs/editguard.log.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. When omitted the
            EDITGUARD_LOG_LEVEL environment variable is used (default INFO).

    Log levels:
    - DEBUG: Extracted canons, anchor lists, per-paragraph diff metrics
    - INFO: Edit plans, accepted completions, lock changes
    - WARNING: Rejected completions (anchor mismatch, diff exceeded, scope violations)
    - ERROR: Configuration failures

    Example:
        export EDITGUARD_LOG_LEVEL=DEBUG
        editguard check draft.md completion.md --instruction "sửa body"

        tail -f ~/.cache/editguard/logs/editguard.log | jq .
    """
    log_file = default_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(level)),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )


def configure_library_defaults() -> bool:
    """
    Install the quiet library default unless structlog is already configured.

    Loggers are not cached, so a later configure_logging() (or the host
    application's own structlog.configure) still takes effect.

    Returns:
        True when the default was installed
    """
    if structlog.is_configured():
        return False

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(LIBRARY_DEFAULT_LEVEL),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )
    return True


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("edit_plan_created", target="BODY", mode="PATCH")
    """
    return structlog.get_logger(name)


configure_library_defaults()
