"""Centralized logging utilities for mdinbox entry points.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where records go. Handlers installed here carry a
:class:`TokenRedactingFilter` so an access token that slips into a message,
for example through an echoed request header, never reaches the console or
a log file.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Optional

# GitHub token shapes plus the value of an ``Authorization: token ...`` header
_TOKEN_PATTERN = re.compile(
    r"\b(?:gh[pousr]_[A-Za-z0-9]{8,}|github_pat_[A-Za-z0-9_]{8,})\b|(?<=token )[A-Za-z0-9_\-.]{8,}"
)

REDACTED = "[redacted]"

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")


class TokenRedactingFilter(logging.Filter):
    """Replace anything shaped like an access token in a log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact the fully formatted message in place; never drops records."""
        message = record.getMessage()
        redacted = _TOKEN_PATTERN.sub(REDACTED, message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def redact_tokens(text: str) -> str:
    """Return ``text`` with token-shaped substrings replaced."""
    return _TOKEN_PATTERN.sub(REDACTED, text)


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
) -> logging.Logger:
    """Configure root logging handlers for the mdinbox CLI.

    Parameters
    ----------
    log_level : int | str
        Numeric logging level or string name (e.g., "INFO").
    log_file : str, optional
        Path of a file that receives a copy of the log output.
    trace_mode : bool, default False
        When true, emit timestamps and logger names, and let the HTTP
        client log each request.

    Returns
    -------
    logging.Logger
        The configured root logger instance.

    """
    if isinstance(log_level, int):
        resolved_level = log_level
    else:
        resolved_level = logging.getLevelName(str(log_level).upper())
        if not isinstance(resolved_level, int):
            resolved_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()

    if trace_mode:
        formatter = logging.Formatter(
            "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        formatter = logging.Formatter("%(levelname)s: %(message)s")
    redactor = TokenRedactingFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
        except OSError as exc:  # pragma: no cover - handled at runtime
            print(f"Warning: Could not create log file {log_file}: {exc}", file=sys.stderr)
            log_file = None

    for handler in handlers:
        handler.setLevel(resolved_level)
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
        root_logger.addHandler(handler)

    if log_file:
        root_logger.info(f"Logging to file: {log_file}")

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(resolved_level if trace_mode else max(resolved_level, logging.WARNING))

    return root_logger
