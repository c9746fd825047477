"""Logging for FeeDesk.

Every component logs under the ``feedesk`` logger; ``setup_logging`` sends
that tree to a size-rotated file and, optionally, the console. Payment and
credential details must pass through ``sanitize_for_log`` before they are
written.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "feedesk"
LOG_FILE = "feedesk.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CARD_NUMBER = re.compile(r"\b(?:\d[ -]?){12,15}(\d{4})\b")
_REDACTIONS = [
    (re.compile(r"Bearer [\w.-]+", re.IGNORECASE), "Bearer [REDACTED]"),
    (re.compile(r"(['\"]?cvv['\"]?\s*[:=]\s*['\"]?)\d{3,4}", re.IGNORECASE), r"\1[REDACTED]"),
    (
        re.compile(r"(['\"]?password['\"]?\s*[:=]\s*['\"]?)[^'\"\s,}]+", re.IGNORECASE),
        r"\1[REDACTED]",
    ),
    (re.compile(r"access_token=[\w.-]+", re.IGNORECASE), "access_token=[REDACTED]"),
]


def setup_logging(
    log_dir: str | Path | None = None,
    level: str | None = None,
    console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the ``feedesk`` logger tree.

    ``log_dir`` falls back to ``FEEDESK_LOG_DIR`` then ``./logs``; ``level``
    to ``FEEDESK_LOG_LEVEL`` then INFO. Calling it again replaces the
    handlers from the previous call.
    """
    directory = Path(log_dir or os.environ.get("FEEDESK_LOG_DIR", "logs"))
    directory.mkdir(parents=True, exist_ok=True)
    level_name = (level or os.environ.get("FEEDESK_LOG_LEVEL", "INFO")).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            directory / LOG_FILE,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    root = logging.getLogger(ROOT_LOGGER)
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.setLevel(log_level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.info("Logging to %s at %s", directory / LOG_FILE, level_name)
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("sync")`` -> ``feedesk.sync``."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def truncate_output(output: str, max_length: int = 5000) -> str:
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"\n... [truncated, {len(output) - max_length} more chars]"


def sanitize_for_log(text: str) -> str:
    """Mask card numbers down to their last four and redact secrets."""
    result = _CARD_NUMBER.sub(r"[CARD ****\1]", text)
    for pattern, replacement in _REDACTIONS:
        result = pattern.sub(replacement, result)
    return result
