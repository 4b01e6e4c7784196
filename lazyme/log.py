"""Logging setup shared by the CLI, the Streamlit app and the bridge.

Session tokens and API keys pass through request headers that get logged
on failure, so every handler carries a redacting filter.
"""
from __future__ import annotations

import logging
import os
import re
import sys
from datetime import datetime
from pathlib import Path

_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_NOISY = ("httpx", "httpcore", "openai", "urllib3", "asyncio")
_configured = False

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+"),
    re.compile(r"(__session=)[^;\s]+"),
    re.compile(r"(gsk_)[A-Za-z0-9]+"),
)


def redact(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r"\1***", text)
    return text


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg, record.args = cleaned, None
        return True


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; configures root handlers on first call."""
    global _configured
    if not _configured:
        _configure()
        _configured = True
    return logging.getLogger(name)


def set_level(level: int | str) -> None:
    """Change the console level after startup (``run_tailor -v``)."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(min(level, logging.DEBUG) if _file_handler(root) else level)
    for handler in root.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def _file_handler(root: logging.Logger) -> logging.FileHandler | None:
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            return handler
    return None


def _configure() -> None:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Streamlit reruns the script; handlers from the first run stay attached.
    if root.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    console.addFilter(RedactingFilter())
    root.addHandler(console)

    if os.environ.get("LAZYME_NO_LOG_FILE"):
        return
    try:
        _LOG_DIR.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(
            _LOG_DIR / f"lazyme_{datetime.now():%Y-%m-%d}.log", encoding="utf-8",
        )
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        fh.addFilter(RedactingFilter())
        root.addHandler(fh)
        root.setLevel(logging.DEBUG)
    except OSError:
        pass
