"""Logging setup for the bundler CLI and server."""

from __future__ import annotations

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import ConfigError, LoggingConfig

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
ACCESS_FORMAT = "%(asctime)s %(message)s"
MAIN_LOG_NAME = "cjsbundle.log"
DEBUG_LOG_NAME = "debug.log"
ACCESS_LOG_NAME = "access.log"
ACCESS_LOGGER = "werkzeug"
PACKAGE_LOGGER = "cjsbundle"
LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# werkzeug colours status codes in its request lines.
ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    return ANSI_PATTERN.sub("", text)


class PlainFormatter(logging.Formatter):
    """File formatter that drops terminal escape sequences."""

    def format(self, record: logging.LogRecord) -> str:
        return strip_ansi(super().format(record))


class ConsoleFormatter(logging.Formatter):
    """Level symbol prefix, plus the logger name for records from other libraries."""

    SYMBOLS: dict[int, tuple[str, str]] = {
        logging.DEBUG: ("D", "\x1b[36m"),
        logging.INFO: ("I", "\x1b[32m"),
        logging.WARNING: ("!", "\x1b[33m"),
        logging.ERROR: ("X", "\x1b[31m"),
        logging.CRITICAL: ("X", "\x1b[35m"),
    }

    RESET = "\x1b[0m"

    def __init__(self, use_color: bool) -> None:
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        symbol, color = self.SYMBOLS.get(record.levelno, ("?", "\x1b[37m"))
        message = super().format(record)
        if not _is_package_record(record):
            message = f"[{record.name}] {message}"
        if not self.use_color:
            return f"{symbol} {strip_ansi(message)}"
        return f"{color}{symbol}{self.RESET} {message}"


def configure_logging(
    logging_config: LoggingConfig,
    root_dir: Path,
    *,
    serving: bool = False,
) -> None:
    """Install file and console handlers on the root logger.

    With ``serving`` set, werkzeug's request lines go to ``logs/access.log``
    and the console rather than the main log.
    """

    level = level_from_string(logging_config.level)
    log_dir = (root_dir / "logs").expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)

    console = _console_handler(sys.stderr)
    handlers: list[logging.Handler] = [
        _file_handler(log_dir / MAIN_LOG_NAME, logging.INFO, FILE_FORMAT),
        console,
    ]
    if logging_config.debug_file:
        handlers.append(_file_handler(log_dir / DEBUG_LOG_NAME, logging.DEBUG, FILE_FORMAT))
    logging.basicConfig(level=level, handlers=handlers, force=True)

    access = logging.getLogger(ACCESS_LOGGER)
    for handler in list(access.handlers):
        access.removeHandler(handler)
        handler.close()
    access.propagate = not serving
    if serving:
        access.setLevel(logging.INFO)
        access.addHandler(_file_handler(log_dir / ACCESS_LOG_NAME, logging.INFO, ACCESS_FORMAT))
        access.addHandler(console)


def level_from_string(level: str) -> int:
    try:
        return LEVELS[level.strip().upper()]
    except KeyError as exc:
        raise ConfigError(f"Unknown log level: {level}") from exc


def _is_package_record(record: logging.LogRecord) -> bool:
    return record.name == PACKAGE_LOGGER or record.name.startswith(f"{PACKAGE_LOGGER}.")


def _file_handler(path: Path, level: int, fmt: str) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=5, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(PlainFormatter(fmt))
    return handler


def _console_handler(stream) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(logging.DEBUG)
    isatty = getattr(stream, "isatty", None)
    handler.setFormatter(ConsoleFormatter(use_color=bool(isatty and isatty())))
    return handler


__all__ = [
    "ConsoleFormatter",
    "PlainFormatter",
    "configure_logging",
    "level_from_string",
    "strip_ansi",
]
