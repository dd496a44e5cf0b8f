"""Levelled, thread-safe logging to the console and log files."""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any, TextIO


class Level(IntEnum):
    """Severity of a log entry; higher values are more severe."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    def __str__(self) -> str:
        return self.name


@dataclass
class LogConfig:
    """Settings from which a logger is built."""

    file: str = ""
    max_size_mb: int = 0
    max_files: int = 0
    level: str = ""
    console: bool = False
    json: bool = False


_LEVEL_NAMES = {
    "debug": Level.DEBUG,
    "DEBUG": Level.DEBUG,
    "info": Level.INFO,
    "INFO": Level.INFO,
    "warn": Level.WARN,
    "WARN": Level.WARN,
    "warning": Level.WARN,
    "WARNING": Level.WARN,
    "error": Level.ERROR,
    "ERROR": Level.ERROR,
}


def parse_level(text: str) -> Level:
    """Return the level named by ``text``, falling back to INFO."""
    return _LEVEL_NAMES.get(text, Level.INFO)


class Logger:
    """Writes formatted log lines to one or more text streams."""

    def __init__(
        self,
        level: Level = Level.INFO,
        outputs: list[TextIO] | None = None,
        *,
        prefix: str = "",
        json_mode: bool = False,
    ) -> None:
        self.level = level
        self.outputs: list[TextIO] = outputs if outputs is not None else [sys.stdout]
        self.prefix = prefix
        self.json_mode = json_mode
        self._lock = threading.Lock()

    def set_level(self, level: Level) -> None:
        with self._lock:
            self.level = level

    def set_prefix(self, prefix: str) -> None:
        with self._lock:
            self.prefix = prefix

    def _log(self, level: Level, fmt: str, args: tuple[Any, ...]) -> None:
        if level < self.level:
            return
        with self._lock:
            now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            msg = fmt % args if args else fmt
            if self.json_mode:
                line = f'{{"time":"{now}","level":"{level.name}","msg":"{msg}"}}'
            elif self.prefix:
                line = f"[{now}] [{level.name}] [{self.prefix}] {msg}"
            else:
                line = f"[{now}] [{level.name}] {msg}"
            for out in self.outputs:
                out.write(line + "\n")
                flush = getattr(out, "flush", None)
                if flush is not None:
                    flush()

    def debug(self, fmt: str, *args: Any) -> None:
        self._log(Level.DEBUG, fmt, args)

    def info(self, fmt: str, *args: Any) -> None:
        self._log(Level.INFO, fmt, args)

    def warn(self, fmt: str, *args: Any) -> None:
        self._log(Level.WARN, fmt, args)

    def error(self, fmt: str, *args: Any) -> None:
        self._log(Level.ERROR, fmt, args)

    def fatal(self, fmt: str, *args: Any) -> None:
        """Log at ERROR level, then exit with status 1."""
        self._log(Level.ERROR, fmt, args)
        raise SystemExit(1)

    def with_prefix(self, prefix: str) -> Logger:
        """Return a new logger sharing this one's outputs, with ``prefix``."""
        return Logger(
            self.level, self.outputs, prefix=prefix, json_mode=self.json_mode
        )


def configure(config: LogConfig) -> Logger:
    """Build a logger from ``config``, opening the log file if one is set."""
    logger = Logger(parse_level(config.level), json_mode=config.json)
    outputs: list[TextIO] = []
    if config.console:
        outputs.append(sys.stdout)
    if config.file:
        directory = Path(config.file).parent
        try:
            directory.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f"failed to create log directory: {exc}") from exc
        try:
            handle = open(config.file, "a", encoding="utf-8")
        except OSError as exc:
            raise OSError(f"failed to open log file: {exc}") from exc
        outputs.append(handle)
    if not outputs:
        outputs.append(sys.stdout)
    logger.outputs = outputs
    return logger


_registry: dict[str, Logger] = {"default": Logger(Level.INFO)}


def set_default(logger: Logger) -> None:
    """Replace the logger used by the module-level functions."""
    _registry["default"] = logger


def get_default() -> Logger:
    """Return the logger used by the module-level functions."""
    return _registry["default"]


def debug(fmt: str, *args: Any) -> None:
    get_default().debug(fmt, *args)


def info(fmt: str, *args: Any) -> None:
    get_default().info(fmt, *args)


def warn(fmt: str, *args: Any) -> None:
    get_default().warn(fmt, *args)


def error(fmt: str, *args: Any) -> None:
    get_default().error(fmt, *args)


def fatal(fmt: str, *args: Any) -> None:
    get_default().fatal(fmt, *args)


def init(prefix: str) -> logging.Logger:
    """Set up the standard ``resticm`` logger with a prefix and date and time."""
    std = logging.getLogger("resticm")
    for handler in list(std.handlers):
        std.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            f"{prefix} %(asctime)s %(message)s", datefmt="%Y/%m/%d %H:%M:%S"
        )
    )
    std.addHandler(handler)
    return std