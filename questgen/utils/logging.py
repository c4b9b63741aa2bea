"""Logging setup shared by the CLI, the API server and the dashboard."""

import logging
import re
import sys
from pathlib import Path

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")


class ColoredFormatter(logging.Formatter):
    """Console formatter: coloured level names, short logger names."""

    RESET = "\033[0m"
    COLORS = {
        "DEBUG": "\033[37m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname, self.RESET)
        level = f"{color}{record.levelname:8}{self.RESET}"
        short_name = record.name.split(".")[-1]
        message = record.getMessage()
        if record.levelno >= logging.WARNING:
            message = f"{color}{message}{self.RESET}"
        line = f"{self.formatTime(record, self.datefmt)} | {level} | {short_name:18} | {message}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class PlainFormatter(logging.Formatter):
    """File formatter (no ANSI codes)."""

    def format(self, record):
        message = _ANSI_RE.sub("", record.getMessage())
        short_name = record.name.split(".")[-1]
        line = f"{self.formatTime(record, self.datefmt)} | {record.levelname:8} | {short_name:18} | {message}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: int | str = logging.INFO, log_file: str | Path | None = None) -> None:
    """Install console (and optional file) handlers on the root logger."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ColoredFormatter(datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.handlers = []
    root.addHandler(console)
    root.setLevel(level)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(PlainFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)

    # Silence noisy client libraries
    for name in ("httpx", "httpcore", "openai", "anthropic"):
        logging.getLogger(name).setLevel(logging.WARNING)
