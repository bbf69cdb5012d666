"""
Logging on top of rich

stdout belongs to the remote byte stream, so log records, tracebacks and
prompts all go to stderr.
"""
import sys
import logging
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler
from rich.console import Console
from rich.traceback import install as install_traceback


_stdout_console = Console(file=sys.stdout)
_stderr_console = Console(file=sys.stderr)

# Third-party loggers kept at WARNING or above
_LIBRARY_LOGGERS = ("paramiko", "serial")

_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    rich_tracebacks: bool = True,
) -> None:
    """
    Route the root logger to a rich handler on stderr, plus an optional file.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL); unknown
            names fall back to INFO
        log_file: Plain-text log file, parent directories are created
        rich_tracebacks: Render uncaught exceptions with rich
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if rich_tracebacks:
        install_traceback(console=_stderr_console, width=120)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    # markup off: remote banners and device output may contain [brackets]
    console_handler = RichHandler(
        console=_stderr_console,
        show_time=True,
        show_path=False,
        rich_tracebacks=rich_tracebacks,
        markup=False,
    )
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # paramiko logs every packet-level event at DEBUG
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Module logger, configured by setup_logging"""
    return logging.getLogger(name)


def get_stdout_console() -> Console:
    """Console for user-facing tables (stdout)"""
    return _stdout_console


def get_stderr_console() -> Console:
    """Console for logs, prompts and panels (stderr)"""
    return _stderr_console
