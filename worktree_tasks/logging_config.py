"""Logging configuration for worktree-tasks"""
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

# Every module logs below this name, third-party libraries log beside it.
LOGGER_NAME = "gw"
LOG_FILENAME = "gw.log"

# Libraries that log every request or command at DEBUG
NOISY_LOGGERS = ("git", "urllib3", "asyncio")

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Colors the level name when the target stream is a terminal.

    The record is copied before it is decorated, so handlers sharing it
    (the log file) never receive escape codes.
    """

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None,
                 stream: Optional[TextIO] = None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        stream = stream or sys.stderr
        self.use_color = hasattr(stream, "isatty") and stream.isatty()

    def format(self, record):
        color = self.COLORS.get(record.levelno)
        if self.use_color and color:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    tui_mode: bool = False,
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the application logger and return it.

    Args:
        verbose: If True, record INFO level messages
        debug: If True, record DEBUG level messages, library ones included
        tui_mode: If True, log to the file only (the renderer owns the screen)
        log_dir: Directory for gw.log, defaults to the store directory
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if tui_mode else level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    if tui_mode or debug:
        directory = Path(log_dir) if log_dir else Path.home() / ".local" / "share" / "gw-app"
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / LOG_FILENAME, mode="w")  # Overwrite each run
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    if not tui_mode:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        fmt = FILE_FORMAT if debug else "[%(name)s] %(message)s"
        console_handler.setFormatter(ColoredFormatter(fmt=fmt, datefmt=DATE_FORMAT, stream=sys.stderr))
        root_logger.addHandler(console_handler)

    return logging.getLogger(LOGGER_NAME)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, e.g. ``worktree_tasks.services.git_service`` -> ``gw.git_service``."""
    short = name.rsplit(".", 1)[-1] if name.startswith("worktree_tasks.") else name
    if short == "__main__":
        short = "cli"
    return logging.getLogger(f"{LOGGER_NAME}.{short}")
