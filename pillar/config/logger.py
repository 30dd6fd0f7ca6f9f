import logging
import os
import threading
from dataclasses import dataclass
from functools import cache
from logging import Formatter
from pathlib import Path
from typing import Optional

import rich
from rich import reconfigure
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from pillar.config.settings import global_settings, LOG_DIR, LogLevel
from pillar.config.text_styles import (
    EMOJI_ERROR,
    EMOJI_WARN,
    PillarHighlighter,
    RICH_STYLES,
)

LOG_FILE_NAME = "pillar.log"

_log_root: Optional[Path] = None

_log_lock = threading.RLock()


def log_dir() -> Optional[Path]:
    return _log_root / LOG_DIR if _log_root else None


def log_file_path() -> Optional[Path]:
    dir = log_dir()
    return dir / LOG_FILE_NAME if dir else None


@dataclass
class TlContext(threading.local):
    console: Optional[Console] = None


_tl_context = TlContext()
"""
Thread-local context override for Rich console.
"""


@cache
def get_highlighter():
    return PillarHighlighter()


@cache
def get_theme():
    return Theme(RICH_STYLES)


reconfigure(theme=get_theme(), highlighter=get_highlighter())


def get_console() -> Console:
    """
    Return the Rich global console, unless it is overridden by a
    thread-local console.
    """
    return _tl_context.console or rich.get_console()


_file_handler: Optional[logging.FileHandler] = None
_console_handler: Optional[RichHandler] = None


def logging_setup():
    """
    Set up or reset logging setup. Call at initial run and again if the log directory
    changes. Replaces all previous handlers on the root logger. File logging is only
    enabled once a workspace (log root) is known.
    """
    global _file_handler, _console_handler

    settings = global_settings()

    if _file_handler:
        _file_handler.close()
        _file_handler = None

    path = log_file_path()
    if path:
        os.makedirs(path.parent, exist_ok=True)
        _file_handler = logging.FileHandler(path)
        _file_handler.setLevel(settings.file_log_level.value)
        _file_handler.setFormatter(
            Formatter("%(asctime)s %(levelname).1s %(name)s - %(message)s")
        )

    _console_handler = RichHandler(
        console=rich.get_console(),
        level=settings.console_log_level.value,
        show_time=False,
        show_path=False,
        show_level=False,
        highlighter=get_highlighter(),
        markup=True,
    )
    _console_handler.setLevel(settings.console_log_level.value)
    _console_handler.setFormatter(Formatter("%(message)s"))

    # Quiet the server libraries, which get their own log config.
    log_levels = {
        None: logging.DEBUG,
        "uvicorn": logging.WARNING,
        "uvicorn.error": logging.WARNING,
        "uvicorn.access": logging.WARNING,
    }

    for logger_name, level in log_levels.items():
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = logger_name is None
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        if logger_name is None:
            logger.addHandler(_console_handler)
            if _file_handler:
                logger.addHandler(_file_handler)


def prefix_args(args, warn_emoji: str = ""):
    if len(args) > 0 and warn_emoji:
        args = (f"{warn_emoji} {args[0]}",) + args[1:]
    return args


class CustomLogger:
    """
    Custom logger to be clearer about user messages.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def debug(self, *args, **kwargs):
        self.logger.debug(*args, **kwargs)

    def info(self, *args, **kwargs):
        self.logger.info(*args, **kwargs)

    def message(self, *args, **kwargs):
        self.logger.warning(*args, **kwargs)

    def warning(self, *args, **kwargs):
        self.logger.warning(*prefix_args(args, warn_emoji=EMOJI_WARN), **kwargs)

    def error(self, *args, **kwargs):
        self.logger.error(*prefix_args(args, warn_emoji=EMOJI_ERROR), **kwargs)

    def log(self, level: LogLevel, *args, **kwargs):
        getattr(self, level.name)(*args, **kwargs)

    # Fallback for other attributes/methods.
    def __getattr__(self, attr):
        return getattr(self.logger, attr)


def get_logger(name: str):
    return CustomLogger(name)


def reset_logging(log_root: Optional[Path] = None):
    """
    Reset the logging root, if it has changed.
    """
    global _log_root
    with _log_lock:
        if log_root and log_root != _log_root:
            _log_root = log_root
            logging_setup()
            log = get_logger(__name__)
            log.info("Logging to: %s", log_file_path())
