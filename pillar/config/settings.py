import os
import threading
from contextlib import contextmanager
from enum import Enum
from logging import DEBUG, ERROR, INFO, WARNING
from pathlib import Path
from typing import Optional

from pydantic.dataclasses import dataclass


APP_NAME = "pillar"

DOT_DIR = ".pillar"

CONFIG_FILE = f"{DOT_DIR}/config.yml"

TEMPLATES_DIR = f"{DOT_DIR}/templates"

LOG_DIR = f"{DOT_DIR}/logs"

AUTHOR_ENV_VAR = "PILLAR_AUTHOR"

LOG_LEVEL_ENV_VAR = "PILLAR_LOG_LEVEL"

LOCAL_SERVER_HOST = "127.0.0.1"
LOCAL_SERVER_PORT = 4480


def find_in_cwd_or_parents(filename: Path | str, start: Path | str = ".") -> Optional[Path]:
    """
    Find the first existing Path (or None) for a given filename in the given directory
    or its parents.
    """
    if isinstance(filename, str):
        filename = Path(filename)
    path = Path(start).absolute()
    while True:
        file_path = path / filename
        if file_path.exists():
            return file_path
        if path.parent == path:
            return None
        path = path.parent


class LogLevel(Enum):
    debug = DEBUG
    info = INFO
    warning = WARNING
    message = WARNING  # Same as warning, just for important console messages.
    error = ERROR

    @classmethod
    def parse(cls, level_str: str):
        canon_name = level_str.strip().lower()
        if canon_name == "warn":
            canon_name = "warning"
        try:
            return cls[canon_name]
        except KeyError:
            raise ValueError(
                f"Invalid log level: `{level_str}`. Valid options are: "
                + ", ".join(f"`{name}`" for name in cls.__members__)
            )

    def __str__(self):
        return self.name


@dataclass
class Settings:
    console_log_level: LogLevel
    """The log level for console-based logging."""

    file_log_level: LogLevel
    """The log level for file-based logging."""

    local_server_host: str
    """Host for the local web UI. Always a loopback address."""

    local_server_port: int
    """Default port for the local web UI."""

    author: Optional[str] = None
    """Explicit comment author. If unset, the author is resolved from git or the environment."""


def _initial_console_log_level() -> LogLevel:
    level_str = os.environ.get(LOG_LEVEL_ENV_VAR)
    return LogLevel.parse(level_str) if level_str else LogLevel.warning


# Initial default settings.
_settings = Settings(
    console_log_level=_initial_console_log_level(),
    file_log_level=LogLevel.info,
    local_server_host=LOCAL_SERVER_HOST,
    local_server_port=LOCAL_SERVER_PORT,
    author=os.environ.get(AUTHOR_ENV_VAR) or None,
)


def global_settings() -> Settings:
    """
    Read access to global settings.
    """
    return _settings


_settings_lock = threading.RLock()


@contextmanager
def update_global_settings():
    """
    Context manager for thread-safe updates to global settings.
    """
    with _settings_lock:
        yield _settings


## Tests


def test_log_level_parse():
    import pytest

    assert LogLevel.parse("WARN") == LogLevel.warning
    assert LogLevel.parse(" debug ") == LogLevel.debug
    with pytest.raises(ValueError):
        LogLevel.parse("loud")


def test_find_in_cwd_or_parents():
    import tempfile

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp).resolve()
        (root / DOT_DIR).mkdir()
        nested = root / "a" / "b"
        nested.mkdir(parents=True)

        assert find_in_cwd_or_parents(DOT_DIR, nested) == root / DOT_DIR
        assert find_in_cwd_or_parents("no-such-marker-dir", nested) is None
