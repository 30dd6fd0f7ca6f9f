import sys
from functools import wraps
from typing import Callable, TypeVar

from pillar.config.logger import get_logger, log_file_path
from pillar.config.text_styles import COLOR_ERROR
from pillar.errors import NONFATAL_EXCEPTIONS
from pillar.shell_ui.shell_output import cprint

log = get_logger(__name__)


def summarize_traceback(exception: Exception) -> str:
    exception_str = str(exception)
    lines = exception_str.splitlines()
    exc_type = type(exception).__name__
    summary = f"{exc_type}: " + "\n".join(
        line
        for line in lines
        if line.strip()
        and not line.lstrip().startswith("Traceback")
        and not line.lstrip().startswith("The above exception")
        and not line.startswith("    ")
    )
    cause = exception.__cause__
    if cause:
        cause_lines = str(cause).splitlines()
        summary += f"\n  caused by {type(cause).__name__}: {cause_lines[0] if cause_lines else ''}"
    return summary


R = TypeVar("R")


def wrap_with_exception_printing(func: Callable[..., R]) -> Callable[..., R]:
    """
    Run a command, reporting errors and exiting with status 1. Self-explanatory errors
    get a one-line summary; anything else gets a full traceback.
    """

    @wraps(func)
    def command(*args, **kwargs) -> R:
        try:
            log.info("Command function call: %s(%s)", func.__name__, kwargs or args)
            return func(*args, **kwargs)
        except NONFATAL_EXCEPTIONS as e:
            cprint(summarize_traceback(e), color=COLOR_ERROR)
            log.info("Command error details: %s", e, exc_info=True)
            path = log_file_path()
            if path:
                log.info("Logs: %s", path)
            sys.exit(1)
        except Exception as e:
            log.error("Unexpected error: %s", e, exc_info=True)
            sys.exit(1)

    return command


## Tests


def test_summarize_traceback():
    from pillar.errors import HeaderDecodeError, InvalidInput

    assert summarize_traceback(InvalidInput("Bad value")) == "InvalidInput: Bad value"

    try:
        try:
            raise ValueError("mapping values are not allowed here")
        except ValueError as e:
            raise HeaderDecodeError("Error parsing YAML frontmatter") from e
    except HeaderDecodeError as e:
        summary = summarize_traceback(e)
    assert summary.startswith("HeaderDecodeError: Error parsing YAML frontmatter")
    assert "caused by ValueError: mapping values" in summary


def test_exit_status():
    import pytest

    from pillar.errors import InvalidInput

    @wrap_with_exception_printing
    def fails():
        raise InvalidInput("Nothing here")

    @wrap_with_exception_printing
    def succeeds(x):
        return x * 2

    with pytest.raises(SystemExit) as e:
        fails()
    assert e.value.code == 1
    assert succeeds(21) == 42
