"""
Unified hierarchy of error types. These inherit from standard errors like
ValueError and FileExistsError but are more fine-grained.
"""

from typing import Sequence, Tuple, Type


class PillarRuntimeError(ValueError):
    """Base class for pillar runtime errors."""

    pass


class SelfExplanatoryError(PillarRuntimeError):
    """Common errors that arise from 'normal' problems that are largely self-explanatory,
    i.e., no stack trace should be necessary when reporting to the user."""

    pass


class InvalidInput(SelfExplanatoryError):
    """Raised when the wrong kind of input is given to a command."""

    pass


class MissingInput(InvalidInput):
    """Raised when an expected input is missing."""

    pass


class InvalidParam(InvalidInput):
    """Raised when a parameter is not one of its accepted values."""

    def __init__(self, param_name: str, value: object, valid: Sequence[str] = ()):
        message = f"Invalid {param_name}: `{value}`"
        if valid:
            message += ". Valid options are: " + ", ".join(f"`{v}`" for v in valid)
        super().__init__(message)


class FileExists(InvalidInput, FileExistsError):
    """Raised when a file already exists."""

    pass


class FileNotFound(InvalidInput, FileNotFoundError):
    """Raised when a file is not found."""

    pass


class InvalidOperation(InvalidInput):
    """Raised when an operation can't be performed."""

    pass


class InvalidState(SelfExplanatoryError):
    """Raised when the workspace or other system state is not valid for an operation."""

    pass


class SkippableError(SelfExplanatoryError):
    """Errors that are skippable and shouldn't abort the entire operation."""

    pass


class ContentError(SkippableError):
    """Raised when content is not appropriate for an operation."""

    pass


class FileFormatError(ContentError):
    """Raised when a file's content format is invalid."""

    pass


class MissingDelimiter(FileFormatError):
    """Raised when a document does not open with the frontmatter delimiter."""

    pass


class UnterminatedHeader(FileFormatError):
    """Raised when the frontmatter is opened but never closed."""

    pass


class HeaderDecodeError(FileFormatError):
    """
    Raised when the frontmatter block can't be decoded into the expected header type.
    The underlying YAML or validation error is chained as `__cause__`.
    """

    pass


def _nonfatal_exceptions() -> Tuple[Type[Exception], ...]:
    exceptions = [
        SelfExplanatoryError,
        FileNotFoundError,
        IOError,
    ]

    return tuple(exceptions)


NONFATAL_EXCEPTIONS = _nonfatal_exceptions()
"""Exceptions that are not fatal and usually don't merit a full stack trace."""


def is_fatal(exception: Exception) -> bool:
    for e in NONFATAL_EXCEPTIONS:
        if isinstance(exception, e):
            return False
    return True


## Tests


def test_error_hierarchy():
    assert issubclass(MissingDelimiter, FileFormatError)
    assert issubclass(HeaderDecodeError, ValueError)
    assert issubclass(FileNotFound, FileNotFoundError)
    assert not is_fatal(UnterminatedHeader("no end"))
    assert not is_fatal(FileNotFound("gone"))
    assert is_fatal(KeyError("x"))


def test_invalid_param_message():
    e = InvalidParam("priority", "critical", ["low", "high"])
    assert isinstance(e, InvalidInput)
    assert str(e) == "Invalid priority: `critical`. Valid options are: `low`, `high`"
    assert str(InvalidParam("type", "epic")) == "Invalid type: `epic`"
