"""
File naming conventions for documents in a workspace:

<base_dir>/<project>/README.md
<base_dir>/<project>/milestones/<slug>.md
<base_dir>/<project>/issues/<NNN>-<slug>.md
"""

from pathlib import Path
from typing import Iterable, Optional

from slugify import slugify

from pillar.errors import InvalidInput

README_FILE = "README.md"

MILESTONES_DIR = "milestones"

ISSUES_DIR = "issues"

DOC_EXT = ".md"

ISSUE_SLUG_MAX_LEN = 40

ISSUE_NUMBER_WIDTH = 3


def sanitize_filename(title: str, max_length: int = 0) -> str:
    """
    Lowercase slug of a title, with runs of other characters collapsed to `-`.

    "v1.0" -> "v1-0"
    "Bug #123" -> "bug-123"
    """
    return slugify(title, max_length=max_length, word_boundary=False, separator="-")


def milestone_filename(title: str) -> str:
    slug = sanitize_filename(title)
    if not slug:
        raise InvalidInput(f"Milestone title has no usable filename characters: `{title}`")
    return slug + DOC_EXT


def issue_filename(number: str, title: str) -> str:
    slug = sanitize_filename(title, max_length=ISSUE_SLUG_MAX_LEN)
    return f"{number}-{slug}{DOC_EXT}" if slug else f"{number}{DOC_EXT}"


def format_issue_number(number: int) -> str:
    return str(number).zfill(ISSUE_NUMBER_WIDTH)


def parse_issue_number(path: Path | str) -> Optional[int]:
    """
    The numeric prefix of an issue filename, or None if it has none.

    "007-fix-it.md" -> 7
    """
    prefix = Path(path).stem.split("-", 1)[0]
    return int(prefix) if prefix.isdigit() else None


def normalize_issue_number(number: str | int) -> str:
    """
    Accept `1`, `01`, or `001` and return the zero-padded form.
    """
    number_str = str(number).strip()
    if not number_str.isdigit():
        raise InvalidInput(f"Issue number must be numeric: `{number}`")
    return format_issue_number(int(number_str))


def next_issue_number(filenames: Iterable[Path | str]) -> str:
    """
    One more than the largest issue number among the given files.
    """
    numbers = [n for n in (parse_issue_number(f) for f in filenames) if n is not None]
    return format_issue_number(max(numbers, default=0) + 1)


## Tests


def test_sanitize_filename():
    assert sanitize_filename("v1.0") == "v1-0"
    assert sanitize_filename("Version 2.0 Beta") == "version-2-0-beta"
    assert sanitize_filename("Q1 2025") == "q1-2025"
    assert sanitize_filename("Fix critical bug") == "fix-critical-bug"
    assert sanitize_filename("Add new feature: authentication") == "add-new-feature-authentication"
    assert sanitize_filename("Bug #123") == "bug-123"

    long_slug = sanitize_filename("a" * 30 + " " + "b" * 30, max_length=ISSUE_SLUG_MAX_LEN)
    assert len(long_slug) <= ISSUE_SLUG_MAX_LEN
    assert not long_slug.endswith("-")


def test_issue_filenames():
    assert issue_filename("001", "Fix login bug") == "001-fix-login-bug.md"
    assert milestone_filename("v1.0") == "v1-0.md"


def test_issue_numbers():
    import pytest

    assert parse_issue_number("issues/007-fix-it.md") == 7
    assert parse_issue_number("notes.md") is None
    assert normalize_issue_number("1") == "001"
    assert normalize_issue_number("01") == "001"
    assert normalize_issue_number(12) == "012"
    with pytest.raises(InvalidInput):
        normalize_issue_number("abc")

    assert next_issue_number([]) == "001"
    assert next_issue_number(["001-first.md", "002-second.md", "README.md"]) == "003"
    assert next_issue_number(["009-a.md", "003-b.md"]) == "010"
