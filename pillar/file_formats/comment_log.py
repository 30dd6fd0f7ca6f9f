"""
Comment log codec: reads and rewrites the comments embedded in a document body.

Comments live in a `## Comments` section, one `### [timestamp] - author` heading per
entry, with the comment text below it:

## Comments

### [2025-12-29T10:30:00Z] - Alice
First comment

### [2025-12-29T14:15:00Z] - Bob
Second comment
with multiple lines

An entry runs until the next entry heading or the next `## ` section heading. Reading
is lenient: a body with no comments section simply has no comments.

Entry headings and the end of the section are found by line prefix alone, which
limits what comment text can hold:

- A line starting with `### [` is read back as the heading of a new entry, so such a
  comment comes back as two entries. This is a known limitation.
- A line starting with `## ` would end the section, cutting that comment short and
  pushing every later comment out of the log. `encode_comments` raises
  `InvalidInput` for such text.

Authors are single-line: runs of whitespace, including newlines, are collapsed to one
space and the ends are trimmed when an entry is written.
"""

import re
from typing import List, Optional, Sequence, Tuple

from pillar.errors import InvalidInput
from pillar.model.tracker_model import Comment, UNKNOWN_AUTHOR

COMMENTS_HEADING = "## Comments"

ENTRY_PREFIX = "### ["

AUTHOR_SEP = " - "

SECTION_PREFIX = "## "

_comments_heading_re = re.compile(
    r"(?:\A|\n)" + re.escape(COMMENTS_HEADING) + r"[ \t]*(?:\n|\Z)"
)

_section_heading_re = re.compile(r"^" + re.escape(SECTION_PREFIX), re.MULTILINE)


def _find_comments_section(body: str) -> Optional[Tuple[int, int, int]]:
    """
    Locate the comments section. Returns offsets for the start of the heading line, the
    start of the section contents, and the end of the section (the start of the next
    `## ` heading, or the end of the body).
    """
    match = _comments_heading_re.search(body)
    if not match:
        return None

    heading_start = match.start() + (1 if body[match.start()] == "\n" else 0)
    contents_start = match.end()

    next_section = _section_heading_re.search(body, contents_start)
    section_end = next_section.start() if next_section else len(body)

    return heading_start, contents_start, section_end


def _parse_entry_heading(line: str) -> Optional[Tuple[str, str]]:
    close_bracket = line.find("]")
    if close_bracket < 0:
        return None

    timestamp = line[len(ENTRY_PREFIX) : close_bracket]
    rest = line[close_bracket + 1 :]
    sep_pos = rest.find(AUTHOR_SEP)
    author = rest[sep_pos + len(AUTHOR_SEP) :].strip() if sep_pos >= 0 else UNKNOWN_AUTHOR

    return timestamp, author


def decode_comments(body: str) -> List[Comment]:
    """
    Parse the comment log from a document body, in the order the entries appear.
    Every comment gets a fresh id.
    """
    section = _find_comments_section(body)
    if not section:
        return []

    _heading_start, contents_start, _section_end = section

    comments: List[Comment] = []
    current: Optional[Tuple[str, str]] = None
    content_lines: List[str] = []

    def finish_entry():
        if current:
            timestamp, author = current
            content = "\n".join(content_lines).strip()
            comments.append(Comment(author=author, timestamp=timestamp, content=content))
        content_lines.clear()

    for line in body[contents_start:].splitlines():
        if line.startswith(ENTRY_PREFIX):
            finish_entry()
            # A malformed entry heading drops the lines under it.
            current = _parse_entry_heading(line)
        elif line.startswith(SECTION_PREFIX):
            break
        elif current:
            content_lines.append(line)

    finish_entry()

    return comments


def _single_line(text: str) -> str:
    return " ".join(text.split())


def _remove_comments_section(body: str) -> str:
    section = _find_comments_section(body)
    if not section:
        return body.strip()

    heading_start, _contents_start, section_end = section
    before = body[:heading_start].strip()
    after = body[section_end:].strip()

    return "\n\n".join(part for part in (before, after) if part)


def format_comment(comment: Comment) -> str:
    """
    Format a single entry: the heading line, with the author collapsed to one line,
    then the content.
    """
    author = _single_line(comment.author)
    heading = f"{ENTRY_PREFIX}{comment.timestamp}]{AUTHOR_SEP}{author}"
    return f"{heading}\n{comment.content.strip()}\n"


def _check_content(comment: Comment) -> None:
    for line in comment.content.strip().splitlines():
        if line.startswith(SECTION_PREFIX):
            raise InvalidInput(
                f"Comment text cannot have a line starting with `{SECTION_PREFIX.strip()}`: "
                f"{line!r}"
            )


def encode_comments(body: str, comments: Sequence[Comment]) -> str:
    """
    Replace the comments section of `body` with the given comments. Text outside the
    comments section is kept, and the section is written at the end of the body. With
    no comments, the section is removed entirely.

    Raises `InvalidInput` if a comment has a line starting with `## `.
    """
    for comment in comments:
        _check_content(comment)

    remainder = _remove_comments_section(body)
    if not comments:
        return remainder

    parts = [remainder + "\n\n" if remainder else "", COMMENTS_HEADING, "\n"]
    for comment in comments:
        parts += ["\n", format_comment(comment)]

    return "".join(parts)


## Tests

_two_comments_body = (
    "# T\n\n## Comments\n\n### [2025-01-01T00:00:00Z] - Alice\nHello\n\n"
    "### [2025-01-02T00:00:00Z] - Bob\nHi\nthere\n"
)


def _triples(comments: Sequence[Comment]) -> List[Tuple[str, str, str]]:
    return [(c.author, c.timestamp, c.content) for c in comments]


def test_decode_empty():
    assert decode_comments("no comments here") == []
    assert decode_comments("# Issue Description\n\nSome content here.") == []
    assert decode_comments("") == []


def test_decode_two_comments():
    comments = decode_comments(_two_comments_body)
    assert _triples(comments) == [
        ("Alice", "2025-01-01T00:00:00Z", "Hello"),
        ("Bob", "2025-01-02T00:00:00Z", "Hi\nthere"),
    ]
    assert comments[0].id != comments[1].id

    # Ids are not persisted, so each read generates new ones.
    assert decode_comments(_two_comments_body)[0].id != comments[0].id


def test_decode_at_body_start():
    body = "## Comments\n\n### [t1] - Alice\nFirst\n"
    assert _triples(decode_comments(body)) == [("Alice", "t1", "First")]


def test_decode_unknown_author_and_malformed_heading():
    body = "## Comments\n### [t1]\nNo author\n### [broken heading\nDropped\n### [t2] - Bob\nKept\n"
    assert _triples(decode_comments(body)) == [
        ("Unknown", "t1", "No author"),
        ("Bob", "t2", "Kept"),
    ]


def test_decode_stops_at_next_section():
    body = (
        "# Issue\n\n## Comments\n\n### [t1] - Alice\nOnly this\n\n"
        "## OtherSection\n\nUnrelated text\n### [t2] - Mallory\nNot a comment\n"
    )
    comments = decode_comments(body)
    assert _triples(comments) == [("Alice", "t1", "Only this")]


def test_encode_empty_collapses():
    body = "# Issue Description\n\nSome content."
    assert encode_comments(body, []) == body
    assert encode_comments(body + "\n\n  \n", []) == body

    with_section = encode_comments(body, [Comment("Alice", "t1", "Hi")])
    result = encode_comments(with_section, [])
    assert COMMENTS_HEADING not in result
    assert result == body


def test_encode_adds_section():
    body = "# Issue Description\n\nSome content."
    result = encode_comments(body, [Comment("Alice", "2025-12-29T10:30:00Z", "Test comment")])
    assert result == (
        "# Issue Description\n\nSome content.\n\n## Comments\n\n"
        "### [2025-12-29T10:30:00Z] - Alice\nTest comment\n"
    )


def test_encode_replaces_existing():
    body = (
        "# Issue Description\n\n## Comments\n\n"
        "### [2025-12-29T10:00:00Z] - OldUser\nOld comment\n"
    )
    result = encode_comments(body, [Comment("NewUser", "2025-12-29T11:00:00Z", "New comment")])
    assert "OldUser" not in result
    assert "NewUser" in result
    assert result.count(COMMENTS_HEADING) == 1


def test_encode_keeps_later_sections():
    body = "# Issue\n\n## Comments\n\n### [t1] - Alice\nHello\n\n## Notes\n\nKeep me\n"
    result = encode_comments(body, [Comment("Bob", "t2", "Later")])
    assert "## Notes\n\nKeep me" in result
    assert _triples(decode_comments(result)) == [("Bob", "t2", "Later")]


def test_append_round_trip():
    comments = decode_comments(_two_comments_body)
    comments.append(Comment("Carol", "2025-01-03T00:00:00Z", "New"))

    new_body = encode_comments(_two_comments_body, comments)
    assert _triples(decode_comments(new_body)) == [
        ("Alice", "2025-01-01T00:00:00Z", "Hello"),
        ("Bob", "2025-01-02T00:00:00Z", "Hi\nthere"),
        ("Carol", "2025-01-03T00:00:00Z", "New"),
    ]
    # The existing entries are written back unchanged.
    assert (
        "### [2025-01-01T00:00:00Z] - Alice\nHello\n\n"
        "### [2025-01-02T00:00:00Z] - Bob\nHi\nthere\n"
    ) in new_body
    assert new_body.startswith("# T\n\n## Comments\n")


def test_round_trip_is_stable():
    comments = [
        Comment("Alice", "t1", "\n\nPadded content\n\n"),
        Comment("Bob", "t2", "Line one\n\n  indented line two"),
    ]
    for body in ["", "Some body", "## Comments\n\n### [t0] - Old\nGone\n"]:
        encoded = encode_comments(body, comments)
        decoded = decode_comments(encoded)
        assert len(decoded) == len(comments)
        assert all(d.same_entry(c) for d, c in zip(decoded, comments))
        assert encode_comments(encoded, decoded) == encoded


def test_section_heading_in_content_is_rejected():
    import pytest

    body = "# T\n\n## Comments\n\n### [t0] - Old\nKept\n"
    comments = [Comment("A", "t1", "See:\n## Notes\nmore"), Comment("B", "t2", "y")]
    with pytest.raises(InvalidInput):
        encode_comments(body, comments)

    # Other heading levels and `##` inside a line are fine.
    comments = [
        Comment("A", "t1", "# Title\n### Details\nnot ## a heading"),
        Comment("B", "t2", "y"),
    ]
    decoded = decode_comments(encode_comments(body, comments))
    assert _triples(decoded) == _triples(comments)


def test_entry_heading_in_content_splits_entry():
    encoded = encode_comments("", [Comment("A", "t1", "Quoting:\n### [t0] - Z\nold text")])
    assert _triples(decode_comments(encoded)) == [("A", "t1", "Quoting:"), ("Z", "t0", "old text")]


def test_author_is_single_line():
    encoded = encode_comments("", [Comment(" Bob \n Smith ", "t1", "Hi")])
    assert "### [t1] - Bob Smith\nHi\n" in encoded
    assert _triples(decode_comments(encoded)) == [("Bob Smith", "t1", "Hi")]
