"""
Frontmatter codec: splits a document into a structured header and a free-text body,
and reassembles the text from a header and a body.

Documents follow the Jekyll-style convention, with YAML between `---` delimiters:

---
title: Fix login redirect
status: todo
priority: high
tags:
  - auth
---

# Fix login redirect

The body is free-form Markdown.

The header is decoded with YAML and then validated into whatever type the caller asks
for (a plain `dict`, or a dataclass such as `IssueMetadata`). The codec itself knows
nothing about field names. It is a pure text transform: no file access, no logging.
"""

import re
from io import StringIO
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from frontmatter_format import from_yaml_string, new_yaml
from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python
from ruamel.yaml.error import YAMLError

from pillar.errors import HeaderDecodeError, MissingDelimiter, UnterminatedHeader
from pillar.util.sort_utils import custom_key_sort

DELIMITER = "---"

# The closing delimiter must be alone on its line.
_closing_delimiter_re = re.compile(r"\n" + re.escape(DELIMITER) + r"[ \t]*(?:\n|$)")

H = TypeVar("H")


def _decode_header(header_str: str, header_type: Type[H]) -> H:
    try:
        data = from_yaml_string(header_str)
    except YAMLError as e:
        raise HeaderDecodeError(f"Error parsing YAML frontmatter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise HeaderDecodeError(f"Frontmatter must be a mapping, not {type(data).__name__}")

    if header_type is dict or header_type is Dict:
        return data  # type: ignore

    try:
        return TypeAdapter(header_type).validate_python(data)
    except ValidationError as e:
        raise HeaderDecodeError(
            f"Frontmatter does not match {getattr(header_type, '__name__', header_type)}: {e}"
        ) from e


def decode_frontmatter(raw_text: str, header_type: Type[H] = dict) -> Tuple[H, str]:
    """
    Split raw document text into `(header, body)`. The header is decoded as YAML and
    validated into `header_type`. The body is everything after the closing delimiter,
    with surrounding whitespace trimmed.

    Raises `MissingDelimiter`, `UnterminatedHeader`, or `HeaderDecodeError`.
    """
    text = raw_text.strip()

    if not text.startswith(DELIMITER):
        raise MissingDelimiter(f"Document does not start with frontmatter delimiter `{DELIMITER}`")

    rest = text[len(DELIMITER) :]
    match = _closing_delimiter_re.search(rest)
    if not match:
        raise UnterminatedHeader(f"Closing frontmatter delimiter `{DELIMITER}` not found")

    header_str = rest[: match.start()]
    body = rest[match.end() :].strip()

    return _decode_header(header_str, header_type), body


def header_to_dict(header: Any) -> Dict[str, Any]:
    """
    Convert a header value (dict, dataclass, or pydantic dataclass) to a plain dict of
    YAML-friendly values, preserving field order. Enums become their values and datetimes
    become ISO strings. Unset (`None`) fields of a dataclass header are left out, since
    decoding restores them from the field defaults. Dict headers keep every key.
    """
    data = to_jsonable_python(header, exclude_none=not isinstance(header, dict))
    if not isinstance(data, dict):
        raise TypeError(f"Header must serialize to a mapping, not {type(data).__name__}")
    return data


def encode_frontmatter(
    header: Any, body: str, key_sort: Optional[Callable[[str], Any]] = None
) -> str:
    """
    Serialize a header and body back into document text. Keys are written in the
    header's own field order unless `key_sort` is given. Null and empty values in a
    dict header are written out, so it decodes back to the same dict.
    """
    header_dict = header_to_dict(header)
    if key_sort is None:
        key_sort = custom_key_sort(list(header_dict.keys()))

    stream = StringIO()
    new_yaml(key_sort=key_sort, suppress_vals=None, typ="rt").dump(header_dict, stream)
    header_str = stream.getvalue()
    if header_str and not header_str.endswith("\n"):
        header_str += "\n"
    if header_str.strip() == "{}":
        header_str = ""

    lines: List[str] = [DELIMITER, "\n", header_str, DELIMITER, "\n"]
    body = body.strip()
    if body:
        lines += ["\n", body, "\n"]

    return "".join(lines)


## Tests

_issue_doc = """---
title: "Test Issue"
status: todo
priority: high
tags: [bug, urgent]
---

This is the issue description.
"""


def test_decode_basic():
    header, body = decode_frontmatter(_issue_doc)
    assert header == {
        "title": "Test Issue",
        "status": "todo",
        "priority": "high",
        "tags": ["bug", "urgent"],
    }
    assert body == "This is the issue description."


def test_decode_errors():
    import pytest

    with pytest.raises(MissingDelimiter):
        decode_frontmatter("no dashes at all")

    with pytest.raises(UnterminatedHeader):
        decode_frontmatter("---\nkey: 1\n")

    with pytest.raises(HeaderDecodeError) as e:
        decode_frontmatter("---\ninvalid: yaml: structure:\n---\n\nBody\n")
    assert isinstance(e.value.__cause__, YAMLError)

    with pytest.raises(HeaderDecodeError):
        decode_frontmatter("---\n- just\n- a list\n---\nBody")


def test_decode_typed_header():
    import pytest
    from pydantic.dataclasses import dataclass

    @dataclass
    class Header:
        title: str
        count: int = 0

    header, body = decode_frontmatter("---\ntitle: Hello\ncount: 3\n---\nBody text\n", Header)
    assert header == Header(title="Hello", count=3)
    assert body == "Body text"

    with pytest.raises(HeaderDecodeError) as e:
        decode_frontmatter("---\ncount: many\n---\n", Header)
    assert isinstance(e.value.__cause__, ValidationError)


def test_decode_empty_header_and_body():
    header, body = decode_frontmatter("---\n---\n")
    assert header == {}
    assert body == ""

    # Whitespace around the document is not significant.
    header, body = decode_frontmatter("\n\n  ---\na: 1\n---\n\n  text  \n\n")
    assert header == {"a": 1}
    assert body == "text"


def test_body_may_contain_delimiters():
    doc = "---\na: 1\n---\n\nAbove\n\n---\n\nBelow\n"
    header, body = decode_frontmatter(doc)
    assert header == {"a": 1}
    assert body == "Above\n\n---\n\nBelow"


def test_encode_layout():
    text = encode_frontmatter({"title": "Test", "tags": ["a"]}, "  Test body\n")
    assert text == "---\ntitle: Test\ntags:\n- a\n---\n\nTest body\n"


def test_dict_round_trip_keeps_null_and_empty_values():
    header = {"title": "T", "milestone": None, "tags": [], "extra": {}, "count": 0}
    text = encode_frontmatter(header, "Body")
    assert decode_frontmatter(text) == (header, "Body")
    assert list(decode_frontmatter(text)[0]) == list(header)


def test_typed_header_omits_unset_fields():
    from pillar.model.tracker_model import IssueMetadata

    header = IssueMetadata(title="Bug")
    text = encode_frontmatter(header, "Body")
    assert "milestone" not in text
    assert decode_frontmatter(text, IssueMetadata) == (header, "Body")


def test_round_trip():
    from datetime import datetime, timezone
    from pydantic.dataclasses import dataclass

    @dataclass
    class Header:
        title: str
        created: datetime
        tags: List[str]
        milestone: Optional[str] = None

    original = Header(
        title="Roundtrip: a test",
        created=datetime(2025, 1, 1, 12, 30, tzinfo=timezone.utc),
        tags=["test", "roundtrip"],
        milestone="v1.0",
    )
    body = "This is a test issue.\n\nWith multiple lines."

    text = encode_frontmatter(original, body)
    decoded, decoded_body = decode_frontmatter(text, Header)
    assert decoded == original
    assert decoded_body == body

    # Field order follows the header declaration.
    lines = text.splitlines()
    assert lines[1].startswith("title:")
    assert lines.index("tags:") > 2
    assert lines.index("milestone: v1.0") > lines.index("tags:")

    # Re-encoding is stable.
    assert encode_frontmatter(decoded, decoded_body) == text
