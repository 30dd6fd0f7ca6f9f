"""
Settings that define the visual appearance of text outputs.
"""

import re

from rich.highlighter import _combine_regex, RegexHighlighter
from rich.style import Style

## Settings

CONSOLE_WRAP_WIDTH = 80
"""Wrap width for console output."""


## Colors

COLOR_PLAIN = "default"

COLOR_HEADING = "bold bright_green"

COLOR_EMPH = "bright_green"

COLOR_STATUS = "yellow"

COLOR_KEY = "bright_blue"

COLOR_VALUE = "cyan"

COLOR_PATH = "cyan"

COLOR_HINT = "bright_black"

COLOR_SUCCESS = "green"

COLOR_WARN = "bright_red"

COLOR_ERROR = "bright_red"

COLOR_SAVED = "blue"

# Keyed by the serialized enum values so these stay independent of the model.
STATUS_COLORS = {
    "backlog": "white",
    "todo": "cyan",
    "in-progress": "yellow",
    "completed": "green",
    "cancelled": "red",
}

PRIORITY_COLORS = {
    "low": "white",
    "medium": "cyan",
    "high": "yellow",
    "urgent": "red",
}


## Boxes

HRULE_CHAR = "─"

BOARD_RULE = HRULE_CHAR * 40


## Symbols and emojis

BULLET = "•"

EMOJI_WARN = "△"

EMOJI_ERROR = EMOJI_WARN + EMOJI_WARN

EMOJI_SAVED = "⩣"

EMOJI_SUCCESS = "✓"

EMOJI_FAILURE = "✗"


## Rich setup


class PillarHighlighter(RegexHighlighter):
    """
    Highlighter for log and status lines.
    """

    base_style = "pillar."
    highlights = [
        _combine_regex(
            f"(?P<success>{re.escape(EMOJI_SUCCESS)})",
            f"(?P<failure>{re.escape(EMOJI_FAILURE)})",
            f"(?P<warn>{re.escape(EMOJI_WARN)})",
            f"(?P<saved>{re.escape(EMOJI_SAVED)})",
        ),
        _combine_regex(
            r"\b(?P<issue_id>[-\w]+/\d{3,})\b",
            r"(?P<timestamp>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})?)",
            r"(?P<path>\B(/[-\w._+]+)*\/)(?P<filename>[-\w._+]*)?",
            rf"(?P<url>(http|https)://[-0-9a-zA-Z$_+!`(),.?/;:&=%#~]*)",
            r"(?P<code_span>`[^`\n]+`)",
        ),
    ]


RICH_STYLES = {
    "markdown.h1": Style(color=COLOR_EMPH, bold=True),
    "markdown.h2": Style(color=COLOR_EMPH, bold=True),
    "markdown.h3": Style(color=COLOR_EMPH, bold=True, italic=True),
    "pillar.success": Style(color=COLOR_SUCCESS, bold=True),
    "pillar.failure": Style(color=COLOR_ERROR, bold=True),
    "pillar.warn": Style(color=COLOR_VALUE, bold=True),
    "pillar.saved": Style(color=COLOR_SAVED, bold=True),
    "pillar.issue_id": Style(color=COLOR_KEY),
    "pillar.timestamp": Style(color=COLOR_HINT),
    "pillar.path": Style(color=COLOR_PATH),
    "pillar.filename": Style(color=COLOR_VALUE),
    "pillar.url": Style(underline=True, color=COLOR_VALUE),
    "pillar.code_span": Style(color=COLOR_VALUE),
}
