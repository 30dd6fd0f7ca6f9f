"""
Output to the terminal. These are for user interaction, not logging.
"""

from typing import Optional

import rich.style
from rich.console import RenderableType
from rich.markdown import Markdown
from rich.text import Text

from pillar.config.logger import get_console
from pillar.config.text_styles import (
    BULLET,
    COLOR_ERROR,
    COLOR_HEADING,
    COLOR_HINT,
    COLOR_KEY,
    COLOR_SUCCESS,
    CONSOLE_WRAP_WIDTH,
    EMOJI_SUCCESS,
    PRIORITY_COLORS,
    STATUS_COLORS,
)
from pillar.model.tracker_model import Priority, Status

null_style = rich.style.Style.null()


def rich_print(*args: RenderableType, width: Optional[int] = None, **kwargs):
    """
    Print to the Rich console, either the global console or a thread-local override,
    if one is active.
    """
    get_console().print(*args, width=width, **kwargs)


def cprint(
    message: RenderableType = "",
    *args,
    color: Optional[str] = None,
    extra_indent: str = "",
    width: Optional[int] = None,
):
    """
    Main way to print to the terminal. Strings are %-formatted with `args` and printed
    without markup, so names from documents are shown as written.
    """
    if isinstance(message, str):
        text = message % args if args else message
        if extra_indent:
            text = "\n".join(extra_indent + line for line in text.splitlines())
        rich_print(Text(text, style=color or null_style), width=width)
    else:
        rich_print(message, width=width)


def format_status(status: Status, label: Optional[str] = None) -> Text:
    return Text(label or str(status), style=STATUS_COLORS.get(status.value, ""))


def format_priority(priority: Priority) -> Text:
    return Text(str(priority), style=PRIORITY_COLORS.get(priority.value, ""))


def format_tags(status: Status, priority: Optional[Priority] = None) -> Text:
    """
    The `[status] [priority]` suffix used in listings.
    """
    parts = [" [", format_status(status), "]"]
    if priority:
        parts += [" [", format_priority(priority), "]"]
    return Text.assemble(*parts)


def format_name_and_value(name: str, value: str | Text) -> Text:
    return Text.assemble((name, COLOR_KEY), (": ", COLOR_HINT), value)


def print_heading(message: str):
    cprint()
    cprint(message, color=COLOR_HEADING)
    cprint()


def print_bullet(message: str | Text, extra_indent: str = "  "):
    rich_print(Text.assemble(extra_indent, BULLET, " ", message))


def print_success(message: str, *args):
    cprint(f"{EMOJI_SUCCESS} {message}", *args, color=COLOR_SUCCESS)


def print_error(message: str, *args):
    cprint(message, *args, color=COLOR_ERROR)


def print_hint(message: str, *args, extra_indent: str = ""):
    cprint(message, *args, color=COLOR_HINT, extra_indent=extra_indent)


def print_markdown(doc_str: str, extra_indent: str = ""):
    if extra_indent:
        cprint(doc_str, extra_indent=extra_indent)
    else:
        rich_print(Markdown(doc_str, justify="left"), width=CONSOLE_WRAP_WIDTH)


def print_raw(text: str):
    """
    Write text to the console stream exactly as given, with no formatting.
    """
    console = get_console()
    console.file.write(text)
    console.file.flush()


## Tests


def test_format_tags():
    text = format_tags(Status.in_progress, Priority.urgent)
    assert text.plain == " [in-progress] [urgent]"
    assert format_tags(Status.todo).plain == " [todo]"
    assert format_status(Status.todo, "Todo").plain == "Todo"
