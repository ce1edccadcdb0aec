"""Response sanitizer — turns a raw model reply into an insertable fragment."""

from __future__ import annotations

import re

from .prompt.render import collapse_blank_lines
from .prompt.templates import CURSOR_SENTINEL

_LEADING_FENCE = re.compile(r"\A[ \t]*```[\w+#.-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```[ \t]*\Z")
# Exactly the "N| " prefix the prompt adds; indentation after it survives.
_LINE_NUMBER = re.compile(r"^\d+\| ?", re.MULTILINE)


def sanitize(raw: str, prefix_already_typed: str = "") -> str:
    """Clean a completion reply. Deterministic, no state.

    1. strip one leading and one trailing code fence
    2. drop every cursor sentinel
    3. drop ``N| `` line-number prefixes
    4. drop an echoed copy of the text already left of the cursor
    5. collapse runs of 3+ newlines to 2
    """
    text = raw.strip("\r\n").rstrip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    text = text.replace(CURSOR_SENTINEL, "")
    text = _LINE_NUMBER.sub("", text)
    if prefix_already_typed and text.startswith(prefix_already_typed):
        text = text[len(prefix_already_typed) :]
    return collapse_blank_lines(text)
