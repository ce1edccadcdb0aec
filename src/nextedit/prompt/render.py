"""Prompt rendering — concatenation plus one blank-line collapsing pass."""

from __future__ import annotations

import re

from .sections import PromptLayout, PromptSection

_BLANK_RUN = re.compile(r"\n{3,}")
_BREAK = "\n\n"


def collapse_blank_lines(text: str) -> str:
    """Turn every run of 3+ newlines into exactly 2."""
    return _BLANK_RUN.sub(_BREAK, text)


def render_sections(sections: list[PromptSection] | PromptLayout) -> str:
    """Render sections in order, honouring separator flags.

    Adjacent separators produce a single blank line. Omitted sections can
    leave separators next to each other or next to text that already ends in
    newlines; the final collapse pass and strip clean that up.
    """
    ordered = sections.ordered() if isinstance(sections, PromptLayout) else sections
    pieces: list[str] = []
    pending_break = False
    for section in ordered:
        text = section.text()
        if not text:
            continue
        if section.separator_before:
            pending_break = True
        if pending_break and pieces:
            pieces.append(_BREAK)
        pending_break = False
        pieces.append(text)
        if section.separator_after:
            pending_break = True
    return collapse_blank_lines("".join(pieces)).strip()
