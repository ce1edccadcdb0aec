"""Prompt sections — a small ordered tree of named, weighted blocks."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PromptSection:
    """One named block of prompt text.

    Higher ``weight`` renders earlier. ``children`` render in insertion order
    right after ``body``, each followed by a newline.
    """

    name: str
    weight: int
    body: str = ""
    children: list[PromptSection] = field(default_factory=list)
    separator_before: bool = False
    separator_after: bool = True

    def add_child(self, child: PromptSection) -> None:
        self.children.append(child)

    def text(self) -> str:
        parts = [self.body] if self.body else []
        parts.extend(child.text() for child in self.children)
        return "\n".join(parts)


def tagged(name: str, content: str) -> str:
    """Wrap ``content`` in ``<|name|>`` ... ``<|/name|>`` delimiter lines."""
    return f"<|{name}|>\n{content}\n<|/{name}|>"


class PromptLayout:
    """Insertion-ordered collection of top-level sections."""

    def __init__(self) -> None:
        self._sections: list[PromptSection] = []

    def __len__(self) -> int:
        return len(self._sections)

    def __contains__(self, name: object) -> bool:
        return any(s.name == name for s in self._sections)

    def add(self, section: PromptSection) -> PromptSection:
        self._sections.append(section)
        return section

    def names(self) -> list[str]:
        return [s.name for s in self.ordered()]

    def ordered(self) -> list[PromptSection]:
        """Sections by weight, highest first; ties keep insertion order."""
        return sorted(self._sections, key=lambda s: -s.weight)
