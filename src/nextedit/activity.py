"""Activity store — bounded histories of recent edits and viewed snippets."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

DEFAULT_MAX_HISTORY = 20
DEFAULT_MAX_SNIPPETS = 10


@dataclass(frozen=True)
class Position:
    """Zero-based line/column position in a document."""

    line: int
    character: int


@dataclass(frozen=True)
class TextRange:
    """Half-open span between two positions."""

    start: Position
    end: Position

    @classmethod
    def of(cls, start_line: int, start_char: int, end_line: int, end_char: int) -> TextRange:
        return cls(Position(start_line, start_char), Position(end_line, end_char))

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


@dataclass(frozen=True)
class EditRecord:
    """One atomic text replacement observed in a document."""

    timestamp: float
    range: TextRange
    old_text: str
    new_text: str
    file_id: str


@dataclass(frozen=True)
class ViewedSnippet:
    """A non-empty selection the developer looked at."""

    timestamp: float
    file_id: str
    content: str
    range: TextRange
    language: str


class ActivityStore:
    """Two independent ring buffers: edits and viewed snippets.

    Oldest entries are dropped first once a buffer exceeds its capacity.
    Reads are pure filters over the current contents and keep insertion
    order (oldest first).
    """

    def __init__(
        self,
        max_history: int = DEFAULT_MAX_HISTORY,
        max_snippets: int = DEFAULT_MAX_SNIPPETS,
        clock: Callable[[], float] = time.time,
        on_edit: Callable[[str], None] | None = None,
    ) -> None:
        if max_history <= 0 or max_snippets <= 0:
            msg = "history capacities must be positive"
            raise ValueError(msg)
        self._edits: list[EditRecord] = []
        self._snippets: list[ViewedSnippet] = []
        self._max_history = max_history
        self._max_snippets = max_snippets
        self._clock = clock
        self._on_edit = on_edit

    @property
    def max_history(self) -> int:
        return self._max_history

    @property
    def max_snippets(self) -> int:
        return self._max_snippets

    @property
    def edits(self) -> list[EditRecord]:
        return list(self._edits)

    @property
    def snippets(self) -> list[ViewedSnippet]:
        return list(self._snippets)

    # -- writes --------------------------------------------------------------

    def record_edit(self, edit: EditRecord) -> None:
        """Append one edit and invalidate the edited file's analysis."""
        self.record_edits([edit])

    def record_edits(self, edits: Iterable[EditRecord]) -> None:
        """Append a batch of edits, trimming to capacity once at the end."""
        touched: list[str] = []
        for edit in edits:
            self._edits.append(edit)
            if edit.file_id not in touched:
                touched.append(edit.file_id)
        if len(self._edits) > self._max_history:
            del self._edits[: len(self._edits) - self._max_history]
        if self._on_edit is not None:
            for file_id in touched:
                self._on_edit(file_id)

    def record_viewed_snippet(self, snippet: ViewedSnippet) -> None:
        """Append a viewed snippet. Empty selections are ignored."""
        if not snippet.content:
            return
        self._snippets.append(snippet)
        if len(self._snippets) > self._max_snippets:
            del self._snippets[: len(self._snippets) - self._max_snippets]

    def clear(self) -> None:
        self._edits.clear()
        self._snippets.clear()

    # -- reads ---------------------------------------------------------------

    def recent_edits(self, window_minutes: float = 5) -> list[EditRecord]:
        threshold = self._clock() - window_minutes * 60
        return [e for e in self._edits if e.timestamp > threshold]

    def get_recent_edits(self, file_id: str, window_minutes: float = 5) -> list[EditRecord]:
        """Edits to ``file_id`` newer than ``now - window``, oldest first."""
        return [e for e in self.recent_edits(window_minutes) if e.file_id == file_id]

    def recent_snippets(self, window_minutes: float = 10) -> list[ViewedSnippet]:
        threshold = self._clock() - window_minutes * 60
        return [s for s in self._snippets if s.timestamp > threshold]

    def get_recent_snippets(self, language: str, window_minutes: float = 10) -> list[ViewedSnippet]:
        """Snippets in ``language`` newer than ``now - window``, oldest first."""
        return [s for s in self.recent_snippets(window_minutes) if s.language == language]
