"""EditorSession — the single owner of activity history and analysis cache."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from .activity import (
    DEFAULT_MAX_HISTORY,
    DEFAULT_MAX_SNIPPETS,
    ActivityStore,
    EditRecord,
    ViewedSnippet,
)
from .analysis import DEFAULT_TTL_SECONDS, AnalysisCache, AnalyzerRegistry, FileAnalysis
from .events import (
    ActiveFileChanged,
    DocumentChanged,
    DocumentClosed,
    EditorEvent,
    EventChannel,
    SelectionChanged,
)

logger = logging.getLogger(__name__)


class EditorSession:
    """Created at editing-session start, disposed at session end.

    Every consumer receives the session by reference; there is no global
    instance. Event handling is synchronous, so mutations never interleave.
    """

    def __init__(
        self,
        session_id: str | None = None,
        *,
        max_history: int = DEFAULT_MAX_HISTORY,
        max_snippets: int = DEFAULT_MAX_SNIPPETS,
        cache_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        registry: AnalyzerRegistry | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.clock = clock
        self.analysis_cache = AnalysisCache(
            ttl_seconds=cache_ttl_seconds, registry=registry, clock=clock
        )
        self.activity = ActivityStore(
            max_history=max_history,
            max_snippets=max_snippets,
            clock=clock,
            on_edit=self.analysis_cache.invalidate,
        )
        self.active_file: str | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # -- event intake --------------------------------------------------------

    def handle(self, event: EditorEvent) -> None:
        """Apply one editor notification to the session state."""
        if self._closed:
            msg = f"session {self.session_id} is closed"
            raise RuntimeError(msg)
        logger.debug("session %s: %s", self.session_id, event.kind)
        self.analysis_cache.evict_expired()

        if isinstance(event, DocumentChanged):
            self._on_document_changed(event)
        elif isinstance(event, SelectionChanged):
            self._on_selection_changed(event)
        elif isinstance(event, ActiveFileChanged):
            self._on_active_file_changed(event)
        elif isinstance(event, DocumentClosed):
            self.analysis_cache.invalidate(event.file_id)
        else:
            msg = f"unknown editor event: {type(event).__name__}"
            raise TypeError(msg)

    async def consume(self, channel: EventChannel) -> int:
        """Drain ``channel`` until it is closed. Returns the number of events handled."""
        handled = 0
        async for event in channel:
            self.handle(event)
            handled += 1
        return handled

    def _on_document_changed(self, event: DocumentChanged) -> None:
        if not event.changes:
            return
        now = self.clock()
        self.activity.record_edits(
            EditRecord(
                timestamp=now,
                range=change.range,
                # Only pure deletions keep the removed text.
                old_text="" if change.text else change.replaced_text,
                new_text=change.text,
                file_id=event.file_id,
            )
            for change in event.changes
        )

    def _on_selection_changed(self, event: SelectionChanged) -> None:
        if event.selection.is_empty or not event.selected_text:
            return
        self.activity.record_viewed_snippet(
            ViewedSnippet(
                timestamp=self.clock(),
                file_id=event.file_id,
                content=event.selected_text,
                range=event.selection,
                language=event.language,
            )
        )

    def _on_active_file_changed(self, event: ActiveFileChanged) -> None:
        self.active_file = event.file_id
        # Without a snapshot there is nothing to pre-analyze.
        if event.file_id is not None and event.content:
            self.analysis_cache.get(event.file_id, event.content, event.language)

    # -- queries -------------------------------------------------------------

    def file_analysis(self, file_id: str, content: str, language: str) -> FileAnalysis:
        return self.analysis_cache.get(file_id, content, language)

    def stats(self) -> dict[str, Any]:
        return {
            "edit_history_count": len(self.activity.edits),
            "viewed_snippets_count": len(self.activity.snippets),
            "cached_files_count": len(self.analysis_cache),
        }

    # -- lifecycle -----------------------------------------------------------

    def clear(self) -> None:
        self.activity.clear()
        self.analysis_cache.clear()

    def close(self) -> None:
        """Dispose the session. Safe to call more than once."""
        if not self._closed:
            self.clear()
            self.active_file = None
            self._closed = True
