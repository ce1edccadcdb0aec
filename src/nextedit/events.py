"""Inbound editor events — the closed set of notifications the core consumes."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import StrEnum

from .activity import TextRange


class EditorEventKind(StrEnum):
    DOCUMENT_CHANGED = "document_changed"
    SELECTION_CHANGED = "selection_changed"
    ACTIVE_FILE_CHANGED = "active_file_changed"
    DOCUMENT_CLOSED = "document_closed"


@dataclass(frozen=True)
class ContentChange:
    """One replacement inside a DocumentChanged notification.

    ``replaced_text`` is the text that occupied ``range`` before the change.
    """

    range: TextRange
    text: str
    replaced_text: str = ""


@dataclass(frozen=True)
class DocumentChanged:
    file_id: str
    changes: list[ContentChange] = field(default_factory=list)

    kind = EditorEventKind.DOCUMENT_CHANGED


@dataclass(frozen=True)
class SelectionChanged:
    file_id: str
    language: str
    selection: TextRange
    selected_text: str

    kind = EditorEventKind.SELECTION_CHANGED


@dataclass(frozen=True)
class ActiveFileChanged:
    """The focused document changed. ``file_id`` is None when nothing is focused."""

    file_id: str | None
    content: str = ""
    language: str = ""

    kind = EditorEventKind.ACTIVE_FILE_CHANGED


@dataclass(frozen=True)
class DocumentClosed:
    file_id: str

    kind = EditorEventKind.DOCUMENT_CLOSED


EditorEvent = DocumentChanged | SelectionChanged | ActiveFileChanged | DocumentClosed


class EventChannel:
    """Single-consumer queue of editor events.

    The host publishes; one session drains the channel in arrival order until
    :meth:`close` is called.
    """

    _CLOSED = object()

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: EditorEvent) -> None:
        if self._closed:
            msg = "event channel is closed"
            raise RuntimeError(msg)
        self._queue.put_nowait(event)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(self._CLOSED)

    async def __aiter__(self) -> AsyncIterator[EditorEvent]:
        while True:
            item = await self._queue.get()
            if item is self._CLOSED:
                return
            yield item  # type: ignore[misc]
