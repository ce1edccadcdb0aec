"""Conversational request path — multi-turn chat with file and selection attachments."""

from __future__ import annotations

import time
from typing import Literal

from pydantic import BaseModel, Field

from .client import CompletionClient, CompletionError
from .config import ChatConfig
from .provider import ChatMessage, ChatRequest, ChatRole


class FileAttachment(BaseModel):
    """A whole file added to the next user message."""

    kind: Literal["file"] = "file"
    name: str
    content: str

    def render(self) -> str:
        return f"\n--- File: {self.name} ---\n{self.content}\n"


class SelectionAttachment(BaseModel):
    """A selected range (1-based inclusive lines) added to the next user message."""

    kind: Literal["selection"] = "selection"
    name: str
    content: str
    start_line: int
    end_line: int

    def render(self) -> str:
        return (
            f"\n--- Code from {self.name} (lines {self.start_line}-{self.end_line}) ---\n"
            f"{self.content}\n"
        )


Attachment = FileAttachment | SelectionAttachment


class ChatTurn(BaseModel):
    """A single turn in a conversation."""

    role: ChatRole
    content: str
    attachments: list[Attachment] = Field(default_factory=list)
    timestamp: float = Field(default_factory=time.time)

    def render(self) -> str:
        if not self.attachments:
            return self.content
        body = self.content + "\n\nAttached files/code:\n"
        return body + "".join(a.render() for a in self.attachments)


class ChatConversation:
    """Keeps the conversation and posts all of it on every ``send``."""

    def __init__(
        self,
        client: CompletionClient | None = None,
        config: ChatConfig | None = None,
        system_prompt: str | None = None,
        max_turns: int = 50,
    ) -> None:
        self._client = client or CompletionClient()
        self._config = config or ChatConfig.from_env()
        self._system_prompt = system_prompt
        self._max_turns = max_turns
        self._turns: list[ChatTurn] = []
        self._pending: list[Attachment] = []

    @property
    def turns(self) -> list[ChatTurn]:
        return list(self._turns)

    @property
    def pending_attachments(self) -> list[Attachment]:
        return list(self._pending)

    def add_file(self, name: str, content: str) -> None:
        self._pending.append(FileAttachment(name=name, content=content))

    def add_selection(self, name: str, content: str, start_line: int, end_line: int) -> None:
        self._pending.append(
            SelectionAttachment(
                name=name, content=content, start_line=start_line, end_line=end_line
            )
        )

    def remove_attachment(self, index: int) -> None:
        if 0 <= index < len(self._pending):
            del self._pending[index]

    def to_messages(self) -> list[ChatMessage]:
        messages: list[ChatMessage] = []
        if self._system_prompt:
            messages.append(ChatMessage(role=ChatRole.SYSTEM, content=self._system_prompt))
        messages.extend(ChatMessage(role=t.role, content=t.render()) for t in self._turns)
        return messages

    async def send(self, text: str) -> str | None:
        """Append a user turn, query the backend and record the reply.

        Returns ``None`` when the backend timed out. Backend errors are
        recorded as an ``Error:`` assistant turn and then re-raised.
        """
        if not text and not self._pending:
            msg = "nothing to send"
            raise ValueError(msg)
        self._append(ChatTurn(role=ChatRole.USER, content=text, attachments=self._pending))
        self._pending = []

        request = ChatRequest(
            model=self._config.model,
            messages=self.to_messages(),
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )
        try:
            reply = await self._client.send(request, self._config)
        except CompletionError as exc:
            self._append(ChatTurn(role=ChatRole.ASSISTANT, content=f"Error: {exc}"))
            raise
        if reply is None:
            return None
        self._append(ChatTurn(role=ChatRole.ASSISTANT, content=reply))
        return reply

    def clear(self) -> None:
        self._turns.clear()
        self._pending.clear()

    def _append(self, turn: ChatTurn) -> None:
        self._turns.append(turn)
        while len(self._turns) > self._max_turns:
            self._turns.pop(0)
