"""Tests for the conversational request path."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from nextedit.chat import ChatConversation, ChatTurn, FileAttachment, SelectionAttachment
from nextedit.client import CompletionClient, ProtocolError
from nextedit.config import ChatConfig
from nextedit.provider import ChatRole


def _conversation(reply: str | None = "Sure.", **kwargs) -> tuple[ChatConversation, MagicMock]:
    client = MagicMock(spec=CompletionClient)
    client.send = AsyncMock(return_value=reply)
    config = ChatConfig(model="chat-model")
    return ChatConversation(client=client, config=config, **kwargs), client


def test_file_attachment_render():
    att = FileAttachment(name="util.py", content="def f(): ...")
    assert att.render() == "\n--- File: util.py ---\ndef f(): ...\n"


def test_selection_attachment_render():
    att = SelectionAttachment(name="main.ts", content="let a = 1;", start_line=4, end_line=6)
    assert att.render() == "\n--- Code from main.ts (lines 4-6) ---\nlet a = 1;\n"


def test_turn_without_attachments_renders_plain():
    turn = ChatTurn(role=ChatRole.USER, content="Hello")
    assert turn.render() == "Hello"


def test_turn_with_attachments():
    turn = ChatTurn(
        role=ChatRole.USER,
        content="Explain",
        attachments=[FileAttachment(name="a.py", content="x = 1")],
    )
    assert turn.render() == "Explain\n\nAttached files/code:\n\n--- File: a.py ---\nx = 1\n"


def test_pending_attachments_add_and_remove():
    conv, _ = _conversation()
    conv.add_file("a.py", "x = 1")
    conv.add_selection("b.py", "y = 2", 3, 3)
    conv.remove_attachment(0)
    conv.remove_attachment(7)  # out of range is ignored
    pending = conv.pending_attachments
    assert len(pending) == 1
    assert pending[0].name == "b.py"


@pytest.mark.asyncio
async def test_send_posts_whole_conversation():
    conv, client = _conversation(system_prompt="You are a coding assistant.")
    conv.add_file("a.py", "x = 1")

    reply = await conv.send("What does this do?")

    assert reply == "Sure."
    assert conv.pending_attachments == []
    request, config = client.send.await_args.args
    assert config.model == "chat-model"
    assert request.model == "chat-model"
    assert request.temperature == 0.7
    assert request.max_tokens == 2000
    assert request.stop is None
    roles = [m.role for m in request.messages]
    assert roles == [ChatRole.SYSTEM, ChatRole.USER]
    assert "--- File: a.py ---" in request.messages[1].content

    turns = conv.turns
    assert [t.role for t in turns] == [ChatRole.USER, ChatRole.ASSISTANT]
    assert turns[1].content == "Sure."


@pytest.mark.asyncio
async def test_follow_up_includes_history():
    conv, client = _conversation()
    await conv.send("first")
    await conv.send("second")
    request = client.send.await_args.args[0]
    assert [m.content for m in request.messages] == ["first", "Sure.", "second"]


@pytest.mark.asyncio
async def test_send_nothing_raises():
    conv, client = _conversation()
    with pytest.raises(ValueError, match="nothing to send"):
        await conv.send("")
    client.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_attachment_only_message_is_allowed():
    conv, client = _conversation()
    conv.add_selection("a.py", "x = 1", 1, 1)
    assert await conv.send("") == "Sure."
    client.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_timeout_adds_no_assistant_turn():
    conv, _ = _conversation(reply=None)
    assert await conv.send("hi") is None
    assert len(conv.turns) == 1


@pytest.mark.asyncio
async def test_backend_error_recorded_then_raised():
    conv, client = _conversation()
    client.send.side_effect = ProtocolError("completion reply has no choices[0].message.content")
    with pytest.raises(ProtocolError):
        await conv.send("hi")
    last = conv.turns[-1]
    assert last.role == ChatRole.ASSISTANT
    assert last.content.startswith("Error: completion reply")


@pytest.mark.asyncio
async def test_history_is_capped():
    conv, _ = _conversation(max_turns=4)
    for i in range(5):
        await conv.send(f"q{i}")
    turns = conv.turns
    assert len(turns) == 4
    assert turns[0].content == "q3"


def test_clear():
    conv, _ = _conversation()
    conv.add_file("a.py", "x")
    conv.clear()
    assert conv.turns == []
    assert conv.pending_attachments == []
