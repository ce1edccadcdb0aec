"""Tests for CursorContext and PromptAssembler."""

from __future__ import annotations

import pytest

from nextedit.activity import EditRecord, Position, TextRange, ViewedSnippet
from nextedit.prompt.assembler import CursorContext, PromptAssembler
from nextedit.prompt.templates import CLOSING_INSTRUCTION, CURSOR_SENTINEL
from nextedit.session import EditorSession

SMALL_FILE = "import os\n\ndef main():\n    value = os.getcwd()\n    return val"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Clock:
    def __init__(self, now: float = 10_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _session() -> EditorSession:
    return EditorSession(clock=_Clock())


def _ctx(content: str = SMALL_FILE, line: int = 4, character: int = 14) -> CursorContext:
    return CursorContext(
        file_id="main.py",
        language="python",
        content=content,
        cursor=Position(line, character),
    )


def _edit(session: EditorSession, text: str, file_id: str = "main.py", line: int = 0) -> None:
    session.activity.record_edit(
        EditRecord(
            timestamp=session.clock(),
            range=TextRange.of(line, 0, line, 0),
            old_text="",
            new_text=text,
            file_id=file_id,
        )
    )


def _snippet(session: EditorSession, content: str, file_id: str = "util.py") -> None:
    session.activity.record_viewed_snippet(
        ViewedSnippet(
            timestamp=session.clock(),
            file_id=file_id,
            content=content,
            range=TextRange.of(0, 0, 0, len(content)),
            language="python",
        )
    )


# ---------------------------------------------------------------------------
# CursorContext
# ---------------------------------------------------------------------------


def test_cursor_context_prefix_and_suffix():
    ctx = _ctx(line=3, character=8)
    assert ctx.current_line == "    value = os.getcwd()"
    assert ctx.prefix == "    valu"
    assert ctx.suffix == "e = os.getcwd()"
    assert ctx.code_to_edit == f"    valu{CURSOR_SENTINEL}e = os.getcwd()"


def test_area_around_uses_real_line_numbers():
    content = "\n".join(f"line {n}" for n in range(1, 41))
    ctx = CursorContext(
        file_id="f.py", language="python", content=content, cursor=Position(20, 0), radius=3
    )
    assert ctx.area_around.split("\n") == [
        "18| line 18",
        "19| line 19",
        "20| line 20",
        "21| line 21",
        "22| line 22",
        "23| line 23",
        "24| line 24",
    ]


def test_area_around_clamps_at_file_edges():
    ctx = _ctx(line=0, character=0)
    lines = ctx.area_around.split("\n")
    assert lines[0] == "1| import os"
    assert lines[-1] == "5|     return val"


def test_cursor_beyond_last_line_has_empty_target_line():
    ctx = _ctx(line=99, character=3)
    assert ctx.prefix == ""
    assert ctx.code_to_edit == CURSOR_SENTINEL


# ---------------------------------------------------------------------------
# Mandatory sections
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("budget", [0, 1, 50, 500, 3500, 100_000, -5])
def test_mandatory_sections_present_for_every_budget(budget: int):
    session = _session()
    _edit(session, "val")
    _snippet(session, "def helper():\n    return 1")
    prompt = PromptAssembler(session).assemble(_ctx(), budget)

    assert "<|area_around_code_to_edit|>" in prompt.text
    assert f"<|code_to_edit|>\n    return val{CURSOR_SENTINEL}\n<|/code_to_edit|>" in prompt.text
    assert prompt.text.endswith(CLOSING_INSTRUCTION)
    assert "\n\n\n" not in prompt.text
    assert prompt.text == prompt.text.strip()


def test_zero_budget_drops_every_optional_section():
    session = _session()
    _edit(session, "val")
    _snippet(session, "x = 1")
    prompt = PromptAssembler(session).assemble(_ctx(), 0)

    assert prompt.dropped == [
        "current_file_content",
        "edit_diff_history",
        "recently_viewed_code_snippets",
        "file_analysis",
    ]
    assert "<|current_file_content|>" not in prompt.text
    assert "<|edit_diff_history|>" not in prompt.text


# ---------------------------------------------------------------------------
# Optional sections
# ---------------------------------------------------------------------------


def test_generous_budget_renders_all_sections_in_priority_order():
    session = _session()
    _edit(session, "val")
    _snippet(session, "def helper():\n    return 1")
    prompt = PromptAssembler(session).assemble(_ctx(), 100_000)

    assert prompt.dropped == []
    assert prompt.included == [
        "scaffolding",
        "current_file_content",
        "edit_diff_history",
        "recently_viewed_code_snippets",
        "file_analysis",
        "area_around_code_to_edit",
        "code_to_edit",
        "closing",
    ]
    positions = [
        prompt.text.index(tag)
        for tag in (
            "<|current_file_content|>",
            "<|edit_diff_history|>",
            "<|recently_viewed_code_snippets|>",
            "<|file_analysis|>",
            "<|area_around_code_to_edit|>",
            "<|code_to_edit|>\n",
        )
    ]
    assert positions == sorted(positions)
    assert "1| import os" in prompt.text
    assert "File: util.py (python)" in prompt.text


def test_large_file_is_truncated_to_head():
    content = "\n".join(f"value_{n} = {n}" for n in range(2000))
    session = _session()
    prompt = PromptAssembler(session).assemble(_ctx(content, line=1000, character=3), 1500)

    assert "current_file_content" in prompt.included
    body = prompt.text.split("<|current_file_content|>\n")[1]
    section = body.split("\n<|/current_file_content|>")[0]
    lines = section.split("\n")
    assert len(lines) == 51
    assert lines[0] == "1| value_0 = 0"
    assert lines[49] == "50| value_49 = 49"
    assert lines[50] == "... (1950 more lines truncated)"


def test_edit_history_keeps_three_most_recent_for_file():
    session = _session()
    for n in range(5):
        _edit(session, f"e{n}", line=n)
    _edit(session, "elsewhere", file_id="other.py")
    prompt = PromptAssembler(session).assemble(_ctx(), 100_000)

    history = prompt.text.split("<|edit_diff_history|>\n")[1].split("\n<|/edit_diff_history|>")[0]
    assert history.split("\n") == [
        'Change in main.py: Added: "e2" at line 3',
        'Change in main.py: Added: "e3" at line 4',
        'Change in main.py: Added: "e4" at line 5',
    ]


def test_edit_history_renders_replacements():
    session = _session()
    session.activity.record_edit(
        EditRecord(
            timestamp=session.clock(),
            range=TextRange.of(6, 0, 6, 3),
            old_text="foo",
            new_text="bar",
            file_id="main.py",
        )
    )
    prompt = PromptAssembler(session).assemble(_ctx(), 100_000)
    assert 'Change in main.py: "foo" -> "bar" at line 7' in prompt.text


def test_edit_history_omitted_without_edits():
    prompt = PromptAssembler(_session()).assemble(_ctx(), 100_000)
    assert "edit_diff_history" in prompt.dropped
    assert "<|edit_diff_history|>" not in prompt.text


def test_snippets_capped_to_three_most_recent():
    session = _session()
    for n in range(5):
        _snippet(session, f"snippet_{n} = {n}", file_id=f"s{n}.py")
    prompt = PromptAssembler(session).assemble(_ctx(), 100_000)

    assert prompt.text.count("<|recently_viewed_code_snippet|>") == 3
    assert "File: s0.py" not in prompt.text
    assert "File: s1.py" not in prompt.text
    assert "File: s4.py" in prompt.text


def test_snippets_stop_at_share_of_budget():
    session = _session()
    big = "\n".join("y = 1" for _ in range(200))
    _snippet(session, big, file_id="a.py")
    _snippet(session, big, file_id="b.py")
    prompt = PromptAssembler(session).assemble(_ctx(), 2000)

    assert prompt.text.count("<|recently_viewed_code_snippet|>") == 1
    assert "File: a.py" in prompt.text


def test_snippets_in_other_languages_are_ignored():
    session = _session()
    session.activity.record_viewed_snippet(
        ViewedSnippet(
            timestamp=session.clock(),
            file_id="app.js",
            content="let a = 1",
            range=TextRange.of(0, 0, 0, 9),
            language="javascript",
        )
    )
    prompt = PromptAssembler(session).assemble(_ctx(), 100_000)
    assert "recently_viewed_code_snippets" in prompt.dropped


def test_file_analysis_caps_entries():
    content = "\n".join(f"import mod{n}" for n in range(8)) + "\n" + "\n".join(
        f"v{n} = {n}" for n in range(15)
    )
    prompt = PromptAssembler(_session()).assemble(_ctx(content, line=0, character=0), 100_000)

    analysis = prompt.text.split("<|file_analysis|>\n")[1].split("\n<|/file_analysis|>")[0]
    lines = analysis.split("\n")
    assert lines[0] == "Language: python"
    assert lines[1] == "Imports: " + ", ".join(f"import mod{n}" for n in range(5))
    assert lines[2] == "Variables: " + ", ".join(f"v{n} =" for n in range(10))


def test_tight_budget_drops_low_priority_sections_first():
    session = _session()
    assembler = PromptAssembler(session)
    ctx = _ctx("x = 1\ny = 2", line=1, character=3)
    baseline = assembler.assemble(ctx, 0).token_estimate

    prompt = assembler.assemble(ctx, baseline + 60)

    assert "current_file_content" in prompt.included
    assert "file_analysis" in prompt.dropped


def test_assembly_does_not_mutate_session():
    session = _session()
    _edit(session, "val")
    before = session.stats()
    PromptAssembler(session).assemble(_ctx(), 3500)
    after = session.stats()
    assert after["edit_history_count"] == before["edit_history_count"]
    assert after["viewed_snippets_count"] == before["viewed_snippets_count"]
