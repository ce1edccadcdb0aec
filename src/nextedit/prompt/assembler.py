"""Prompt assembler — renders session activity into one budgeted prompt.

Sections are admitted in priority order while the remaining budget stays
above each section's threshold. The cursor window and the cursor-marked
edit target are always present, whatever the budget.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..activity import EditRecord, Position, ViewedSnippet
from ..analysis import FileAnalysis
from ..session import EditorSession
from .render import render_sections
from .sections import PromptLayout, PromptSection, tagged
from .templates import (
    CLOSING_INSTRUCTION,
    CURSOR_SENTINEL,
    SCAFFOLDING,
    TRUNCATION_MARKER,
    add_line_numbers,
)
from .token_budget import TokenBudget, estimate_tokens

# Section weights, highest renders first.
WEIGHT_SCAFFOLDING = 100
WEIGHT_FILE_CONTENT = 90
WEIGHT_EDIT_HISTORY = 80
WEIGHT_VIEWED_SNIPPETS = 70
WEIGHT_FILE_ANALYSIS = 60
WEIGHT_AREA_AROUND = 50
WEIGHT_CODE_TO_EDIT = 40
WEIGHT_CLOSING = 30

DEFAULT_CONTEXT_RADIUS = 10
EDIT_WINDOW_MINUTES = 5
SNIPPET_WINDOW_MINUTES = 10


@dataclass
class AssemblerLimits:
    """Admission thresholds and caps."""

    file_content_min_tokens: int = 50
    file_content_head_lines: int = 50
    edit_history_min_tokens: int = 20
    max_edits: int = 3
    edit_share: float = 0.25
    snippets_min_tokens: int = 20
    max_snippets: int = 3
    snippet_share: float = 0.30
    analysis_min_tokens: int = 100
    max_analysis_entries: int = 5
    max_analysis_variables: int = 10


@dataclass(frozen=True)
class CursorContext:
    """The immediate surroundings of the cursor in one document."""

    file_id: str
    language: str
    content: str
    cursor: Position
    radius: int = DEFAULT_CONTEXT_RADIUS

    @property
    def lines(self) -> list[str]:
        return self.content.split("\n")

    @property
    def current_line(self) -> str:
        lines = self.lines
        if 0 <= self.cursor.line < len(lines):
            return lines[self.cursor.line]
        return ""

    @property
    def prefix(self) -> str:
        return self.current_line[: self.cursor.character]

    @property
    def suffix(self) -> str:
        return self.current_line[self.cursor.character :]

    @property
    def window_start(self) -> int:
        return max(0, self.cursor.line - self.radius)

    @property
    def area_around(self) -> str:
        """Lines within ``radius`` of the cursor, numbered with their real line numbers."""
        lines = self.lines
        end = min(len(lines) - 1, self.cursor.line + self.radius)
        window = "\n".join(lines[self.window_start : end + 1])
        return add_line_numbers(window, self.window_start)

    @property
    def code_to_edit(self) -> str:
        return f"{self.prefix}{CURSOR_SENTINEL}{self.suffix}"


@dataclass
class AssembledPrompt:
    """Rendered prompt plus what went into it."""

    text: str
    token_estimate: int
    budget: int
    included: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)


class PromptAssembler:
    """Builds a token-budgeted prompt from an EditorSession and a cursor.

    Each ``assemble`` call owns its own layout and budget; nothing mutable is
    shared between concurrent calls.
    """

    def __init__(self, session: EditorSession, limits: AssemblerLimits | None = None) -> None:
        self._session = session
        self._limits = limits or AssemblerLimits()

    def assemble(self, ctx: CursorContext, budget: int) -> AssembledPrompt:
        layout = PromptLayout()
        dropped: list[str] = []
        tokens = TokenBudget(max(0, budget))

        scaffolding = layout.add(PromptSection("scaffolding", WEIGHT_SCAFFOLDING, SCAFFOLDING))
        area = layout.add(
            PromptSection(
                "area_around_code_to_edit",
                WEIGHT_AREA_AROUND,
                tagged("area_around_code_to_edit", ctx.area_around),
            )
        )
        target = layout.add(
            PromptSection(
                "code_to_edit", WEIGHT_CODE_TO_EDIT, tagged("code_to_edit", ctx.code_to_edit)
            )
        )
        closing = layout.add(PromptSection("closing", WEIGHT_CLOSING, CLOSING_INSTRUCTION))
        # Fixed and mandatory text is charged up front so optional sections
        # only compete for what is left.
        for section in (scaffolding, area, target, closing):
            tokens.consume(estimate_tokens(section.text()))

        builders = (
            ("current_file_content", self._file_content_section),
            ("edit_diff_history", self._edit_history_section),
            ("recently_viewed_code_snippets", self._snippets_section),
            ("file_analysis", self._analysis_section),
        )
        for name, build in builders:
            section = build(ctx, tokens, budget)
            if section is None:
                dropped.append(name)
                continue
            layout.add(section)
            tokens.consume(estimate_tokens(section.text()))

        text = render_sections(layout)
        return AssembledPrompt(
            text=text,
            token_estimate=estimate_tokens(text),
            budget=budget,
            included=layout.names(),
            dropped=dropped,
        )

    # -- optional sections ---------------------------------------------------

    def _file_content_section(
        self, ctx: CursorContext, tokens: TokenBudget, budget: int
    ) -> PromptSection | None:
        limits = self._limits
        if tokens.remaining() <= limits.file_content_min_tokens:
            return None
        numbered = add_line_numbers(ctx.content)
        body = tagged("current_file_content", numbered)
        if tokens.allows(estimate_tokens(body)):
            return PromptSection("current_file_content", WEIGHT_FILE_CONTENT, body)

        lines = numbered.split("\n")
        head = lines[: limits.file_content_head_lines]
        head.append(TRUNCATION_MARKER.format(remaining=len(lines) - len(head)))
        body = tagged("current_file_content", "\n".join(head))
        if not tokens.allows(estimate_tokens(body)):
            return None
        return PromptSection("current_file_content", WEIGHT_FILE_CONTENT, body)

    def _edit_history_section(
        self, ctx: CursorContext, tokens: TokenBudget, budget: int
    ) -> PromptSection | None:
        limits = self._limits
        edits = self._session.activity.get_recent_edits(ctx.file_id, EDIT_WINDOW_MINUTES)
        if not edits or tokens.remaining() <= limits.edit_history_min_tokens:
            return None
        sub_budget = tokens.remaining() * limits.edit_share
        lines = [
            line
            for line in (describe_edit(e) for e in edits[-limits.max_edits :])
            if estimate_tokens(line) <= sub_budget
        ]
        if not lines:
            return None
        body = tagged("edit_diff_history", "\n".join(lines))
        if not tokens.allows(estimate_tokens(body)):
            return None
        return PromptSection("edit_diff_history", WEIGHT_EDIT_HISTORY, body)

    def _snippets_section(
        self, ctx: CursorContext, tokens: TokenBudget, budget: int
    ) -> PromptSection | None:
        limits = self._limits
        snippets = self._session.activity.get_recent_snippets(ctx.language, SNIPPET_WINDOW_MINUTES)
        if not snippets or tokens.remaining() <= limits.snippets_min_tokens:
            return None
        cap = budget * limits.snippet_share
        section = PromptSection("recently_viewed_code_snippets", WEIGHT_VIEWED_SNIPPETS)
        running = 0
        for snippet in snippets[-limits.max_snippets :]:
            rendered = describe_snippet(snippet)
            running += estimate_tokens(rendered)
            if running > cap:
                break
            section.add_child(PromptSection(snippet.file_id, 0, rendered))
        if not section.children:
            return None
        section.body = "<|recently_viewed_code_snippets|>"
        section.add_child(PromptSection("end", 0, "<|/recently_viewed_code_snippets|>"))
        if not tokens.allows(estimate_tokens(section.text())):
            return None
        return section

    def _analysis_section(
        self, ctx: CursorContext, tokens: TokenBudget, budget: int
    ) -> PromptSection | None:
        limits = self._limits
        if tokens.remaining() <= limits.analysis_min_tokens:
            return None
        analysis = self._session.file_analysis(ctx.file_id, ctx.content, ctx.language)
        body = tagged("file_analysis", describe_analysis(analysis, limits))
        if not tokens.allows(estimate_tokens(body)):
            return None
        return PromptSection("file_analysis", WEIGHT_FILE_ANALYSIS, body)


def describe_edit(edit: EditRecord) -> str:
    """One diff-like summary line per edit."""
    if edit.old_text:
        change = f'"{edit.old_text}" -> "{edit.new_text}"'
    else:
        change = f'Added: "{edit.new_text}"'
    return f"Change in {edit.file_id}: {change} at line {edit.range.start.line + 1}"


def describe_snippet(snippet: ViewedSnippet) -> str:
    return tagged(
        "recently_viewed_code_snippet",
        f"File: {snippet.file_id} ({snippet.language})\n"
        f"{add_line_numbers(snippet.content, snippet.range.start.line)}",
    )


def describe_analysis(analysis: FileAnalysis, limits: AssemblerLimits) -> str:
    lines = [f"Language: {analysis.language}"]
    entries = (
        ("Imports", analysis.imports, limits.max_analysis_entries),
        ("Functions", analysis.functions, limits.max_analysis_entries),
        ("Classes", analysis.classes, limits.max_analysis_entries),
        ("Variables", analysis.variables, limits.max_analysis_variables),
    )
    for label, values, cap in entries:
        if values:
            lines.append(f"{label}: {', '.join(values[:cap])}")
    return "\n".join(lines)
