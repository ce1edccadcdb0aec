"""Prompt assembly --- renders session activity into a budget-aware prompt."""

from .assembler import AssembledPrompt, AssemblerLimits, CursorContext, PromptAssembler
from .render import collapse_blank_lines, render_sections
from .sections import PromptLayout, PromptSection, tagged
from .templates import CLOSING_INSTRUCTION, CURSOR_SENTINEL, SYSTEM_INSTRUCTIONS, add_line_numbers
from .token_budget import TokenBudget, estimate_tokens

__all__ = [
    "AssembledPrompt",
    "AssemblerLimits",
    "CLOSING_INSTRUCTION",
    "CURSOR_SENTINEL",
    "CursorContext",
    "PromptAssembler",
    "PromptLayout",
    "PromptSection",
    "SYSTEM_INSTRUCTIONS",
    "TokenBudget",
    "add_line_numbers",
    "collapse_blank_lines",
    "estimate_tokens",
    "render_sections",
    "tagged",
]
