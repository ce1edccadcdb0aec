"""Fixed prompt text: system message, scaffolding, closing instruction."""

from __future__ import annotations

CURSOR_SENTINEL = "<|cursor|>"
CODE_FENCE = "```"

SYSTEM_INSTRUCTIONS = (
    "You are an AI coding assistant that helps complete code. "
    "Respond only with the code completion, no explanations."
)

SCAFFOLDING = """\
You help a developer finish the code marked by the <|code_to_edit|> and <|/code_to_edit|> tags.

The following information may be provided:

- recently_viewed_code_snippets: code the developer looked at recently, oldest first. It may be unrelated to the current change.
- current_file_content: the file being edited, with line numbers in the form #|.
- edit_diff_history: the developer's recent changes to this file, oldest first. Older entries may be irrelevant.
- file_analysis: imports, functions, classes and variables found in the current file.
- area_around_code_to_edit: the lines surrounding the code to edit, with line numbers.
- the cursor position, marked as <|cursor|>.

Predict the change the developer was about to make inside <|code_to_edit|>. They may have stopped mid-word. Stay on the path they are following: continue the class, function or statement they are writing, or fix an obvious mistake. Do not undo their last change unless it is clearly a typo.

# Output Format

- Return only the revised code that belongs between the tags, without the tags themselves.
- If nothing should change, return the original code from between the tags.
- Never include the #| line numbers.
- Never repeat code that exists outside the tags.
- Keep the indentation and formatting style of the surrounding code."""

CLOSING_INSTRUCTION = (
    "Rewrite only the code inside <|code_to_edit|>, completing it at the cursor position:"
)

TRUNCATION_MARKER = "... ({remaining} more lines truncated)"


def add_line_numbers(content: str, start_line: int = 0) -> str:
    """Prefix every line with ``N| `` where N is 1-based from ``start_line``."""
    return "\n".join(
        f"{start_line + index + 1}| {line}" for index, line in enumerate(content.split("\n"))
    )
