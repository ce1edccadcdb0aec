#!/usr/bin/env python3
"""inline_completion.py — nextedit end-to-end demo.

Feeds a short editing session into an EditorSession, prints the prompt the
assembler builds for the cursor position, then asks the backend for a
completion.

The backend is any OpenAI-compatible server (LM Studio, llama.cpp, vLLM, ...)
selected via NEXTEDIT_SERVER_URL and NEXTEDIT_MODEL.
Default: http://localhost:1234 with model "local-model".

Prerequisites:
    pip install -e .[dev]

Usage:
    python examples/inline_completion.py
    NEXTEDIT_SERVER_URL=http://gpu-box:8000 python examples/inline_completion.py
"""

from __future__ import annotations

import asyncio

from nextedit import (
    ActiveFileChanged,
    CompletionConfig,
    CompletionEngine,
    CompletionError,
    ContentChange,
    DocumentChanged,
    EditorSession,
    Position,
    PromptAssembler,
    SelectionChanged,
    TextRange,
    TriggerKind,
)
from nextedit.prompt import CursorContext

SOURCE = """\
import math


def area(radius):
    return math.pi * radius ** 2


def circumference(radius):
    return 2 * math.pi * rad
"""


async def main() -> None:
    # ------------------------------------------------------------------
    # 1. Replay the editor notifications an IDE adapter would publish.
    # ------------------------------------------------------------------
    session = EditorSession()
    session.handle(ActiveFileChanged(file_id="geometry.py", content=SOURCE, language="python"))
    session.handle(
        SelectionChanged(
            file_id="geometry.py",
            language="python",
            selection=TextRange.of(3, 0, 4, 34),
            selected_text="def area(radius):\n    return math.pi * radius ** 2",
        )
    )
    session.handle(
        DocumentChanged(
            file_id="geometry.py",
            changes=[ContentChange(range=TextRange.of(8, 25, 8, 25), text="rad")],
        )
    )
    print(f"Session stats: {session.stats()}")

    # ------------------------------------------------------------------
    # 2. Build the prompt for the cursor at the end of "rad".
    # ------------------------------------------------------------------
    config = CompletionConfig.from_env()
    cursor = Position(line=8, character=28)
    ctx = CursorContext(file_id="geometry.py", language="python", content=SOURCE, cursor=cursor)
    prompt = PromptAssembler(session).assemble(ctx, config.prompt_budget)
    print(f"Prompt: ~{prompt.token_estimate} tokens of {prompt.budget}")
    print(f"Included: {prompt.included}")
    print(f"Dropped:  {prompt.dropped}")
    print()

    # ------------------------------------------------------------------
    # 3. Ask the backend. A timeout prints "no suggestion"; other
    #    failures are reported as errors.
    # ------------------------------------------------------------------
    engine = CompletionEngine(session, config)
    try:
        completion = await engine.request_completion(
            "geometry.py", SOURCE, "python", cursor, TriggerKind.MANUAL
        )
    except CompletionError as exc:
        print(f"Backend error: {exc}")
        return
    finally:
        session.close()

    print("--- Completion ---")
    print(completion if completion is not None else "(no suggestion)")


if __name__ == "__main__":
    asyncio.run(main())
