"""Completion engine — admission gate, prompt assembly, backend call, cleanup."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

from .activity import Position
from .client import CancellationToken, CompletionClient
from .config import CompletionConfig
from .prompt.assembler import DEFAULT_CONTEXT_RADIUS, CursorContext, PromptAssembler
from .prompt.templates import SYSTEM_INSTRUCTIONS
from .sanitizer import sanitize
from .session import EditorSession
from .telemetry import annotate_prompt, trace_completion_request, trace_prompt_assembly

logger = logging.getLogger(__name__)

RAPID_TYPING_WINDOW_MINUTES = 1 / 60
RAPID_TYPING_MAX_EDITS = 2


class TriggerKind(StrEnum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class CompletionEngine:
    """Turns a cursor position into one sanitized completion, or ``None``.

    Automatic requests pass through two gates first: a debounce interval and
    a rapid-typing guard. Manual requests skip both but still reset the
    debounce clock. Backend errors other than timeouts reach the caller.
    """

    def __init__(
        self,
        session: EditorSession,
        config: CompletionConfig | Callable[[], CompletionConfig] | None = None,
        client: CompletionClient | None = None,
        assembler: PromptAssembler | None = None,
    ) -> None:
        self._session = session
        self._config = config if config is not None else CompletionConfig.from_env
        self._client = client or CompletionClient()
        self._assembler = assembler or PromptAssembler(session)
        self._last_request: float | None = None

    def current_config(self) -> CompletionConfig:
        if isinstance(self._config, CompletionConfig):
            return self._config
        return self._config()

    # -- admission -----------------------------------------------------------

    def is_typing_rapidly(self, file_id: str) -> bool:
        recent = self._session.activity.get_recent_edits(file_id, RAPID_TYPING_WINDOW_MINUTES)
        return len(recent) > RAPID_TYPING_MAX_EDITS

    def _suppression(
        self, file_id: str, trigger: TriggerKind, config: CompletionConfig
    ) -> str | None:
        """Name of the gate that rejects this request, or ``None`` to admit it."""
        if trigger is TriggerKind.MANUAL:
            self._last_request = self._session.clock()
            return None
        if not config.completions_enabled:
            return "disabled"

        now = self._session.clock()
        last = self._last_request
        if last is not None and (now - last) * 1000 < config.debounce_ms:
            return "debounce"
        self._last_request = now

        if self.is_typing_rapidly(file_id):
            return "rapid_typing"
        return None

    # -- request -------------------------------------------------------------

    async def request_completion(  # noqa: PLR0913
        self,
        file_id: str,
        content: str,
        language: str,
        cursor: Position,
        trigger: TriggerKind = TriggerKind.AUTOMATIC,
        cancellation: CancellationToken | None = None,
        *,
        radius: int = DEFAULT_CONTEXT_RADIUS,
    ) -> str | None:
        """Produce the text to insert at ``cursor`` or ``None`` for no suggestion."""
        config = self.current_config()
        with trace_completion_request(file_id, trigger.value) as span:
            reason = self._suppression(file_id, trigger, config)
            if reason is not None:
                logger.debug("completion for %s suppressed: %s", file_id, reason)
                span.set_attributes(
                    {"completion.outcome": "suppressed", "completion.suppressed_by": reason}
                )
                return None

            ctx = CursorContext(
                file_id=file_id,
                language=language,
                content=content,
                cursor=cursor,
                radius=radius,
            )
            with trace_prompt_assembly(config.prompt_budget) as assembly:
                prompt = self._assembler.assemble(ctx, config.prompt_budget)
                annotate_prompt(assembly, prompt.token_estimate, prompt.included, prompt.dropped)
            logger.debug(
                "prompt for %s (%d tokens, dropped %s):\n%s",
                file_id,
                prompt.token_estimate,
                prompt.dropped,
                prompt.text,
            )

            raw = await self._client.complete(
                prompt.text, SYSTEM_INSTRUCTIONS, config, cancellation
            )
            if cancellation is not None and cancellation.is_cancellation_requested:
                span.set_attribute("completion.outcome", "cancelled")
                return None
            if raw is None:
                span.set_attribute("completion.outcome", "empty")
                return None
            logger.debug("raw completion for %s:\n%s", file_id, raw)

            completion = sanitize(raw, ctx.prefix)
            span.set_attribute("completion.outcome", "suggested" if completion else "empty")
            return completion or None
