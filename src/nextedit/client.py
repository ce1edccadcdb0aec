"""Completion client — one POST to an OpenAI-style chat-completions endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests
from pydantic import ValidationError

from .config import BackendConfig
from .provider import ChatMessage, ChatRequest, ChatResponse, ChatRole
from .telemetry import record_event, trace_backend_call

logger = logging.getLogger(__name__)

CODE_FENCE_STOP = "```"
TRIPLE_NEWLINE_STOP = "\n\n\n"
DEFAULT_STOP = [CODE_FENCE_STOP, TRIPLE_NEWLINE_STOP]


class CompletionError(Exception):
    """Raised when the backend cannot produce a usable reply."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TransportError(CompletionError):
    """Connection failure or non-2xx HTTP status."""


class ProtocolError(CompletionError):
    """The reply is not JSON or lacks ``choices[0].message.content``."""


class CancellationToken:
    """Flag checked after the network call resolves.

    Cancelling does not abort a request in flight; it only makes the caller
    discard whatever comes back.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class CompletionClient:
    """Sends one chat-completions request and returns the raw reply text.

    Timeouts yield ``None``. Every other failure raises a
    :class:`CompletionError`; nothing is retried.
    """

    def __init__(self, session: requests.Session | None = None) -> None:
        self._http = session

    @staticmethod
    def build_request(
        prompt: str,
        instructions: str,
        config: BackendConfig,
        stop: list[str] | None = None,
    ) -> ChatRequest:
        return ChatRequest(
            model=config.model,
            messages=[
                ChatMessage(role=ChatRole.SYSTEM, content=instructions),
                ChatMessage(role=ChatRole.USER, content=prompt),
            ],
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            stop=list(DEFAULT_STOP) if stop is None else stop,
        )

    @staticmethod
    def headers(config: BackendConfig) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        return headers

    async def complete(
        self,
        prompt: str,
        instructions: str,
        config: BackendConfig,
        cancellation: CancellationToken | None = None,
    ) -> str | None:
        """Return the reply content, or ``None`` on timeout or cancellation."""
        request = self.build_request(prompt, instructions, config)
        return await self.send(request, config, cancellation)

    async def send(
        self,
        request: ChatRequest,
        config: BackendConfig,
        cancellation: CancellationToken | None = None,
    ) -> str | None:
        """Post an already-built request. Same outcome rules as :meth:`complete`."""
        with trace_backend_call(request.model, config.endpoint) as span:
            try:
                response = await asyncio.to_thread(
                    self._post,
                    config.endpoint,
                    request.to_payload(),
                    self.headers(config),
                    config.timeout_seconds,
                )
            except requests.Timeout:
                logger.debug("completion timed out after %sms", config.timeout_ms)
                record_event("backend.timeout", {"backend.timeout_ms": config.timeout_ms})
                return None
            span.set_attribute("http.status_code", response.status_code)

            if cancellation is not None and cancellation.is_cancellation_requested:
                logger.debug("completion cancelled; discarding reply")
                record_event("backend.discarded")
                return None

            content = self.parse_response(response)
            span.set_attribute("backend.reply_chars", len(content))
            return content

    def _post(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        timeout: float,
    ) -> requests.Response:
        post = self._http.post if self._http is not None else requests.post
        try:
            return post(url, json=payload, headers=headers, timeout=timeout)
        except requests.Timeout:
            raise
        except requests.RequestException as exc:
            msg = f"completion request to {url} failed: {exc}"
            raise TransportError(msg) from exc

    @staticmethod
    def parse_response(response: requests.Response) -> str:
        """Extract ``choices[0].message.content`` or raise."""
        if not 200 <= response.status_code < 300:
            detail = response.text[:200] if response.text else response.reason
            msg = f"completion backend returned HTTP {response.status_code}: {detail}"
            raise TransportError(msg, status_code=response.status_code)
        try:
            body = response.json()
        except ValueError as exc:
            msg = "completion backend returned a non-JSON body"
            raise ProtocolError(msg, status_code=response.status_code) from exc
        try:
            return ChatResponse.model_validate(body).content
        except ValidationError as exc:
            msg = "completion backend reply has no choices[0].message.content"
            raise ProtocolError(msg, status_code=response.status_code) from exc
