"""Request configuration — defaults plus ``NEXTEDIT_*`` environment overrides.

Values are read per request and never persisted. Nothing is validated beyond
the type coercion pydantic performs.
"""

from __future__ import annotations

import os
from typing import ClassVar, Self

from pydantic import BaseModel

_DEFAULT_SERVER_URL = "http://localhost:1234"
_DEFAULT_MODEL = "local-model"

# Connection settings shared by every request path.
_SHARED_ENV: dict[str, str] = {
    "server_url": "NEXTEDIT_SERVER_URL",
    "api_key": "NEXTEDIT_API_KEY",
    "model": "NEXTEDIT_MODEL",
}


def _env(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


class BackendConfig(BaseModel):
    """Connection and sampling settings shared by every request path."""

    env_prefix: ClassVar[str] = "NEXTEDIT_"

    server_url: str = _DEFAULT_SERVER_URL
    api_key: str = ""
    model: str = _DEFAULT_MODEL
    temperature: float = 0.2
    max_tokens: int = 500
    timeout_ms: int = 5000

    @classmethod
    def from_env(cls, **overrides: object) -> Self:
        """Build a config from the environment; explicit ``overrides`` win.

        Connection settings come from ``NEXTEDIT_SERVER_URL``,
        ``NEXTEDIT_API_KEY`` and ``NEXTEDIT_MODEL``. Every other field is read
        from ``<env_prefix><FIELD_NAME>``, e.g. ``NEXTEDIT_TIMEOUT_MS``.
        """
        values: dict[str, object] = {}
        for field_name in cls.model_fields:
            var = _SHARED_ENV.get(field_name, f"{cls.env_prefix}{field_name.upper()}")
            raw = _env(var)
            if raw is not None:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def endpoint(self) -> str:
        return f"{self.server_url.rstrip('/')}/v1/chat/completions"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class CompletionConfig(BackendConfig):
    """Settings consumed by one inline-completion request."""

    prompt_budget: int = 3500
    completions_enabled: bool = True
    debounce_ms: int = 300


class ChatConfig(BackendConfig):
    """Settings for the conversational request path (``NEXTEDIT_CHAT_*``)."""

    env_prefix: ClassVar[str] = "NEXTEDIT_CHAT_"

    temperature: float = 0.7
    max_tokens: int = 2000
    timeout_ms: int = 60000
