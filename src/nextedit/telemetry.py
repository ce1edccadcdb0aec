"""OpenTelemetry tracing for completion requests.

Spans cover the request as a whole, prompt assembly and the backend call.
Attributes carry what a slow or empty suggestion needs explaining with:
trigger, suppression reason, prompt size, dropped sections, reply size.
Tracing is a no-op until :func:`configure` installs an exporter.
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator, Mapping, Sequence
from dataclasses import dataclass

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor, SpanExporter
from opentelemetry.trace import NoOpTracer, Span, Tracer

AttributeValue = str | bool | int | float | Sequence[str]

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class TelemetryConfig:
    """Configuration for the nextedit tracing subsystem."""

    service_name: str = "nextedit"
    enabled: bool = True
    exporter: str = "none"  # "stdout" | "otlp" | "none"
    otlp_endpoint: str = "http://localhost:4317"


def _build_exporter(cfg: TelemetryConfig) -> SpanExporter | None:
    if cfg.exporter == "stdout":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        return ConsoleSpanExporter()
    if cfg.exporter == "otlp":
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError:  # pragma: no cover
            # The otlp extra is not installed; tracing stays off.
            return None
        return OTLPSpanExporter(endpoint=cfg.otlp_endpoint, insecure=True)
    return None


def _clean(attributes: Mapping[str, AttributeValue | None] | None) -> dict[str, AttributeValue]:
    """Drop unset values; OTel rejects ``None`` attributes."""
    if not attributes:
        return {}
    cleaned: dict[str, AttributeValue] = {}
    for key, value in attributes.items():
        if value is None:
            continue
        cleaned[key] = list(value) if isinstance(value, (list, tuple)) else value
    return cleaned


# ---------------------------------------------------------------------------
# NextEditTracer
# ---------------------------------------------------------------------------


class NextEditTracer:
    """Owns the TracerProvider and hands out completion-path spans.

    ``exporter`` overrides the one named in the config, which lets callers
    plug in any SDK exporter (tests use the in-memory one).
    """

    def __init__(
        self,
        config: TelemetryConfig | None = None,
        exporter: SpanExporter | None = None,
    ) -> None:
        self._config = config or TelemetryConfig()
        self._exporter = exporter
        self._provider: TracerProvider | None = None
        self._tracer: Tracer = NoOpTracer()

    @property
    def active(self) -> bool:
        return self._provider is not None

    # -- lifecycle -----------------------------------------------------------

    def init(self) -> None:
        cfg = self._config
        if not cfg.enabled:
            return
        exporter = self._exporter or _build_exporter(cfg)
        if exporter is None:
            return

        provider = TracerProvider(resource=Resource.create({"service.name": cfg.service_name}))
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        self._provider = provider
        self._tracer = provider.get_tracer(cfg.service_name)

    def shutdown(self) -> None:
        """Flush and drop the provider. Safe to call more than once."""
        if self._provider is not None:
            self._provider.shutdown()
            self._provider = None
            self._tracer = NoOpTracer()

    # -- spans ---------------------------------------------------------------

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: Mapping[str, AttributeValue | None] | None = None,
    ) -> Generator[Span, None, None]:
        with self._tracer.start_as_current_span(name, attributes=_clean(attributes)) as s:
            yield s

    def record_event(
        self,
        name: str,
        attributes: Mapping[str, AttributeValue | None] | None = None,
    ) -> None:
        """Add an event to the current span, if one is recording."""
        current_span = trace.get_current_span()
        if current_span.is_recording():
            current_span.add_event(name, _clean(attributes))


# ---------------------------------------------------------------------------
# Module-level tracer
# ---------------------------------------------------------------------------

_DEFAULT_TRACER: NextEditTracer | None = None


def _get_default_tracer() -> NextEditTracer:
    global _DEFAULT_TRACER  # noqa: PLW0603
    if _DEFAULT_TRACER is None:
        _DEFAULT_TRACER = NextEditTracer()
    return _DEFAULT_TRACER


def configure(
    config: TelemetryConfig, exporter: SpanExporter | None = None
) -> NextEditTracer:
    """Replace the module-level tracer with one built from ``config``."""
    global _DEFAULT_TRACER  # noqa: PLW0603
    if _DEFAULT_TRACER is not None:
        _DEFAULT_TRACER.shutdown()
    _DEFAULT_TRACER = NextEditTracer(config, exporter)
    _DEFAULT_TRACER.init()
    return _DEFAULT_TRACER


# ---------------------------------------------------------------------------
# Completion-path helpers
# ---------------------------------------------------------------------------


@contextlib.contextmanager
def trace_completion_request(file_id: str, trigger: str) -> Generator[Span, None, None]:
    """Span for one request, from admission to the sanitized reply.

    The engine sets ``completion.outcome`` (``suggested``, ``suppressed``,
    ``empty``, ``cancelled``) and, when suppressed, ``completion.suppressed_by``.
    """
    attributes = {"completion.file_id": file_id, "completion.trigger": trigger}
    with _get_default_tracer().span("completion/request", attributes) as s:
        yield s


@contextlib.contextmanager
def trace_prompt_assembly(budget: int) -> Generator[Span, None, None]:
    """Span for a prompt assembly pass. See :func:`annotate_prompt`."""
    with _get_default_tracer().span("prompt/assemble", {"prompt.budget": budget}) as s:
        yield s


def annotate_prompt(
    span: Span, token_estimate: int, included: Sequence[str], dropped: Sequence[str]
) -> None:
    span.set_attributes(
        _clean(
            {
                "prompt.token_estimate": token_estimate,
                "prompt.included": included,
                "prompt.dropped": dropped,
            }
        )
    )


@contextlib.contextmanager
def trace_backend_call(model: str, endpoint: str | None = None) -> Generator[Span, None, None]:
    """Span for the HTTP call. The client adds status and reply size."""
    attributes = {"backend.model": model, "backend.endpoint": endpoint}
    with _get_default_tracer().span("backend/call", attributes) as s:
        yield s


def record_event(name: str, attributes: Mapping[str, AttributeValue | None] | None = None) -> None:
    """Record an event on the current span through the module-level tracer."""
    _get_default_tracer().record_event(name, attributes)
