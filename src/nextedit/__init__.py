"""nextedit — context-aware inline code completion core."""

from __future__ import annotations

__version__ = "0.1.0"

from .activity import ActivityStore, EditRecord, Position, TextRange, ViewedSnippet
from .analysis import (
    AnalysisCache,
    AnalyzerRegistry,
    FileAnalysis,
    FileAnalyzer,
    RegexFileAnalyzer,
)
from .chat import ChatConversation, ChatTurn, FileAttachment, SelectionAttachment
from .client import (
    CancellationToken,
    CompletionClient,
    CompletionError,
    ProtocolError,
    TransportError,
)
from .config import BackendConfig, ChatConfig, CompletionConfig
from .engine import CompletionEngine, TriggerKind
from .events import (
    ActiveFileChanged,
    ContentChange,
    DocumentChanged,
    DocumentClosed,
    EditorEvent,
    EditorEventKind,
    EventChannel,
    SelectionChanged,
)
from .prompt import (
    AssembledPrompt,
    AssemblerLimits,
    CursorContext,
    PromptAssembler,
    PromptLayout,
    PromptSection,
    TokenBudget,
    estimate_tokens,
)
from .provider import ChatMessage, ChatRequest, ChatResponse, ChatRole
from .sanitizer import sanitize
from .session import EditorSession
from .telemetry import NextEditTracer, TelemetryConfig

__all__ = [
    "ActiveFileChanged",
    "ActivityStore",
    "AnalysisCache",
    "AnalyzerRegistry",
    "AssembledPrompt",
    "AssemblerLimits",
    "BackendConfig",
    "CancellationToken",
    "ChatConfig",
    "ChatConversation",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ChatRole",
    "ChatTurn",
    "CompletionClient",
    "CompletionConfig",
    "CompletionEngine",
    "CompletionError",
    "ContentChange",
    "CursorContext",
    "DocumentChanged",
    "DocumentClosed",
    "EditRecord",
    "EditorEvent",
    "EditorEventKind",
    "EditorSession",
    "EventChannel",
    "FileAnalysis",
    "FileAnalyzer",
    "FileAttachment",
    "NextEditTracer",
    "Position",
    "PromptAssembler",
    "PromptLayout",
    "PromptSection",
    "ProtocolError",
    "RegexFileAnalyzer",
    "SelectionAttachment",
    "SelectionChanged",
    "TelemetryConfig",
    "TextRange",
    "TokenBudget",
    "TransportError",
    "TriggerKind",
    "ViewedSnippet",
    "estimate_tokens",
    "sanitize",
]
