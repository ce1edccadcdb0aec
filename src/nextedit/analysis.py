"""Per-file structural analysis — best-effort regex extraction plus a TTL cache.

Analyzers are looked up by language through :class:`AnalyzerRegistry`, so a
stronger per-language analyzer can replace the regex heuristics without the
prompt assembler noticing.
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class FileAnalysis:
    """Structural summary of one file snapshot."""

    snapshot_content: str
    language: str
    imports: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    variables: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.imports or self.functions or self.classes or self.variables)


class FileAnalyzer(ABC):
    """Capability interface for structural analysis of one or more languages."""

    @abstractmethod
    def supports(self, language: str) -> bool:
        """Return True if this analyzer understands ``language``."""

    @abstractmethod
    def analyze(self, content: str, language: str) -> FileAnalysis:
        """Extract imports, functions, classes and variables from ``content``."""


# ---------------------------------------------------------------------------
# Regex heuristics
# ---------------------------------------------------------------------------

_JS_IMPORT = r"""import\s+.*?from\s+['"][^'"]+['"]|require\(['"][^'"]+['"]\)"""
_C_STYLE_METHOD = r"(?:public|private|protected)?\s*(?:static)?\s*\w+\s+\w+\([^)]*\)\s*\{"
_ASSIGNMENT = r"\w+\s*=(?!=)"

_IMPORT_PATTERNS: dict[str, str] = {
    "javascript": _JS_IMPORT,
    "typescript": _JS_IMPORT,
    "python": r"^[ \t]*(?:import\s+[\w.]+|from\s+[\w.]+\s+import)",
    "java": r"import\s+[\w.*]+;",
    "csharp": r"using\s+[\w.]+;",
    "ruby": r"""require\s+['"][^'"]+['"]""",
    "php": r"""require\s+['"][^'"]+['"]""",
    "css": r"""import\s+['"][^'"]+['"]""",
}

_FUNCTION_PATTERNS: dict[str, str] = {
    "javascript": r"async\s+function\s+\w+|function\s+\w+|const\s+\w+\s*=\s*\([^)]*\)\s*=>",
    "typescript": r"async\s+function\s+\w+|function\s+\w+|const\s+\w+\s*:\s*\([^)]*\)\s*=>",
    "python": r"def\s+\w+\([^)]*\).*?:",
    "java": _C_STYLE_METHOD,
    "csharp": _C_STYLE_METHOD,
    "ruby": r"def\s+\w+(?:\(.*\))?",
    "php": r"function\s+\w+\s*\([^)]*\)\s*\{",
}

_CLASS_PATTERNS: dict[str, str] = {
    lang: r"class\s+\w+"
    for lang in ("javascript", "typescript", "python", "java", "csharp", "ruby", "php", "css")
}

_VARIABLE_PATTERNS: dict[str, str] = {
    "javascript": r"(?:const|let|var)\s+\w+",
    "typescript": r"(?:const|let|var)\s+\w+",
    "python": _ASSIGNMENT,
    "java": _ASSIGNMENT,
    "csharp": _ASSIGNMENT,
    "ruby": _ASSIGNMENT,
    "php": r"\$\w+\s*=(?!=)",
}


def _find_all(pattern: str | None, content: str) -> list[str]:
    if pattern is None or not content:
        return []
    found: list[str] = []
    for match in re.finditer(pattern, content, re.MULTILINE):
        text = match.group(0).strip()
        if text:
            found.append(text)
    return found


class RegexFileAnalyzer(FileAnalyzer):
    """Line-oriented pattern matching. May over- or under-match."""

    LANGUAGES = frozenset(_IMPORT_PATTERNS) | frozenset(_FUNCTION_PATTERNS)

    def supports(self, language: str) -> bool:
        return language in self.LANGUAGES

    def analyze(self, content: str, language: str) -> FileAnalysis:
        return FileAnalysis(
            snapshot_content=content,
            language=language,
            imports=_find_all(_IMPORT_PATTERNS.get(language), content),
            functions=_find_all(_FUNCTION_PATTERNS.get(language), content),
            classes=_find_all(_CLASS_PATTERNS.get(language), content),
            variables=_find_all(_VARIABLE_PATTERNS.get(language), content),
        )


class AnalyzerRegistry:
    """Maps languages to analyzers; unknown languages get empty summaries."""

    def __init__(self, default: FileAnalyzer | None = None) -> None:
        self._default = default if default is not None else RegexFileAnalyzer()
        self._by_language: dict[str, FileAnalyzer] = {}

    def register(self, language: str, analyzer: FileAnalyzer) -> None:
        self._by_language[language] = analyzer

    def resolve(self, language: str) -> FileAnalyzer | None:
        analyzer = self._by_language.get(language)
        if analyzer is not None:
            return analyzer
        if self._default.supports(language):
            return self._default
        return None

    def analyze(self, content: str, language: str) -> FileAnalysis:
        analyzer = self.resolve(language)
        if analyzer is None:
            return FileAnalysis(snapshot_content=content, language=language)
        return analyzer.analyze(content, language)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


@dataclass
class _CacheEntry:
    analysis: FileAnalysis
    expires_at: float


class AnalysisCache:
    """One FileAnalysis per file id, dropped on edit, close or TTL expiry.

    Expiry is checked on every read. :meth:`evict_expired` sweeps expired
    entries and runs before each :meth:`get`. Expiry, eviction and
    :meth:`invalidate` all converge on "no entry", so any interleaving of
    them is harmless.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        registry: AnalyzerRegistry | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._entries: dict[str, _CacheEntry] = {}
        self._ttl = ttl_seconds
        self._registry = registry if registry is not None else AnalyzerRegistry()
        self._clock = clock

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for e in self._entries.values() if e.expires_at > now)

    def __contains__(self, file_id: object) -> bool:
        if not isinstance(file_id, str):
            return False
        entry = self._entries.get(file_id)
        return entry is not None and entry.expires_at > self._clock()

    def get(self, file_id: str, current_content: str, language: str) -> FileAnalysis:
        """Return the cached analysis, recomputing it if missing or expired.

        Every other expired entry is dropped on the way.
        """
        self.evict_expired()
        now = self._clock()
        entry = self._entries.get(file_id)
        if entry is not None and entry.expires_at > now:
            return entry.analysis

        analysis = self.analyze(current_content, language)
        self._entries[file_id] = _CacheEntry(analysis=analysis, expires_at=now + self._ttl)
        return analysis

    def analyze(self, content: str, language: str) -> FileAnalysis:
        return self._registry.analyze(content, language)

    def invalidate(self, file_id: str) -> None:
        if self._entries.pop(file_id, None) is not None:
            logger.debug("analysis cache invalidated: %s", file_id)

    def evict_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
