"""Canonical, language-agnostic analysis model.

Single source of truth for everything the analysis core produces. Every
adapter, whatever its grammar, normalizes into these shapes, and downstream
consumers read nothing else.

Serialization:
- Field names are snake_case in Python and camelCase on the wire
  (``model_dump(by_alias=True)`` / ``model_dump_json(by_alias=True)``).
- Models accept either spelling on input, so a manifest written to disk can
  be read back with ``AnalysisManifest.model_validate_json``.

Ownership:
- A ``ModuleInfo`` owns its symbols outright. ``Symbol.parent_id`` and
  ``Symbol.children`` are plain id strings used as lookup keys, never as
  object references. Tree views are rebuilt with ``symbol_index``.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ============================================================================
# ENUMS
# ============================================================================


class SymbolKind(str, Enum):
    """Fixed taxonomy of declaration kinds."""

    FUNCTION = "function"
    METHOD = "method"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"
    ENUM = "enum"
    CONSTANT = "constant"
    VARIABLE = "variable"
    PROPERTY = "property"
    MODULE = "module"
    NAMESPACE = "namespace"
    DECORATOR = "decorator"
    HOOK = "hook"
    COMPONENT = "component"
    SECTION = "section"


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    PROTECTED = "protected"
    INTERNAL = "internal"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class InsightCategory(str, Enum):
    DOCUMENTATION = "documentation"
    ARCHITECTURE = "architecture"
    CODE_QUALITY = "code-quality"
    SECURITY = "security"
    PERFORMANCE = "performance"


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# SYMBOLS
# ============================================================================


class SourceLocation(_WireModel):
    """1-based position of a declaration."""

    file: str
    line: int
    column: int
    end_line: int | None = None
    end_column: int | None = None


class Parameter(_WireModel):
    name: str
    type: str | None = None
    description: str | None = None
    default_value: str | None = None
    optional: bool = False
    rest: bool = False


class ReturnInfo(_WireModel):
    type: str | None = None
    description: str | None = None


class DocComment(_WireModel):
    """Structured doc comment, normalized across every doc syntax."""

    summary: str = ""
    description: str | None = None
    params: dict[str, str] = Field(default_factory=dict)
    returns: str | None = None
    throws: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)
    tags: dict[str, str] = Field(default_factory=dict)
    deprecated: bool | str | None = None
    since: str | None = None
    see: list[str] = Field(default_factory=list)


class Symbol(_WireModel):
    """A named, located declaration."""

    id: str
    name: str
    kind: SymbolKind
    visibility: Visibility = Visibility.PUBLIC
    exported: bool = False
    location: SourceLocation
    parameters: list[Parameter] = Field(default_factory=list)
    returns: ReturnInfo | None = None
    type_annotation: str | None = None
    extends: str | None = None
    implements: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)
    parent_id: str | None = None
    docs: DocComment | None = None
    ai_summary: str | None = None
    signature: str | None = None
    type_parameters: list[str] = Field(default_factory=list)
    decorators: list[str] = Field(default_factory=list)
    is_async: bool = Field(default=False, alias="async")
    is_generator: bool = Field(default=False, alias="generator")


# ============================================================================
# IMPORTS / EXPORTS
# ============================================================================


class ImportSpecifier(_WireModel):
    name: str
    alias: str | None = None
    is_default: bool = False
    is_namespace: bool = False


class ImportInfo(_WireModel):
    """One import statement. ``source`` is the specifier exactly as written."""

    source: str
    specifiers: list[ImportSpecifier] = Field(default_factory=list)
    is_type_only: bool = False


class ExportInfo(_WireModel):
    name: str
    alias: str | None = None
    is_default: bool = False
    is_re_export: bool = False
    source: str | None = None
    symbol_id: str | None = None


class ParserResult(_WireModel):
    """What an extraction adapter returns for one file."""

    symbols: list[Symbol] = Field(default_factory=list)
    imports: list[ImportInfo] = Field(default_factory=list)
    exports: list[ExportInfo] = Field(default_factory=list)
    module_doc: DocComment | None = None


# ============================================================================
# MODULES AND MANIFEST
# ============================================================================


class ModuleInfo(_WireModel):
    """Per-file analysis result. ``file_path`` is the unique key."""

    file_path: str
    language: str
    symbols: list[Symbol] = Field(default_factory=list)
    imports: list[ImportInfo] = Field(default_factory=list)
    exports: list[ExportInfo] = Field(default_factory=list)
    module_doc: DocComment | None = None
    ai_summary: str | None = None
    file_size: int
    line_count: int
    content_hash: str
    analyzed_at: str


class SkippedFile(_WireModel):
    path: str
    reason: str


class DependencyEdge(_WireModel):
    from_: str = Field(alias="from")
    to: str
    imports: list[str] = Field(default_factory=list)
    is_type_only: bool = False


class DependencyGraph(_WireModel):
    nodes: list[str] = Field(default_factory=list)
    edges: list[DependencyEdge] = Field(default_factory=list)


class LanguageShare(_WireModel):
    name: str
    file_count: int
    percentage: int


class ProjectMeta(_WireModel):
    name: str
    version: str | None = None
    description: str | None = None
    languages: list[LanguageShare] = Field(default_factory=list)
    entry_points: list[str] = Field(default_factory=list)
    repository: str | None = None


class LanguageStats(_WireModel):
    files: int = 0
    symbols: int = 0
    lines: int = 0


class AnalysisStats(_WireModel):
    total_files: int = 0
    total_symbols: int = 0
    total_lines: int = 0
    by_language: dict[str, LanguageStats] = Field(default_factory=dict)
    by_kind: dict[str, int] = Field(default_factory=dict)
    analysis_time: int = 0  # milliseconds
    skipped_files: int = 0


class CacheEntry(_WireModel):
    """One durable cache record."""

    key: str
    value: Any
    generated_at: str


class AnalysisManifest(_WireModel):
    """Aggregated analysis of a source tree."""

    tool_version: str
    repo: str
    branch: str = ""
    commit_sha: str = ""
    analyzed_at: str
    modules: list[ModuleInfo] = Field(default_factory=list)
    dependency_graph: DependencyGraph = Field(default_factory=DependencyGraph)
    project_meta: ProjectMeta
    stats: AnalysisStats = Field(default_factory=AnalysisStats)
    summary_cache: list[CacheEntry] | None = None

    def get_module(self, file_path: str) -> ModuleInfo | None:
        for module in self.modules:
            if module.file_path == file_path:
                return module
        return None


class Insight(_WireModel):
    """A structured finding from a static detector."""

    id: str
    category: InsightCategory
    severity: Severity
    title: str
    description: str
    affected_files: list[str] = Field(default_factory=list)
    suggestion: str


# ============================================================================
# READ-ONLY VIEWS
# ============================================================================


def symbol_index(modules: Iterable[ModuleInfo]) -> dict[str, Symbol]:
    """Flat id → Symbol lookup over every module (later ids overwrite earlier)."""
    index: dict[str, Symbol] = {}
    for module in modules:
        for sym in module.symbols:
            index[sym.id] = sym
    return index


def children_of(symbol: Symbol, index: dict[str, Symbol]) -> list[Symbol]:
    """Resolve a symbol's child ids through an index, dropping dangling ids."""
    return [index[child_id] for child_id in symbol.children if child_id in index]


def parent_of(symbol: Symbol, index: dict[str, Symbol]) -> Symbol | None:
    if symbol.parent_id is None:
        return None
    return index.get(symbol.parent_id)
