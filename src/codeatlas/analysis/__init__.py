"""Multi-language source analysis.

Public surface:
- ``analyze_sources`` / ``analyze_repository``: full analysis pass
- ``SourceFile`` / ``AnalysisResult``: pipeline input and output
- the canonical model in ``codeatlas.analysis.models``
"""

from codeatlas.analysis._internal.assembly import ManifestBuilder, ModuleAssembler
from codeatlas.analysis._internal.cache import IncrementalCache, composite_key
from codeatlas.analysis._internal.extraction import (
    AdapterRegistry,
    LanguageAdapter,
    create_registry,
    get_registry,
)
from codeatlas.analysis._internal.graph import build_dependency_graph, resolve_import_source
from codeatlas.analysis._internal.insights import (
    InsightEngine,
    detect_circular_dependencies,
    detect_deep_nesting,
    detect_god_modules,
    detect_inconsistent_naming,
    detect_missing_types,
    detect_orphan_modules,
    detect_oversized_modules,
    detect_undocumented_exports,
)
from codeatlas.analysis._internal.parsing import GrammarRuntime, acquire_parser, get_runtime
from codeatlas.analysis.ops import (
    AnalysisResult,
    SourceFile,
    analyze_repository,
    analyze_sources,
)

__all__ = [
    # Pipeline
    "AnalysisResult",
    "SourceFile",
    "analyze_repository",
    "analyze_sources",
    # Components
    "AdapterRegistry",
    "GrammarRuntime",
    "IncrementalCache",
    "InsightEngine",
    "LanguageAdapter",
    "ManifestBuilder",
    "ModuleAssembler",
    "acquire_parser",
    "build_dependency_graph",
    "composite_key",
    "create_registry",
    "get_registry",
    "get_runtime",
    "resolve_import_source",
    # Detectors
    "detect_circular_dependencies",
    "detect_deep_nesting",
    "detect_god_modules",
    "detect_inconsistent_naming",
    "detect_missing_types",
    "detect_orphan_modules",
    "detect_oversized_modules",
    "detect_undocumented_exports",
]
