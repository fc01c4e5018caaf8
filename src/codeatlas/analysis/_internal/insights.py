"""Static insight detectors.

Eight independent detectors over a finished manifest (modules plus
dependency graph). Each is a pure function returning zero or one
``Insight``; none mutates the manifest, so they may run in any order or
concurrently. ``InsightEngine`` runs the enabled ones and concatenates the
results in detector order.

All thresholds are exclusive: a value equal to the threshold is not
flagged. ``affected_files`` lists are capped at ten entries.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from codeatlas.analysis._internal.assembly.manifest import is_entry_point
from codeatlas.analysis.models import (
    AnalysisManifest,
    Insight,
    InsightCategory,
    Severity,
    SymbolKind,
)
from codeatlas.config.models import DETECTOR_IDS, InsightsConfig
from codeatlas.core.logging import get_logger

log = get_logger(__name__)

MAX_AFFECTED_FILES = 10

_CAMEL = re.compile(r"^[a-z][a-zA-Z0-9]*$")
_PASCAL = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_SNAKE = re.compile(r"^[a-z][a-z0-9_]*$")


def _plural(count: int, singular: str = "", plural: str = "s") -> str:
    return plural if count > 1 else singular


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


# =============================================================================
# Detectors
# =============================================================================


def detect_undocumented_exports(manifest: AnalysisManifest) -> list[Insight]:
    """Exported symbols with neither a doc summary nor a generated summary."""
    undocumented: list[tuple[str, str]] = []
    for module in manifest.modules:
        for sym in module.symbols:
            if sym.exported and not (sym.docs and sym.docs.summary) and not sym.ai_summary:
                undocumented.append((module.file_path, sym.name))

    if not undocumented:
        return []

    count = len(undocumented)
    files = _unique(path for path, _ in undocumented)
    examples = ", ".join(f"`{name}`" for _, name in undocumented[:5])
    ellipsis = "..." if count > 5 else ""
    return [
        Insight(
            id="undocumented-exports",
            category=InsightCategory.DOCUMENTATION,
            severity=Severity.WARNING if count > 20 else Severity.INFO,
            title=f"{count} undocumented exported symbol{_plural(count)}",
            description=(
                f"Found {count} exported symbols without JSDoc/docstring documentation "
                f"across {len(files)} file{_plural(len(files))}. Examples: {examples}{ellipsis}."
            ),
            affected_files=files[:MAX_AFFECTED_FILES],
            suggestion=(
                "Add JSDoc comments or docstrings to all exported symbols to improve "
                "API documentation quality."
            ),
        )
    ]


def find_cycles(
    nodes: Sequence[str], adjacency: Mapping[str, Sequence[str]], limit: int = 10
) -> list[list[str]]:
    """Depth-first cycle search with one ``visited`` set shared by all starts.

    A cycle is reported when the walk reaches a node that is on the current
    path; it is the path suffix starting at that node. Because ``visited``
    is never reset, a node's cycles are only seen from the walk that first
    reaches it, so the search is sound but not exhaustive. It stops once
    ``limit`` cycles are found.
    """
    visited: set[str] = set()
    on_stack: set[str] = set()
    cycles: list[list[str]] = []

    for start in nodes:
        if len(cycles) >= limit:
            break
        if start in visited:
            continue
        path = [start]
        visited.add(start)
        on_stack.add(start)
        pending = [iter(adjacency.get(start, ()))]

        while pending and len(cycles) < limit:
            neighbor = next(pending[-1], None)
            if neighbor is None:
                pending.pop()
                on_stack.discard(path.pop())
            elif neighbor in on_stack:
                cycles.append(path[path.index(neighbor) :])
            elif neighbor not in visited:
                visited.add(neighbor)
                on_stack.add(neighbor)
                path.append(neighbor)
                pending.append(iter(adjacency.get(neighbor, ())))

    return cycles


def detect_circular_dependencies(
    manifest: AnalysisManifest, *, max_cycles: int = 10
) -> list[Insight]:
    graph = manifest.dependency_graph
    adjacency: dict[str, list[str]] = {}
    for edge in graph.edges:
        adjacency.setdefault(edge.from_, []).append(edge.to)

    cycles = find_cycles(graph.nodes, adjacency, max_cycles)
    if not cycles:
        return []

    count = len(cycles)
    chain = " → ".join(f"`{_basename(path)}`" for path in cycles[0])
    return [
        Insight(
            id="circular-dependencies",
            category=InsightCategory.ARCHITECTURE,
            severity=Severity.WARNING,
            title=f"{count} circular dependenc{_plural(count, 'y', 'ies')} detected",
            description=(
                f"Found {count} circular dependency chain{_plural(count)} in the module graph. "
                f"Example: {chain} → ..."
            ),
            affected_files=_unique(path for cycle in cycles for path in cycle)[:MAX_AFFECTED_FILES],
            suggestion=(
                "Break circular dependencies by extracting shared types into a separate "
                "module or using dependency inversion."
            ),
        )
    ]


def detect_oversized_modules(
    manifest: AnalysisManifest, *, max_lines: int = 500, max_symbols: int = 30
) -> list[Insight]:
    oversized = [
        m for m in manifest.modules if m.line_count > max_lines or len(m.symbols) > max_symbols
    ]
    if not oversized:
        return []

    count = len(oversized)
    first = oversized[0]
    return [
        Insight(
            id="oversized-modules",
            category=InsightCategory.CODE_QUALITY,
            severity=Severity.WARNING if count > 5 else Severity.INFO,
            title=f"{count} oversized module{_plural(count)}",
            description=(
                f"Found {count} module{_plural(count)} exceeding {max_lines} lines or "
                f"{max_symbols} symbols. Largest: `{first.file_path}` "
                f"({first.line_count} lines, {len(first.symbols)} symbols)."
            ),
            affected_files=[m.file_path for m in oversized][:MAX_AFFECTED_FILES],
            suggestion=(
                "Consider splitting large modules into smaller, focused files with "
                "single responsibility."
            ),
        )
    ]


@dataclass
class _EdgeCount:
    incoming: int = 0
    outgoing: int = 0

    @property
    def total(self) -> int:
        return self.incoming + self.outgoing


def detect_god_modules(manifest: AnalysisManifest, *, max_connections: int = 15) -> list[Insight]:
    """Modules whose in+out edge count exceeds ``max_connections``.

    Edge multiplicity counts: two imports between the same pair are two
    connections.
    """
    counts: dict[str, _EdgeCount] = {}
    for edge in manifest.dependency_graph.edges:
        counts.setdefault(edge.from_, _EdgeCount()).outgoing += 1
        counts.setdefault(edge.to, _EdgeCount()).incoming += 1

    gods = sorted(
        ((path, c) for path, c in counts.items() if c.total > max_connections),
        key=lambda item: item[1].total,
        reverse=True,
    )
    if not gods:
        return []

    count = len(gods)
    top_path, top = gods[0]
    return [
        Insight(
            id="god-modules",
            category=InsightCategory.ARCHITECTURE,
            severity=Severity.WARNING if count > 3 else Severity.INFO,
            title=f"{count} god module{_plural(count)} with excessive connections",
            description=(
                f"Found {count} module{_plural(count)} with more than {max_connections} "
                f"dependency connections. Most connected: `{top_path}` "
                f"({top.incoming} in, {top.outgoing} out)."
            ),
            affected_files=[path for path, _ in gods][:MAX_AFFECTED_FILES],
            suggestion=(
                "Consider introducing intermediate abstraction layers or splitting "
                "responsibilities to reduce coupling."
            ),
        )
    ]


def detect_orphan_modules(manifest: AnalysisManifest) -> list[Insight]:
    """Graph nodes with no edges at all, except entry points (index/main/app)."""
    graph = manifest.dependency_graph
    connected = {edge.from_ for edge in graph.edges} | {edge.to for edge in graph.edges}
    orphans = [n for n in graph.nodes if n not in connected and not is_entry_point(n)]
    if not orphans:
        return []

    count = len(orphans)
    return [
        Insight(
            id="orphan-modules",
            category=InsightCategory.CODE_QUALITY,
            severity=Severity.WARNING if count > 5 else Severity.INFO,
            title=f"{count} orphan module{_plural(count)} (potential dead code)",
            description=(
                f"Found {count} module{_plural(count)} with no imports or exports in the "
                "dependency graph. These may be unused dead code."
            ),
            affected_files=orphans[:MAX_AFFECTED_FILES],
            suggestion=(
                "Review orphan modules: remove if unused, or add explicit imports/exports "
                "if they are needed."
            ),
        )
    ]


def detect_missing_types(manifest: AnalysisManifest) -> list[Insight]:
    """Exported TypeScript functions with ``any`` or missing types."""
    untyped: list[tuple[str, str]] = []
    for module in manifest.modules:
        if module.language != "typescript":
            continue
        for sym in module.symbols:
            if not sym.exported or sym.kind != SymbolKind.FUNCTION:
                continue
            return_type = sym.returns.type if sym.returns else None
            if return_type == "any" or (not return_type and ":" not in (sym.signature or "")):
                untyped.append((module.file_path, sym.name))
            for param in sym.parameters:
                if param.type == "any":
                    untyped.append((module.file_path, f"{sym.name}({param.name})"))

    if not untyped:
        return []

    count = len(untyped)
    examples = ", ".join(f"`{name}`" for _, name in untyped[:3])
    return [
        Insight(
            id="missing-types",
            category=InsightCategory.CODE_QUALITY,
            severity=Severity.WARNING if count > 10 else Severity.INFO,
            title=f"{count} symbol{_plural(count)} with missing or `any` types",
            description=(
                f"Found {count} exported function{_plural(count)} with `any` types or missing "
                f"return types. Examples: {examples}."
            ),
            affected_files=_unique(path for path, _ in untyped)[:MAX_AFFECTED_FILES],
            suggestion=(
                "Add explicit type annotations to improve type safety and documentation quality."
            ),
        )
    ]


def classify_naming(name: str) -> str | None:
    """camelCase, PascalCase or snake_case; None for anything else."""
    if _CAMEL.match(name):
        return "camelCase"
    if _PASCAL.match(name):
        return "PascalCase"
    if _SNAKE.match(name):
        return "snake_case"
    return None


def detect_inconsistent_naming(manifest: AnalysisManifest) -> list[Insight]:
    """Reported only when one convention holds between 60% and 95% of names."""
    names = [sym.name for m in manifest.modules for sym in m.symbols if sym.exported]
    if len(names) < 5:
        return []

    counts = {"camelCase": 0, "PascalCase": 0, "snake_case": 0}
    for name in names:
        convention = classify_naming(name)
        if convention is not None:
            counts[convention] += 1
    total = sum(counts.values())
    if total == 0:
        return []

    conventions = sorted(
        ((name, c) for name, c in counts.items() if c > 0), key=lambda item: item[1], reverse=True
    )
    if len(conventions) < 2 or not any(c > 2 for _, c in conventions[1:]):
        return []
    dominant, dominant_count = conventions[0]
    ratio = dominant_count / total
    if not 0.6 < ratio < 0.95:
        return []

    breakdown = ", ".join(f"{name} ({c})" for name, c in conventions)
    return [
        Insight(
            id="inconsistent-naming",
            category=InsightCategory.CODE_QUALITY,
            severity=Severity.INFO,
            title="Mixed naming conventions across exports",
            description=(
                f"Exports use multiple naming conventions: {breakdown}. "
                f"The dominant convention is {dominant}."
            ),
            affected_files=[],
            suggestion=f"Consider standardizing on {dominant} for consistency across the codebase.",
        )
    ]


def detect_deep_nesting(manifest: AnalysisManifest, *, max_depth: int = 5) -> list[Insight]:
    deep = [m.file_path for m in manifest.modules if len(m.file_path.split("/")) > max_depth]
    if not deep:
        return []

    count = len(deep)
    return [
        Insight(
            id="deep-nesting",
            category=InsightCategory.ARCHITECTURE,
            severity=Severity.WARNING if count > 10 else Severity.INFO,
            title=f"{count} deeply nested file{_plural(count)}",
            description=(
                f"Found {count} file{_plural(count)} nested more than {max_depth} directories "
                f"deep. Deepest: `{deep[0]}` ({len(deep[0].split('/'))} levels)."
            ),
            affected_files=deep[:MAX_AFFECTED_FILES],
            suggestion="Consider flattening the directory structure to reduce import path complexity.",
        )
    ]


# =============================================================================
# Engine
# =============================================================================

Detector = Callable[[AnalysisManifest], list[Insight]]


class InsightEngine:
    """Runs the enabled detectors with configured thresholds."""

    def __init__(self, config: InsightsConfig | None = None) -> None:
        self.config = config or InsightsConfig()

    def detectors(self) -> list[tuple[str, Detector]]:
        """(id, detector) pairs in fixed order, filtered to the enabled set."""
        cfg = self.config
        table: dict[str, Detector] = {
            "undocumented-exports": detect_undocumented_exports,
            "circular-dependencies": lambda m: detect_circular_dependencies(
                m, max_cycles=cfg.max_cycles
            ),
            "oversized-modules": lambda m: detect_oversized_modules(
                m, max_lines=cfg.max_module_lines, max_symbols=cfg.max_module_symbols
            ),
            "god-modules": lambda m: detect_god_modules(m, max_connections=cfg.max_connections),
            "orphan-modules": detect_orphan_modules,
            "missing-types": detect_missing_types,
            "inconsistent-naming": detect_inconsistent_naming,
            "deep-nesting": lambda m: detect_deep_nesting(m, max_depth=cfg.max_path_depth),
        }
        enabled = set(cfg.enabled)
        return [(det_id, table[det_id]) for det_id in DETECTOR_IDS if det_id in enabled]

    def run(self, manifest: AnalysisManifest, *, parallel: bool = False) -> list[Insight]:
        """Run every enabled detector against a complete manifest."""
        detectors = self.detectors()
        if parallel and len(detectors) > 1:
            with ThreadPoolExecutor(
                max_workers=len(detectors), thread_name_prefix="codeatlas-insights"
            ) as executor:
                batches = list(executor.map(lambda item: item[1](manifest), detectors))
        else:
            batches = [detector(manifest) for _, detector in detectors]

        insights = [insight for batch in batches for insight in batch]
        log.info(
            "insights_computed",
            detectors=len(detectors),
            insights=len(insights),
            ids=[i.id for i in insights],
        )
        return insights
