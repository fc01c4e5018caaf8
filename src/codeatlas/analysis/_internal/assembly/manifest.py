"""Manifest assembly: modules + dependency graph + project metadata + stats."""

from __future__ import annotations

import math
import time
from collections import Counter
from collections.abc import Iterable, Sequence

from codeatlas import __version__
from codeatlas.analysis._internal.assembly.assembler import utc_timestamp
from codeatlas.analysis._internal.graph import build_dependency_graph
from codeatlas.analysis.models import (
    AnalysisManifest,
    AnalysisStats,
    LanguageShare,
    LanguageStats,
    ModuleInfo,
    ProjectMeta,
    SkippedFile,
)
from codeatlas.core.logging import get_logger

log = get_logger(__name__)

ENTRY_POINT_MARKERS = ("index.", "main.", "app.")


def is_entry_point(file_path: str) -> bool:
    return any(marker in file_path for marker in ENTRY_POINT_MARKERS)


def merge_modules(
    fresh: Iterable[ModuleInfo],
    previous: AnalysisManifest | None,
    target_files: Iterable[str] | None,
) -> list[ModuleInfo]:
    """Replace only the re-analyzed files of a previous manifest.

    Previous modules whose path is in ``target_files`` are dropped (they were
    re-analyzed, or deleted if absent from ``fresh``); all others are kept.
    Without both ``previous`` and ``target_files`` the fresh set is returned.
    """
    fresh = list(fresh)
    if previous is None or target_files is None:
        return fresh
    targets = set(target_files)
    preserved = [m for m in previous.modules if m.file_path not in targets]
    return preserved + fresh


def compute_project_meta(modules: Sequence[ModuleInfo], repo: str) -> ProjectMeta:
    counts = Counter(m.language for m in modules)
    total = len(modules)
    languages = [
        LanguageShare(
            name=name,
            file_count=count,
            # round half up
            percentage=math.floor(count * 100 / total + 0.5),
        )
        for name, count in counts.items()
    ]
    languages.sort(key=lambda share: share.file_count, reverse=True)

    return ProjectMeta(
        name=repo.rstrip("/").rsplit("/", 1)[-1] or repo,
        languages=languages,
        entry_points=[m.file_path for m in modules if is_entry_point(m.file_path)],
        repository=repo or None,
    )


def compute_stats(
    modules: Sequence[ModuleInfo], skipped_files: int, analysis_time_ms: int
) -> AnalysisStats:
    by_language: dict[str, LanguageStats] = {}
    by_kind: Counter[str] = Counter()
    total_symbols = 0
    total_lines = 0

    for module in modules:
        stats = by_language.setdefault(module.language, LanguageStats())
        stats.files += 1
        stats.symbols += len(module.symbols)
        stats.lines += module.line_count
        for sym in module.symbols:
            by_kind[sym.kind.value] += 1
        total_symbols += len(module.symbols)
        total_lines += module.line_count

    return AnalysisStats(
        total_files=len(modules),
        total_symbols=total_symbols,
        total_lines=total_lines,
        by_language=by_language,
        by_kind=dict(by_kind),
        analysis_time=analysis_time_ms,
        skipped_files=skipped_files,
    )


class ManifestBuilder:
    """Aggregates assembled modules into an ``AnalysisManifest``.

    Modules are ordered by file path so the manifest is identical whatever
    order the workers finished in.
    """

    def build(
        self,
        modules: Iterable[ModuleInfo],
        *,
        skipped: int | Sequence[SkippedFile] = 0,
        started_at: float | None = None,
        repo: str = "",
        branch: str = "",
        commit_sha: str = "",
        previous: AnalysisManifest | None = None,
        target_files: Iterable[str] | None = None,
    ) -> AnalysisManifest:
        """Build the manifest.

        Args:
            modules: Freshly assembled modules.
            skipped: Skipped-file count, or the ``SkippedFile`` records themselves.
            started_at: ``time.monotonic()`` value taken when the run began.
            repo: Repository identifier (``owner/name`` or a path).
            branch: Branch analyzed.
            commit_sha: Commit analyzed.
            previous: Manifest of an earlier run, for incremental merges.
            target_files: Paths re-analyzed in this run (incremental merges only).
        """
        all_modules = merge_modules(modules, previous, target_files)
        all_modules.sort(key=lambda m: m.file_path)

        skipped_count = skipped if isinstance(skipped, int) else len(skipped)
        elapsed_ms = 0
        if started_at is not None:
            elapsed_ms = int((time.monotonic() - started_at) * 1000)

        graph = build_dependency_graph(all_modules)
        manifest = AnalysisManifest(
            tool_version=__version__,
            repo=repo,
            branch=branch,
            commit_sha=commit_sha,
            analyzed_at=utc_timestamp(),
            modules=all_modules,
            dependency_graph=graph,
            project_meta=compute_project_meta(all_modules, repo),
            stats=compute_stats(all_modules, skipped_count, elapsed_ms),
        )
        log.info(
            "manifest_built",
            modules=len(all_modules),
            edges=len(graph.edges),
            skipped=skipped_count,
            incremental=previous is not None and target_files is not None,
        )
        return manifest
