"""Analysis pipeline entry points.

Runs the full pass over a set of source files:

    (path, language, content) -> ModuleAssembler -> ManifestBuilder
        -> dependency graph -> InsightEngine

Extraction runs on a bounded thread pool; results are gathered in
completion order and the manifest builder re-sorts them by path, so the
output does not depend on scheduling. Insights run only once the manifest
and graph are complete.

Failure policy:
- a file that cannot be read or extracted is recorded as a ``SkippedFile``
  and counted in ``stats.skipped_files``;
- a ``GrammarError`` stops the run: no further files are submitted and the
  error propagates to the caller.
"""

from __future__ import annotations

import contextvars
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from codeatlas.analysis._internal.assembly import ManifestBuilder, ModuleAssembler
from codeatlas.analysis._internal.cache import IncrementalCache
from codeatlas.analysis._internal.extraction import AdapterRegistry
from codeatlas.analysis._internal.insights import InsightEngine
from codeatlas.analysis.models import AnalysisManifest, Insight, ModuleInfo, SkippedFile
from codeatlas.config.models import CodeAtlasConfig
from codeatlas.core.errors import GrammarError
from codeatlas.core.hashing import compute_composite_hash, compute_content_hash
from codeatlas.core.languages import detect_language
from codeatlas.core.logging import get_logger, run_scope

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One input file. ``path`` is repo-relative with forward slashes."""

    path: str
    language: str
    content: str
    file_size: int | None = None


@dataclass
class AnalysisResult:
    """Outcome of one analysis pass."""

    manifest: AnalysisManifest
    insights: list[Insight] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def module_cache_key(source: SourceFile) -> str:
    """Cache key for a whole-module result: content, path and language."""
    return compute_composite_hash(compute_content_hash(source.content), source.path, source.language)


class _ModuleWorker:
    """Per-file task executed on the pool. Holds no per-call state."""

    def __init__(self, assembler: ModuleAssembler, cache: IncrementalCache | None) -> None:
        self._assembler = assembler
        self._cache = cache

    def __call__(self, source: SourceFile) -> ModuleInfo | SkippedFile:
        if self._cache is None:
            return self._assemble(source)

        key = module_cache_key(source)
        cached = self._cache.get(key)
        if cached is not None:
            log.debug("module_cache_hit", path=source.path)
            return ModuleInfo.model_validate(cached)

        outcome = self._assemble(source)
        if isinstance(outcome, ModuleInfo):
            self._cache.set(key, outcome.model_dump(mode="json", by_alias=True))
        return outcome

    def _assemble(self, source: SourceFile) -> ModuleInfo | SkippedFile:
        return self._assembler.assemble(
            source.path, source.language, source.content, file_size=source.file_size
        )


def analyze_sources(
    sources: Iterable[SourceFile],
    *,
    config: CodeAtlasConfig | None = None,
    repo: str = "",
    branch: str = "",
    commit_sha: str = "",
    previous: AnalysisManifest | None = None,
    target_files: Sequence[str] | None = None,
    cache: IncrementalCache | None = None,
    registry: AdapterRegistry | None = None,
    skipped: Sequence[SkippedFile] = (),
    run_insights: bool = True,
) -> AnalysisResult:
    """Analyze already-read source files.

    Args:
        sources: Files to analyze. Language ids come from the caller.
        config: Settings (concurrency, insight thresholds). Defaults apply if None.
        repo: Repository identifier recorded in the manifest.
        branch: Branch recorded in the manifest.
        commit_sha: Commit recorded in the manifest.
        previous: Earlier manifest to merge into (incremental runs).
        target_files: Paths re-analyzed in this run (incremental runs).
        cache: Optional module cache; unchanged files are not re-extracted.
        registry: Adapter registry override (tests).
        skipped: Files the caller already skipped (counted in the stats).
        run_insights: Run the static detectors after the manifest is built.

    Raises:
        GrammarError: A language's grammar is unavailable.
    """
    cfg = config or CodeAtlasConfig()
    with run_scope(**({"repo": repo} if repo else {})):
        return _run_pass(
            list(sources),
            cfg,
            repo=repo,
            branch=branch,
            commit_sha=commit_sha,
            previous=previous,
            target_files=target_files,
            cache=cache,
            registry=registry,
            skipped=skipped,
            run_insights=run_insights,
        )


def _run_pass(
    sources: list[SourceFile],
    cfg: CodeAtlasConfig,
    *,
    repo: str,
    branch: str,
    commit_sha: str,
    previous: AnalysisManifest | None,
    target_files: Sequence[str] | None,
    cache: IncrementalCache | None,
    registry: AdapterRegistry | None,
    skipped: Sequence[SkippedFile],
    run_insights: bool,
) -> AnalysisResult:
    started_at = time.monotonic()
    log.info("analysis_started", files=len(sources), concurrency=cfg.analysis.concurrency)

    worker = _ModuleWorker(ModuleAssembler(registry), cache)
    modules: list[ModuleInfo] = []
    all_skipped: list[SkippedFile] = list(skipped)

    with ThreadPoolExecutor(
        max_workers=cfg.analysis.concurrency, thread_name_prefix="codeatlas-analysis"
    ) as executor:
        # copy_context carries the run id into worker log events
        futures = {
            executor.submit(contextvars.copy_context().run, worker, source): source.path
            for source in sources
        }
        try:
            for future in as_completed(futures):
                outcome = future.result()
                if isinstance(outcome, SkippedFile):
                    all_skipped.append(outcome)
                else:
                    modules.append(outcome)
        except GrammarError as e:
            for pending in futures:
                pending.cancel()
            log.error("analysis_aborted", error=e.error_name, message=e.message)
            raise

    all_skipped.sort(key=lambda s: s.path)
    manifest = ManifestBuilder().build(
        modules,
        skipped=all_skipped,
        started_at=started_at,
        repo=repo,
        branch=branch,
        commit_sha=commit_sha,
        previous=previous,
        target_files=target_files,
    )

    insights = InsightEngine(cfg.insights).run(manifest) if run_insights else []
    log.info(
        "analysis_completed",
        modules=len(manifest.modules),
        skipped=len(all_skipped),
        insights=len(insights),
        elapsed_ms=manifest.stats.analysis_time,
    )
    return AnalysisResult(manifest=manifest, insights=insights, skipped=all_skipped)


def read_sources(
    repo_root: Path, paths: Iterable[str], *, max_file_size: int
) -> tuple[list[SourceFile], list[SkippedFile]]:
    """Read files for analysis, skipping oversized, unknown and unreadable ones."""
    sources: list[SourceFile] = []
    skipped: list[SkippedFile] = []

    for rel_path in paths:
        rel = Path(rel_path).as_posix()
        language = detect_language(rel)
        if language is None:
            skipped.append(SkippedFile(path=rel, reason="unrecognized file type"))
            continue

        full = repo_root / rel
        try:
            size = full.stat().st_size
            if size > max_file_size:
                skipped.append(
                    SkippedFile(path=rel, reason=f"file size {size} exceeds limit {max_file_size}")
                )
                continue
            content = full.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            skipped.append(SkippedFile(path=rel, reason=f"unreadable: {e}"))
            continue
        sources.append(SourceFile(path=rel, language=language, content=content, file_size=size))

    for skip in skipped:
        log.debug("file_skipped", path=skip.path, reason=skip.reason)
    return sources, skipped


def analyze_repository(
    repo_root: Path,
    paths: Iterable[str],
    *,
    config: CodeAtlasConfig | None = None,
    repo: str | None = None,
    branch: str = "",
    commit_sha: str = "",
    previous: AnalysisManifest | None = None,
    target_files: Sequence[str] | None = None,
    cache: IncrementalCache | None = None,
    run_insights: bool = True,
) -> AnalysisResult:
    """Read ``paths`` (relative to ``repo_root``) and analyze them.

    File discovery is the caller's concern: ``paths`` is the exact set to
    analyze. Language is detected from each path.
    """
    cfg = config or CodeAtlasConfig()
    sources, skipped = read_sources(repo_root, paths, max_file_size=cfg.analysis.max_file_size)
    return analyze_sources(
        sources,
        config=cfg,
        repo=repo if repo is not None else repo_root.resolve().name,
        branch=branch,
        commit_sha=commit_sha,
        previous=previous,
        target_files=target_files,
        cache=cache,
        skipped=skipped,
        run_insights=run_insights,
    )
