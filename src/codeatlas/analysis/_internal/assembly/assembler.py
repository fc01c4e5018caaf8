"""Per-file module assembly.

Turns one (path, language, content) triple into a ``ModuleInfo`` by running
the language's extraction adapter and adding file metadata. Per-file
failures never propagate: the file comes back as a ``SkippedFile`` and the
reason is logged. Grammar errors are the exception, since they mean the
installation cannot analyze that language at all.
"""

from __future__ import annotations

from datetime import datetime, timezone

from codeatlas.analysis._internal.extraction import AdapterRegistry, get_registry
from codeatlas.analysis.models import ModuleInfo, SkippedFile
from codeatlas.core.errors import ExtractionError, GrammarError
from codeatlas.core.hashing import compute_content_hash
from codeatlas.core.languages import LANGUAGES_BY_NAME
from codeatlas.core.logging import get_logger

log = get_logger(__name__)


def count_lines(content: str) -> int:
    """Number of ``\\n``-separated lines (an empty file has one line)."""
    return content.count("\n") + 1


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ModuleAssembler:
    """Selects an adapter by language id and builds ``ModuleInfo`` records."""

    def __init__(self, registry: AdapterRegistry | None = None) -> None:
        self._registry = registry if registry is not None else get_registry()

    def assemble(
        self,
        file_path: str,
        language: str,
        content: str,
        *,
        file_size: int | None = None,
    ) -> ModuleInfo | SkippedFile:
        adapter = self._registry.get(language)
        if adapter is None and language in LANGUAGES_BY_NAME:
            adapter = self._registry.get_or_fallback(language)
        if adapter is None:
            reason = f"unsupported language '{language}'"
            log.debug("file_skipped", path=file_path, reason=reason)
            return SkippedFile(path=file_path, reason=reason)

        try:
            encoded = content.encode("utf-8")
        except UnicodeEncodeError as e:
            error = ExtractionError.failed(file_path, language, f"invalid encoding: {e.reason}")
            log.warning("file_skipped", path=file_path, error=error.error_name, reason=e.reason)
            return SkippedFile(path=file_path, reason=error.message)

        try:
            result = adapter.parse(content, file_path)
        except GrammarError:
            raise
        except Exception as e:
            error = ExtractionError.failed(file_path, language, str(e))
            log.warning("file_skipped", path=file_path, error=error.error_name, reason=str(e))
            return SkippedFile(path=file_path, reason=error.message)

        return ModuleInfo(
            file_path=file_path,
            language=language,
            symbols=result.symbols,
            imports=result.imports,
            exports=result.exports,
            module_doc=result.module_doc,
            file_size=file_size if file_size is not None else len(encoded),
            line_count=count_lines(content),
            content_hash=compute_content_hash(encoded),
            analyzed_at=utc_timestamp(),
        )
