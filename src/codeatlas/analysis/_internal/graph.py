"""Dependency graph construction.

Resolves each module's import sources against the set of analyzed file
paths. Only project-local specifiers resolve:

- relative paths (``./util``, ``../lib/x.js``), probed with the usual
  extensions and directory index files;
- the ``@/`` alias, mapped to ``src/``;
- Python relative imports (``.mod``, ``..pkg.mod``), translated to paths
  first. In ``from . import b`` each imported name that is itself a module
  gets its own edge; the rest point at the package ``__init__.py``.

Package specifiers (``react``, ``os.path``, ``github.com/x/y``) are left
unresolved and simply produce no edge. Edges are not deduplicated: two
imports of the same file yield two edges.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable, Mapping, Sequence

from codeatlas.analysis.models import DependencyEdge, DependencyGraph, ModuleInfo

_JS_EXTENSION = re.compile(r"\.[mc]?js$")
_PYTHON_RELATIVE = re.compile(r"^(?P<dots>\.+)(?P<rest>[\w.]*)$")
_PYTHON_SUFFIXES = (".py", ".pyi")

PROBE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py")
INDEX_FILES = ("index.ts", "index.tsx", "index.js", "index.jsx", "__init__.py")


def _python_relative_path(source: str) -> str | None:
    """``..pkg.mod`` -> ``../pkg/mod``; ``.`` -> ``.``."""
    match = _PYTHON_RELATIVE.match(source)
    if not match:
        return None
    dots = len(match.group("dots"))
    prefix = "./" if dots == 1 else "../" * (dots - 1)
    rest = match.group("rest").replace(".", "/")
    return (prefix + rest).rstrip("/") or "."


def _candidates(resolved: str) -> list[str]:
    stripped = _JS_EXTENSION.sub("", resolved)
    bases = [resolved] if stripped == resolved else [resolved, stripped]
    candidates = list(bases)
    for base in bases:
        candidates.extend(base + ext for ext in PROBE_EXTENSIONS)
    for base in bases:
        candidates.extend(f"{base}/{index}" for index in INDEX_FILES)
    return [posixpath.normpath(c) for c in candidates]


def resolve_import_source(
    source: str, from_file: str, known_files: Iterable[str] | Mapping[str, str]
) -> str | None:
    """Resolve an import specifier to one of ``known_files``, or None.

    ``known_files`` may be a mapping of normalized path to original path
    (as built by ``build_dependency_graph``) to avoid re-normalizing.
    """
    if from_file.endswith(_PYTHON_SUFFIXES):
        translated = _python_relative_path(source)
        if translated is not None:
            source = translated

    if source.startswith("@/"):
        resolved = "src/" + source[2:]
    elif source.startswith("."):
        resolved = posixpath.join(posixpath.dirname(from_file), source)
    else:
        return None

    if isinstance(known_files, Mapping):
        known = known_files
    else:
        known = {posixpath.normpath(f): f for f in known_files}

    for candidate in _candidates(resolved):
        if candidate in known:
            return known[candidate]
    return None


def resolve_python_submodules(
    source: str,
    names: Sequence[str],
    from_file: str,
    known_files: Iterable[str] | Mapping[str, str],
) -> dict[str, str]:
    """Map each name of a relative ``from X import name`` that is a module to its file."""
    if not from_file.endswith(_PYTHON_SUFFIXES) or not _PYTHON_RELATIVE.match(source):
        return {}
    if not isinstance(known_files, Mapping):
        known_files = {posixpath.normpath(f): f for f in known_files}
    joiner = "" if source.endswith(".") else "."
    submodules: dict[str, str] = {}
    for name in names:
        if not name.isidentifier():
            continue
        target = resolve_import_source(source + joiner + name, from_file, known_files)
        if target is not None:
            submodules[name] = target
    return submodules


def build_dependency_graph(modules: Sequence[ModuleInfo]) -> DependencyGraph:
    """One edge per resolved import; nodes are every module path."""
    nodes = [m.file_path for m in modules]
    known = {posixpath.normpath(path): path for path in nodes}
    edges: list[DependencyEdge] = []

    for module in modules:
        for imp in module.imports:
            names = [s.name for s in imp.specifiers]
            submodules = resolve_python_submodules(imp.source, names, module.file_path, known)
            for name, submodule in submodules.items():
                edges.append(
                    DependencyEdge(
                        from_=module.file_path,
                        to=submodule,
                        imports=[name],
                        is_type_only=imp.is_type_only,
                    )
                )
            remaining = [name for name in names if name not in submodules]
            if submodules and not remaining:
                continue

            target = resolve_import_source(imp.source, module.file_path, known)
            if target is None:
                continue
            edges.append(
                DependencyEdge(
                    from_=module.file_path,
                    to=target,
                    imports=remaining,
                    is_type_only=imp.is_type_only,
                )
            )

    return DependencyGraph(nodes=nodes, edges=edges)
