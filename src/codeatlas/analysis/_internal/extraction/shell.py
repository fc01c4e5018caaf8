"""Shell script extraction adapter (line based).

Recognizes ``name() {`` and ``function name`` definitions, ``export VAR=``
variables, ``readonly VAR=`` / ``declare -r VAR=`` constants and
``source file`` / ``. file`` imports. Every recognized name is exported
since sourcing a script exposes all of them; there is no export list.
"""

from __future__ import annotations

import re

from codeatlas.analysis._internal.extraction._common import (
    SymbolTable,
    line_location,
    make_symbol_id,
    strip_line_comment,
    strip_quotes,
)
from codeatlas.analysis._internal.extraction.docs import parse_line_doc
from codeatlas.analysis.models import (
    DocComment,
    ImportInfo,
    ParserResult,
    Symbol,
    SymbolKind,
)

_FUNCTION = re.compile(r"^(?:function\s+)?(?P<name>[A-Za-z_][\w-]*)\s*\(\)\s*\{?")
_FUNCTION_KEYWORD = re.compile(r"^function\s+(?P<name>[A-Za-z_][\w-]*)\s*(?:\(\))?\s*\{?")
_EXPORT = re.compile(r"^export\s+(?P<name>[A-Za-z_]\w*)=")
_READONLY = re.compile(r"^(?:readonly|declare\s+-r)\s+(?P<name>[A-Za-z_]\w*)=")
_SOURCE = re.compile(r"^(?:source|\.)\s+(?P<path>\S+)")

_SHELLS = (("bash", "Bash"), ("zsh", "Zsh"), ("sh", "Sh"))


def _shell_type(first_line: str) -> str:
    if first_line.startswith("#!"):
        for marker, label in _SHELLS:
            if marker in first_line:
                return label
    return "Shell"


def _module_doc(lines: list[str]) -> DocComment:
    start = 1 if lines and lines[0].startswith("#!") else 0
    comment: list[str] = []
    for line in lines[start : start + 20]:
        stripped = line.strip()
        if stripped.startswith("#") and not stripped.startswith("#!"):
            comment.append(strip_line_comment(stripped, ("#",)))
        elif stripped == "" and not comment:
            continue
        else:
            break
    if comment:
        doc = parse_line_doc(comment)
        if doc.summary:
            return doc
    return DocComment(summary=f"{_shell_type(lines[0] if lines else '')} script")


class ShellAdapter:
    """Extracts functions and exported variables from shell scripts."""

    language = "shell"

    def parse(self, content: str, file_path: str) -> ParserResult:
        lines = content.split("\n")
        table = SymbolTable()
        imports: list[ImportInfo] = []
        comment: list[str] = []

        for index, line in enumerate(lines):
            stripped = line.strip()
            if stripped.startswith("#") and not stripped.startswith("#!"):
                comment.append(strip_line_comment(stripped, ("#",)))
                continue

            docs = parse_line_doc(comment) if comment else None
            match = _FUNCTION_KEYWORD.match(stripped) or _FUNCTION.match(stripped)
            kind: SymbolKind | None = None
            if match:
                kind = SymbolKind.FUNCTION
            elif match := _EXPORT.match(stripped):
                kind = SymbolKind.VARIABLE
            elif match := _READONLY.match(stripped):
                kind = SymbolKind.CONSTANT
            elif source := _SOURCE.match(stripped):
                imports.append(ImportInfo(source=strip_quotes(source.group("path").rstrip(";"))))

            if match and kind is not None:
                name = match.group("name")
                table.add(
                    Symbol(
                        id=make_symbol_id(file_path, name),
                        name=name,
                        kind=kind,
                        exported=True,
                        location=line_location(file_path, index, len(line) - len(line.lstrip())),
                        docs=docs,
                        signature=stripped.rstrip("{").strip() if kind == SymbolKind.FUNCTION else None,
                    )
                )
            if stripped:
                comment = []

        return ParserResult(
            symbols=table.to_list(),
            imports=imports,
            module_doc=_module_doc(lines),
        )
