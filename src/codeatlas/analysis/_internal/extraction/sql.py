"""SQL extraction adapter (line based).

Each ``CREATE ...`` statement becomes one symbol. Object types map onto
the symbol taxonomy as: tables are classes, views are interfaces,
functions/procedures/triggers are functions, indexes are properties,
schemas are namespaces and sequences are variables. The object type is
kept upper-cased in ``type_annotation``.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from codeatlas.analysis._internal.extraction._common import (
    SymbolTable,
    line_location,
    make_symbol_id,
    strip_line_comment,
    truncate_signature,
)
from codeatlas.analysis._internal.extraction.docs import parse_line_doc
from codeatlas.analysis.models import DocComment, ParserResult, Symbol, SymbolKind

_CREATE = re.compile(
    r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:TEMP(?:ORARY)?\s+)?"
    r"(?P<type>TABLE|(?:MATERIALIZED\s+)?VIEW|FUNCTION|PROCEDURE|TRIGGER|INDEX|TYPE|SCHEMA|SEQUENCE|ENUM)\s+"
    r"(?:IF\s+NOT\s+EXISTS\s+)?[`\"']?(?P<name>[A-Za-z_][\w.]*?)[`\"']?(?:\s*\(|\s+AS\b|\s*;|\s|$)",
    re.IGNORECASE,
)

_KINDS = {
    "table": SymbolKind.CLASS,
    "view": SymbolKind.INTERFACE,
    "materialized view": SymbolKind.INTERFACE,
    "function": SymbolKind.FUNCTION,
    "procedure": SymbolKind.FUNCTION,
    "trigger": SymbolKind.FUNCTION,
    "index": SymbolKind.PROPERTY,
    "type": SymbolKind.TYPE,
    "schema": SymbolKind.NAMESPACE,
    "sequence": SymbolKind.VARIABLE,
    "enum": SymbolKind.ENUM,
}


def _summary(symbols: list[Symbol], file_path: str) -> str:
    tables = sum(1 for s in symbols if s.kind == SymbolKind.CLASS)
    functions = sum(1 for s in symbols if s.kind == SymbolKind.FUNCTION)

    if tables and functions:
        summary = f"SQL schema ({tables} tables, {functions} functions)"
    elif tables:
        summary = f"SQL schema ({tables} tables)"
    elif functions:
        summary = f"SQL functions ({functions} functions)"
    elif symbols:
        summary = f"SQL definitions ({len(symbols)} objects)"
    else:
        summary = "SQL file"

    basename = PurePosixPath(file_path).name.lower()
    if "migration" in basename or "migrate" in basename:
        return f"Database migration - {summary}"
    if "seed" in basename:
        return "Database seed data"
    return summary


class SqlAdapter:
    """Extracts ``CREATE`` statements from SQL files."""

    language = "sql"

    def parse(self, content: str, file_path: str) -> ParserResult:
        table = SymbolTable()
        comment: list[str] = []

        for index, line in enumerate(content.split("\n")):
            stripped = line.strip()
            if stripped.startswith("--"):
                comment.append(strip_line_comment(stripped, ("--",)))
                continue

            match = _CREATE.match(line)
            if match:
                object_type = " ".join(match.group("type").lower().split())
                name = match.group("name")
                table.add(
                    Symbol(
                        id=make_symbol_id(file_path, name),
                        name=name,
                        kind=_KINDS.get(object_type, SymbolKind.PROPERTY),
                        exported=True,
                        location=line_location(file_path, index),
                        type_annotation=object_type.upper(),
                        docs=parse_line_doc(comment) if comment else None,
                        signature=truncate_signature(stripped, body_markers=(), strip_suffix="("),
                    )
                )
            if stripped:
                comment = []

        symbols = table.to_list()
        return ParserResult(
            symbols=symbols,
            module_doc=DocComment(summary=_summary(symbols, file_path)),
        )
