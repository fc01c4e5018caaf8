"""Markdown extraction adapter (line based).

ATX headings (``#`` through ``######``) become ``section`` symbols named by
their text with inline markup removed; ``type_annotation`` records the
level (``h1``..``h6``). Headings inside fenced code blocks are ignored.

The module doc is the first real prose line, skipping the decorative
header material READMEs tend to open with (HTML wrappers, badges, link
rows, front matter). When there is no prose the first heading is used.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from codeatlas.analysis._internal.extraction._common import (
    SymbolTable,
    line_location,
    make_symbol_id,
)
from codeatlas.analysis.models import DocComment, ParserResult, Symbol, SymbolKind

_HEADING = re.compile(r"^(?P<hashes>#{1,6})\s+(?P<text>.+?)\s*#*\s*$")
_INLINE = (
    (re.compile(r"\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"`([^`]*)`"), r"\1"),
    (re.compile(r"\*\*([^*]*)\*\*"), r"\1"),
    (re.compile(r"\*([^*]*)\*"), r"\1"),
)
_HTML_BLOCK = re.compile(r"^</?[a-z][^>]*>$", re.IGNORECASE)
_HTML_TAG = re.compile(r"<[^>]+>")
_LINK_ROW = re.compile(r"^(\s*<a\s|.*•.*<a\s)", re.IGNORECASE)
_SUMMARY_LIMIT = 200

_FILE_PURPOSES = {
    "readme.md": "Project README",
    "contributing.md": "Contributing guide",
    "changelog.md": "Project changelog",
    "license.md": "License information",
}


def _strip_inline(text: str) -> str:
    for pattern, replacement in _INLINE:
        text = pattern.sub(replacement, text)
    return text.strip()


def _is_decoration(line: str) -> bool:
    return bool(
        _HTML_BLOCK.match(line)
        or line.startswith(("<!--", "[![", "---", "```", "~~~"))
        or line.lower().startswith("<img ")
        or _LINK_ROW.match(line)
    )


def _first_prose(lines: list[str]) -> str:
    in_fence = False
    for line in lines:
        stripped = line.strip()
        if stripped.startswith(("```", "~~~")):
            in_fence = not in_fence
            continue
        if in_fence or not stripped or _is_decoration(stripped) or _HEADING.match(stripped):
            continue
        text = _strip_inline(_HTML_TAG.sub("", stripped))
        # short fragments are usually a title echo, not a description
        if not text or (len(text) < 20 and "." not in text):
            continue
        return text[:_SUMMARY_LIMIT]
    return ""


class MarkdownAdapter:
    """Extracts the heading outline of Markdown documents."""

    language = "markdown"

    def parse(self, content: str, file_path: str) -> ParserResult:
        lines = content.split("\n")
        table = SymbolTable()
        first_heading = ""
        in_fence = False

        for index, line in enumerate(lines):
            if line.lstrip().startswith(("```", "~~~")):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            match = _HEADING.match(line)
            if not match:
                continue
            text = _strip_inline(match.group("text"))
            if not text:
                continue
            first_heading = first_heading or text
            table.add(
                Symbol(
                    id=make_symbol_id(file_path, text),
                    name=text,
                    kind=SymbolKind.SECTION,
                    exported=True,
                    location=line_location(file_path, index),
                    type_annotation=f"h{len(match.group('hashes'))}",
                )
            )

        summary = _first_prose(lines) or first_heading
        if not summary:
            summary = _FILE_PURPOSES.get(PurePosixPath(file_path).name.lower(), "")
        return ParserResult(
            symbols=table.to_list(),
            module_doc=DocComment(summary=summary) if summary else None,
        )
