"""Fallback adapter for languages without a dedicated extractor.

Produces no symbols. If the file opens with a comment, its first line
becomes the module summary.
"""

from __future__ import annotations

import re

from codeatlas.analysis.models import DocComment, ParserResult

_COMMENT_PATTERNS = (
    re.compile(r"^\s*#\s*(.+)$"),
    re.compile(r"^\s*//\s*(.+)$"),
    re.compile(r"^\s*/\*\*?\s*(.+)$"),
    re.compile(r"^\s*--\s*(.+)$"),
    re.compile(r"^\s*<!--\s*(.+)$"),
)
_CLOSERS = re.compile(r"\s*(?:\*/|-->)\s*$")
_SCAN_LINES = 10


def _leading_comment(lines: list[str]) -> str:
    for line in lines[:_SCAN_LINES]:
        if not line.strip() or line.startswith("#!"):
            continue
        for pattern in _COMMENT_PATTERNS:
            match = pattern.match(line)
            if match:
                return _CLOSERS.sub("", match.group(1)).strip()
        # the first meaningful line is not a comment
        return ""
    return ""


class TextAdapter:
    """Summary-only extraction used when no language adapter exists."""

    language = "text"

    def parse(self, content: str, file_path: str) -> ParserResult:
        summary = _leading_comment(content.split("\n"))
        return ParserResult(module_doc=DocComment(summary=summary) if summary else None)
