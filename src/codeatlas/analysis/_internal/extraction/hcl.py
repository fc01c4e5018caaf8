"""HCL / Terraform extraction adapter (line based).

Top-level blocks become symbols named after their labels:
``resource "aws_s3_bucket" "logs" {`` is ``resource.aws_s3_bucket.logs``,
``variable "region" {`` is ``variable.region`` and ``locals {`` is just
``locals``. The block type is kept in ``type_annotation``.
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

_BLOCK = re.compile(
    r"^(?P<block>resource|data|variable|output|module|provider|terraform|locals)\s+"
    r'(?:"(?P<first>[^"]+)"\s+)?(?:"(?P<second>[^"]+)"\s*)?\{'
)
_COMMENT_MARKER = re.compile(r"^(?:#|//)+\s*")

_KINDS = {
    "resource": SymbolKind.CLASS,
    "data": SymbolKind.PROPERTY,
    "variable": SymbolKind.VARIABLE,
    "output": SymbolKind.PROPERTY,
    "module": SymbolKind.MODULE,
    "provider": SymbolKind.NAMESPACE,
    "terraform": SymbolKind.NAMESPACE,
    "locals": SymbolKind.NAMESPACE,
}

_FILE_PURPOSES = {
    "main.tf": "Main Terraform configuration",
    "variables.tf": "Terraform variable definitions",
    "outputs.tf": "Terraform output definitions",
    "providers.tf": "Terraform provider configuration",
    "versions.tf": "Terraform version constraints",
    "backend.tf": "Terraform backend configuration",
}


def _summary(file_path: str) -> str:
    basename = PurePosixPath(file_path).name
    if basename in _FILE_PURPOSES:
        return _FILE_PURPOSES[basename]
    if basename.endswith(".hcl"):
        return "HCL configuration"
    return "Terraform configuration"


class HclAdapter:
    """Extracts Terraform blocks from ``.tf`` and ``.hcl`` files."""

    language = "hcl"

    def parse(self, content: str, file_path: str) -> ParserResult:
        table = SymbolTable()
        comment = ""

        for index, line in enumerate(content.split("\n")):
            stripped = line.strip()
            if stripped.startswith(("#", "//")):
                comment = _COMMENT_MARKER.sub("", stripped)
                continue

            match = _BLOCK.match(stripped)
            if match:
                block = match.group("block")
                name = ".".join(
                    part for part in (block, match.group("first"), match.group("second")) if part
                )
                table.add(
                    Symbol(
                        id=make_symbol_id(file_path, name),
                        name=name,
                        kind=_KINDS[block],
                        exported=True,
                        location=line_location(file_path, index),
                        type_annotation=block,
                        docs=DocComment(summary=comment) if comment else None,
                    )
                )
                comment = ""
            elif stripped:
                comment = ""

        return ParserResult(
            symbols=table.to_list(),
            module_doc=DocComment(summary=_summary(file_path)),
        )
