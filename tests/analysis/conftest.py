"""Shared factories for analysis tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import pytest

from codeatlas.analysis.models import (
    ImportInfo,
    ImportSpecifier,
    ModuleInfo,
    SourceLocation,
    Symbol,
    SymbolKind,
)

ANALYZED_AT = "2024-01-01T00:00:00+00:00"


def build_symbol(
    name: str,
    *,
    file: str = "src/a.ts",
    kind: SymbolKind = SymbolKind.FUNCTION,
    exported: bool = True,
    **fields: Any,
) -> Symbol:
    return Symbol(
        id=f"{file}:{name}",
        name=name,
        kind=kind,
        exported=exported,
        location=SourceLocation(file=file, line=1, column=1),
        **fields,
    )


def build_module(
    path: str,
    *,
    language: str = "typescript",
    symbols: Sequence[Symbol] = (),
    imports: Sequence[str | ImportInfo] = (),
    line_count: int = 10,
) -> ModuleInfo:
    return ModuleInfo(
        file_path=path,
        language=language,
        symbols=list(symbols),
        imports=[
            imp
            if isinstance(imp, ImportInfo)
            else ImportInfo(source=imp, specifiers=[ImportSpecifier(name="x")])
            for imp in imports
        ],
        file_size=0,
        line_count=line_count,
        content_hash="0" * 16,
        analyzed_at=ANALYZED_AT,
    )


@pytest.fixture
def make_symbol() -> Callable[..., Symbol]:
    return build_symbol


@pytest.fixture
def make_module() -> Callable[..., ModuleInfo]:
    return build_module
