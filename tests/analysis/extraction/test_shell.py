"""Tests for the shell script adapter."""

from __future__ import annotations

import pytest

from codeatlas.analysis._internal.extraction.shell import ShellAdapter
from codeatlas.analysis.models import ParserResult, Symbol, SymbolKind

FILE = "scripts/deploy.sh"

SOURCE = """#!/usr/bin/env bash
# Deploy helpers.
#
# Used by CI.

set -e
source ./lib/common.sh
. "$HOME/.env"

# Prints usage.
usage() {
  echo hi
}

function deploy {
  :
}

export APP_ENV=prod
readonly VERSION=1.2
"""


@pytest.fixture(scope="module")
def result() -> ParserResult:
    return ShellAdapter().parse(SOURCE, FILE)


def _by_id(result: ParserResult, symbol_id: str) -> Symbol:
    for sym in result.symbols:
        if sym.id == symbol_id:
            return sym
    raise AssertionError(f"{symbol_id} not found in {[s.id for s in result.symbols]}")


class TestShellAdapter:
    def test_header_comment_is_module_doc(self, result: ParserResult) -> None:
        assert result.module_doc is not None
        assert result.module_doc.summary == "Deploy helpers."

    def test_symbols(self, result: ParserResult) -> None:
        assert [(s.name, s.kind) for s in result.symbols] == [
            ("usage", SymbolKind.FUNCTION),
            ("deploy", SymbolKind.FUNCTION),
            ("APP_ENV", SymbolKind.VARIABLE),
            ("VERSION", SymbolKind.CONSTANT),
        ]
        assert all(s.exported for s in result.symbols)

    def test_function_doc_and_signature(self, result: ParserResult) -> None:
        usage = _by_id(result, f"{FILE}:usage")

        assert usage.docs is not None
        assert usage.docs.summary == "Prints usage."
        assert usage.signature == "usage()"
        assert usage.location.line == 11

    def test_keyword_function_signature(self, result: ParserResult) -> None:
        assert _by_id(result, f"{FILE}:deploy").signature == "function deploy"

    def test_sourced_files(self, result: ParserResult) -> None:
        assert [i.source for i in result.imports] == ["./lib/common.sh", "$HOME/.env"]

    def test_no_exports(self, result: ParserResult) -> None:
        assert result.exports == []

    @pytest.mark.parametrize(
        ("first_line", "summary"),
        [
            ("#!/bin/zsh", "Zsh script"),
            ("#!/bin/sh", "Sh script"),
            ("#!/usr/bin/env bash", "Bash script"),
            ("echo start", "Shell script"),
        ],
    )
    def test_summary_falls_back_to_shell_type(self, first_line: str, summary: str) -> None:
        result = ShellAdapter().parse(f"{first_line}\necho hi\n", "run.sh")
        assert result.module_doc is not None
        assert result.module_doc.summary == summary
