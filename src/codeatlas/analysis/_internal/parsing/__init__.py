"""Tree-sitter grammar runtime."""

from codeatlas.analysis._internal.parsing.packs import PACKS, GrammarPack, is_grammar_installed
from codeatlas.analysis._internal.parsing.runtime import (
    GrammarRuntime,
    ParserHandle,
    acquire_parser,
    get_runtime,
    supported_languages,
)

__all__ = [
    "PACKS",
    "GrammarPack",
    "GrammarRuntime",
    "ParserHandle",
    "acquire_parser",
    "get_runtime",
    "is_grammar_installed",
    "supported_languages",
]
