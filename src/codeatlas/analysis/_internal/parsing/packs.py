"""Grammar packs: install and load metadata for every tree-sitter language.

Each language the grammar runtime can serve has exactly ONE GrammarPack:
- Grammar install metadata (PyPI package, import module, minimum version)
- Non-standard loader function name (tsx, php)

The PACKS registry is the canonical lookup: ``PACKS["python"]``. Languages
analyzed without a tree (shell, sql, yaml, markdown, hcl, text) have no pack.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib.util import find_spec


@dataclass(frozen=True)
class GrammarPack:
    """Tree-sitter grammar metadata for a single language."""

    name: str  # Canonical language identifier ("python", "csharp", ...)
    grammar_package: str  # PyPI package ("tree-sitter-python")
    grammar_module: str  # Python import ("tree_sitter_python")
    min_version: str
    # Non-standard function name (e.g. "language_tsx", "language_php")
    language_func: str | None = None

    @property
    def loader_name(self) -> str:
        return self.language_func or "language"


# TypeScript is parsed with the TSX grammar so .tsx files and JSX inside .ts
# generics both produce usable trees.
TYPESCRIPT_PACK = GrammarPack(
    name="typescript",
    grammar_package="tree-sitter-typescript",
    grammar_module="tree_sitter_typescript",
    min_version="0.23.0",
    language_func="language_tsx",
)

JAVASCRIPT_PACK = GrammarPack(
    name="javascript",
    grammar_package="tree-sitter-javascript",
    grammar_module="tree_sitter_javascript",
    min_version="0.23.0",
)

PYTHON_PACK = GrammarPack(
    name="python",
    grammar_package="tree-sitter-python",
    grammar_module="tree_sitter_python",
    min_version="0.23.0",
)

GO_PACK = GrammarPack(
    name="go",
    grammar_package="tree-sitter-go",
    grammar_module="tree_sitter_go",
    min_version="0.23.0",
)

RUST_PACK = GrammarPack(
    name="rust",
    grammar_package="tree-sitter-rust",
    grammar_module="tree_sitter_rust",
    min_version="0.23.0",
)

JAVA_PACK = GrammarPack(
    name="java",
    grammar_package="tree-sitter-java",
    grammar_module="tree_sitter_java",
    min_version="0.23.0",
)

CSHARP_PACK = GrammarPack(
    name="csharp",
    grammar_package="tree-sitter-c-sharp",
    grammar_module="tree_sitter_c_sharp",
    min_version="0.23.0",
)

RUBY_PACK = GrammarPack(
    name="ruby",
    grammar_package="tree-sitter-ruby",
    grammar_module="tree_sitter_ruby",
    min_version="0.23.0",
)

PHP_PACK = GrammarPack(
    name="php",
    grammar_package="tree-sitter-php",
    grammar_module="tree_sitter_php",
    min_version="0.23.0",
    language_func="language_php",
)


PACKS: dict[str, GrammarPack] = {
    pack.name: pack
    for pack in (
        TYPESCRIPT_PACK,
        JAVASCRIPT_PACK,
        PYTHON_PACK,
        GO_PACK,
        RUST_PACK,
        JAVA_PACK,
        CSHARP_PACK,
        RUBY_PACK,
        PHP_PACK,
    )
}


def is_grammar_installed(name: str) -> bool:
    """Check whether the grammar wheel for a language is importable."""
    pack = PACKS.get(name)
    if pack is None:
        return False
    return find_spec(pack.grammar_module) is not None
