"""Canonical language definitions.

This module defines the authoritative mapping of:
- File extensions → language identifiers
- Filenames → language identifiers (Dockerfile and friends)
- Language identifiers → display names

Language identifiers are the keys used by the grammar runtime and the
extraction adapter registry. Detection is purely path based; file discovery
and content sniffing belong to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath


@dataclass(frozen=True, slots=True)
class Language:
    """Canonical definition for a language identifier.

    Attributes:
        name: Unique identifier (lowercase, e.g., "python", "csharp")
        display_name: Human readable name (e.g., "C#")
        extensions: File extensions including dot (e.g., ".py", ".pyi")
        filenames: Exact basenames that select this language
        filename_prefixes: Basename prefixes that select this language
    """

    name: str
    display_name: str
    extensions: frozenset[str]
    filenames: frozenset[str] = field(default_factory=frozenset)
    filename_prefixes: tuple[str, ...] = ()


# =============================================================================
# Language Definitions
# =============================================================================
# Extensions are case-insensitive (normalized to lowercase during lookup).
# Filenames are matched exactly against the basename.

ALL_LANGUAGES: tuple[Language, ...] = (
    # Programming languages
    Language("typescript", "TypeScript", frozenset({".ts", ".tsx", ".mts", ".cts"})),
    Language("javascript", "JavaScript", frozenset({".js", ".jsx", ".mjs", ".cjs"})),
    Language("python", "Python", frozenset({".py", ".pyi"})),
    Language("go", "Go", frozenset({".go"})),
    Language("rust", "Rust", frozenset({".rs"})),
    Language("java", "Java", frozenset({".java"})),
    Language("csharp", "C#", frozenset({".cs"})),
    Language("ruby", "Ruby", frozenset({".rb"})),
    Language("php", "PHP", frozenset({".php"})),
    Language("swift", "Swift", frozenset({".swift"})),
    Language("kotlin", "Kotlin", frozenset({".kt", ".kts"})),
    Language("scala", "Scala", frozenset({".scala", ".sc"})),
    Language("elixir", "Elixir", frozenset({".ex", ".exs"})),
    Language("dart", "Dart", frozenset({".dart"})),
    Language("lua", "Lua", frozenset({".lua"})),
    Language("zig", "Zig", frozenset({".zig"})),
    Language("haskell", "Haskell", frozenset({".hs", ".lhs"})),
    Language("c", "C", frozenset({".c", ".h"})),
    Language("cpp", "C++", frozenset({".cpp", ".cxx", ".cc", ".hpp", ".hxx"})),
    # Config, data and docs
    Language("yaml", "YAML", frozenset({".yaml", ".yml"})),
    Language("shell", "Shell", frozenset({".sh", ".bash", ".zsh"})),
    Language("hcl", "HCL", frozenset({".tf", ".hcl"})),
    Language("sql", "SQL", frozenset({".sql"})),
    Language("markdown", "Markdown", frozenset({".md", ".mdx"})),
    Language(
        "dockerfile",
        "Dockerfile",
        frozenset({".dockerfile"}),
        filenames=frozenset({"Dockerfile"}),
        filename_prefixes=("Dockerfile.",),
    ),
    Language("toml", "TOML", frozenset({".toml"})),
    Language("json", "JSON", frozenset({".json"})),
    Language("xml", "XML", frozenset({".xml"})),
)

LANGUAGES_BY_NAME: dict[str, Language] = {lang.name: lang for lang in ALL_LANGUAGES}


def _build_extension_map() -> dict[str, str]:
    result: dict[str, str] = {}
    for lang in ALL_LANGUAGES:
        for ext in lang.extensions:
            result[ext.lower()] = lang.name
    return result


EXTENSION_TO_LANGUAGE: dict[str, str] = _build_extension_map()


def detect_language(path: str | PurePosixPath) -> str | None:
    """Detect the language identifier for a file path.

    Basename rules win over extensions so that ``Dockerfile.dev`` is not
    mistaken for a ``.dev`` file. Returns None for unrecognized files.
    """
    basename = PurePosixPath(str(path).replace("\\", "/")).name
    for lang in ALL_LANGUAGES:
        if basename in lang.filenames:
            return lang.name
        if any(basename.startswith(prefix) for prefix in lang.filename_prefixes):
            return lang.name

    dot = basename.rfind(".")
    if dot == -1:
        return None
    return EXTENSION_TO_LANGUAGE.get(basename[dot:].lower())


def get_supported_extensions() -> list[str]:
    return sorted(EXTENSION_TO_LANGUAGE)


def get_supported_languages() -> list[str]:
    return [lang.name for lang in ALL_LANGUAGES]


def get_display_name(name: str) -> str:
    """Display name for a language identifier, or the identifier itself."""
    lang = LANGUAGES_BY_NAME.get(name)
    return lang.display_name if lang is not None else name
