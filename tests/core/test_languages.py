"""Tests for core/languages.py."""

import pytest

from codeatlas.core.languages import (
    ALL_LANGUAGES,
    LANGUAGES_BY_NAME,
    detect_language,
    get_display_name,
    get_supported_extensions,
    get_supported_languages,
)


class TestDetectLanguage:
    """Path based language detection."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/index.ts", "typescript"),
            ("src/App.tsx", "typescript"),
            ("lib/util.mjs", "javascript"),
            ("pkg/mod.py", "python"),
            ("pkg/stubs.pyi", "python"),
            ("cmd/main.go", "go"),
            ("src/lib.rs", "rust"),
            ("src/Main.java", "java"),
            ("Program.cs", "csharp"),
            ("app/models/user.rb", "ruby"),
            ("public/index.php", "php"),
            ("deploy/values.yml", "yaml"),
            ("scripts/build.sh", "shell"),
            ("infra/main.tf", "hcl"),
            ("db/schema.sql", "sql"),
            ("README.md", "markdown"),
            ("config.toml", "toml"),
        ],
    )
    def test_given_known_extension_when_detect_then_returns_language(
        self, path: str, expected: str
    ) -> None:
        assert detect_language(path) == expected

    def test_given_uppercase_extension_when_detect_then_case_insensitive(self) -> None:
        assert detect_language("SRC/MAIN.PY") == "python"

    @pytest.mark.parametrize("path", ["Dockerfile", "docker/Dockerfile", "Dockerfile.dev"])
    def test_given_dockerfile_name_when_detect_then_dockerfile(self, path: str) -> None:
        assert detect_language(path) == "dockerfile"

    def test_given_windows_separators_when_detect_then_uses_basename(self) -> None:
        assert detect_language("src\\pkg\\mod.py") == "python"

    @pytest.mark.parametrize("path", ["Makefile", "notes.unknownext", "LICENSE"])
    def test_given_unknown_file_when_detect_then_none(self, path: str) -> None:
        assert detect_language(path) is None


class TestLanguageRegistry:
    """Definitions and lookups."""

    def test_names_are_unique(self) -> None:
        names = [lang.name for lang in ALL_LANGUAGES]
        assert len(names) == len(set(names))

    def test_extensions_are_unique(self) -> None:
        seen: dict[str, str] = {}
        for lang in ALL_LANGUAGES:
            for ext in lang.extensions:
                assert ext not in seen, f"{ext} claimed by {seen.get(ext)} and {lang.name}"
                seen[ext] = lang.name

    def test_supported_extensions_sorted(self) -> None:
        exts = get_supported_extensions()
        assert exts == sorted(exts)
        assert ".py" in exts

    def test_supported_languages_matches_definitions(self) -> None:
        assert get_supported_languages() == [lang.name for lang in ALL_LANGUAGES]
        assert set(LANGUAGES_BY_NAME) == set(get_supported_languages())

    @pytest.mark.parametrize(
        ("name", "display"),
        [("csharp", "C#"), ("typescript", "TypeScript"), ("hcl", "HCL"), ("brainfuck", "brainfuck")],
    )
    def test_display_name(self, name: str, display: str) -> None:
        assert get_display_name(name) == display
