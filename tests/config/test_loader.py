"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence
- get_cache_path() function
"""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from codeatlas.config.loader import (
    GLOBAL_CONFIG_PATH,
    REPO_CONFIG_DIR,
    _deep_merge,
    _load_yaml,
    get_cache_path,
    load_config,
)
from codeatlas.config.models import AnalysisConfig, CacheConfig, CodeAtlasConfig, LoggingConfig
from codeatlas.core.errors import ConfigError, ErrorCode


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Remove CODEATLAS__* env vars for clean tests."""
    orig = {k: v for k, v in os.environ.items() if k.startswith("CODEATLAS__")}
    for k in orig:
        del os.environ[k]
    yield
    for k in [k for k in os.environ if k.startswith("CODEATLAS__")]:
        del os.environ[k]
    os.environ.update(orig)


@pytest.fixture
def no_global_config(tmp_path: Path) -> Generator[None, None, None]:
    with patch("codeatlas.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
        yield


def _write_repo_config(repo: Path, text: str) -> None:
    config_dir = repo / REPO_CONFIG_DIR
    config_dir.mkdir(exist_ok=True)
    (config_dir / "config.yaml").write_text(text)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("analysis:\n  concurrency: 2\n")

        assert _load_yaml(yaml_file) == {"analysis": {"concurrency": 2}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_parse_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Invalid YAML syntax surfaces as CONFIG_PARSE_ERROR."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("insights:\n  enabled:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR
        assert str(yaml_file) in exc_info.value.message

    def test_raises_parse_error_for_non_mapping(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        base = {"insights": {"max_module_lines": 500, "max_path_depth": 5}}
        override = {"insights": {"max_module_lines": 800}}

        result = _deep_merge(base, override)

        assert result == {"insights": {"max_module_lines": 800, "max_path_depth": 5}}

    def test_override_replaces_non_dict(self) -> None:
        base: dict[str, Any] = {"a": {"nested": 1}}
        assert _deep_merge(base, {"a": "simple"}) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": {"x": 1}}
        _deep_merge(base, {"a": {"y": 2}})
        assert base == {"a": {"x": 1}}


@pytest.mark.usefixtures("no_global_config")
class TestLoadConfig:
    """Precedence: kwargs > env vars > repo yaml > global yaml > defaults."""

    def test_given_no_files_when_load_then_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert isinstance(config, CodeAtlasConfig)
        assert config.logging.level == "INFO"
        assert config.analysis.concurrency == 4
        assert config.analysis.max_file_size == 500_000
        assert config.insights.max_module_lines == 500

    def test_given_repo_yaml_when_load_then_applied(self, tmp_path: Path) -> None:
        # Given
        _write_repo_config(tmp_path, "analysis:\n  concurrency: 2\ninsights:\n  max_path_depth: 7\n")

        # When
        config = load_config(tmp_path)

        # Then
        assert config.analysis.concurrency == 2
        assert config.insights.max_path_depth == 7
        assert config.insights.max_module_lines == 500

    def test_given_global_and_repo_yaml_when_load_then_repo_wins(self, tmp_path: Path) -> None:
        # Given
        global_file = tmp_path / "global.yaml"
        global_file.write_text("insights:\n  max_connections: 20\n  max_cycles: 3\n")
        _write_repo_config(tmp_path, "insights:\n  max_connections: 25\n")

        # When
        with patch("codeatlas.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(tmp_path)

        # Then
        assert config.insights.max_connections == 25
        assert config.insights.max_cycles == 3

    def test_given_env_var_when_load_then_overrides_yaml(self, tmp_path: Path) -> None:
        # Given
        _write_repo_config(tmp_path, "analysis:\n  concurrency: 2\n")

        # When
        with patch.dict(os.environ, {"CODEATLAS__ANALYSIS__CONCURRENCY": "8"}):
            config = load_config(tmp_path)

        # Then
        assert config.analysis.concurrency == 8

    def test_given_kwargs_when_load_then_override_all(self, tmp_path: Path) -> None:
        # Given
        _write_repo_config(tmp_path, "logging:\n  level: DEBUG\n")

        # When
        with patch.dict(os.environ, {"CODEATLAS__LOGGING__LEVEL": "WARNING"}):
            config = load_config(tmp_path, logging=LoggingConfig(level="ERROR"))

        # Then
        assert config.logging.level == "ERROR"

    def test_given_invalid_value_when_load_then_invalid_value_error(self, tmp_path: Path) -> None:
        # Given
        _write_repo_config(tmp_path, "analysis:\n  concurrency: 0\n")

        # When / Then
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "concurrency" in exc_info.value.message

    def test_given_unknown_detector_when_load_then_rejected(self, tmp_path: Path) -> None:
        _write_repo_config(tmp_path, "insights:\n  enabled: [no-such-detector]\n")

        with pytest.raises(ConfigError):
            load_config(tmp_path)


@pytest.mark.usefixtures("no_global_config")
class TestGetCachePath:
    def test_returns_default_path(self, tmp_path: Path) -> None:
        assert get_cache_path(tmp_path) == tmp_path / ".codeatlas" / "cache.json"

    def test_respects_configured_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "elsewhere" / "atlas-cache.json"
        config = CodeAtlasConfig(cache=CacheConfig(path=str(custom)))

        assert get_cache_path(tmp_path, config) == custom

    def test_reads_path_from_repo_yaml(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.json"
        _write_repo_config(tmp_path, f"cache:\n  path: {custom}\n")

        assert get_cache_path(tmp_path) == custom


class TestGlobalConfigPath:
    def test_is_in_user_config(self) -> None:
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "codeatlas" in str(GLOBAL_CONFIG_PATH)


class TestKwargsValidation:
    def test_given_section_object_when_load_then_kept(self, tmp_path: Path) -> None:
        with patch("codeatlas.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path, analysis=AnalysisConfig(concurrency=16))
        assert config.analysis.concurrency == 16
