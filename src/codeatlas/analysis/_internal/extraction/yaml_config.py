"""YAML extraction adapter.

Top-level mapping keys become exported ``property`` symbols. The documents
are composed with PyYAML so that keys keep their source positions; files
PyYAML rejects (templated Helm charts, for instance) fall back to a plain
scan of unindented ``key:`` lines.

The module doc names the file's purpose when it is recognizable: GitHub
Actions workflows, Docker Compose files, Kubernetes manifests, Ansible
playbooks, Helm charts and common CI configurations.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath

import yaml

from codeatlas.analysis._internal.extraction._common import (
    SymbolTable,
    line_location,
    make_symbol_id,
)
from codeatlas.analysis.models import DocComment, ParserResult, Symbol, SymbolKind
from codeatlas.core.logging import get_logger

log = get_logger(__name__)

_TOP_LEVEL_KEY = re.compile(r"^(?P<key>[A-Za-z_][\w-]*)\s*:")
_KIND = re.compile(r"^kind:\s*(?P<kind>\S+)", re.MULTILINE)


def _composed_keys(content: str) -> list[tuple[str, int, int]]:
    """(key, 0-based line, 0-based column) of each top-level mapping key."""
    keys: list[tuple[str, int, int]] = []
    for document in yaml.compose_all(content, Loader=yaml.SafeLoader):
        if not isinstance(document, yaml.MappingNode):
            continue
        for key_node, _value in document.value:
            if isinstance(key_node, yaml.ScalarNode):
                keys.append((str(key_node.value), key_node.start_mark.line, key_node.start_mark.column))
    return keys


def _scanned_keys(lines: list[str]) -> list[tuple[str, int, int]]:
    keys: list[tuple[str, int, int]] = []
    for index, line in enumerate(lines):
        match = _TOP_LEVEL_KEY.match(line)
        if match:
            keys.append((match.group("key"), index, 0))
    return keys


def _purpose(content: str, file_path: str) -> str:
    lower = content.lower()
    basename = PurePosixPath(file_path).name.lower()

    if "hosts:" in lower and "tasks:" in lower:
        return "Ansible playbook"
    if "- role:" in lower or "ansible.builtin" in lower:
        return "Ansible role configuration"
    if "services:" in lower and ("image:" in lower or "build:" in lower):
        return "Docker Compose file"
    if "apiversion:" in lower and "kind:" in lower:
        match = _KIND.search(content)
        return f"Kubernetes {match.group('kind') if match else 'manifest'}"
    if ("on:" in lower or "'on':" in lower) and "jobs:" in lower:
        return "GitHub Actions workflow"
    if basename in ("chart.yaml", "chart.yml"):
        return "Helm chart definition"
    if basename in ("values.yaml", "values.yml"):
        return "Helm values configuration"
    if basename == ".gitlab-ci.yml":
        return "GitLab CI/CD configuration"
    if basename == ".travis.yml":
        return "Travis CI configuration"
    if basename.endswith((".yml", ".yaml")):
        return "YAML configuration file"
    return ""


class YamlAdapter:
    """Extracts top-level keys and a purpose summary from YAML files."""

    language = "yaml"

    def parse(self, content: str, file_path: str) -> ParserResult:
        try:
            keys = _composed_keys(content)
        except (yaml.YAMLError, RecursionError) as e:
            log.debug("yaml_compose_failed", file=file_path, error=str(e))
            keys = _scanned_keys(content.split("\n"))

        table = SymbolTable()
        for key, line, column in keys:
            table.add(
                Symbol(
                    id=make_symbol_id(file_path, key),
                    name=key,
                    kind=SymbolKind.PROPERTY,
                    exported=True,
                    location=line_location(file_path, line, column),
                )
            )

        purpose = _purpose(content, file_path)
        return ParserResult(
            symbols=table.to_list(),
            module_doc=DocComment(summary=purpose) if purpose else None,
        )
