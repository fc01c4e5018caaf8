"""Every adapter returns a best-effort result for broken or truncated files."""

from __future__ import annotations

import pytest

from codeatlas.analysis._internal.extraction import create_registry
from codeatlas.analysis.models import ParserResult

REGISTRY = create_registry()

# (language, path, content): one truncated file and one garbage file each
BROKEN_SOURCES = [
    ("typescript", "src/a.ts", "export class Shape {\n  area(): number {\n    return 1;\n"),
    ("typescript", "src/b.ts", "export class {{{ function ( => ;;\n}}}"),
    ("javascript", "src/a.js", "class Cart {\n  add(item) {\n    this.items.push(\n"),
    ("javascript", "src/b.js", "foo() { ) ] export default =>"),
    ("python", "pkg/a.py", "class Shape:\n    def area(self\n        return 1\n"),
    ("python", "pkg/b.py", "def (:\n  ))) class\n@\n"),
    ("go", "main.go", "package main\n\ntype Shape struct {\n\tx int\n\nfunc (s *Shape) Area( {\n"),
    ("go", "junk.go", "func (x *) {"),
    ("rust", "src/a.rs", "pub struct Shape {\n    x: i32,\n\nimpl Shape {\n    pub fn area(&self) -> i32 {\n"),
    ("rust", "src/b.rs", "impl for { fn ( -> }}"),
    ("java", "src/A.java", "public class A {\n  /** Area. */\n  public int area( {\n"),
    ("java", "src/B.java", "public class X { void m( "),
    ("csharp", "src/A.cs", "namespace App {\n  public class A {\n    public int Area( {\n"),
    ("csharp", "src/B.cs", "namespace { class"),
    ("ruby", "lib/a.rb", "class Shape\n  # Area.\n  def area(\n    1\n"),
    ("ruby", "lib/b.rb", "class Foo < \n def"),
    ("php", "src/a.php", "<?php\nclass Shape {\n  public function area( {\n"),
    ("php", "src/b.php", "<?php class { function"),
    ("shell", "bin/a.sh", "#!/bin/sh\nfoo() { \nbar() {\n"),
    ("shell", "bin/b.sh", "function { ( ]]\n"),
    ("sql", "db/a.sql", "CREATE TABLE ("),
    ("sql", "db/b.sql", "CREATE TABLE users (id INT,\nCREATE VIEW\n"),
    ("yaml", "conf/a.yaml", "a: [b\n"),
    ("yaml", "conf/b.yaml", "key: value\n  - : :\n\t{{ broken }}\n"),
    ("markdown", "docs/a.md", "# \n```"),
    ("markdown", "docs/b.md", "## Title\n```python\nunclosed fence\n"),
    ("hcl", "infra/a.tf", 'resource "x" {'),
    ("hcl", "infra/b.tf", 'variable {\n  }}} resource "aws_s3_bucket"\n'),
    ("kotlin", "src/A.kt", "fun main( {\n"),
]


def _case_id(case: tuple[str, str, str]) -> str:
    return case[1]


class TestBrokenInput:
    def test_every_builtin_language_is_covered(self) -> None:
        covered = {language for language, _path, _content in BROKEN_SOURCES}
        assert set(REGISTRY.supported_languages()) <= covered

    @pytest.mark.parametrize(("language", "path", "content"), BROKEN_SOURCES, ids=_case_id)
    def test_parse_does_not_raise(self, language: str, path: str, content: str) -> None:
        adapter = REGISTRY.get_or_fallback(language)
        assert adapter is not None

        result = adapter.parse(content, path)

        assert isinstance(result, ParserResult)

    @pytest.mark.parametrize(("language", "path", "content"), BROKEN_SOURCES, ids=_case_id)
    def test_symbol_ids_are_unique(self, language: str, path: str, content: str) -> None:
        result = REGISTRY.get_or_fallback(language).parse(content, path)  # type: ignore[union-attr]

        ids = [s.id for s in result.symbols]
        assert len(ids) == len(set(ids))

    @pytest.mark.parametrize(("language", "path", "content"), BROKEN_SOURCES, ids=_case_id)
    def test_parent_links_are_consistent(self, language: str, path: str, content: str) -> None:
        result = REGISTRY.get_or_fallback(language).parse(content, path)  # type: ignore[union-attr]
        index = {s.id: s for s in result.symbols}

        for symbol in result.symbols:
            # a parent in this file lists the symbol among its children
            if symbol.parent_id in index:
                assert symbol.id in index[symbol.parent_id].children
            # every listed child in this file names the symbol as its parent
            for child_id in symbol.children:
                if child_id in index:
                    assert index[child_id].parent_id == symbol.id
