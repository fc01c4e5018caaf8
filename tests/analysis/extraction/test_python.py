"""Tests for the Python extraction adapter."""

from __future__ import annotations

import pytest

from codeatlas.analysis._internal.extraction.python import PythonAdapter
from codeatlas.analysis.models import ParserResult, Symbol, SymbolKind, Visibility

FILE = "pkg/service.py"

SOURCE = '''"""User service.

Loads and caches users.
"""

import os
import numpy as np
from typing import Any
from .models import User, Group as G
from ..util import *

MAX_USERS = 100
registry = {}
_cache = {}


def load(path: str, *, strict: bool = False) -> list[User]:
    """Load users from disk.

    Args:
        path: Source file.
        strict: Fail on bad rows.

    Returns:
        The users.
    """
    return []


async def fetch(user_id: int) -> User:
    return User()


def iter_users(*args, **kwargs):
    yield 1


def _helper():
    pass


class UserStore(Base, Mixin):
    """Stores users."""

    # Default page size
    page_size = 20

    def __init__(self, root):
        self.root = root

    @property
    def size(self) -> int:
        return 0

    @staticmethod
    def create() -> "UserStore":
        return UserStore(None)

    def _evict(self):
        pass

    class Meta:
        ordering = "name"
'''


@pytest.fixture(scope="module")
def result() -> ParserResult:
    return PythonAdapter().parse(SOURCE, FILE)


def _by_id(result: ParserResult, symbol_id: str) -> Symbol:
    for sym in result.symbols:
        if sym.id == symbol_id:
            return sym
    raise AssertionError(f"{symbol_id} not found in {[s.id for s in result.symbols]}")


class TestModuleLevel:
    def test_module_docstring(self, result: ParserResult) -> None:
        assert result.module_doc is not None
        assert result.module_doc.summary == "User service."

    def test_symbol_ids_are_unique(self, result: ParserResult) -> None:
        ids = [s.id for s in result.symbols]
        assert len(ids) == len(set(ids))

    def test_constants_and_variables(self, result: ParserResult) -> None:
        assert _by_id(result, f"{FILE}:MAX_USERS").kind == SymbolKind.CONSTANT
        assert _by_id(result, f"{FILE}:registry").kind == SymbolKind.VARIABLE
        assert all(s.name != "_cache" for s in result.symbols)


class TestFunctions:
    def test_function_with_docs_and_params(self, result: ParserResult) -> None:
        # Given / When
        load = _by_id(result, f"{FILE}:load")

        # Then
        assert load.kind == SymbolKind.FUNCTION
        assert load.exported
        assert load.location.line == 17
        assert load.docs is not None
        assert load.docs.summary == "Load users from disk."
        assert load.docs.params == {"path": "Source file.", "strict": "Fail on bad rows."}
        assert load.returns is not None
        assert load.returns.type == "list[User]"
        assert [(p.name, p.type, p.optional) for p in load.parameters] == [
            ("path", "str", False),
            ("strict", "bool", True),
        ]
        assert load.parameters[1].default_value == "False"
        assert load.signature == "def load(path: str, *, strict: bool = False) -> list[User]"

    def test_async_function(self, result: ParserResult) -> None:
        fetch = _by_id(result, f"{FILE}:fetch")
        assert fetch.is_async
        assert not fetch.is_generator

    def test_generator_with_splats(self, result: ParserResult) -> None:
        gen = _by_id(result, f"{FILE}:iter_users")

        assert gen.is_generator
        assert [(p.name, p.rest) for p in gen.parameters] == [("args", True), ("kwargs", True)]

    def test_private_function_not_exported(self, result: ParserResult) -> None:
        helper = _by_id(result, f"{FILE}:_helper")
        assert helper.visibility == Visibility.PRIVATE
        assert not helper.exported


class TestClasses:
    def test_class_bases_and_docs(self, result: ParserResult) -> None:
        store = _by_id(result, f"{FILE}:UserStore")

        assert store.kind == SymbolKind.CLASS
        assert store.extends == "Base"
        assert store.implements == ["Mixin"]
        assert store.docs is not None
        assert store.docs.summary == "Stores users."
        assert store.exported

    def test_members_link_both_ways(self, result: ParserResult) -> None:
        store = _by_id(result, f"{FILE}:UserStore")

        for child_id in store.children:
            assert _by_id(result, child_id).parent_id == store.id
        assert f"{FILE}:UserStore.__init__" in store.children
        assert f"{FILE}:UserStore.size" in store.children

    def test_method_kinds(self, result: ParserResult) -> None:
        init = _by_id(result, f"{FILE}:UserStore.__init__")
        assert init.kind == SymbolKind.METHOD
        assert [p.name for p in init.parameters] == ["root"]

        size = _by_id(result, f"{FILE}:UserStore.size")
        assert size.kind == SymbolKind.PROPERTY
        assert size.decorators == ["property"]

        create = _by_id(result, f"{FILE}:UserStore.create")
        assert create.decorators == ["staticmethod"]
        assert create.kind == SymbolKind.METHOD

    def test_member_export_follows_parent_and_visibility(self, result: ParserResult) -> None:
        assert _by_id(result, f"{FILE}:UserStore.create").exported
        evict = _by_id(result, f"{FILE}:UserStore._evict")
        assert evict.visibility == Visibility.PRIVATE
        assert not evict.exported

    def test_class_attribute_with_comment_doc(self, result: ParserResult) -> None:
        page_size = _by_id(result, f"{FILE}:UserStore.page_size")

        assert page_size.kind == SymbolKind.PROPERTY
        assert page_size.docs is not None
        assert page_size.docs.summary == "Default page size"

    def test_nested_class_uses_immediate_parent(self, result: ParserResult) -> None:
        meta = _by_id(result, f"{FILE}:UserStore.Meta")
        assert meta.kind == SymbolKind.CLASS
        ordering = _by_id(result, f"{FILE}:Meta.ordering")
        assert ordering.parent_id == meta.id


class TestImports:
    def test_import_sources(self, result: ParserResult) -> None:
        assert [i.source for i in result.imports] == [
            "os",
            "numpy",
            "typing",
            ".models",
            "..util",
        ]

    def test_aliased_and_from_specifiers(self, result: ParserResult) -> None:
        numpy = result.imports[1]
        assert numpy.specifiers[0].alias == "np"
        assert numpy.specifiers[0].is_namespace

        models = result.imports[3]
        assert [(s.name, s.alias) for s in models.specifiers] == [("User", None), ("Group", "G")]

    def test_wildcard(self, result: ParserResult) -> None:
        util = result.imports[4]
        assert util.specifiers[-1].name == "*"
        assert util.specifiers[-1].is_namespace


class TestExports:
    def test_without_all_every_public_top_level_name(self, result: ParserResult) -> None:
        names = {e.name for e in result.exports}
        assert {"load", "fetch", "iter_users", "UserStore", "MAX_USERS", "registry"} <= names
        assert "_helper" not in names

    def test_all_defines_export_surface(self) -> None:
        source = (
            "from .impl import Engine\n"
            "__all__ = ['run', 'Engine']\n"
            "def run():\n    pass\n"
            "def other():\n    pass\n"
        )

        result = PythonAdapter().parse(source, "pkg/__init__.py")

        run = _by_id(result, "pkg/__init__.py:run")
        other = _by_id(result, "pkg/__init__.py:other")
        assert run.exported
        assert not other.exported
        re_export = [e for e in result.exports if e.is_re_export]
        assert [(e.name, e.source) for e in re_export] == [("Engine", ".impl")]


class TestEdgeCases:
    def test_empty_file(self) -> None:
        result = PythonAdapter().parse("", "empty.py")
        assert result.symbols == []
        assert result.imports == []
        assert result.module_doc is None

    def test_syntax_error_yields_partial_result(self) -> None:
        result = PythonAdapter().parse("def ok():\n    pass\n\ndef broken(:\n", "bad.py")
        assert any(s.name == "ok" for s in result.symbols)

    def test_overloads_collapse_to_one_symbol(self) -> None:
        source = "def f(a):\n    pass\n\ndef f(a, b):\n    pass\n"

        result = PythonAdapter().parse(source, "o.py")

        assert [s.id for s in result.symbols] == ["o.py:f"]
        assert len(result.symbols[0].parameters) == 2
