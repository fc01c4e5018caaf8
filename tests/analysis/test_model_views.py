"""Tests for the canonical model and its read-only views."""

from __future__ import annotations

from collections.abc import Callable

from codeatlas.analysis.models import (
    ModuleInfo,
    Symbol,
    SymbolKind,
    Visibility,
    children_of,
    parent_of,
    symbol_index,
)


class TestSymbolIndex:
    def test_resolves_parent_and_children(
        self, make_module: Callable[..., ModuleInfo], make_symbol: Callable[..., Symbol]
    ) -> None:
        # Given a class with one method, linked by id
        cls = make_symbol("Store", kind=SymbolKind.CLASS, children=["src/a.ts:Store.get"])
        method = make_symbol("get", kind=SymbolKind.METHOD, parent_id="src/a.ts:Store")
        method.id = "src/a.ts:Store.get"
        modules = [make_module("src/a.ts", symbols=[cls, method])]

        # When
        index = symbol_index(modules)

        # Then both directions resolve through the index
        assert set(index) == {"src/a.ts:Store", "src/a.ts:Store.get"}
        assert children_of(cls, index) == [method]
        assert parent_of(method, index) == cls
        assert parent_of(cls, index) is None

    def test_dangling_child_ids_are_dropped(self, make_symbol: Callable[..., Symbol]) -> None:
        orphan_parent = make_symbol("Store", children=["src/a.ts:Store.gone"])
        assert children_of(orphan_parent, {}) == []


class TestWireFormat:
    def test_symbol_aliases(self, make_symbol: Callable[..., Symbol]) -> None:
        sym = make_symbol("load", is_async=True, type_annotation="Promise<void>")

        dumped = sym.model_dump(mode="json", by_alias=True)

        assert dumped["async"] is True
        assert dumped["generator"] is False
        assert dumped["typeAnnotation"] == "Promise<void>"
        assert dumped["parentId"] is None
        assert dumped["kind"] == "function"
        assert dumped["visibility"] == "public"

    def test_populates_from_aliases(self) -> None:
        sym = Symbol.model_validate(
            {
                "id": "a.py:f",
                "name": "f",
                "kind": "function",
                "visibility": "private",
                "location": {"file": "a.py", "line": 1, "column": 1, "endLine": 2},
                "async": True,
                "typeParameters": ["T"],
            }
        )

        assert sym.is_async
        assert sym.visibility == Visibility.PRIVATE
        assert sym.location.end_line == 2
        assert sym.type_parameters == ["T"]
