"""Tests for the Java extraction adapter."""

from __future__ import annotations

import pytest

from codeatlas.analysis._internal.extraction.java import JavaAdapter
from codeatlas.analysis.models import ParserResult, Symbol, SymbolKind, Visibility

FILE = "src/main/java/com/acme/UserService.java"

SOURCE = """/** User management. */
package com.acme;

import java.util.List;
import java.util.concurrent.*;
import static java.lang.Math.max;

/**
 * Manages users.
 * @since 2.0
 */
@Service
public class UserService extends BaseService implements Closeable, Runnable {
    public static final int MAX_USERS = 100;
    private String name;
    int counter;

    public UserService(String name) {
        this.name = name;
    }

    /**
     * Finds a user.
     * @param id the user id
     * @return the user
     */
    @Override
    public User find(long id, String... tags) {
        return null;
    }

    private void reset() {}

    public static class Builder {
        public Builder withName(String name) { return this; }
    }
}

interface Repository<T> extends Reader<T>, Writer<T> {
    T load(long id);
}

public enum Status {
    ACTIVE,
    DISABLED;

    public boolean isActive() { return this == ACTIVE; }
}
"""


@pytest.fixture(scope="module")
def result() -> ParserResult:
    return JavaAdapter().parse(SOURCE, FILE)


def _by_id(result: ParserResult, symbol_id: str) -> Symbol:
    for sym in result.symbols:
        if sym.id == symbol_id:
            return sym
    raise AssertionError(f"{symbol_id} not found in {[s.id for s in result.symbols]}")


class TestJavaAdapter:
    def test_package_doc(self, result: ParserResult) -> None:
        assert result.module_doc is not None
        assert result.module_doc.summary == "User management."

    def test_class(self, result: ParserResult) -> None:
        service = _by_id(result, f"{FILE}:UserService")

        assert service.kind == SymbolKind.CLASS
        assert service.exported
        assert service.extends == "BaseService"
        assert service.implements == ["Closeable", "Runnable"]
        assert service.decorators == ["Service"]
        assert service.docs is not None
        assert service.docs.summary == "Manages users."
        assert service.docs.since == "2.0"

    def test_fields(self, result: ParserResult) -> None:
        max_users = _by_id(result, f"{FILE}:UserService.MAX_USERS")
        assert max_users.kind == SymbolKind.CONSTANT
        assert max_users.type_annotation == "int"
        assert max_users.exported

        name = _by_id(result, f"{FILE}:UserService.name")
        assert name.kind == SymbolKind.PROPERTY
        assert name.visibility == Visibility.PRIVATE
        assert not name.exported

        counter = _by_id(result, f"{FILE}:UserService.counter")
        assert counter.visibility == Visibility.INTERNAL

    def test_methods(self, result: ParserResult) -> None:
        find = _by_id(result, f"{FILE}:UserService.find")

        assert find.kind == SymbolKind.METHOD
        assert find.exported
        assert find.decorators == ["Override"]
        assert find.returns is not None
        assert find.returns.type == "User"
        assert find.docs is not None
        assert find.docs.params == {"id": "the user id"}
        assert [(p.name, p.type, p.rest) for p in find.parameters] == [
            ("id", "long", False),
            ("tags", "String...", True),
        ]
        assert not _by_id(result, f"{FILE}:UserService.reset").exported

    def test_constructor(self, result: ParserResult) -> None:
        ctor = _by_id(result, f"{FILE}:UserService.UserService")
        assert ctor.kind == SymbolKind.METHOD
        assert ctor.returns is None

    def test_nested_type(self, result: ParserResult) -> None:
        builder = _by_id(result, f"{FILE}:UserService.Builder")
        assert builder.parent_id == f"{FILE}:UserService"
        assert builder.exported
        with_name = _by_id(result, f"{FILE}:Builder.withName")
        assert with_name.parent_id == builder.id

    def test_package_private_interface(self, result: ParserResult) -> None:
        repo = _by_id(result, f"{FILE}:Repository")

        assert repo.kind == SymbolKind.INTERFACE
        assert repo.visibility == Visibility.INTERNAL
        assert not repo.exported
        assert repo.extends == "Reader<T>"
        assert repo.implements == ["Writer<T>"]
        assert repo.type_parameters == ["T"]
        load = _by_id(result, f"{FILE}:Repository.load")
        assert load.visibility == Visibility.PUBLIC

    def test_enum_members(self, result: ParserResult) -> None:
        assert _by_id(result, f"{FILE}:Status").kind == SymbolKind.ENUM
        assert _by_id(result, f"{FILE}:Status.isActive").exported

    def test_imports(self, result: ParserResult) -> None:
        assert [(i.source, i.specifiers[0].name, i.is_type_only) for i in result.imports] == [
            ("java.util", "List", True),
            ("java.util.concurrent", "*", True),
            ("java.lang.Math", "max", False),
        ]

    def test_exports_are_public_top_level_types(self, result: ParserResult) -> None:
        assert {e.name for e in result.exports} == {"UserService", "Status"}
