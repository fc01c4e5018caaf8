"""Python extraction adapter.

Handles:
- functions (async, generators), classes, methods, nested classes
- decorators from ``decorated_definition`` (``@property`` makes a property)
- class attributes and top-level assignments (UPPER_CASE → constant)
- docstrings (module, class, function) in Google, NumPy or reST style
- ``import`` / ``from ... import`` (relative dots preserved in ``source``)
- ``__all__``: when present it defines the export surface, otherwise every
  top-level name without a leading underscore is exported
"""

from __future__ import annotations

from typing import Any

from codeatlas.analysis._internal.extraction._common import (
    SymbolTable,
    field_text,
    is_constant_name,
    iter_descendants,
    location,
    make_symbol_id,
    node_text,
    preceding_comments,
    signature_before,
    strip_line_comment,
    strip_quotes,
)
from codeatlas.analysis._internal.extraction.docs import parse_line_doc, parse_python_docstring
from codeatlas.analysis._internal.parsing import acquire_parser
from codeatlas.analysis.models import (
    DocComment,
    ExportInfo,
    ImportInfo,
    ImportSpecifier,
    Parameter,
    ParserResult,
    ReturnInfo,
    Symbol,
    SymbolKind,
    Visibility,
)

_IMPLICIT_RECEIVERS = frozenset({"self", "cls"})
_SCOPE_BOUNDARIES = frozenset({"function_definition", "class_definition", "lambda"})


def _visibility(name: str) -> Visibility:
    if name.startswith("__") and name.endswith("__"):
        return Visibility.PUBLIC
    if name.startswith("_"):
        return Visibility.PRIVATE
    return Visibility.PUBLIC


def _docstring_node(node: Any) -> Any:
    """The string literal opening a block (or module), if any."""
    body = node.child_by_field_name("body") if node.type != "module" else node
    if body is None:
        return None
    for child in body.children:
        if child.type == "comment":
            continue
        if child.type == "expression_statement" and child.named_child_count == 1:
            first = child.named_children[0]
            if first.type == "string":
                return first
        return None
    return None


def _docstring(node: Any) -> DocComment | None:
    string = _docstring_node(node)
    if string is None:
        return None
    return parse_python_docstring(node_text(string))


def _comment_doc(node: Any) -> DocComment | None:
    comments = preceding_comments(node)
    if not comments:
        return None
    return parse_line_doc([strip_line_comment(node_text(c), ("#",)) for c in comments])


def _decorators(node: Any) -> list[str]:
    """Decorator expressions of a ``decorated_definition`` without the ``@``."""
    if node.type != "decorated_definition":
        return []
    return [node_text(child).lstrip("@").strip() for child in node.children if child.type == "decorator"]


def _parameters(params_node: Any, *, is_method: bool) -> list[Parameter]:
    params: list[Parameter] = []
    if params_node is None:
        return params

    for index, param in enumerate(params_node.named_children):
        if param.type == "identifier":
            name = node_text(param)
            if is_method and index == 0 and name in _IMPLICIT_RECEIVERS:
                continue
            params.append(Parameter(name=name))
        elif param.type == "typed_parameter":
            inner = param.named_children[0] if param.named_children else None
            type_text = field_text(param, "type") or None
            if inner is not None and inner.type in ("list_splat_pattern", "dictionary_splat_pattern"):
                params.append(
                    Parameter(
                        name=node_text(inner).lstrip("*"), type=type_text, optional=True, rest=True
                    )
                )
                continue
            name = node_text(inner)
            if is_method and index == 0 and name in _IMPLICIT_RECEIVERS:
                continue
            params.append(Parameter(name=name, type=type_text))
        elif param.type in ("default_parameter", "typed_default_parameter"):
            params.append(
                Parameter(
                    name=field_text(param, "name"),
                    type=field_text(param, "type") or None,
                    default_value=field_text(param, "value") or None,
                    optional=True,
                )
            )
        elif param.type in ("list_splat_pattern", "dictionary_splat_pattern"):
            params.append(Parameter(name=node_text(param).lstrip("*"), optional=True, rest=True))
    return params


def _is_generator(func: Any) -> bool:
    body = func.child_by_field_name("body")
    if body is None:
        return False
    return any(node.type == "yield" for node in iter_descendants(body, prune=_SCOPE_BOUNDARIES))


def _read_all(root: Any) -> list[str] | None:
    """Names listed in a top-level ``__all__`` assignment, or None."""
    for stmt in root.children:
        if stmt.type != "expression_statement" or not stmt.named_children:
            continue
        assign = stmt.named_children[0]
        if assign.type != "assignment" or field_text(assign, "left") != "__all__":
            continue
        right = assign.child_by_field_name("right")
        if right is None:
            return []
        return [
            strip_quotes(node_text(item))
            for item in right.named_children
            if item.type == "string"
        ]
    return None


class _PythonExtraction:
    """One extraction pass over a parsed module."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.table = SymbolTable()
        self.imports: list[ImportInfo] = []
        self.exports: list[ExportInfo] = []
        self.all_names: list[str] | None = None

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def run(self, root: Any) -> ParserResult:
        self.all_names = _read_all(root)
        module_doc = _docstring(root)

        for node in root.children:
            if node.type == "import_statement":
                self._import(node)
            elif node.type == "import_from_statement":
                self._from_import(node)
            elif node.type in ("function_definition", "class_definition", "decorated_definition"):
                self._definition(node, parent=None)
            elif node.type == "expression_statement":
                self._assignment(node, parent=None)
            elif node.type == "type_alias_statement":
                self._type_alias(node)

        self._collect_exports()
        return ParserResult(
            symbols=self.table.to_list(),
            imports=self.imports,
            exports=self.exports,
            module_doc=module_doc,
        )

    def _is_exported(self, name: str) -> bool:
        if self.all_names is not None:
            return name in self.all_names
        return bool(name) and not name.startswith("_")

    def _collect_exports(self) -> None:
        declared: set[str] = set()
        for sym in self.table.to_list():
            if sym.parent_id is None and sym.exported:
                declared.add(sym.name)
                self.exports.append(ExportInfo(name=sym.name, symbol_id=sym.id))

        if not self.all_names:
            return
        # Names in __all__ that come from an import are re-exports.
        imported: dict[str, str] = {}
        for imp in self.imports:
            for spec in imp.specifiers:
                imported[spec.alias or spec.name] = imp.source
        for name in self.all_names:
            if name not in declared and name in imported:
                self.exports.append(
                    ExportInfo(name=name, is_re_export=True, source=imported[name])
                )

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _import(self, node: Any) -> None:
        # import a.b, c as d
        for child in node.named_children:
            if child.type == "dotted_name":
                name = node_text(child)
                self.imports.append(
                    ImportInfo(source=name, specifiers=[ImportSpecifier(name=name, is_namespace=True)])
                )
            elif child.type == "aliased_import":
                name = field_text(child, "name")
                self.imports.append(
                    ImportInfo(
                        source=name,
                        specifiers=[
                            ImportSpecifier(
                                name=name, alias=field_text(child, "alias") or None, is_namespace=True
                            )
                        ],
                    )
                )

    def _from_import(self, node: Any) -> None:
        # from x import a, b as c / from . import y / from x import *
        source = field_text(node, "module_name")
        if not source:
            return
        specifiers: list[ImportSpecifier] = []
        for child in node.children_by_field_name("name"):
            if child.type == "aliased_import":
                specifiers.append(
                    ImportSpecifier(
                        name=field_text(child, "name"), alias=field_text(child, "alias") or None
                    )
                )
            else:
                specifiers.append(ImportSpecifier(name=node_text(child)))
        if any(child.type == "wildcard_import" for child in node.children):
            specifiers.append(ImportSpecifier(name="*", is_namespace=True))
        self.imports.append(ImportInfo(source=source, specifiers=specifiers))

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _definition(self, node: Any, parent: Symbol | None) -> None:
        decorators = _decorators(node)
        definition = node.child_by_field_name("definition") if node.type == "decorated_definition" else node
        if definition is None:
            return
        if definition.type == "function_definition":
            self._function(definition, node, decorators, parent)
        elif definition.type == "class_definition":
            self._class(definition, node, decorators, parent)

    def _function(
        self, func: Any, outer: Any, decorators: list[str], parent: Symbol | None
    ) -> None:
        name = field_text(func, "name")
        if not name:
            return
        is_method = parent is not None and parent.kind == SymbolKind.CLASS
        visibility = _visibility(name)
        if parent is None:
            exported = self._is_exported(name)
        else:
            exported = parent.exported and visibility == Visibility.PUBLIC

        kind = SymbolKind.FUNCTION
        if is_method:
            kind = SymbolKind.PROPERTY if "property" in decorators else SymbolKind.METHOD

        return_type = field_text(func, "return_type")
        sym = Symbol(
            id=make_symbol_id(self.file_path, name, parent.name if parent else None),
            name=name,
            kind=kind,
            visibility=visibility,
            exported=exported,
            location=location(outer, self.file_path),
            parameters=_parameters(func.child_by_field_name("parameters"), is_method=is_method),
            returns=ReturnInfo(type=return_type) if return_type else None,
            type_parameters=_type_parameters(func),
            decorators=decorators,
            docs=_docstring(func),
            signature=signature_before(func, func.child_by_field_name("body"), strip_suffix=":"),
            is_async=any(child.type == "async" for child in func.children),
            is_generator=_is_generator(func),
        )
        self._store(sym, parent)

    def _class(self, cls: Any, outer: Any, decorators: list[str], parent: Symbol | None) -> None:
        name = field_text(cls, "name")
        if not name:
            return
        visibility = _visibility(name)
        if parent is None:
            exported = self._is_exported(name)
        else:
            exported = parent.exported and visibility == Visibility.PUBLIC

        bases: list[str] = []
        superclasses = cls.child_by_field_name("superclasses")
        if superclasses is not None:
            bases = [
                node_text(arg)
                for arg in superclasses.named_children
                if arg.type not in ("keyword_argument", "comment")
            ]

        sym = Symbol(
            id=make_symbol_id(self.file_path, name, parent.name if parent else None),
            name=name,
            kind=SymbolKind.CLASS,
            visibility=visibility,
            exported=exported,
            location=location(outer, self.file_path),
            extends=bases[0] if bases else None,
            implements=bases[1:],
            type_parameters=_type_parameters(cls),
            decorators=decorators,
            docs=_docstring(cls),
            signature=signature_before(cls, cls.child_by_field_name("body"), strip_suffix=":"),
        )
        self._store(sym, parent)

        body = cls.child_by_field_name("body")
        if body is None:
            return
        for member in body.children:
            if member.type in ("function_definition", "class_definition", "decorated_definition"):
                self._definition(member, parent=sym)
            elif member.type == "expression_statement":
                self._assignment(member, parent=sym)

    def _assignment(self, stmt: Any, parent: Symbol | None) -> None:
        if not stmt.named_children or stmt.named_children[0].type != "assignment":
            return
        assign = stmt.named_children[0]
        left = assign.child_by_field_name("left")
        if left is None or left.type != "identifier":
            return
        name = node_text(left)
        if name == "__all__" or name.startswith("_"):
            return

        if parent is None:
            kind = SymbolKind.CONSTANT if is_constant_name(name) else SymbolKind.VARIABLE
            exported = self._is_exported(name)
        else:
            kind = SymbolKind.CONSTANT if is_constant_name(name) else SymbolKind.PROPERTY
            exported = parent.exported

        sym = Symbol(
            id=make_symbol_id(self.file_path, name, parent.name if parent else None),
            name=name,
            kind=kind,
            exported=exported,
            location=location(stmt, self.file_path),
            type_annotation=field_text(assign, "type") or None,
            docs=_comment_doc(stmt),
        )
        self._store(sym, parent)

    def _type_alias(self, node: Any) -> None:
        # type Alias[T] = ...
        left = field_text(node, "left")
        name = left.split("[", 1)[0].strip()
        if not name:
            return
        sym = Symbol(
            id=make_symbol_id(self.file_path, name),
            name=name,
            kind=SymbolKind.TYPE,
            visibility=_visibility(name),
            exported=self._is_exported(name),
            location=location(node, self.file_path),
            type_annotation=field_text(node, "right") or None,
            docs=_comment_doc(node),
            signature=" ".join(node_text(node).split()),
        )
        self._store(sym, None)

    def _store(self, sym: Symbol, parent: Symbol | None) -> None:
        if parent is None:
            self.table.add(sym)
        else:
            self.table.add_member(parent, sym)


def _type_parameters(node: Any) -> list[str]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return []
    return [node_text(child) for child in params.named_children]


class PythonAdapter:
    """Extracts Python declarations with the tree-sitter Python grammar."""

    language = "python"

    def parse(self, content: str, file_path: str) -> ParserResult:
        tree = acquire_parser(self.language).parse(content)
        return _PythonExtraction(file_path).run(tree.root_node)
