"""TypeScript / JavaScript extraction adapter.

TypeScript is parsed with the tsx grammar (a superset that also accepts
JSX); JavaScript uses the javascript grammar. Both share one walker since
the node vocabulary overlaps almost entirely.

Handles:
- function and generator declarations, classes (extends, implements,
  methods, fields with accessibility), interfaces, type aliases, enums,
  namespaces
- ``const/let/var`` declarations: arrow/function values become functions,
  UPPER_CASE names constants, everything else variables
- React conventions: ``useX`` functions are hooks, PascalCase functions
  rendering JSX in .tsx/.jsx files are components
- ``export`` declarations, ``export default``, ``export { a as b }``,
  ``export * from``, re-exports with source
- imports (default, namespace, named, ``import type``) and ``require()``
- JSDoc from the closest preceding ``/** */`` block; module doc from a
  leading block tagged ``@module``/``@file``/``@fileoverview`` or separated
  from the first statement by a blank line
"""

from __future__ import annotations

import re
from typing import Any

from codeatlas.analysis._internal.extraction._common import (
    SymbolTable,
    child_of_type,
    field_text,
    is_constant_name,
    iter_descendants,
    location,
    make_symbol_id,
    node_text,
    preceding_comments,
    signature_before,
    strip_quotes,
)
from codeatlas.analysis._internal.extraction.docs import parse_jsdoc
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

_MODULE_TAGS = ("@module", "@file", "@fileoverview", "@packageDocumentation")
_HOOK_NAME = re.compile(r"^use[A-Z0-9]")
_JSX_NODES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})
_FUNCTION_VALUES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_CLASS_TYPES = frozenset({"class_declaration", "abstract_class_declaration", "class"})
_FUNCTION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})


def _strip_annotation(text: str) -> str:
    return text[1:].strip() if text.startswith(":") else text.strip()


def _jsdoc(node: Any) -> DocComment | None:
    comments = preceding_comments(node, skip_types=frozenset({"decorator"}))
    if not comments:
        return None
    text = node_text(comments[-1])
    if not text.startswith("/**"):
        return None
    return parse_jsdoc(text)


def _module_doc(root: Any) -> DocComment | None:
    first = root.children[0] if root.children else None
    if first is None or first.type != "comment":
        return None
    text = node_text(first)
    if not text.startswith("/**"):
        return None
    following = first.next_sibling
    detached = following is None or following.start_point[0] > first.end_point[0] + 1
    if detached or any(tag in text for tag in _MODULE_TAGS):
        return parse_jsdoc(text)
    return None


def _parameters(params_node: Any) -> list[Parameter]:
    params: list[Parameter] = []
    if params_node is None:
        return params

    for param in params_node.named_children:
        if param.type in ("required_parameter", "optional_parameter"):
            pattern = param.child_by_field_name("pattern")
            value = field_text(param, "value") or None
            type_text = _strip_annotation(field_text(param, "type")) or None
            rest = pattern is not None and pattern.type == "rest_pattern"
            name = node_text(pattern).lstrip(".") if pattern is not None else node_text(param)
            params.append(
                Parameter(
                    name=name,
                    type=type_text,
                    default_value=value,
                    optional=param.type == "optional_parameter" or value is not None or rest,
                    rest=rest,
                )
            )
        elif param.type == "identifier":
            params.append(Parameter(name=node_text(param)))
        elif param.type == "assignment_pattern":
            params.append(
                Parameter(
                    name=field_text(param, "left"),
                    default_value=field_text(param, "right") or None,
                    optional=True,
                )
            )
        elif param.type == "rest_pattern":
            params.append(Parameter(name=node_text(param).lstrip("."), optional=True, rest=True))
        elif param.type in ("object_pattern", "array_pattern"):
            params.append(Parameter(name=" ".join(node_text(param).split())))
    return params


def _type_parameters(node: Any) -> list[str]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return []
    return [node_text(child) for child in params.named_children]


def _is_async(node: Any) -> bool:
    return any(child.type == "async" for child in node.children)


def _is_generator(node: Any) -> bool:
    return node.type in ("generator_function_declaration", "generator_function") or any(
        child.type == "*" for child in node.children
    )


def _returns_jsx(node: Any) -> bool:
    body = node.child_by_field_name("body")
    if body is None:
        return False
    if body.type in _JSX_NODES:
        return True
    return any(n.type in _JSX_NODES for n in iter_descendants(body))


class _ScriptExtraction:
    """One extraction pass over a parsed TS/JS program."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.jsx_file = file_path.endswith((".tsx", ".jsx"))
        self.table = SymbolTable()
        self.imports: list[ImportInfo] = []
        self.exports: list[ExportInfo] = []
        self._local_exports: list[ExportInfo] = []

    def run(self, root: Any) -> ParserResult:
        for node in root.children:
            self._statement(node)

        # `export { a, b as c }` may name declarations appearing later.
        for export in self._local_exports:
            sym = self.table.get(make_symbol_id(self.file_path, export.name))
            if sym is not None:
                sym.exported = True
                sym.visibility = Visibility.PUBLIC
                export.symbol_id = sym.id
            self.exports.append(export)

        return ParserResult(
            symbols=self.table.to_list(),
            imports=self.imports,
            exports=self.exports,
            module_doc=_module_doc(root),
        )

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _statement(self, node: Any) -> None:
        if node.type == "import_statement":
            self._import(node)
        elif node.type == "export_statement":
            self._export(node)
        elif node.type == "ambient_declaration":
            for child in node.named_children:
                self._declaration(child, outer=node, exported=False)
        elif node.type == "expression_statement":
            inner = node.named_children[0] if node.named_children else None
            if inner is not None and inner.type in ("internal_module", "module"):
                self._declaration(inner, outer=node, exported=False)
            elif inner is not None:
                self._require_calls(inner)
        else:
            self._declaration(node, outer=node, exported=False)

    def _declaration(
        self, node: Any, *, outer: Any, exported: bool
    ) -> list[Symbol]:
        if node.type in _FUNCTION_TYPES:
            return [self._function(node, outer, exported)]
        if node.type in _CLASS_TYPES:
            sym = self._class(node, outer, exported)
            return [sym] if sym is not None else []
        if node.type == "interface_declaration":
            return [self._interface(node, outer, exported)]
        if node.type == "type_alias_declaration":
            return [self._type_alias(node, outer, exported)]
        if node.type == "enum_declaration":
            return [self._simple(node, outer, exported, SymbolKind.ENUM)]
        if node.type in ("internal_module", "module"):
            return [self._simple(node, outer, exported, SymbolKind.NAMESPACE)]
        if node.type in ("lexical_declaration", "variable_declaration"):
            return self._variables(node, outer, exported)
        if node.type == "function_signature":
            return [self._function(node, outer, exported)]
        return []

    # ------------------------------------------------------------------
    # Imports and exports
    # ------------------------------------------------------------------

    def _import(self, node: Any) -> None:
        source = strip_quotes(field_text(node, "source"))
        if not source:
            return
        type_only = any(child.type == "type" for child in node.children)
        specifiers: list[ImportSpecifier] = []
        clause = child_of_type(node, "import_clause")
        if clause is not None:
            for child in clause.named_children:
                if child.type == "identifier":
                    specifiers.append(ImportSpecifier(name=node_text(child), is_default=True))
                elif child.type == "namespace_import":
                    alias = child_of_type(child, "identifier")
                    specifiers.append(
                        ImportSpecifier(name="*", alias=node_text(alias) or None, is_namespace=True)
                    )
                elif child.type == "named_imports":
                    for spec in child.named_children:
                        if spec.type != "import_specifier":
                            continue
                        specifiers.append(
                            ImportSpecifier(
                                name=field_text(spec, "name"),
                                alias=field_text(spec, "alias") or None,
                            )
                        )
        self.imports.append(ImportInfo(source=source, specifiers=specifiers, is_type_only=type_only))

    def _require_calls(self, node: Any, binding: str | None = None) -> None:
        # require("x") as a statement or as a variable initializer
        if node.type != "call_expression" or field_text(node, "function") != "require":
            return
        args = node.child_by_field_name("arguments")
        if args is None or not args.named_children:
            return
        first = args.named_children[0]
        if first.type not in ("string", "template_string"):
            return
        specifiers = [ImportSpecifier(name=binding, is_default=True)] if binding else []
        self.imports.append(ImportInfo(source=strip_quotes(node_text(first)), specifiers=specifiers))

    def _export(self, node: Any) -> None:
        is_default = any(child.type == "default" for child in node.children)
        source_node = node.child_by_field_name("source")
        source = strip_quotes(node_text(source_node)) if source_node is not None else None

        declaration = node.child_by_field_name("declaration")
        if declaration is None:
            for child in node.named_children:
                if child.type in _FUNCTION_TYPES | _CLASS_TYPES | {
                    "interface_declaration",
                    "type_alias_declaration",
                    "enum_declaration",
                    "lexical_declaration",
                    "variable_declaration",
                    "internal_module",
                }:
                    declaration = child
                    break

        if declaration is not None:
            for sym in self._declaration(declaration, outer=node, exported=True):
                self.exports.append(
                    ExportInfo(name=sym.name, is_default=is_default, symbol_id=sym.id)
                )
            return

        clause = child_of_type(node, "export_clause")
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                export = ExportInfo(
                    name=field_text(spec, "name"),
                    alias=field_text(spec, "alias") or None,
                    is_re_export=source is not None,
                    source=source,
                )
                if source is None:
                    self._local_exports.append(export)
                else:
                    self.exports.append(export)
            return

        if source is not None:
            # export * from "x" / export * as ns from "x"
            namespace = child_of_type(node, "namespace_export")
            alias = node_text(child_of_type(namespace, "identifier")) if namespace is not None else ""
            self.exports.append(
                ExportInfo(name="*", alias=alias or None, is_re_export=True, source=source)
            )
            return

        value = node.child_by_field_name("value")
        if is_default and value is not None:
            if value.type == "identifier":
                self._local_exports.append(ExportInfo(name=node_text(value), is_default=True))
            elif value.type in _FUNCTION_VALUES or value.type == "class":
                syms = self._declaration(value, outer=node, exported=True)
                for sym in syms:
                    self.exports.append(ExportInfo(name=sym.name, is_default=True, symbol_id=sym.id))
                if not syms:
                    self.exports.append(ExportInfo(name="default", is_default=True))
            else:
                self.exports.append(ExportInfo(name="default", is_default=True))

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _base_visibility(self, exported: bool) -> Visibility:
        return Visibility.PUBLIC if exported else Visibility.PRIVATE

    def _function_kind(self, name: str, node: Any) -> SymbolKind:
        if _HOOK_NAME.match(name):
            return SymbolKind.HOOK
        if self.jsx_file and name[:1].isupper() and _returns_jsx(node):
            return SymbolKind.COMPONENT
        return SymbolKind.FUNCTION

    def _function(self, node: Any, outer: Any, exported: bool) -> Symbol:
        name = field_text(node, "name") or "default"
        return_type = _strip_annotation(field_text(node, "return_type"))
        sym = Symbol(
            id=make_symbol_id(self.file_path, name),
            name=name,
            kind=self._function_kind(name, node),
            visibility=self._base_visibility(exported),
            exported=exported,
            location=location(outer, self.file_path),
            parameters=_parameters(node.child_by_field_name("parameters")),
            returns=ReturnInfo(type=return_type) if return_type else None,
            type_parameters=_type_parameters(node),
            docs=_jsdoc(outer),
            signature=signature_before(outer, node.child_by_field_name("body"), strip_suffix=";"),
            is_async=_is_async(node),
            is_generator=_is_generator(node),
        )
        return self.table.add(sym)

    def _class(self, node: Any, outer: Any, exported: bool) -> Symbol | None:
        name = field_text(node, "name") or ("default" if exported else "")
        if not name:
            return None

        extends: str | None = None
        implements: list[str] = []
        heritage = child_of_type(node, "class_heritage")
        if heritage is not None:
            for clause in heritage.named_children:
                if clause.type == "extends_clause":
                    value = clause.child_by_field_name("value")
                    extends = node_text(value if value is not None else clause.named_children[0])
                elif clause.type == "implements_clause":
                    implements.extend(node_text(t) for t in clause.named_children)
                elif extends is None:
                    # javascript grammar: class_heritage holds the expression directly
                    extends = node_text(clause)

        body = node.child_by_field_name("body")
        sym = self.table.add(
            Symbol(
                id=make_symbol_id(self.file_path, name),
                name=name,
                kind=SymbolKind.CLASS,
                visibility=self._base_visibility(exported),
                exported=exported,
                location=location(outer, self.file_path),
                extends=extends,
                implements=implements,
                type_parameters=_type_parameters(node),
                decorators=[
                    node_text(d).lstrip("@") for d in node.children if d.type == "decorator"
                ],
                docs=_jsdoc(outer),
                signature=signature_before(outer, body),
            )
        )
        if body is not None:
            for member in body.named_children:
                self._class_member(sym, member)
        return sym

    def _member_visibility(self, member: Any, name_node: Any) -> Visibility:
        modifier = child_of_type(member, "accessibility_modifier")
        if modifier is not None:
            return Visibility(node_text(modifier))
        if name_node is not None and name_node.type == "private_property_identifier":
            return Visibility.PRIVATE
        return Visibility.PUBLIC

    def _class_member(self, parent: Symbol, member: Any) -> None:
        if member.type in ("method_definition", "abstract_method_signature", "method_signature"):
            name_node = member.child_by_field_name("name")
            name = node_text(name_node)
            if not name:
                return
            visibility = self._member_visibility(member, name_node)
            is_accessor = any(child.type in ("get", "set") for child in member.children)
            return_type = _strip_annotation(field_text(member, "return_type"))
            self.table.add_member(
                parent,
                Symbol(
                    id=make_symbol_id(self.file_path, name, parent.name),
                    name=name,
                    kind=SymbolKind.PROPERTY if is_accessor else SymbolKind.METHOD,
                    visibility=visibility,
                    exported=parent.exported and visibility == Visibility.PUBLIC,
                    location=location(member, self.file_path),
                    parameters=_parameters(member.child_by_field_name("parameters")),
                    returns=ReturnInfo(type=return_type) if return_type else None,
                    type_parameters=_type_parameters(member),
                    docs=_jsdoc(member),
                    signature=signature_before(
                        member, member.child_by_field_name("body"), strip_suffix=";"
                    ),
                    is_async=_is_async(member),
                    is_generator=_is_generator(member),
                ),
            )
        elif member.type in ("public_field_definition", "field_definition"):
            name_node = member.child_by_field_name("name") or member.child_by_field_name("property")
            name = node_text(name_node)
            if not name:
                return
            visibility = self._member_visibility(member, name_node)
            self.table.add_member(
                parent,
                Symbol(
                    id=make_symbol_id(self.file_path, name, parent.name),
                    name=name,
                    kind=SymbolKind.PROPERTY,
                    visibility=visibility,
                    exported=parent.exported and visibility == Visibility.PUBLIC,
                    location=location(member, self.file_path),
                    type_annotation=_strip_annotation(field_text(member, "type")) or None,
                    docs=_jsdoc(member),
                ),
            )

    def _interface(self, node: Any, outer: Any, exported: bool) -> Symbol:
        name = field_text(node, "name")
        bases: list[str] = []
        clause = child_of_type(node, "extends_type_clause")
        if clause is not None:
            bases = [node_text(t) for t in clause.named_children]
        body = node.child_by_field_name("body")
        sym = self.table.add(
            Symbol(
                id=make_symbol_id(self.file_path, name),
                name=name,
                kind=SymbolKind.INTERFACE,
                visibility=self._base_visibility(exported),
                exported=exported,
                location=location(outer, self.file_path),
                extends=bases[0] if bases else None,
                implements=bases[1:],
                type_parameters=_type_parameters(node),
                docs=_jsdoc(outer),
                signature=signature_before(outer, body),
            )
        )
        if body is None:
            return sym
        for member in body.named_children:
            if member.type not in ("property_signature", "method_signature"):
                continue
            member_name = field_text(member, "name")
            if not member_name:
                continue
            is_method = member.type == "method_signature"
            return_type = _strip_annotation(field_text(member, "return_type"))
            self.table.add_member(
                sym,
                Symbol(
                    id=make_symbol_id(self.file_path, member_name, name),
                    name=member_name,
                    kind=SymbolKind.METHOD if is_method else SymbolKind.PROPERTY,
                    exported=exported,
                    location=location(member, self.file_path),
                    parameters=_parameters(member.child_by_field_name("parameters")),
                    returns=ReturnInfo(type=return_type) if return_type else None,
                    type_annotation=(
                        None if is_method else _strip_annotation(field_text(member, "type")) or None
                    ),
                    docs=_jsdoc(member),
                ),
            )
        return sym

    def _type_alias(self, node: Any, outer: Any, exported: bool) -> Symbol:
        name = field_text(node, "name")
        return self.table.add(
            Symbol(
                id=make_symbol_id(self.file_path, name),
                name=name,
                kind=SymbolKind.TYPE,
                visibility=self._base_visibility(exported),
                exported=exported,
                location=location(outer, self.file_path),
                type_annotation=field_text(node, "value") or None,
                type_parameters=_type_parameters(node),
                docs=_jsdoc(outer),
                signature=signature_before(outer, None, strip_suffix=";"),
            )
        )

    def _simple(self, node: Any, outer: Any, exported: bool, kind: SymbolKind) -> Symbol:
        name = field_text(node, "name")
        return self.table.add(
            Symbol(
                id=make_symbol_id(self.file_path, name),
                name=name,
                kind=kind,
                visibility=self._base_visibility(exported),
                exported=exported,
                location=location(outer, self.file_path),
                docs=_jsdoc(outer),
                signature=signature_before(outer, node.child_by_field_name("body")),
            )
        )

    def _variables(self, node: Any, outer: Any, exported: bool) -> list[Symbol]:
        symbols: list[Symbol] = []
        docs = _jsdoc(outer)
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if value is not None and value.type == "call_expression":
                self._require_calls(
                    value,
                    binding=node_text(name_node) if name_node is not None and name_node.type == "identifier" else None,
                )
            if name_node is None or name_node.type != "identifier":
                continue
            name = node_text(name_node)

            if value is not None and value.type in _FUNCTION_VALUES:
                return_type = _strip_annotation(field_text(value, "return_type"))
                body = value.child_by_field_name("body")
                sym = Symbol(
                    id=make_symbol_id(self.file_path, name),
                    name=name,
                    kind=self._function_kind(name, value),
                    visibility=self._base_visibility(exported),
                    exported=exported,
                    location=location(outer, self.file_path),
                    parameters=_parameters(
                        value.child_by_field_name("parameters")
                        or value.child_by_field_name("parameter")
                    ),
                    returns=ReturnInfo(type=return_type) if return_type else None,
                    type_parameters=_type_parameters(value),
                    docs=docs,
                    signature=signature_before(outer, body, strip_suffix="=>"),
                    is_async=_is_async(value),
                    is_generator=_is_generator(value),
                )
            else:
                sym = Symbol(
                    id=make_symbol_id(self.file_path, name),
                    name=name,
                    kind=SymbolKind.CONSTANT if is_constant_name(name) else SymbolKind.VARIABLE,
                    visibility=self._base_visibility(exported),
                    exported=exported,
                    location=location(outer, self.file_path),
                    type_annotation=_strip_annotation(field_text(declarator, "type")) or None,
                    docs=docs,
                )
            symbols.append(self.table.add(sym))
        return symbols


class TypeScriptAdapter:
    """Extracts TypeScript declarations with the tree-sitter tsx grammar."""

    language = "typescript"

    def parse(self, content: str, file_path: str) -> ParserResult:
        tree = acquire_parser(self.language).parse(content)
        return _ScriptExtraction(file_path).run(tree.root_node)


class JavaScriptAdapter:
    """Extracts JavaScript declarations with the tree-sitter javascript grammar."""

    language = "javascript"

    def parse(self, content: str, file_path: str) -> ParserResult:
        tree = acquire_parser(self.language).parse(content)
        return _ScriptExtraction(file_path).run(tree.root_node)
