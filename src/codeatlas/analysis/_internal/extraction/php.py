"""PHP extraction adapter.

Classes, interfaces, traits and enums (with methods, properties and class
constants), top-level functions and constants, ``use`` imports and
namespaces. Top-level declarations are always exported; members follow
their visibility modifier, defaulting to public.

PHPDoc blocks (``/** */``) preceding a declaration are parsed with the
same tag grammar as JSDoc.
"""

from __future__ import annotations

import re
from typing import Any

from codeatlas.analysis._internal.extraction._common import (
    SymbolTable,
    child_of_type,
    field_text,
    location,
    make_symbol_id,
    node_text,
    preceding_comments,
    signature_before,
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

_TYPE_KINDS = {
    "class_declaration": SymbolKind.CLASS,
    "interface_declaration": SymbolKind.INTERFACE,
    "trait_declaration": SymbolKind.CLASS,
    "enum_declaration": SymbolKind.ENUM,
}
_USE_ITEM = re.compile(r"^\\?(?P<path>[\w\\]+)(?:\s+as\s+(?P<alias>\w+))?$", re.IGNORECASE)


def _phpdoc(node: Any) -> DocComment | None:
    comments = preceding_comments(node)
    if not comments:
        return None
    text = node_text(comments[-1])
    if not text.startswith("/**"):
        return None
    return parse_jsdoc(text)


def _module_doc(root: Any) -> DocComment | None:
    # The file doc block follows the opening tag and is detached from the
    # first declaration by a blank line.
    for node in root.children:
        if node.type in ("php_tag", "text"):
            continue
        if node.type != "comment" or not node_text(node).startswith("/**"):
            return None
        following = node.next_sibling
        if following is not None and following.start_point[0] <= node.end_point[0] + 1:
            return None
        return parse_jsdoc(node_text(node))
    return None


def _visibility(node: Any) -> Visibility:
    modifier = child_of_type(node, "visibility_modifier")
    if modifier is None:
        return Visibility.PUBLIC
    return Visibility(node_text(modifier).lower())


def _parameters(params_node: Any) -> list[Parameter]:
    params: list[Parameter] = []
    if params_node is None:
        return params
    for param in params_node.named_children:
        if param.type not in ("simple_parameter", "variadic_parameter", "property_promotion_parameter"):
            continue
        default = field_text(param, "default_value") or None
        rest = param.type == "variadic_parameter"
        params.append(
            Parameter(
                name=field_text(param, "name").lstrip("$"),
                type=field_text(param, "type") or None,
                default_value=default,
                optional=default is not None or rest,
                rest=rest,
            )
        )
    return params


def _parse_use(node: Any) -> list[ImportInfo]:
    """``use A\\B``, ``use A\\B as C, D\\E``, ``use A\\{B, C as D}``."""
    text = node_text(node).strip()
    text = re.sub(r"^use\s+", "", text, flags=re.IGNORECASE).rstrip(";").strip()
    text = re.sub(r"^(?:function|const)\s+", "", text, flags=re.IGNORECASE)

    items: list[str]
    if "{" in text:
        prefix, _, rest = text.partition("{")
        prefix = prefix.strip().rstrip("\\")
        items = [f"{prefix}\\{item.strip()}" for item in rest.rsplit("}", 1)[0].split(",") if item.strip()]
    else:
        items = [item.strip() for item in text.split(",") if item.strip()]

    imports: list[ImportInfo] = []
    for item in items:
        match = _USE_ITEM.match(" ".join(item.split()))
        if not match:
            continue
        path = match.group("path")
        imports.append(
            ImportInfo(
                source=path,
                specifiers=[
                    ImportSpecifier(name=path.rsplit("\\", 1)[-1], alias=match.group("alias"))
                ],
            )
        )
    return imports


class _PhpExtraction:
    """One extraction pass over a parsed PHP program."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.table = SymbolTable()
        self.imports: list[ImportInfo] = []

    def run(self, root: Any) -> ParserResult:
        self._walk(root)
        exports = [
            ExportInfo(name=sym.name, symbol_id=sym.id)
            for sym in self.table.to_list()
            if sym.exported and sym.parent_id is None
        ]
        return ParserResult(
            symbols=self.table.to_list(),
            imports=self.imports,
            exports=exports,
            module_doc=_module_doc(root),
        )

    def _walk(self, container: Any) -> None:
        for node in container.children:
            if node.type == "namespace_use_declaration":
                self.imports.extend(_parse_use(node))
            elif node.type == "namespace_definition":
                body = node.child_by_field_name("body")
                if body is not None:
                    self._walk(body)
            elif node.type in _TYPE_KINDS:
                self._type(node)
            elif node.type == "function_definition":
                self._function(node)
            elif node.type == "const_declaration":
                self._constants(node, parent=None)

    def _function(self, node: Any) -> None:
        name = field_text(node, "name")
        if not name:
            return
        return_type = field_text(node, "return_type")
        self.table.add(
            Symbol(
                id=make_symbol_id(self.file_path, name),
                name=name,
                kind=SymbolKind.FUNCTION,
                exported=True,
                location=location(node, self.file_path),
                parameters=_parameters(node.child_by_field_name("parameters")),
                returns=ReturnInfo(type=return_type) if return_type else None,
                docs=_phpdoc(node),
                signature=signature_before(node, node.child_by_field_name("body")),
            )
        )

    def _type(self, node: Any) -> None:
        name = field_text(node, "name")
        if not name:
            return
        base = child_of_type(node, "base_clause")
        bases = [node_text(n) for n in base.named_children] if base is not None else []
        interfaces = child_of_type(node, "class_interface_clause")
        implemented = [node_text(n) for n in interfaces.named_children] if interfaces is not None else []
        kind = _TYPE_KINDS[node.type]
        if kind == SymbolKind.INTERFACE:
            # interfaces may extend several interfaces
            extends, implemented = (bases[0] if bases else None), bases[1:] + implemented
        else:
            extends = bases[0] if bases else None

        body = node.child_by_field_name("body")
        sym = self.table.add(
            Symbol(
                id=make_symbol_id(self.file_path, name),
                name=name,
                kind=kind,
                exported=True,
                location=location(node, self.file_path),
                extends=extends,
                implements=implemented,
                docs=_phpdoc(node),
                signature=signature_before(node, body),
            )
        )
        if body is None:
            return
        for member in body.named_children:
            if member.type == "method_declaration":
                self._method(sym, member)
            elif member.type == "property_declaration":
                self._properties(sym, member)
            elif member.type == "const_declaration":
                self._constants(member, parent=sym)
            elif member.type == "enum_case":
                case_name = field_text(member, "name")
                if case_name:
                    self._add_member(sym, member, case_name, SymbolKind.CONSTANT, Visibility.PUBLIC)

    def _method(self, parent: Symbol, member: Any) -> None:
        name = field_text(member, "name")
        if not name:
            return
        return_type = field_text(member, "return_type")
        self._add_member(
            parent,
            member,
            name,
            SymbolKind.METHOD,
            _visibility(member),
            parameters=_parameters(member.child_by_field_name("parameters")),
            returns=ReturnInfo(type=return_type) if return_type else None,
            signature=signature_before(member, member.child_by_field_name("body"), strip_suffix=";"),
        )

    def _properties(self, parent: Symbol, member: Any) -> None:
        visibility = _visibility(member)
        type_text = field_text(member, "type") or None
        for element in member.named_children:
            if element.type != "property_element":
                continue
            name = node_text(child_of_type(element, "variable_name")).lstrip("$")
            if name:
                self._add_member(
                    parent, member, name, SymbolKind.PROPERTY, visibility, type_annotation=type_text
                )

    def _constants(self, node: Any, parent: Symbol | None) -> None:
        visibility = _visibility(node)
        for element in node.named_children:
            if element.type != "const_element":
                continue
            name = node_text(child_of_type(element, "name"))
            if not name:
                continue
            if parent is not None:
                self._add_member(parent, node, name, SymbolKind.CONSTANT, visibility)
                continue
            self.table.add(
                Symbol(
                    id=make_symbol_id(self.file_path, name),
                    name=name,
                    kind=SymbolKind.CONSTANT,
                    exported=True,
                    location=location(node, self.file_path),
                    docs=_phpdoc(node),
                )
            )

    def _add_member(
        self,
        parent: Symbol,
        node: Any,
        name: str,
        kind: SymbolKind,
        visibility: Visibility,
        **fields: Any,
    ) -> None:
        self.table.add_member(
            parent,
            Symbol(
                id=make_symbol_id(self.file_path, name, parent.name),
                name=name,
                kind=kind,
                visibility=visibility,
                exported=parent.exported and visibility == Visibility.PUBLIC,
                location=location(node, self.file_path),
                docs=_phpdoc(node),
                **fields,
            ),
        )


class PhpAdapter:
    """Extracts PHP declarations with the tree-sitter PHP grammar."""

    language = "php"

    def parse(self, content: str, file_path: str) -> ParserResult:
        tree = acquire_parser(self.language).parse(content)
        return _PhpExtraction(file_path).run(tree.root_node)
