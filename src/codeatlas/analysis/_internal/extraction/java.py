"""Java extraction adapter.

Types (class, interface, enum, record, annotation) and their members
(methods, constructors, fields, nested types). ``public`` types are
exported; members are exported when public inside an exported type.
Members without an access modifier are package-private (``internal``),
except in interfaces where they are implicitly public.

Javadoc comes from the ``/** */`` block preceding a declaration.
Annotations live inside the declaration's ``modifiers`` node and are
reported as decorators. Non-static imports are type-only.
"""

from __future__ import annotations

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

_COMMENT_TYPES = frozenset({"line_comment", "block_comment"})
_TYPE_KINDS = {
    "class_declaration": SymbolKind.CLASS,
    "record_declaration": SymbolKind.CLASS,
    "interface_declaration": SymbolKind.INTERFACE,
    "annotation_type_declaration": SymbolKind.INTERFACE,
    "enum_declaration": SymbolKind.ENUM,
}
_ACCESS = ("public", "protected", "private")


def _javadoc(node: Any) -> DocComment | None:
    comments = preceding_comments(node, comment_types=_COMMENT_TYPES)
    if not comments:
        return None
    text = node_text(comments[-1])
    if not text.startswith("/**"):
        return None
    return parse_jsdoc(text)


def _modifiers(node: Any) -> tuple[set[str], list[str]]:
    """(keyword modifiers, annotations) of a declaration."""
    mods = child_of_type(node, "modifiers")
    if mods is None:
        return set(), []
    keywords: set[str] = set()
    annotations: list[str] = []
    for child in mods.children:
        if child.type in ("marker_annotation", "annotation"):
            annotations.append(node_text(child).lstrip("@"))
        else:
            keywords.add(node_text(child))
    return keywords, annotations


def _visibility(keywords: set[str], *, implicit_public: bool) -> Visibility:
    for access in _ACCESS:
        if access in keywords:
            return Visibility(access)
    return Visibility.PUBLIC if implicit_public else Visibility.INTERNAL


def _parameters(params_node: Any) -> list[Parameter]:
    params: list[Parameter] = []
    if params_node is None:
        return params
    for param in params_node.named_children:
        if param.type == "formal_parameter":
            params.append(Parameter(name=field_text(param, "name"), type=field_text(param, "type") or None))
        elif param.type == "spread_parameter":
            declarator = child_of_type(param, "variable_declarator")
            type_node = next(
                (c for c in param.named_children if c.type not in ("modifiers", "variable_declarator")),
                None,
            )
            params.append(
                Parameter(
                    name=field_text(declarator, "name") if declarator is not None else "args",
                    type=f"{node_text(type_node)}..." if type_node is not None else None,
                    optional=True,
                    rest=True,
                )
            )
    return params


def _type_parameters(node: Any) -> list[str]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return []
    return [node_text(child) for child in params.named_children]


def _type_list(node: Any) -> list[str]:
    if node is None:
        return []
    type_list = child_of_type(node, "type_list")
    target = type_list if type_list is not None else node
    return [node_text(t) for t in target.named_children]


class _JavaExtraction:
    """One extraction pass over a parsed Java compilation unit."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.table = SymbolTable()
        self.imports: list[ImportInfo] = []

    def run(self, root: Any) -> ParserResult:
        module_doc: DocComment | None = None
        for node in root.children:
            if node.type == "package_declaration":
                module_doc = _javadoc(node)
            elif node.type == "import_declaration":
                self._import(node)
            elif node.type in _TYPE_KINDS:
                self._type(node, parent=None)

        exports = [
            ExportInfo(name=sym.name, symbol_id=sym.id)
            for sym in self.table.to_list()
            if sym.exported and sym.parent_id is None
        ]
        return ParserResult(
            symbols=self.table.to_list(),
            imports=self.imports,
            exports=exports,
            module_doc=module_doc,
        )

    def _import(self, node: Any) -> None:
        is_static = any(child.type == "static" for child in node.children)
        target = next(
            (c for c in node.named_children if c.type in ("scoped_identifier", "identifier")), None
        )
        if target is None:
            return
        path = node_text(target)
        if any(child.type == "asterisk" for child in node.children):
            source, name = path, "*"
        else:
            source, _, name = path.rpartition(".")
        self.imports.append(
            ImportInfo(
                source=source or name,
                specifiers=[ImportSpecifier(name=name, is_namespace=name == "*")],
                is_type_only=not is_static,
            )
        )

    def _type(self, node: Any, parent: Symbol | None) -> None:
        name = field_text(node, "name")
        if not name:
            return
        keywords, annotations = _modifiers(node)
        in_interface = parent is not None and parent.kind == SymbolKind.INTERFACE
        visibility = _visibility(keywords, implicit_public=in_interface)
        if parent is None:
            exported = visibility == Visibility.PUBLIC
        else:
            exported = parent.exported and visibility == Visibility.PUBLIC

        superclass = node.child_by_field_name("superclass")
        if node.type == "interface_declaration":
            bases = _type_list(child_of_type(node, "extends_interfaces"))
            extends = bases[0] if bases else None
            implements = bases[1:]
        else:
            extends = None
            if superclass is not None and superclass.named_children:
                extends = node_text(superclass.named_children[0])
            implements = _type_list(node.child_by_field_name("interfaces"))

        body = node.child_by_field_name("body")
        sym = Symbol(
            id=make_symbol_id(self.file_path, name, parent.name if parent else None),
            name=name,
            kind=_TYPE_KINDS[node.type],
            visibility=visibility,
            exported=exported,
            location=location(node, self.file_path),
            parameters=_parameters(node.child_by_field_name("parameters"))
            if node.type == "record_declaration"
            else [],
            extends=extends,
            implements=implements,
            type_parameters=_type_parameters(node),
            decorators=annotations,
            docs=_javadoc(node),
            signature=signature_before(node, body),
        )
        if parent is None:
            self.table.add(sym)
        else:
            self.table.add_member(parent, sym)

        if body is not None:
            self._members(sym, body)

    def _members(self, parent: Symbol, body: Any) -> None:
        members = list(body.named_children)
        # enum constants come first; declarations follow in enum_body_declarations
        for child in body.named_children:
            if child.type == "enum_body_declarations":
                members.extend(child.named_children)

        in_interface = parent.kind == SymbolKind.INTERFACE
        for member in members:
            if member.type in _TYPE_KINDS:
                self._type(member, parent)
            elif member.type in ("method_declaration", "constructor_declaration"):
                self._method(parent, member, in_interface)
            elif member.type in ("field_declaration", "constant_declaration"):
                self._field(parent, member, in_interface)

    def _method(self, parent: Symbol, member: Any, in_interface: bool) -> None:
        name = field_text(member, "name")
        if not name:
            return
        keywords, annotations = _modifiers(member)
        visibility = _visibility(keywords, implicit_public=in_interface)
        return_type = field_text(member, "type")
        self.table.add_member(
            parent,
            Symbol(
                id=make_symbol_id(self.file_path, name, parent.name),
                name=name,
                kind=SymbolKind.METHOD,
                visibility=visibility,
                exported=parent.exported and visibility == Visibility.PUBLIC,
                location=location(member, self.file_path),
                parameters=_parameters(member.child_by_field_name("parameters")),
                returns=ReturnInfo(type=return_type) if return_type else None,
                type_parameters=_type_parameters(member),
                decorators=annotations,
                docs=_javadoc(member),
                signature=signature_before(member, member.child_by_field_name("body"), strip_suffix=";"),
            ),
        )

    def _field(self, parent: Symbol, member: Any, in_interface: bool) -> None:
        keywords, annotations = _modifiers(member)
        visibility = _visibility(keywords, implicit_public=in_interface)
        is_constant = ("static" in keywords and "final" in keywords) or member.type == "constant_declaration"
        type_text = field_text(member, "type") or None
        docs = _javadoc(member)
        for declarator in member.children_by_field_name("declarator"):
            name = field_text(declarator, "name")
            if not name:
                continue
            self.table.add_member(
                parent,
                Symbol(
                    id=make_symbol_id(self.file_path, name, parent.name),
                    name=name,
                    kind=SymbolKind.CONSTANT if is_constant else SymbolKind.PROPERTY,
                    visibility=visibility,
                    exported=parent.exported and visibility == Visibility.PUBLIC,
                    location=location(member, self.file_path),
                    type_annotation=type_text,
                    decorators=annotations,
                    docs=docs,
                ),
            )


class JavaAdapter:
    """Extracts Java declarations with the tree-sitter Java grammar."""

    language = "java"

    def parse(self, content: str, file_path: str) -> ParserResult:
        tree = acquire_parser(self.language).parse(content)
        return _JavaExtraction(file_path).run(tree.root_node)
