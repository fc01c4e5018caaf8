"""C# extraction adapter.

Walks namespaces (block and file-scoped) down to type declarations
(class, struct, interface, enum, record) and their members (methods,
constructors, properties, fields, nested types).

Types without an access modifier are ``internal``; members default to
``private`` except inside interfaces. ``public`` and ``internal`` both
count as exported since either is reachable from other files of the
assembly. Docs are ``///`` XML comments.
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
from codeatlas.analysis._internal.extraction.docs import parse_xml_doc
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
    "struct_declaration": SymbolKind.CLASS,
    "record_declaration": SymbolKind.CLASS,
    "record_struct_declaration": SymbolKind.CLASS,
    "interface_declaration": SymbolKind.INTERFACE,
    "enum_declaration": SymbolKind.ENUM,
}
_NAMESPACE_TYPES = frozenset({"namespace_declaration", "file_scoped_namespace_declaration"})
_EXPORTED_VISIBILITY = frozenset({Visibility.PUBLIC, Visibility.INTERNAL})


def _xml_lines(comments: list[Any]) -> list[str]:
    lines: list[str] = []
    for comment in reversed(comments):
        text = node_text(comment).strip()
        if not text.startswith("///"):
            break
        lines.insert(0, text[3:].strip())
    return lines


def _doc(node: Any) -> DocComment | None:
    lines = _xml_lines(preceding_comments(node, skip_types=frozenset({"attribute_list"})))
    if not lines:
        return None
    return parse_xml_doc(lines)


def _module_doc(root: Any) -> DocComment | None:
    leading: list[Any] = []
    for node in root.children:
        if node.type != "comment":
            break
        leading.append(node)
    if not leading:
        return None
    following = leading[-1].next_sibling
    if following is not None and following.start_point[0] <= leading[-1].end_point[0] + 1:
        # attached to the first declaration
        return None
    lines = _xml_lines(leading)
    return parse_xml_doc(lines) if lines else None


def _modifiers(node: Any) -> set[str]:
    return {node_text(child) for child in node.children if child.type == "modifier"}


def _attributes(node: Any) -> list[str]:
    attrs: list[str] = []
    for child in node.children:
        if child.type == "attribute_list":
            attrs.extend(node_text(attr) for attr in child.named_children if attr.type == "attribute")
    return attrs


def _visibility(modifiers: set[str], default: Visibility) -> Visibility:
    if "public" in modifiers:
        return Visibility.PUBLIC
    if "protected" in modifiers:
        return Visibility.PROTECTED
    if "internal" in modifiers:
        return Visibility.INTERNAL
    if "private" in modifiers:
        return Visibility.PRIVATE
    return default


def _parameters(params_node: Any) -> list[Parameter]:
    params: list[Parameter] = []
    if params_node is None:
        return params
    for param in params_node.named_children:
        if param.type != "parameter":
            continue
        is_params = node_text(param).startswith("params ")
        default = None
        equals = child_of_type(param, "equals_value_clause")
        if equals is not None and equals.named_children:
            default = node_text(equals.named_children[0])
        else:
            # newer grammars inline `= value` into the parameter
            assign = child_of_type(param, "=")
            if assign is not None and assign.next_named_sibling is not None:
                default = node_text(assign.next_named_sibling)
        params.append(
            Parameter(
                name=field_text(param, "name"),
                type=field_text(param, "type") or None,
                default_value=default,
                optional=default is not None or is_params,
                rest=is_params,
            )
        )
    return params


def _type_parameters(node: Any) -> list[str]:
    params = node.child_by_field_name("type_parameters") or child_of_type(node, "type_parameter_list")
    if params is None:
        return []
    return [node_text(child) for child in params.named_children]


class _CSharpExtraction:
    """One extraction pass over a parsed C# compilation unit."""

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
            if node.type == "using_directive":
                self._using(node)
            elif node.type in _NAMESPACE_TYPES:
                body = node.child_by_field_name("body")
                # file-scoped namespaces hold their declarations directly
                self._walk(body if body is not None else node)
            elif node.type == "declaration_list":
                self._walk(node)
            elif node.type in _TYPE_KINDS:
                self._type(node, parent=None)

    def _using(self, node: Any) -> None:
        is_static = any(child.type == "static" for child in node.children)
        alias_node = node.child_by_field_name("name")
        target = next(
            (
                c
                for c in node.named_children
                if c.type in ("qualified_name", "identifier") and c != alias_node
            ),
            None,
        )
        if target is None:
            return
        source = node_text(target)
        self.imports.append(
            ImportInfo(
                source=source,
                specifiers=[
                    ImportSpecifier(
                        name=source.rsplit(".", 1)[-1],
                        alias=node_text(alias_node) or None,
                        is_namespace=not is_static,
                    )
                ],
                is_type_only=not is_static,
            )
        )

    def _type(self, node: Any, parent: Symbol | None) -> None:
        name = field_text(node, "name")
        if not name:
            return
        modifiers = _modifiers(node)
        default = Visibility.INTERNAL if parent is None else Visibility.PRIVATE
        if parent is not None and parent.kind == SymbolKind.INTERFACE:
            default = Visibility.PUBLIC
        visibility = _visibility(modifiers, default)
        exported = visibility in _EXPORTED_VISIBILITY and (parent is None or parent.exported)

        bases: list[str] = []
        base_list = child_of_type(node, "base_list")
        if base_list is not None:
            bases = [node_text(b) for b in base_list.named_children]
        kind = _TYPE_KINDS[node.type]
        # C# base lists do not distinguish the base class from interfaces;
        # the I-prefix convention does.
        extends: str | None = None
        implements = bases
        if kind == SymbolKind.CLASS and bases and not _looks_like_interface(bases[0]):
            extends, implements = bases[0], bases[1:]

        body = node.child_by_field_name("body")
        sym = Symbol(
            id=make_symbol_id(self.file_path, name, parent.name if parent else None),
            name=name,
            kind=kind,
            visibility=visibility,
            exported=exported,
            location=location(node, self.file_path),
            parameters=_parameters(child_of_type(node, "parameter_list")),
            extends=extends,
            implements=implements,
            type_parameters=_type_parameters(node),
            decorators=_attributes(node),
            docs=_doc(node),
            signature=signature_before(node, body),
        )
        if parent is None:
            self.table.add(sym)
        else:
            self.table.add_member(parent, sym)

        if body is not None:
            for member in body.named_children:
                self._member(sym, member)

    def _member(self, parent: Symbol, member: Any) -> None:
        if member.type in _TYPE_KINDS:
            self._type(member, parent)
            return
        if member.type == "enum_member_declaration":
            name = field_text(member, "name")
            if name:
                self._add_member(parent, member, name, SymbolKind.CONSTANT, Visibility.PUBLIC)
            return

        default = Visibility.PUBLIC if parent.kind == SymbolKind.INTERFACE else Visibility.PRIVATE
        visibility = _visibility(_modifiers(member), default)

        if member.type in ("method_declaration", "constructor_declaration"):
            name = field_text(member, "name")
            if not name:
                return
            return_type = field_text(member, "returns") or field_text(member, "type")
            body = member.child_by_field_name("body") or child_of_type(member, "arrow_expression_clause")
            self._add_member(
                parent,
                member,
                name,
                SymbolKind.METHOD,
                visibility,
                parameters=_parameters(member.child_by_field_name("parameters")),
                returns=ReturnInfo(type=return_type) if return_type else None,
                type_parameters=_type_parameters(member),
                is_async="async" in _modifiers(member),
                signature=signature_before(member, body, strip_suffix=";"),
            )
        elif member.type == "property_declaration":
            name = field_text(member, "name")
            if name:
                self._add_member(
                    parent,
                    member,
                    name,
                    SymbolKind.PROPERTY,
                    visibility,
                    type_annotation=field_text(member, "type") or None,
                )
        elif member.type == "field_declaration":
            declaration = child_of_type(member, "variable_declaration")
            if declaration is None:
                return
            modifiers = _modifiers(member)
            kind = SymbolKind.CONSTANT if "const" in modifiers else SymbolKind.PROPERTY
            type_text = field_text(declaration, "type") or None
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name = field_text(declarator, "name") or node_text(child_of_type(declarator, "identifier"))
                if name:
                    self._add_member(
                        parent, member, name, kind, visibility, type_annotation=type_text
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
                exported=parent.exported and visibility in _EXPORTED_VISIBILITY,
                location=location(node, self.file_path),
                decorators=_attributes(node),
                docs=_doc(node),
                **fields,
            ),
        )


def _looks_like_interface(name: str) -> bool:
    return len(name) > 1 and name[0] == "I" and name[1].isupper()


class CSharpAdapter:
    """Extracts C# declarations with the tree-sitter C# grammar."""

    language = "csharp"

    def parse(self, content: str, file_path: str) -> ParserResult:
        tree = acquire_parser(self.language).parse(content)
        return _CSharpExtraction(file_path).run(tree.root_node)
