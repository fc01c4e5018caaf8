"""Rust extraction adapter.

``pub`` (in any form) marks an item exported; ``pub(crate)`` and friends
are recorded with internal visibility. ``pub use`` produces re-export
``ExportInfo`` records. Doc comments are ``///`` lines or ``/** */``
blocks, with ``#[...]`` attributes between them and the item skipped; the
module doc is the leading run of ``//!`` lines.

Impl blocks contribute ``Type.method`` symbols. They are linked to the type
when it is declared in the same file, and ``impl Trait for Type`` adds the
trait to the type's ``implements``.
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
from codeatlas.analysis._internal.extraction.docs import parse_line_doc
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
_ATTRIBUTE_TYPES = frozenset({"attribute_item"})
_USE_ALIAS = re.compile(r"^(?P<name>[\w:]+)\s+as\s+(?P<alias>\w+)$")

_ITEM_KINDS = {
    "function_item": SymbolKind.FUNCTION,
    "function_signature_item": SymbolKind.FUNCTION,
    "struct_item": SymbolKind.CLASS,
    "union_item": SymbolKind.CLASS,
    "enum_item": SymbolKind.ENUM,
    "trait_item": SymbolKind.INTERFACE,
    "type_item": SymbolKind.TYPE,
    "const_item": SymbolKind.CONSTANT,
    "static_item": SymbolKind.CONSTANT,
    "mod_item": SymbolKind.MODULE,
}


def _visibility(node: Any) -> tuple[Visibility, bool]:
    """(visibility, exported) from an item's ``visibility_modifier``."""
    modifier = child_of_type(node, "visibility_modifier")
    if modifier is None:
        return Visibility.PRIVATE, False
    text = "".join(node_text(modifier).split())
    if text == "pub":
        return Visibility.PUBLIC, True
    return Visibility.INTERNAL, True


def _doc_lines(comment: Any) -> list[str] | None:
    """Doc text of an outer doc comment, or None for a plain comment."""
    text = node_text(comment).strip()
    if text.startswith("///") and not text.startswith("////"):
        body = text[3:]
        return [body[1:] if body.startswith(" ") else body]
    if text.startswith("/**") and not text.startswith("/***") and text != "/**/":
        body = text[3:-2] if text.endswith("*/") else text[3:]
        lines = [line.strip() for line in body.splitlines()]
        return [line[1:].lstrip() if line.startswith("*") else line for line in lines if line]
    return None


def _doc(node: Any) -> DocComment | None:
    comments = preceding_comments(node, comment_types=_COMMENT_TYPES, skip_types=_ATTRIBUTE_TYPES)
    lines: list[str] = []
    for comment in reversed(comments):
        doc_lines = _doc_lines(comment)
        if doc_lines is None:
            break
        lines[:0] = doc_lines
    if not lines:
        return None
    return parse_line_doc(lines)


def _module_doc(root: Any) -> DocComment | None:
    lines: list[str] = []
    for node in root.children:
        if node.type not in _COMMENT_TYPES:
            break
        text = node_text(node).strip()
        if text.startswith("//!"):
            body = text[3:]
            lines.append(body[1:] if body.startswith(" ") else body)
        elif text.startswith("/*!"):
            body = text[3:-2] if text.endswith("*/") else text[3:]
            lines.extend(line.strip().lstrip("*").strip() for line in body.splitlines())
        elif lines:
            break
    if not any(line.strip() for line in lines):
        return None
    return parse_line_doc(lines)


def _attributes(node: Any) -> list[str]:
    attrs: list[str] = []
    sibling = node.prev_sibling
    while sibling is not None and sibling.type in _ATTRIBUTE_TYPES | _COMMENT_TYPES:
        if sibling.type in _ATTRIBUTE_TYPES:
            text = node_text(sibling).strip()
            attrs.insert(0, text[2:-1] if text.startswith("#[") else text)
        sibling = sibling.prev_sibling
    return attrs


def _parameters(params_node: Any) -> list[Parameter]:
    params: list[Parameter] = []
    if params_node is None:
        return params
    for param in params_node.named_children:
        if param.type == "parameter":
            params.append(
                Parameter(
                    name=field_text(param, "pattern"),
                    type=field_text(param, "type") or None,
                )
            )
        elif param.type == "variadic_parameter":
            params.append(Parameter(name="...", optional=True, rest=True))
    return params


def _type_parameters(node: Any) -> list[str]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return []
    return [node_text(child) for child in params.named_children]


def _is_async(node: Any) -> bool:
    modifiers = child_of_type(node, "function_modifiers")
    return modifiers is not None and any(c.type == "async" for c in modifiers.children)


def _base_type_name(text: str) -> str:
    # Vec<T> -> Vec, crate::model::User -> User, &'a Foo -> Foo
    text = text.lstrip("&").strip()
    if text.startswith("'"):
        text = text.split(None, 1)[-1]
    text = text.removeprefix("mut ").strip()
    return text.split("<", 1)[0].rsplit("::", 1)[-1].strip()


def _split_top_level(text: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if "".join(current).strip():
        parts.append("".join(current).strip())
    return parts


def _specifier(item: str, base: str) -> ImportSpecifier:
    if item == "*":
        return ImportSpecifier(name="*", is_namespace=True)
    if item == "self":
        return ImportSpecifier(name=base.rsplit("::", 1)[-1])
    alias = _USE_ALIAS.match(item)
    if alias:
        return ImportSpecifier(name=alias.group("name"), alias=alias.group("alias"))
    return ImportSpecifier(name=item)


def _parse_use(argument: str) -> ImportInfo | None:
    """``use a::b::{C, D as E}`` / ``use a::b::C`` / ``use a::*``."""
    path = re.sub(r"\s*(::|[{},])\s*", r"\1", " ".join(argument.split()))
    if not path:
        return None
    if "{" in path:
        base, _, rest = path.partition("{")
        base = base.rstrip(":")
        items = _split_top_level(rest.rsplit("}", 1)[0])
        return ImportInfo(source=base, specifiers=[_specifier(i, base) for i in items if i])
    alias = _USE_ALIAS.match(path)
    target = alias.group("name") if alias else path
    source, _, last = target.rpartition("::")
    spec = _specifier(f"{last} as {alias.group('alias')}" if alias else last, source)
    return ImportInfo(source=source or last, specifiers=[spec])


class _RustExtraction:
    """One extraction pass over a parsed Rust source file."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.table = SymbolTable()
        self.imports: list[ImportInfo] = []
        self.exports: list[ExportInfo] = []
        self._impl_methods: list[tuple[str, Symbol]] = []
        self._trait_impls: list[tuple[str, str]] = []

    def run(self, root: Any) -> ParserResult:
        for node in root.children:
            if node.type == "use_declaration":
                self._use(node)
            elif node.type == "impl_item":
                self._impl(node)
            elif node.type in _ITEM_KINDS:
                self._item(node)

        for type_name, method in self._impl_methods:
            parent = self.table.get(make_symbol_id(self.file_path, type_name))
            if parent is not None:
                self.table.add_member(parent, method)
            else:
                self.table.add(method)
        for type_name, trait in self._trait_impls:
            target = self.table.get(make_symbol_id(self.file_path, type_name))
            if target is not None and trait not in target.implements:
                target.implements.append(trait)

        for sym in self.table.to_list():
            if sym.exported and sym.parent_id is None and sym.kind != SymbolKind.METHOD:
                self.exports.append(ExportInfo(name=sym.name, symbol_id=sym.id))

        return ParserResult(
            symbols=self.table.to_list(),
            imports=self.imports,
            exports=self.exports,
            module_doc=_module_doc(root),
        )

    def _use(self, node: Any) -> None:
        imp = _parse_use(field_text(node, "argument"))
        if imp is None:
            return
        self.imports.append(imp)
        _, exported = _visibility(node)
        if exported:
            for spec in imp.specifiers:
                self.exports.append(
                    ExportInfo(
                        name=spec.alias or spec.name, is_re_export=True, source=imp.source
                    )
                )

    def _item(self, node: Any) -> None:
        name = field_text(node, "name")
        if not name:
            return
        visibility, exported = _visibility(node)
        kind = _ITEM_KINDS[node.type]
        body = node.child_by_field_name("body")
        is_function = node.type in ("function_item", "function_signature_item")
        return_type = field_text(node, "return_type") if is_function else ""

        sym = self.table.add(
            Symbol(
                id=make_symbol_id(self.file_path, name),
                name=name,
                kind=kind,
                visibility=visibility,
                exported=exported,
                location=location(node, self.file_path),
                parameters=_parameters(node.child_by_field_name("parameters")) if is_function else [],
                returns=ReturnInfo(type=return_type) if return_type else None,
                type_annotation=(
                    field_text(node, "type") or None
                    if node.type in ("type_item", "const_item", "static_item")
                    else None
                ),
                type_parameters=_type_parameters(node),
                decorators=_attributes(node),
                docs=_doc(node),
                signature=signature_before(node, body, strip_suffix=";"),
                is_async=_is_async(node) if is_function else False,
            )
        )

        if node.type == "struct_item" and body is not None:
            self._fields(sym, body)
        elif node.type == "trait_item" and body is not None:
            self._trait_members(sym, body)

    def _fields(self, parent: Symbol, body: Any) -> None:
        for field in body.named_children:
            if field.type != "field_declaration":
                continue
            name = field_text(field, "name")
            if not name:
                continue
            visibility, exported = _visibility(field)
            self.table.add_member(
                parent,
                Symbol(
                    id=make_symbol_id(self.file_path, name, parent.name),
                    name=name,
                    kind=SymbolKind.PROPERTY,
                    visibility=visibility,
                    exported=parent.exported and exported,
                    location=location(field, self.file_path),
                    type_annotation=field_text(field, "type") or None,
                    docs=_doc(field),
                ),
            )

    def _trait_members(self, parent: Symbol, body: Any) -> None:
        for member in body.named_children:
            if member.type not in ("function_item", "function_signature_item"):
                continue
            name = field_text(member, "name")
            if not name:
                continue
            return_type = field_text(member, "return_type")
            self.table.add_member(
                parent,
                Symbol(
                    id=make_symbol_id(self.file_path, name, parent.name),
                    name=name,
                    kind=SymbolKind.METHOD,
                    exported=parent.exported,
                    location=location(member, self.file_path),
                    parameters=_parameters(member.child_by_field_name("parameters")),
                    returns=ReturnInfo(type=return_type) if return_type else None,
                    docs=_doc(member),
                    signature=signature_before(
                        member, member.child_by_field_name("body"), strip_suffix=";"
                    ),
                    is_async=_is_async(member),
                ),
            )

    def _impl(self, node: Any) -> None:
        type_name = _base_type_name(field_text(node, "type"))
        if not type_name:
            return
        trait = field_text(node, "trait")
        if trait:
            self._trait_impls.append((type_name, trait))
        body = node.child_by_field_name("body")
        if body is None:
            return
        for member in body.named_children:
            if member.type != "function_item":
                continue
            name = field_text(member, "name")
            if not name:
                continue
            visibility, exported = _visibility(member)
            return_type = field_text(member, "return_type")
            method = Symbol(
                id=make_symbol_id(self.file_path, name, type_name),
                name=name,
                kind=SymbolKind.METHOD,
                visibility=visibility,
                exported=exported,
                location=location(member, self.file_path),
                parameters=_parameters(member.child_by_field_name("parameters")),
                returns=ReturnInfo(type=return_type) if return_type else None,
                type_parameters=_type_parameters(member),
                decorators=_attributes(member),
                docs=_doc(member),
                signature=signature_before(member, member.child_by_field_name("body")),
                is_async=_is_async(member),
            )
            self._impl_methods.append((type_name, method))


class RustAdapter:
    """Extracts Rust items with the tree-sitter Rust grammar."""

    language = "rust"

    def parse(self, content: str, file_path: str) -> ParserResult:
        tree = acquire_parser(self.language).parse(content)
        return _RustExtraction(file_path).run(tree.root_node)
