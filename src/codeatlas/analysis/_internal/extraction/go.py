"""Go extraction adapter.

Exposure in Go is structural: a capitalized identifier is exported, there
is no export statement. ``ExportInfo`` records are still emitted for
exported top-level declarations so downstream consumers see one shape.

Methods are identified as ``Receiver.Name`` (pointer stripped). They are
linked to the receiver type when it is declared in the same file;
receivers declared elsewhere leave ``parent_id`` unset.
"""

from __future__ import annotations

from typing import Any

from codeatlas.analysis._internal.extraction._common import (
    SymbolTable,
    field_text,
    location,
    make_symbol_id,
    node_text,
    preceding_comments,
    signature_before,
    strip_line_comment,
    strip_quotes,
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


def _is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def _visibility(name: str) -> Visibility:
    return Visibility.PUBLIC if _is_exported(name) else Visibility.PRIVATE


def _comment_lines(comment: Any) -> list[str]:
    text = node_text(comment)
    if text.startswith("/*"):
        body = text[2:-2] if text.endswith("*/") else text[2:]
        return [line.strip().lstrip("*").strip() for line in body.splitlines()]
    return [strip_line_comment(text, ("//",))]


def _doc(node: Any) -> DocComment | None:
    comments = preceding_comments(node)
    if not comments:
        return None
    lines: list[str] = []
    for comment in comments:
        lines.extend(_comment_lines(comment))
    doc = parse_line_doc(lines)
    return doc if doc.summary else None


def _parameters(params_node: Any) -> list[Parameter]:
    params: list[Parameter] = []
    if params_node is None:
        return params
    for decl in params_node.named_children:
        type_text = field_text(decl, "type") or None
        if decl.type == "parameter_declaration":
            names = decl.children_by_field_name("name")
            if not names:
                # unnamed parameter: func(int, string)
                params.append(Parameter(name="_", type=type_text))
            for name in names:
                params.append(Parameter(name=node_text(name), type=type_text))
        elif decl.type == "variadic_parameter_declaration":
            params.append(
                Parameter(
                    name=field_text(decl, "name") or "_",
                    type=f"...{type_text}" if type_text else None,
                    optional=True,
                    rest=True,
                )
            )
    return params


def _type_parameters(node: Any) -> list[str]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return []
    return [" ".join(node_text(child).split()) for child in params.named_children]


def _receiver_type(method: Any) -> str:
    receiver = method.child_by_field_name("receiver")
    if receiver is None:
        return ""
    for decl in receiver.named_children:
        if decl.type == "parameter_declaration":
            type_text = field_text(decl, "type")
            # *Config / Config[T] -> Config
            return type_text.lstrip("*").split("[", 1)[0].strip()
    return ""


class _GoExtraction:
    """One extraction pass over a parsed Go source file."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.table = SymbolTable()
        self.imports: list[ImportInfo] = []
        self._methods: list[tuple[str, Symbol]] = []

    def run(self, root: Any) -> ParserResult:
        module_doc: DocComment | None = None
        for node in root.children:
            if node.type == "package_clause":
                module_doc = _doc(node)
            elif node.type == "import_declaration":
                self._imports(node)
            elif node.type == "function_declaration":
                self._function(node)
            elif node.type == "method_declaration":
                self._method(node)
            elif node.type == "type_declaration":
                self._types(node)
            elif node.type in ("const_declaration", "var_declaration"):
                self._values(node)

        # Methods may precede their receiver's declaration.
        for receiver, method in self._methods:
            parent = self.table.get(make_symbol_id(self.file_path, receiver))
            if parent is not None:
                self.table.add_member(parent, method)
            else:
                self.table.add(method)

        exports = [
            ExportInfo(name=sym.name, symbol_id=sym.id)
            for sym in self.table.to_list()
            if sym.exported and sym.parent_id is None and sym.kind != SymbolKind.METHOD
        ]
        return ParserResult(
            symbols=self.table.to_list(),
            imports=self.imports,
            exports=exports,
            module_doc=module_doc,
        )

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _imports(self, node: Any) -> None:
        specs: list[Any] = []
        for child in node.named_children:
            if child.type == "import_spec":
                specs.append(child)
            elif child.type == "import_spec_list":
                specs.extend(c for c in child.named_children if c.type == "import_spec")

        for spec in specs:
            source = strip_quotes(field_text(spec, "path"))
            if not source:
                continue
            alias = field_text(spec, "name") or None
            self.imports.append(
                ImportInfo(
                    source=source,
                    specifiers=[
                        ImportSpecifier(
                            name=source.rsplit("/", 1)[-1],
                            alias=alias,
                            is_namespace=alias == ".",
                        )
                    ],
                )
            )

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _function(self, node: Any) -> None:
        name = field_text(node, "name")
        if not name:
            return
        result = field_text(node, "result")
        self.table.add(
            Symbol(
                id=make_symbol_id(self.file_path, name),
                name=name,
                kind=SymbolKind.FUNCTION,
                visibility=_visibility(name),
                exported=_is_exported(name),
                location=location(node, self.file_path),
                parameters=_parameters(node.child_by_field_name("parameters")),
                returns=ReturnInfo(type=result) if result else None,
                type_parameters=_type_parameters(node),
                docs=_doc(node),
                signature=signature_before(node, node.child_by_field_name("body")),
            )
        )

    def _method(self, node: Any) -> None:
        name = field_text(node, "name")
        receiver = _receiver_type(node)
        if not name:
            return
        result = field_text(node, "result")
        method = Symbol(
            id=make_symbol_id(self.file_path, name, receiver or None),
            name=name,
            kind=SymbolKind.METHOD,
            visibility=_visibility(name),
            exported=_is_exported(name),
            location=location(node, self.file_path),
            parameters=_parameters(node.child_by_field_name("parameters")),
            returns=ReturnInfo(type=result) if result else None,
            type_annotation=receiver or None,
            docs=_doc(node),
            signature=signature_before(node, node.child_by_field_name("body")),
        )
        self._methods.append((receiver, method))

    def _types(self, decl: Any) -> None:
        specs = [c for c in decl.named_children if c.type in ("type_spec", "type_alias")]
        grouped = len(specs) > 1 or any(c.type == "(" for c in decl.children)
        for spec in specs:
            # A doc comment on an ungrouped declaration sits before `type`.
            self._type_spec(spec, outer=spec if grouped else decl)

    def _type_spec(self, spec: Any, outer: Any) -> None:
        name = field_text(spec, "name")
        if not name:
            return
        type_node = spec.child_by_field_name("type")
        type_kind = type_node.type if type_node is not None else ""

        if spec.type == "type_alias":
            kind = SymbolKind.TYPE
            signature = f"type {name} = {node_text(type_node)}"
        elif type_kind == "struct_type":
            kind = SymbolKind.CLASS
            signature = f"type {name} struct"
        elif type_kind == "interface_type":
            kind = SymbolKind.INTERFACE
            signature = f"type {name} interface"
        else:
            kind = SymbolKind.TYPE
            signature = f"type {name} {node_text(type_node)}"

        sym = self.table.add(
            Symbol(
                id=make_symbol_id(self.file_path, name),
                name=name,
                kind=kind,
                visibility=_visibility(name),
                exported=_is_exported(name),
                location=location(spec, self.file_path),
                type_annotation=None if kind != SymbolKind.TYPE else node_text(type_node) or None,
                type_parameters=_type_parameters(spec),
                docs=_doc(outer),
                signature=" ".join(signature.split())[:200],
            )
        )
        if type_kind == "struct_type":
            self._struct_fields(sym, type_node)
        elif type_kind == "interface_type":
            self._interface_methods(sym, type_node)

    def _struct_fields(self, parent: Symbol, struct: Any) -> None:
        field_list = next(
            (c for c in struct.named_children if c.type == "field_declaration_list"), None
        )
        if field_list is None:
            return
        for decl in field_list.named_children:
            if decl.type != "field_declaration":
                continue
            type_text = field_text(decl, "type")
            names = [node_text(n) for n in decl.children_by_field_name("name")]
            if not names:
                # embedded field: its name is the type's name
                names = [type_text.lstrip("*").rsplit(".", 1)[-1]]
            for name in names:
                self.table.add_member(
                    parent,
                    Symbol(
                        id=make_symbol_id(self.file_path, name, parent.name),
                        name=name,
                        kind=SymbolKind.PROPERTY,
                        visibility=_visibility(name),
                        exported=parent.exported and _is_exported(name),
                        location=location(decl, self.file_path),
                        type_annotation=type_text or None,
                        docs=_doc(decl),
                    ),
                )

    def _interface_methods(self, parent: Symbol, iface: Any) -> None:
        for elem in iface.named_children:
            if elem.type not in ("method_elem", "method_spec"):
                continue
            name = field_text(elem, "name")
            if not name:
                continue
            result = field_text(elem, "result")
            self.table.add_member(
                parent,
                Symbol(
                    id=make_symbol_id(self.file_path, name, parent.name),
                    name=name,
                    kind=SymbolKind.METHOD,
                    visibility=_visibility(name),
                    exported=parent.exported and _is_exported(name),
                    location=location(elem, self.file_path),
                    parameters=_parameters(elem.child_by_field_name("parameters")),
                    returns=ReturnInfo(type=result) if result else None,
                    docs=_doc(elem),
                    signature=" ".join(node_text(elem).split()),
                ),
            )

    def _values(self, decl: Any) -> None:
        is_const = decl.type == "const_declaration"
        specs: list[Any] = []
        for child in decl.named_children:
            if child.type in ("const_spec", "var_spec"):
                specs.append(child)
            elif child.type == "var_spec_list":
                specs.extend(c for c in child.named_children if c.type == "var_spec")
        grouped = len(specs) > 1 or any(c.type == "(" for c in decl.children)

        for spec in specs:
            type_text = field_text(spec, "type") or None
            docs = _doc(spec if grouped else decl)
            for name_node in spec.children_by_field_name("name"):
                name = node_text(name_node)
                if not name or name == "_":
                    continue
                self.table.add(
                    Symbol(
                        id=make_symbol_id(self.file_path, name),
                        name=name,
                        kind=SymbolKind.CONSTANT if is_const else SymbolKind.VARIABLE,
                        visibility=_visibility(name),
                        exported=_is_exported(name),
                        location=location(spec, self.file_path),
                        type_annotation=type_text,
                        docs=docs,
                    )
                )


class GoAdapter:
    """Extracts Go declarations with the tree-sitter Go grammar."""

    language = "go"

    def parse(self, content: str, file_path: str) -> ParserResult:
        tree = acquire_parser(self.language).parse(content)
        return _GoExtraction(file_path).run(tree.root_node)
