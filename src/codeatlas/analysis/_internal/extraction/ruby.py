"""Ruby extraction adapter.

Ruby has no export statement: classes, modules and constants are always
reachable, and methods are reachable unless made ``private`` or
``protected``. Visibility follows Ruby's section semantics: a bare
``private`` switches the default for the methods defined after it, and
``private :name`` targets one method. ``private def x`` is recognized too.

Docs are the ``#`` comment block above a declaration, with YARD
``@param`` / ``@return`` tags.
"""

from __future__ import annotations

import re
from typing import Any

from codeatlas.analysis._internal.extraction._common import (
    SymbolTable,
    field_text,
    is_constant_name,
    location,
    make_symbol_id,
    node_text,
    preceding_comments,
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
    Symbol,
    SymbolKind,
    Visibility,
)

_REQUIRES = frozenset({"require", "require_relative", "load"})
_VISIBILITY_CALLS = {
    "private": Visibility.PRIVATE,
    "protected": Visibility.PROTECTED,
    "public": Visibility.PUBLIC,
    "private_class_method": Visibility.PRIVATE,
}
_MAGIC_COMMENT = re.compile(r"^#\s*(?:frozen_string_literal|encoding|coding|warn_indent)\s*:|^#!")


def _comment_text(comment: Any) -> str:
    return strip_line_comment(node_text(comment), ("#",))


def _doc(node: Any) -> DocComment | None:
    anchor = node
    # Comments above the first member sit beside the class body, not in it
    if node.prev_sibling is None and node.parent is not None and node.parent.type == "body_statement":
        anchor = node.parent
    comments = [
        c for c in preceding_comments(anchor) if not _MAGIC_COMMENT.match(node_text(c).strip())
    ]
    if not comments:
        return None
    return parse_line_doc([_comment_text(c) for c in comments])


def _module_doc(root: Any) -> DocComment | None:
    leading: list[Any] = []
    for node in root.children:
        if node.type != "comment":
            break
        leading.append(node)
    doc_comments = [c for c in leading if not _MAGIC_COMMENT.match(node_text(c).strip())]
    if not doc_comments:
        return None
    following = leading[-1].next_sibling
    if following is not None and following.start_point[0] <= leading[-1].end_point[0] + 1:
        return None
    return parse_line_doc([_comment_text(c) for c in doc_comments])


def _call_name(node: Any) -> str:
    if node.type == "identifier":
        return node_text(node)
    if node.type == "call" and node.child_by_field_name("receiver") is None:
        return field_text(node, "method")
    return ""


def _call_arguments(node: Any) -> list[Any]:
    args = node.child_by_field_name("arguments")
    return list(args.named_children) if args is not None else []


def _string_value(node: Any) -> str:
    if node.type != "string":
        return ""
    return "".join(node_text(c) for c in node.named_children if c.type == "string_content") or strip_quotes(
        node_text(node)
    )


def _parameters(params_node: Any) -> list[Parameter]:
    params: list[Parameter] = []
    if params_node is None:
        return params
    for param in params_node.named_children:
        if param.type == "identifier":
            params.append(Parameter(name=node_text(param)))
        elif param.type in ("optional_parameter", "keyword_parameter"):
            value = field_text(param, "value") or None
            params.append(
                Parameter(
                    name=field_text(param, "name"),
                    default_value=value,
                    optional=value is not None or param.type == "optional_parameter",
                )
            )
        elif param.type in ("splat_parameter", "hash_splat_parameter", "block_parameter"):
            params.append(
                Parameter(
                    name=field_text(param, "name") or node_text(param).lstrip("*&"),
                    optional=True,
                    rest=param.type != "block_parameter",
                )
            )
    return params


class _RubyExtraction:
    """One extraction pass over a parsed Ruby program."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.table = SymbolTable()
        self.imports: list[ImportInfo] = []

    def run(self, root: Any) -> ParserResult:
        self._body(root, parent=None)
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

    def _body(self, container: Any, parent: Symbol | None) -> None:
        default = Visibility.PUBLIC
        targeted: dict[str, Visibility] = {}
        methods: list[Symbol] = []

        for node in container.named_children:
            name = _call_name(node)
            if name in _REQUIRES and node.type == "call":
                self._require(node)
            elif name in _VISIBILITY_CALLS:
                visibility = _VISIBILITY_CALLS[name]
                args = _call_arguments(node) if node.type == "call" else []
                if not args:
                    default = visibility
                for arg in args:
                    if arg.type in ("simple_symbol", "symbol", "string"):
                        targeted[node_text(arg).lstrip(":").strip("'\"")] = visibility
                    elif arg.type in ("method", "singleton_method"):
                        sym = self._method(arg, parent, visibility)
                        if sym is not None:
                            methods.append(sym)
            elif node.type in ("class", "module"):
                self._namespace(node, parent)
            elif node.type in ("method", "singleton_method"):
                sym = self._method(node, parent, default)
                if sym is not None:
                    methods.append(sym)
            elif node.type == "assignment":
                self._constant(node, parent)

        # `private :name` may follow the definition it targets.
        for sym in methods:
            if sym.name in targeted:
                sym.visibility = targeted[sym.name]
                sym.exported = sym.visibility == Visibility.PUBLIC and (
                    parent is None or parent.exported
                )

    def _require(self, node: Any) -> None:
        args = _call_arguments(node)
        if not args:
            return
        source = _string_value(args[0])
        if not source:
            return
        self.imports.append(
            ImportInfo(
                source=source,
                specifiers=[ImportSpecifier(name=source.rsplit("/", 1)[-1], is_default=True)],
            )
        )

    def _store(self, sym: Symbol, parent: Symbol | None) -> Symbol:
        if parent is None:
            return self.table.add(sym)
        return self.table.add_member(parent, sym)

    def _namespace(self, node: Any, parent: Symbol | None) -> None:
        name = field_text(node, "name")
        if not name:
            return
        superclass = node.child_by_field_name("superclass")
        extends = node_text(superclass).lstrip("<").strip() if superclass is not None else None
        is_class = node.type == "class"
        sym = self._store(
            Symbol(
                id=make_symbol_id(self.file_path, name, parent.name if parent else None),
                name=name,
                kind=SymbolKind.CLASS if is_class else SymbolKind.MODULE,
                exported=True,
                location=location(node, self.file_path),
                extends=extends or None,
                docs=_doc(node),
                signature=f"class {name}" + (f" < {extends}" if extends else "")
                if is_class
                else f"module {name}",
            ),
            parent,
        )
        body = node.child_by_field_name("body")
        if body is not None:
            self._body(body, sym)

    def _method(self, node: Any, parent: Symbol | None, visibility: Visibility) -> Symbol | None:
        name = field_text(node, "name")
        if not name:
            return None
        exported = visibility == Visibility.PUBLIC and (parent is None or parent.exported)
        return self._store(
            Symbol(
                id=make_symbol_id(self.file_path, name, parent.name if parent else None),
                name=name,
                kind=SymbolKind.METHOD if parent is not None else SymbolKind.FUNCTION,
                visibility=visibility,
                exported=exported,
                location=location(node, self.file_path),
                parameters=_parameters(node.child_by_field_name("parameters")),
                docs=_doc(node),
                signature=" ".join(node_text(node).splitlines()[0].split()),
            ),
            parent,
        )

    def _constant(self, node: Any, parent: Symbol | None) -> None:
        left = node.child_by_field_name("left")
        if left is None or left.type != "constant":
            return
        name = node_text(left)
        self._store(
            Symbol(
                id=make_symbol_id(self.file_path, name, parent.name if parent else None),
                name=name,
                kind=SymbolKind.CONSTANT if is_constant_name(name) else SymbolKind.VARIABLE,
                exported=parent is None or parent.exported,
                location=location(node, self.file_path),
                docs=_doc(node),
            ),
            parent,
        )


class RubyAdapter:
    """Extracts Ruby declarations with the tree-sitter Ruby grammar."""

    language = "ruby"

    def parse(self, content: str, file_path: str) -> ParserResult:
        tree = acquire_parser(self.language).parse(content)
        return _RubyExtraction(file_path).run(tree.root_node)
