"""Shared helpers for extraction adapters.

Identity scheme:
    ``<file_path>:<Name>`` for top-level symbols and
    ``<file_path>:<Parent>.<Name>`` for members. Only one level of
    qualification is used; nested members take their immediate parent's
    simple name. Two declarations with the same qualified name collapse to
    one id (last write wins), which is how overloads are represented.

Doc association:
    ``preceding_comments`` walks backward over a declaration's previous
    siblings, skipping attribute/decorator-like nodes, collecting a
    contiguous run of comment nodes and stopping at anything else.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from codeatlas.analysis.models import SourceLocation, Symbol

MAX_SIGNATURE_LENGTH = 200


def node_text(node: Any) -> str:
    if node is None or not node.text:
        return ""
    text: str = node.text.decode("utf-8", errors="replace")
    return text


def field_text(node: Any, field_name: str) -> str:
    return node_text(node.child_by_field_name(field_name))


def child_of_type(node: Any, *types: str) -> Any:
    for child in node.children:
        if child.type in types:
            return child
    return None


def children_of_type(node: Any, *types: str) -> list[Any]:
    return [child for child in node.children if child.type in types]


def iter_descendants(node: Any, *, prune: frozenset[str] = frozenset()) -> Iterator[Any]:
    """Depth-first walk below ``node``, not descending into ``prune`` types."""
    stack = list(reversed(node.children))
    while stack:
        current = stack.pop()
        yield current
        if current.type not in prune:
            stack.extend(reversed(current.children))


def make_symbol_id(file_path: str, name: str, parent: str | None = None) -> str:
    qualified = f"{parent}.{name}" if parent else name
    return f"{file_path}:{qualified}"


def location(node: Any, file_path: str) -> SourceLocation:
    """1-based location spanning a node."""
    return SourceLocation(
        file=file_path,
        line=node.start_point[0] + 1,
        column=node.start_point[1] + 1,
        end_line=node.end_point[0] + 1,
        end_column=node.end_point[1] + 1,
    )


def line_location(file_path: str, line_index: int, column: int = 0) -> SourceLocation:
    """1-based location for regex adapters (``line_index`` is 0-based)."""
    return SourceLocation(file=file_path, line=line_index + 1, column=column + 1)


def truncate_signature(
    text: str,
    *,
    body_markers: tuple[str, ...] = ("{",),
    strip_suffix: str = "",
    max_length: int = MAX_SIGNATURE_LENGTH,
) -> str:
    """Declaration header: text before the body opener, whitespace collapsed."""
    cut = len(text)
    for marker in body_markers:
        idx = text.find(marker)
        if idx != -1:
            cut = min(cut, idx)
    header = " ".join(text[:cut].split())
    if strip_suffix and header.endswith(strip_suffix):
        header = header[: -len(strip_suffix)].rstrip()
    if len(header) > max_length:
        header = header[: max_length - 3].rstrip() + "..."
    return header


def signature_before(node: Any, body: Any, **kwargs: Any) -> str:
    """Signature of ``node`` cut at the start of its ``body`` child."""
    raw: bytes = node.text or b""
    if body is not None:
        raw = raw[: body.start_byte - node.start_byte]
    return truncate_signature(raw.decode("utf-8", errors="replace"), body_markers=(), **kwargs)


def preceding_comments(
    node: Any,
    *,
    comment_types: frozenset[str] = frozenset({"comment"}),
    skip_types: frozenset[str] = frozenset(),
) -> list[Any]:
    """Comment nodes documenting ``node``, in source order.

    Comments must be contiguous: each one ends on the line directly above
    the node (or comment) that follows it. Skipped siblings (decorators,
    attributes) keep the chain going.
    """
    comments: list[Any] = []
    anchor_row = node.start_point[0]
    sibling = node.prev_sibling
    while sibling is not None:
        if sibling.type in skip_types:
            anchor_row = sibling.start_point[0]
            sibling = sibling.prev_sibling
            continue
        if sibling.type not in comment_types:
            break
        if sibling.end_point[0] < anchor_row - 1:
            break
        comments.append(sibling)
        anchor_row = sibling.start_point[0]
        sibling = sibling.prev_sibling
    comments.reverse()
    return comments


def strip_line_comment(text: str, markers: tuple[str, ...]) -> str:
    """Remove the first matching comment marker and one following space."""
    stripped = text.strip()
    for marker in markers:
        if stripped.startswith(marker):
            stripped = stripped[len(marker) :]
            if stripped.startswith(" "):
                stripped = stripped[1:]
            break
    return stripped.rstrip()


def strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def is_constant_name(name: str) -> bool:
    """UPPER_CASE names (at least two characters) are treated as constants."""
    return len(name) > 1 and name.upper() == name and any(c.isalpha() for c in name)


class SymbolTable:
    """Ordered symbol store implementing the overload-collapse rule.

    Re-adding an existing id replaces the stored symbol in place (keeping
    its original position) so ids stay unique. Parent/child links are
    plain ids kept consistent both ways: when a colliding id moves to a
    different parent, the previous parent drops it from ``children``.
    """

    def __init__(self) -> None:
        self._symbols: dict[str, Symbol] = {}

    def add(self, symbol: Symbol) -> Symbol:
        previous = self._symbols.get(symbol.id)
        if previous is not None:
            for child_id in previous.children:
                if child_id not in symbol.children:
                    symbol.children.append(child_id)
            if previous.parent_id is not None and previous.parent_id != symbol.parent_id:
                old_parent = self._symbols.get(previous.parent_id)
                if old_parent is not None and symbol.id in old_parent.children:
                    old_parent.children.remove(symbol.id)
        self._symbols[symbol.id] = symbol
        return symbol

    def add_member(self, parent: Symbol, member: Symbol) -> Symbol:
        member.parent_id = parent.id
        self.add(member)
        stored_parent = self._symbols.get(parent.id, parent)
        if member.id not in stored_parent.children:
            stored_parent.children.append(member.id)
        return member

    def get(self, symbol_id: str) -> Symbol | None:
        return self._symbols.get(symbol_id)

    def __contains__(self, symbol_id: object) -> bool:
        return symbol_id in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def to_list(self) -> list[Symbol]:
        return list(self._symbols.values())
