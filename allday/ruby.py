"""Ruby parsing with tree-sitter and views of the nodes the rules inspect."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

import tree_sitter
import tree_sitter_language_pack
from loguru import logger

from allday import matcher

if TYPE_CHECKING:
    from collections.abc import Iterator

RANGE_OPERATORS: frozenset[str] = frozenset({"..", "..."})

# Call operators that make a plain method send; `&.` (safe navigation) is excluded.
_SEND_OPERATORS: frozenset[str] = frozenset({".", "::"})

_METHOD_NODE_TYPES: frozenset[str] = frozenset({"identifier", "constant"})


@functools.cache
def _parser() -> tree_sitter.Parser:
    """Return the process-wide Ruby parser, creating it on first use."""
    language = tree_sitter_language_pack.get_language("ruby")
    logger.debug("Initialized tree-sitter parser for ruby")
    return tree_sitter.Parser(language)


def parse(source: str) -> tree_sitter.Tree:
    """Parse Ruby *source* into a tree-sitter tree.

    tree-sitter never raises on malformed input; callers check
    ``tree.root_node.has_error`` instead.
    """
    return _parser().parse(source.encode("utf-8"))


def iter_nodes(tree: tree_sitter.Tree, node_type: str) -> Iterator[tree_sitter.Node]:
    """Yield every node of *node_type* in source order, depth first."""
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type == node_type:
            yield node
        stack.extend(reversed(node.children))


def text(node: tree_sitter.Node) -> str:
    """Return the source text covered by *node*."""
    return (node.text or b"").decode("utf-8", errors="replace")


def _significant_children(node: tree_sitter.Node) -> list[tree_sitter.Node]:
    return [child for child in node.children if child.type != "comment"]


def range_operator(node: tree_sitter.Node) -> str | None:
    """Return ``".."`` or ``"..."`` for a range node."""
    for child in node.children:
        if child.type in RANGE_OPERATORS:
            return child.type
    return None


def _range_endpoints(
    node: tree_sitter.Node,
) -> tuple[tree_sitter.Node | None, tree_sitter.Node | None]:
    """Split a range node into the operands before and after its operator.

    Beginless (``..x``) and endless (``x..``) ranges yield None for the
    missing side.
    """
    children = _significant_children(node)
    for idx, child in enumerate(children):
        if child.type in RANGE_OPERATORS:
            before = children[idx - 1] if idx > 0 else None
            after = children[idx + 1] if idx + 1 < len(children) else None
            return before, after
    return None, None


def endpoint_call(node: tree_sitter.Node | None) -> matcher.EndpointCall | None:
    """Return the matcher view of one range endpoint.

    Only a plain method send with an explicit receiver, like ``date.end_of_day``
    or ``date.beginning_of_week(:sunday)``, carries a method name.  Safe
    navigation, calls with blocks and every other expression are returned as
    non-call endpoints.
    """
    if node is None:
        return None
    not_a_call = matcher.EndpointCall(receiver_source=None, method_name=None)
    if node.type != "call" or node.child_by_field_name("block") is not None:
        return not_a_call

    receiver = node.child_by_field_name("receiver")
    method = node.child_by_field_name("method")
    if receiver is None or method is None or method.type not in _METHOD_NODE_TYPES:
        return not_a_call
    operators = [
        child.type
        for child in node.children
        if not child.is_named and receiver.end_byte <= child.start_byte < method.start_byte
    ]
    if not set(operators) <= _SEND_OPERATORS:
        return not_a_call

    arguments_node = node.child_by_field_name("arguments")
    arguments: tuple[str, ...] = ()
    if arguments_node is not None:
        arguments = tuple(
            text(arg)
            for arg in arguments_node.named_children
            if arg.type != "comment"
        )
    return matcher.EndpointCall(
        receiver_source=text(receiver),
        method_name=text(method),
        arguments=arguments,
    )


def range_expression(node: tree_sitter.Node) -> matcher.RangeExpression:
    """Return the matcher view of a ``range`` node."""
    begin, end = _range_endpoints(node)
    return matcher.RangeExpression(begin=endpoint_call(begin), end=endpoint_call(end))


def _char_col(source_bytes: bytes, point: tuple[int, int], byte_offset: int) -> int:
    """Convert a tree-sitter byte column into a character column."""
    line_start = byte_offset - point[1]
    return len(source_bytes[line_start:byte_offset].decode("utf-8", errors="replace"))


def node_span(source_bytes: bytes, node: tree_sitter.Node) -> tuple[int, int, int, int]:
    """Return ``(line, col, end_line, end_col)`` for *node*.

    Lines are 1-indexed; columns are 0-indexed character offsets.
    """
    start_point = tuple(node.start_point)
    end_point = tuple(node.end_point)
    return (
        start_point[0] + 1,
        _char_col(source_bytes, start_point, node.start_byte),
        end_point[0] + 1,
        _char_col(source_bytes, end_point, node.end_byte),
    )
