"""Rust syntax layer: tree-sitter parsing and a small node visitor."""

from __future__ import annotations

import tree_sitter_rust
from tree_sitter import Language, Node, Parser, Tree

RUST_LANGUAGE = Language(tree_sitter_rust.language())

_COMMENT_TYPES = {"line_comment", "block_comment"}


class RustParseError(ValueError):
    """Raised when a source file does not parse as Rust."""


def parse_rust(source: str) -> Tree:
    """Parse Rust source, rejecting trees that contain syntax errors."""
    parser = Parser(RUST_LANGUAGE)
    tree = parser.parse(source.encode("utf-8"))
    if tree.root_node.has_error:
        raise RustParseError("source contains syntax errors")
    return tree


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def line_of(node: Node) -> int:
    """1-based line on which a node starts."""
    return node.start_point[0] + 1


class Visitor:
    """Pre-order visitor over the named nodes of a tree-sitter tree.

    Subclasses define ``visit_<node_type>`` methods, called when the walk
    enters a node, and ``leave_<node_type>`` methods, called once all of its
    children have been visited. The walk uses an explicit stack rather than
    recursion, so nesting depth is not bounded by the interpreter.
    """

    def visit(self, root: Node) -> None:
        stack: list[tuple[Node, bool]] = [(root, False)]
        while stack:
            node, leaving = stack.pop()
            if leaving:
                self._dispatch("leave", node)
                continue
            self._dispatch("visit", node)
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.named_children))

    def _dispatch(self, event: str, node: Node) -> None:
        handler = getattr(self, f"{event}_{node.type}", None)
        if handler is not None:
            handler(node)


class FunctionTrackingVisitor(Visitor):
    """Visitor that remembers the name of the function being walked.

    The slot is single-valued: a nested ``fn`` overwrites it and clears it
    on exit, so the rest of the outer function sees no current function.
    """

    def __init__(self) -> None:
        self.current_fn: str | None = None

    def visit_function_item(self, node: Node) -> None:
        name = node.child_by_field_name("name")
        self.current_fn = node_text(name) or None

    def leave_function_item(self, node: Node) -> None:
        self.current_fn = None


# --- Attribute helpers ---


def outer_attributes(node: Node) -> list[Node]:
    """Return the ``attribute`` nodes of the ``#[...]`` items preceding a node.

    tree-sitter-rust places outer attributes as earlier siblings of the item
    or field they decorate; comments between them are skipped.
    """
    attrs: list[Node] = []
    sibling = node.prev_sibling
    while sibling is not None:
        if sibling.type == "attribute_item":
            attr = next(
                (c for c in sibling.named_children if c.type == "attribute"), None
            )
            if attr is not None:
                attrs.append(attr)
        elif sibling.type not in _COMMENT_TYPES:
            break
        sibling = sibling.prev_sibling
    attrs.reverse()
    return attrs


def attribute_name(attr: Node) -> str:
    """Path of an attribute, e.g. ``derive`` or ``account``."""
    for child in attr.named_children:
        if child.type in ("identifier", "scoped_identifier"):
            return node_text(child)
    return ""


def attribute_arguments(attr: Node) -> str | None:
    """Text inside the attribute's delimiters, or ``None`` for a bare marker."""
    args = attr.child_by_field_name("arguments")
    if args is None:
        return None
    return node_text(args)[1:-1].strip()


# --- Type helpers ---


def trailing_type_name(type_node: Node | None) -> str:
    """Last path segment of a type, e.g. ``AccountInfo`` for
    ``anchor_lang::prelude::AccountInfo<'info>``.

    Returns ``""`` for references, tuples, arrays and other non-path types.
    """
    if type_node is None:
        return ""
    if type_node.type == "generic_type":
        return trailing_type_name(type_node.child_by_field_name("type"))
    if type_node.type == "scoped_type_identifier":
        return node_text(type_node.child_by_field_name("name"))
    if type_node.type == "type_identifier":
        return node_text(type_node)
    return ""


# --- Call helpers ---


def callee_path(call: Node) -> Node | None:
    """Return the path node called by a free-function ``call_expression``.

    Turbofish calls (``invoke::<T>(..)``) are unwrapped. Method calls and
    calls through arbitrary expressions yield ``None``.
    """
    func = call.child_by_field_name("function")
    if func is not None and func.type == "generic_function":
        func = func.child_by_field_name("function")
    if func is not None and func.type in ("identifier", "scoped_identifier"):
        return func
    return None


def path_last_segment(path: Node) -> Node | None:
    if path.type == "scoped_identifier":
        return path.child_by_field_name("name")
    return path


def method_name(call: Node) -> Node | None:
    """Return the method identifier of a ``receiver.method(..)`` call."""
    func = call.child_by_field_name("function")
    if func is not None and func.type == "generic_function":
        func = func.child_by_field_name("function")
    if func is not None and func.type == "field_expression":
        return func.child_by_field_name("field")
    return None
