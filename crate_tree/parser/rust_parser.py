"""
RustParser
==========

Turns Rust source text into the :class:`~crate_tree.models.ParsedFile`
representation consumed by the module tree builder.

Parsing is delegated to tree-sitter with the ``tree-sitter-rust`` grammar.
The adapter only shapes the concrete syntax tree:

* ``#![...]`` attributes directly under the source file become the file's
  attributes.
* Every other named child that is not a comment becomes an :class:`Item`;
  ``#[...]`` attributes are attached to the item they precede.
* ``mod`` declarations become :class:`ModItem` with their visibility marker
  and, for inline modules, the recursively shaped body items.

tree-sitter recovers from syntax errors instead of failing, so any tree that
contains an ``ERROR`` or missing node is rejected with
:class:`~crate_tree.errors.RustSyntaxError`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import tree_sitter_rust
from tree_sitter import Language, Node, Parser

from ..errors import RustSyntaxError
from ..models import Attribute, Item, ModItem, ParsedFile, Visibility

logger = logging.getLogger(__name__)

RUST_LANGUAGE = Language(tree_sitter_rust.language())

_SKIPPED_TYPES = {"line_comment", "block_comment", "shebang"}
_OUTER_ATTRIBUTE = "attribute_item"
_INNER_ATTRIBUTE = "inner_attribute_item"


def _text(node: Node) -> str:
    return node.text.decode("utf-8")


class RustParser:
    """Parses Rust source text; never touches the filesystem."""

    def __init__(self) -> None:
        self._parser = Parser(RUST_LANGUAGE)

    def parse(self, source: str, path: Optional[Path] = None) -> ParsedFile:
        """
        Parse *source* into items and file-level attributes.

        Parameters
        ----------
        source:
            Complete text of one Rust source file.
        path:
            File the text was read from; only used in error messages.

        Raises
        ------
        RustSyntaxError
            The text does not parse cleanly.
        """
        tree = self._parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            raise self._syntax_error(root, path)

        items, attributes = self._shape(root.children)
        logger.debug(
            "Parsed %s: %d items, %d file attributes",
            path or "<source>", len(items), len(attributes),
        )
        return ParsedFile(items=items, attributes=attributes)

    # ------------------------------------------------------------------
    # Tree shaping
    # ------------------------------------------------------------------

    def _shape(self, children: List[Node]) -> Tuple[Tuple[Item, ...], Tuple[Attribute, ...]]:
        """Split a list of sibling nodes into items and inner attributes."""
        items: List[Item] = []
        inner: List[Attribute] = []
        pending: List[Attribute] = []

        for child in children:
            if not child.is_named or child.type in _SKIPPED_TYPES:
                continue
            if child.type == _INNER_ATTRIBUTE:
                inner.append(self._attribute(child, "inner"))
            elif child.type == _OUTER_ATTRIBUTE:
                pending.append(self._attribute(child, "outer"))
            else:
                items.append(self._item(child, tuple(pending)))
                pending = []

        return tuple(items), tuple(inner)

    def _item(self, node: Node, attributes: Tuple[Attribute, ...]) -> Item:
        name_node = node.child_by_field_name("name")
        name = _text(name_node) if name_node is not None else None
        start_line = node.start_point[0] + 1
        end_line = node.end_point[0] + 1

        if node.type != "mod_item":
            return Item(
                kind=node.type,
                text=_text(node),
                start_line=start_line,
                end_line=end_line,
                name=name,
                attributes=attributes,
                node=node,
            )

        content: Optional[Tuple[Item, ...]] = None
        body = node.child_by_field_name("body")
        if body is not None:
            content, body_attributes = self._shape(body.children)
            attributes = attributes + body_attributes

        return ModItem(
            kind=node.type,
            text=_text(node),
            start_line=start_line,
            end_line=end_line,
            name=name,
            attributes=attributes,
            node=node,
            visibility=self._visibility(node),
            content=content,
        )

    @staticmethod
    def _visibility(node: Node) -> Visibility:
        for child in node.children:
            if child.type == "visibility_modifier":
                return Visibility(_text(child))
        return Visibility.inherited()

    @staticmethod
    def _attribute(node: Node, style: str) -> Attribute:
        return Attribute(style=style, text=_text(node), line=node.start_point[0] + 1)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _syntax_error(self, root: Node, path: Optional[Path]) -> RustSyntaxError:
        node = _first_error(root) or root
        row, column = node.start_point[0], node.start_point[1]
        if node.is_missing:
            message = f"expected `{node.type}`"
        else:
            snippet = _text(node).strip().splitlines()
            message = f"unexpected `{snippet[0]}`" if snippet else "unexpected end of input"
        return RustSyntaxError(message, line=row + 1, column=column + 1, path=path)


def _first_error(node: Node) -> Optional[Node]:
    """Depth-first search for the first ``ERROR`` or missing node."""
    if node.is_error or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None
