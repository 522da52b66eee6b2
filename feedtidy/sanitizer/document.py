"""Parsing, traversal, comment removal and body-scoped serialization.

BeautifulSoup (lxml tree builder) owns the tree.  Every pass that removes
nodes first walks the tree into a plain list and only then detaches, so no
sibling or child pointer is followed after it has been rewired.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, ParserRejectedMarkup
from bs4.element import Comment, NavigableString, PageElement, PreformattedString, Tag

logger = logging.getLogger(__name__)


class ParseFailure(ValueError):
    """Raised when no tree can be built from the given markup."""


def parse_markup(markup: str) -> BeautifulSoup:
    """Parse *markup* into a fresh tree.

    Attribute values are kept as plain strings (``rel`` and ``class`` are not
    split into lists).  Empty markup has nothing to build a tree from and is
    rejected, as is anything the lxml builder refuses.
    """
    if not markup or not markup.strip():
        raise ParseFailure("document is empty")
    try:
        return BeautifulSoup(markup, "lxml", multi_valued_attributes=None)
    except ParserRejectedMarkup as exc:
        raise ParseFailure(f"markup rejected by parser: {exc}") from exc


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def post_order(root: PageElement) -> list[PageElement]:
    """Return *root* and all its descendants, children before parents.

    Uses an explicit stack, so nesting depth is not bounded by the
    interpreter's recursion limit.
    """
    order: list[PageElement] = []
    stack: list[tuple[PageElement, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded or not isinstance(node, Tag):
            order.append(node)
            continue
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(node.contents))
    return order


def is_text(node: PageElement) -> bool:
    """True for character data; comments, doctypes and CDATA are not text."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

def strip_comments(root: Tag) -> int:
    """Remove every comment node under *root*; return how many were removed."""
    comments = [node for node in post_order(root) if isinstance(node, Comment)]
    for comment in comments:
        comment.extract()
    return len(comments)


# ---------------------------------------------------------------------------
# Body extraction / serialization
# ---------------------------------------------------------------------------

def find_body(root: Tag) -> Tag | None:
    """Depth-first, pre-order search for the first ``<body>`` element."""
    stack: list[PageElement] = [root]
    while stack:
        node = stack.pop()
        if not isinstance(node, Tag):
            continue
        if node.name == "body":
            return node
        stack.extend(reversed(node.contents))
    return None


def render(root: Tag) -> str:
    """Serialize the children of the first ``<body>``, or all of *root*.

    The ``<body>`` element itself is not emitted.  The tree is not modified.
    """
    body = find_body(root)
    if body is not None:
        return body.decode_contents()
    logger.debug("No <body> found; serializing the whole document")
    return root.decode()
