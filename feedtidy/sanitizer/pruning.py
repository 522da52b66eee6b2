"""Subtree removal: denylisted elements and whitespace-only containers."""

from __future__ import annotations

import logging
from typing import AbstractSet

from bs4.element import PageElement, Tag

from .document import is_text, post_order

logger = logging.getLogger(__name__)


def _detach(tags: list[Tag]) -> int:
    """Decompose collected tags, descendants first; return how many went."""
    removed = 0
    for tag in tags:
        # detached already
        if tag.parent is None:
            continue
        tag.decompose()
        removed += 1
    return removed


def prune_elements(root: Tag, denylist: AbstractSet[str]) -> int:
    """Remove every element named in *denylist* together with its subtree.

    Nested matches (a ``<script>`` inside an ``<object>``) are handled too.
    Returns the number of elements detached.
    """
    matches = [
        node for node in post_order(root)
        if isinstance(node, Tag) and node is not root and node.name in denylist
    ]
    return _detach(matches)


def _emptiness(order: list[PageElement]) -> dict[int, bool]:
    """Map ``id(tag)`` to whether the tag is empty, for every tag in *order*.

    *order* must list children before their parents (see :func:`post_order`).

    A tag is empty when it has no children, or when each child is either
    whitespace-only text or an empty tag.  Comments and other non-text
    strings make a tag non-empty.
    """
    empty: dict[int, bool] = {}
    for node in order:
        if not isinstance(node, Tag):
            continue
        empty[id(node)] = all(
            (is_text(child) and not child.strip())
            or (isinstance(child, Tag) and empty[id(child)])
            for child in node.contents
        )
    return empty


def is_empty(tag: Tag) -> bool:
    """True when *tag* holds nothing but whitespace, however deeply nested."""
    return _emptiness(post_order(tag))[id(tag)]


def prune_empty(root: Tag, prunable: AbstractSet[str]) -> int:
    """Remove elements named in *prunable* that are recursively empty.

    Elements outside *prunable* are never removed here, even when empty.
    Emptiness is computed once over the unmodified tree, so a container
    whose only content is another empty container goes in the same pass.
    Returns the number of elements detached.
    """
    order = post_order(root)
    empty = _emptiness(order)
    matches = [
        node for node in order
        if isinstance(node, Tag)
        and node is not root
        and node.name in prunable
        and empty[id(node)]
    ]
    removed = _detach(matches)
    if removed:
        logger.debug("Pruned %d empty container(s)", removed)
    return removed
