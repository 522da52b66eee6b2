"""Attribute passes: denylist stripping and hyperlink normalization."""

from __future__ import annotations

from typing import AbstractSet

from bs4.element import Tag

ANCHOR_TARGET = "_blank"
ANCHOR_REL = "noopener noreferrer"


def strip_attributes(root: Tag, denylist: AbstractSet[str]) -> int:
    """Delete denylisted attributes from every element under *root*.

    Remaining attributes keep their relative order.  Returns the number of
    attributes deleted.
    """
    removed = 0
    for tag in root.find_all(True):
        doomed = [key for key in tag.attrs if key in denylist]
        for key in doomed:
            del tag[key]
        removed += len(doomed)
    return removed


def _canonical(tag: Tag) -> bool:
    return tag.get("target") == ANCHOR_TARGET and tag.get("rel") == ANCHOR_REL


def normalize_anchors(root: Tag) -> int:
    """Force ``target="_blank"`` and ``rel="noopener noreferrer"`` on links.

    Applies to every ``<a>`` carrying an ``href`` (even an empty one).  When
    either value is missing or different, any existing ``target``/``rel`` is
    dropped and the canonical pair is appended after the other attributes.
    Anchors without ``href`` are left alone.  Returns the number of anchors
    rewritten.
    """
    rewritten = 0
    for anchor in root.find_all("a"):
        if not anchor.has_attr("href") or _canonical(anchor):
            continue
        for key in ("target", "rel"):
            if anchor.has_attr(key):
                del anchor[key]
        anchor["target"] = ANCHOR_TARGET
        anchor["rel"] = ANCHOR_REL
        rewritten += 1
    return rewritten
