"""String-level trimming run before parsing and again after serialization.

Each step works on whatever the previous one left behind; none of them
assumes the boundary is already clean.  The order is:

1. trim plain spaces from both ends
2. trim ``\\n`` then ``\\r`` from both ends (separate cutsets, so a lone tab
   survives)
3. drop everything before the first ``<`` and after the last ``>``
4. drop a leading ``<!DOCTYPE html>``
5. unwrap one ``<html>``, ``<head>`` and ``<body>`` pair each
6. unwrap a single ``<section>``, ``<article>`` or ``<div>`` wrapper
"""

from __future__ import annotations

DOCTYPE = "<!DOCTYPE html>"

_DOCUMENT_WRAPPERS: tuple[str, ...] = ("html", "head", "body")
_CONTENT_WRAPPERS: tuple[str, ...] = ("section", "article", "div")


def trim_edges(text: str) -> str:
    """Steps 1-2: literal space, newline and carriage-return trimming."""
    text = text.strip(" ")
    text = text.strip("\n")
    return text.strip("\r")


def trim_to_tags(text: str) -> str:
    """Step 3: keep only what lies between the first ``<`` and the last ``>``.

    Text without a ``<`` (or without a ``>`` after it) has no tag-delimited
    content and collapses to the empty string.
    """
    start = text.find("<")
    if start == -1:
        return ""
    text = text[start:]
    end = text.rfind(">")
    if end == -1:
        return ""
    return text[: end + 1]


def strip_doctype(text: str) -> str:
    """Step 4."""
    return text.removeprefix(DOCTYPE)


def strip_tag_pair(text: str, tag: str) -> str:
    """Remove one leading ``<tag>`` and one trailing ``</tag>``.

    Only done when both are present at their respective boundary.
    """
    opening, closing = f"<{tag}>", f"</{tag}>"
    if (
        len(text) >= len(opening) + len(closing)
        and text.startswith(opening)
        and text.endswith(closing)
    ):
        return text[len(opening): len(text) - len(closing)]
    return text


def strip_single_wrapper(text: str, tag: str) -> str:
    """Unwrap ``<tag>…</tag>`` when the opening tag occurs exactly once.

    This is a global count of the literal opening tag, not a structural
    check: a lone ``<div>`` that does not enclose everything is stripped
    all the same, and the closing tag is only removed when it sits at the
    very end.
    """
    opening, closing = f"<{tag}>", f"</{tag}>"
    if text.startswith(opening) and text.count(opening) == 1:
        text = text[len(opening):]
        text = text.removesuffix(closing)
    return text


def normalize_markup(text: str) -> str:
    """Apply every trimming step in order and return the result.

    Never raises; the worst case is an unchanged or empty string.
    """
    text = trim_edges(text)
    text = trim_to_tags(text)
    text = strip_doctype(text)
    for tag in _DOCUMENT_WRAPPERS:
        text = strip_tag_pair(text, tag)
    for tag in _CONTENT_WRAPPERS:
        text = strip_single_wrapper(text, tag)
    return text
