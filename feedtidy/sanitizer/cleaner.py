"""The full cleaning pipeline: ``markup -> tidy markup``."""

from __future__ import annotations

import html
import logging

from .attributes import normalize_anchors, strip_attributes
from .config import DEFAULT_CONFIG, SanitizerConfig
from .document import ParseFailure, parse_markup, render, strip_comments
from .pruning import prune_elements, prune_empty
from .text import normalize_markup, trim_edges, trim_to_tags

logger = logging.getLogger(__name__)


def clean(markup: str, config: SanitizerConfig = DEFAULT_CONFIG) -> str:
    """Reduce an HTML document or fragment to a minimal, display-ready subset.

    Passes run strictly in this order on a tree built just for this call:

    1. string trimming (:func:`~feedtidy.sanitizer.text.normalize_markup`)
    2. parse
    3. drop denylisted elements with their subtrees
    4. drop whitespace-only containers
    5. strip denylisted attributes
    6. canonical ``target``/``rel`` on hyperlinks
    7. drop comments
    8. serialize the ``<body>`` children (or the whole document)
    9. unescape HTML entities
    10. string trimming again

    Raises:
        ParseFailure: if *markup* holds no tag at all, or the parser
            rejects it.  Markup that unwraps to nothing gives ``""``.
    """
    if not trim_to_tags(trim_edges(markup)):
        raise ParseFailure("no markup found in input")
    markup = normalize_markup(markup)
    # a lone wrapper with nothing inside (<div> </div>, <body></body>)
    if not markup.strip():
        logger.debug("clean: nothing left after unwrapping")
        return ""

    soup = parse_markup(markup)

    elements = prune_elements(soup, config.element_denylist)
    containers = prune_empty(soup, config.prunable_empty_tags)
    attributes = strip_attributes(soup, config.attribute_denylist)
    anchors = normalize_anchors(soup)
    comments = strip_comments(soup)
    logger.debug(
        "clean: removed %d element(s), %d empty container(s), %d attribute(s), "
        "%d comment(s); rewrote %d anchor(s)",
        elements, containers, attributes, comments, anchors,
    )

    output = html.unescape(render(soup))
    soup.decompose()
    return normalize_markup(output)
