"""Sanitizer sub-package: denylist-driven HTML tidying for feed content."""

from .attributes import normalize_anchors, strip_attributes
from .cleaner import clean
from .config import DEFAULT_CONFIG, SanitizerConfig
from .document import ParseFailure, find_body, parse_markup, render, strip_comments
from .pruning import is_empty, prune_elements, prune_empty
from .text import normalize_markup

__all__ = [
    "DEFAULT_CONFIG",
    "ParseFailure",
    "SanitizerConfig",
    "clean",
    "find_body",
    "is_empty",
    "normalize_anchors",
    "normalize_markup",
    "parse_markup",
    "prune_elements",
    "prune_empty",
    "render",
    "strip_attributes",
    "strip_comments",
]
