"""Denylist tables driving the sanitizer passes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable

# Removed together with their whole subtree.
ELEMENT_DENYLIST: frozenset[str] = frozenset(
    {
        # metadata / scripting
        "head", "title", "meta", "script", "style", "noscript",
        # media & embeds
        "img", "figure", "figcaption", "figcaptions", "caption", "video",
        "audio", "source", "track", "map", "area", "embed", "object",
        "param", "canvas", "svg", "math", "iframe", "frame", "frameset",
        "noframes", "applet",
        # navigation / layout chrome
        "hr", "nav", "aside",
        # forms & interactive widgets
        "form", "input", "button", "select", "textarea", "label", "option",
        "optgroup", "progress", "meter", "fieldset", "legend", "details",
        "summary", "dialog", "menu", "menuitem", "command", "keygen",
        # legacy presentational tags
        "basefont", "big", "blink", "center", "font", "marquee", "nobr",
        "spacer", "strike", "tt", "xmp",
    },
)

# Generic containers dropped only when they hold nothing but whitespace.
PRUNABLE_EMPTY_TAGS: frozenset[str] = frozenset(
    {"div", "p", "span", "article", "section", "template"},
)

ATTRIBUTE_DENYLIST: frozenset[str] = frozenset(
    {
        "class", "id", "style",
        "onclick", "onload", "onmouseover", "onmouseout", "onmousedown",
        "onmouseup", "onmousemove", "onkeypress", "onkeydown", "onkeyup",
    },
)


@dataclass(frozen=True)
class SanitizerConfig:
    """Immutable set of tables handed to :func:`feedtidy.clean`.

    Instances are cheap to derive from one another, so per-feed tweaks are
    expressed as a new config rather than by mutating the defaults.
    """

    element_denylist: frozenset[str] = field(default=ELEMENT_DENYLIST)
    prunable_empty_tags: frozenset[str] = field(default=PRUNABLE_EMPTY_TAGS)
    attribute_denylist: frozenset[str] = field(default=ATTRIBUTE_DENYLIST)

    def __post_init__(self) -> None:
        # Accept any iterable of names; store lower-cased frozensets.
        for name in ("element_denylist", "prunable_empty_tags", "attribute_denylist"):
            object.__setattr__(self, name, _names(getattr(self, name)))

    def extended(
        self,
        *,
        elements: Iterable[str] = (),
        prunable: Iterable[str] = (),
        attributes: Iterable[str] = (),
    ) -> SanitizerConfig:
        """Return a copy with extra names added to each table."""
        return replace(
            self,
            element_denylist=self.element_denylist | _names(elements),
            prunable_empty_tags=self.prunable_empty_tags | _names(prunable),
            attribute_denylist=self.attribute_denylist | _names(attributes),
        )

    def without(
        self,
        *,
        elements: Iterable[str] = (),
        attributes: Iterable[str] = (),
    ) -> SanitizerConfig:
        """Return a copy with *elements* / *attributes* allowed again."""
        return replace(
            self,
            element_denylist=self.element_denylist - _names(elements),
            attribute_denylist=self.attribute_denylist - _names(attributes),
        )


def _names(values: Iterable[str]) -> frozenset[str]:
    if isinstance(values, str):
        values = [values]
    return frozenset(v.strip().lower() for v in values if v and v.strip())


DEFAULT_CONFIG = SanitizerConfig()
