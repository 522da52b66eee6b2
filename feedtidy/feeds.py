"""RSS 2.0 and Atom 1.0 parsing into :class:`FeedEntry` records.

No network access here; :mod:`feedtidy.fetch` downloads the document.
Bodies are returned exactly as the feed carries them (HTML included); the
sanitizer runs later in the pipeline.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET  # Element type and ParseError
from typing import NamedTuple
from urllib.parse import urljoin

import dateparser
import defusedxml.ElementTree as defused_ET

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
DC_NS = "http://purl.org/dc/elements/1.1/"
CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"

_SPACES = re.compile(r"\s+")


class FeedEntry(NamedTuple):
    """One item of a feed, before it is stored."""

    guid: str
    url: str
    title: str
    author: str
    summary: str
    content: str
    published_at: str | None
    updated_at: str | None


def _child_text(parent: ET.Element, *paths: str) -> str | None:
    """Stripped text of the first non-empty child among *paths*."""
    for path in paths:
        el = parent.find(path)
        if el is not None and el.text and el.text.strip():
            return el.text.strip()
    return None


def _iso_date(raw: str | None) -> str | None:
    """RFC 822 / ISO 8601 / loose date to an ISO 8601 string, or None."""
    if not raw:
        return None
    try:
        when = dateparser.parse(
            _SPACES.sub(" ", raw), settings={"RETURN_AS_TIMEZONE_AWARE": True},
        )
    except Exception as exc:
        logger.debug("Unparseable date %r: %s", raw, exc)
        return None
    return when.isoformat() if when else None


def _join_names(names: list[str | None]) -> str:
    return ", ".join(n for n in names if n)


# ---------------------------------------------------------------------------
# RSS 2.0
# ---------------------------------------------------------------------------

def _rss_entry(item: ET.Element) -> FeedEntry | None:
    link = _child_text(item, "link") or ""
    guid_el = item.find("guid")
    guid = _child_text(item, "guid")
    # a permalink guid doubles as the link
    if not link and guid and guid_el.get("isPermaLink", "true").lower() != "false":
        link = guid
    guid = guid or link
    if not guid:
        return None

    creators = item.findall(f"{{{DC_NS}}}creator") + item.findall("author")
    description = _child_text(item, "description") or ""
    return FeedEntry(
        guid=guid,
        url=link,
        title=_child_text(item, "title") or "",
        author=_join_names([(el.text or "").strip() for el in creators]),
        summary=description,
        content=_child_text(item, f"{{{CONTENT_NS}}}encoded") or description,
        published_at=_iso_date(_child_text(item, "pubDate", f"{{{DC_NS}}}date")),
        updated_at=None,
    )


def _parse_rss(root: ET.Element) -> list[FeedEntry]:
    channel = root.find("channel")
    items = (channel if channel is not None else root).findall("item")
    return [e for e in map(_rss_entry, items) if e is not None]


# ---------------------------------------------------------------------------
# Atom 1.0
# ---------------------------------------------------------------------------

def _alternate_link(entry: ET.Element, ns: str, base_url: str) -> str:
    for link in entry.findall(f"{ns}link"):
        if link.get("rel", "alternate") not in ("alternate", ""):
            continue
        href = link.get("href", "").strip()
        if href:
            return urljoin(base_url, href) if base_url else href
    return ""


def _atom_entry(entry: ET.Element, ns: str, base_url: str) -> FeedEntry | None:
    link = _alternate_link(entry, ns, base_url)
    guid = _child_text(entry, f"{ns}id") or link
    if not guid:
        return None

    summary = _child_text(entry, f"{ns}summary") or ""
    authors = [_child_text(a, f"{ns}name") for a in entry.findall(f"{ns}author")]
    return FeedEntry(
        guid=guid,
        url=link,
        title=_child_text(entry, f"{ns}title") or "",
        author=_join_names(authors),
        summary=summary,
        content=_child_text(entry, f"{ns}content") or summary,
        published_at=_iso_date(_child_text(entry, f"{ns}published", f"{ns}updated")),
        updated_at=_iso_date(_child_text(entry, f"{ns}updated")),
    )


def _parse_atom(root: ET.Element, base_url: str) -> list[FeedEntry]:
    # namespaced "{...Atom}feed" or a bare "feed"
    ns = f"{{{ATOM_NS}}}" if root.tag.startswith("{") else ""
    entries = (_atom_entry(e, ns, base_url) for e in root.findall(f"{ns}entry"))
    return [e for e in entries if e is not None]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class ParsedFeed(NamedTuple):
    """A feed document's format (``"rss"``, ``"atom"`` or None) and entries."""

    format: str | None
    entries: list[FeedEntry]


def _format_of(root: ET.Element) -> str | None:
    tag = root.tag.lower()
    if "rss" in tag or root.find("channel") is not None:
        return "rss"
    if tag.endswith("feed"):
        return "atom"
    return None


def read_feed(xml_text: str, base_url: str = "") -> ParsedFeed:
    """Parse an RSS 2.0 or Atom 1.0 document and report which one it was.

    *base_url* resolves relative Atom links.  Malformed XML and documents
    that are neither format give ``ParsedFeed(None, [])``.  Entries with
    neither a GUID nor a link are dropped: they could never be deduplicated.
    """
    try:
        root = defused_ET.fromstring(xml_text)
    except ET.ParseError as exc:
        logger.warning("Feed is not well-formed XML: %s", exc)
        return ParsedFeed(None, [])

    kind = _format_of(root)
    if kind == "rss":
        entries = _parse_rss(root)
        # an <rss> root with no items may still hold Atom entries
        return ParsedFeed("rss", entries or _parse_atom(root, base_url))
    if kind == "atom":
        return ParsedFeed("atom", _parse_atom(root, base_url))

    entries = _parse_rss(root)
    if entries:
        return ParsedFeed("rss", entries)
    entries = _parse_atom(root, base_url)
    if entries:
        return ParsedFeed("atom", entries)
    logger.warning("Unrecognised feed root element <%s>", root.tag)
    return ParsedFeed(None, [])


def parse_feed(xml_text: str, base_url: str = "") -> list[FeedEntry]:
    """Entries of an RSS/Atom document, in feed order (see :func:`read_feed`)."""
    return read_feed(xml_text, base_url).entries
