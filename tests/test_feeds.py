"""Tests for the RSS / Atom feed parser."""

from __future__ import annotations

from datetime import UTC, datetime

from feedtidy.feeds import FeedEntry, ParsedFeed, parse_feed, read_feed


def _when(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


# ---------------------------------------------------------------------------
# RSS 2.0
# ---------------------------------------------------------------------------

class TestParseRss:
    def test_entry_count(self, rss_xml: str):
        # the third item has neither guid nor link
        assert len(parse_feed(rss_xml)) == 2

    def test_full_item(self, rss_xml: str):
        entry = parse_feed(rss_xml)[0]
        assert isinstance(entry, FeedEntry)
        assert entry.guid == "news-example-1001"
        assert entry.url == "https://news.example.com/2024/01/cycle-lanes"
        assert entry.title == "Council approves new cycle lanes"
        assert entry.author == "Jane Smith"
        assert entry.summary == "<p>Short summary of the vote.</p>"
        assert entry.content == (
            '<div class="body"><p>The city council voted on Tuesday.</p>'
            "<script>x()</script></div>"
        )
        assert _when(entry.published_at) == datetime(2024, 1, 15, 10, 0, tzinfo=UTC)
        assert entry.updated_at is None

    def test_guid_falls_back_to_link(self, rss_xml: str):
        entry = parse_feed(rss_xml)[1]
        assert entry.guid == "https://news.example.com/2024/01/library-hours"
        assert entry.content == entry.summary == "<p>The central library will open until 9pm.</p>"

    def test_permalink_guid_used_as_link(self):
        xml = (
            "<rss><channel><item><title>T</title>"
            "<guid>https://example.com/a</guid></item></channel></rss>"
        )
        entry = parse_feed(xml)[0]
        assert entry.url == "https://example.com/a"
        assert entry.guid == "https://example.com/a"

    def test_non_permalink_guid_not_used_as_link(self):
        xml = (
            "<rss><channel><item><title>T</title>"
            '<guid isPermaLink="false">id-1</guid></item></channel></rss>'
        )
        entry = parse_feed(xml)[0]
        assert entry.url == ""
        assert entry.guid == "id-1"

    def test_bad_date_is_none(self):
        xml = (
            "<rss><channel><item><link>https://example.com/a</link>"
            "<pubDate>zzzz qqqq</pubDate></item></channel></rss>"
        )
        assert parse_feed(xml)[0].published_at is None


# ---------------------------------------------------------------------------
# Atom 1.0
# ---------------------------------------------------------------------------

class TestParseAtom:
    def test_entry_count(self, atom_xml: str):
        assert len(parse_feed(atom_xml)) == 2

    def test_full_entry(self, atom_xml: str):
        entry = parse_feed(atom_xml, base_url="https://blog.example.org/feed.xml")[0]
        assert entry.url == "https://blog.example.org/posts/new-parser"
        assert entry.guid == "urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a"
        assert entry.author == "Ada, Grace"
        assert entry.summary == "We rewrote the parser."
        assert entry.content == "<p>We rewrote the parser <b>from scratch</b>.</p>"
        assert _when(entry.published_at) == datetime(2024, 2, 1, 9, 0, tzinfo=UTC)
        assert _when(entry.updated_at) == datetime(2024, 2, 2, 12, 0, tzinfo=UTC)

    def test_relative_link_without_base(self, atom_xml: str):
        assert parse_feed(atom_xml)[0].url == "/posts/new-parser"

    def test_summary_only_entry(self, atom_xml: str):
        entry = parse_feed(atom_xml)[1]
        assert entry.guid == "https://blog.example.org/posts/summary-only"
        assert entry.content == "Just a summary."
        assert entry.author == ""
        assert entry.published_at == entry.updated_at


# ---------------------------------------------------------------------------
# Format detection / errors
# ---------------------------------------------------------------------------

class TestReadFeed:
    def test_rss(self, rss_xml: str):
        parsed = read_feed(rss_xml)
        assert parsed.format == "rss"
        assert parsed.entries == parse_feed(rss_xml)

    def test_atom(self, atom_xml: str):
        assert read_feed(atom_xml).format == "atom"

    def test_unknown_root_with_items(self):
        parsed = read_feed("<rdf><item><guid>g-1</guid><title>T</title></item></rdf>")
        assert parsed.format == "rss"
        assert [e.guid for e in parsed.entries] == ["g-1"]

    def test_other_xml(self):
        assert read_feed("<html><body/></html>") == ParsedFeed(None, [])

    def test_not_xml(self):
        assert read_feed("this is not xml") == ParsedFeed(None, [])


class TestParseFeedErrors:
    def test_malformed_xml(self):
        assert parse_feed("<rss><channel><item>") == []

    def test_unknown_root(self):
        assert parse_feed("<html><body/></html>") == []
