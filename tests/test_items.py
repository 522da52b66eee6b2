"""Tests for feed/item models and display helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from feedtidy.items import FeedItem, FeedSource, humanize_since, order_entries, unread_count

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _item(item_id: int, title: str, published: str | None = None, **kwargs) -> FeedItem:
    kwargs.setdefault("extraction_date", NOW)
    return FeedItem(
        id=item_id, feed_id=1, guid=f"g{item_id}", title=title, published_at=published, **kwargs,
    )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class TestModels:
    def test_feed_url_stripped(self):
        feed = FeedSource(id=1, url="  https://example.com/feed.xml\n")
        assert feed.url == "https://example.com/feed.xml"
        assert feed.last_update is None

    def test_item_defaults(self):
        item = FeedItem(id=1, feed_id=2, guid="x")
        assert item.content_formatted is None
        assert item.is_read is False
        assert item.extraction_date.tzinfo is not None

    def test_item_text_fields_stripped(self):
        item = FeedItem(id=1, feed_id=2, guid="x", title="  Hello ", author=None)
        assert item.title == "Hello"
        assert item.author == ""

    def test_json_round_trip(self):
        item = _item(1, "A", "2024-01-02T00:00:00+00:00", content_raw="<p>x</p>")
        assert FeedItem(**item.model_dump(mode="json")) == item


# ---------------------------------------------------------------------------
# Ordering / counts
# ---------------------------------------------------------------------------

class TestOrderEntries:
    def test_newest_first_then_title(self):
        items = [
            _item(1, "B", "2024-01-02T00:00:00+00:00"),
            _item(2, "C", "2024-01-03T00:00:00+00:00"),
            _item(3, "A", "2024-01-02T00:00:00+00:00"),
        ]
        assert [i.title for i in order_entries(items)] == ["C", "A", "B"]

    def test_undated_last(self):
        items = [_item(1, "Undated"), _item(2, "Dated", "2020-01-01T00:00:00+00:00")]
        assert [i.title for i in order_entries(items)] == ["Dated", "Undated"]

    def test_extraction_breaks_ties(self):
        items = [
            _item(1, "Old", extraction_date=NOW - timedelta(hours=1)),
            _item(2, "New", extraction_date=NOW),
        ]
        assert [i.title for i in order_entries(items)] == ["New", "Old"]


def test_unread_count():
    items = [_item(1, "a"), _item(2, "b", is_read=True), _item(3, "c", is_hidden=True)]
    assert unread_count(items) == 1


# ---------------------------------------------------------------------------
# humanize_since
# ---------------------------------------------------------------------------

class TestHumanizeSince:
    def test_never(self):
        assert humanize_since(None, NOW) == "Never"

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(seconds=30), "Just now"),
            (timedelta(minutes=90), "Less than an hour ago"),
            (timedelta(hours=5), "5 hours ago"),
            (timedelta(hours=30), "Yesterday"),
            (timedelta(days=3, hours=1), "3 days ago"),
            (timedelta(days=10), "More than a week ago"),
            (timedelta(days=16), "More than 2 weeks ago"),
            (timedelta(days=25), "More than 3 weeks ago"),
            (timedelta(days=40), "More than a month ago"),
            (timedelta(days=100), "More than 3 months ago"),
            (timedelta(days=200), "More than 6 months ago"),
            (timedelta(days=400), "More than a year ago"),
        ],
    )
    def test_ranges(self, delta: timedelta, expected: str):
        assert humanize_since(NOW - delta, NOW) == expected

    def test_naive_treated_as_utc(self):
        moment = datetime(2024, 6, 1, 7, 0)
        assert humanize_since(moment, NOW) == "5 hours ago"
