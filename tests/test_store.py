"""Tests for the JSON-file feed store."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from feedtidy.feeds import FeedEntry
from feedtidy.store import FeedStore, StoreError

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _entry(guid: str, content: str = "<p>Body text long enough</p>") -> FeedEntry:
    return FeedEntry(
        guid=guid,
        url=f"https://example.com/{guid}",
        title=f"Title {guid}",
        author="Jane",
        summary="",
        content=content,
        published_at="2024-01-15T10:00:00+00:00",
        updated_at=None,
    )


@pytest.fixture
def store(tmp_path: Path) -> FeedStore:
    return FeedStore(tmp_path / "data")


# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------

class TestFeeds:
    def test_add_feed_assigns_ids(self, store: FeedStore):
        a = store.add_feed("https://a.example.com/rss", name="A")
        b = store.add_feed("https://b.example.com/rss")
        assert (a.id, b.id) == (1, 2)
        assert [f.url for f in store.feeds()] == [a.url, b.url]

    def test_add_feed_deduplicates(self, store: FeedStore):
        first = store.add_feed("https://a.example.com/rss")
        again = store.add_feed(" https://a.example.com/rss ")
        assert again.id == first.id
        assert len(store.feeds()) == 1

    def test_persisted(self, tmp_path: Path, store: FeedStore):
        store.add_feed("https://a.example.com/rss", name="A")
        reopened = FeedStore(tmp_path / "data")
        assert reopened.get_feed(1).name == "A"

    def test_feeds_due(self, store: FeedStore):
        fresh = store.add_feed("https://fresh.example.com/rss")
        stale = store.add_feed("https://stale.example.com/rss")
        never = store.add_feed("https://never.example.com/rss")
        store.mark_feed_updated(fresh.id, when=NOW - timedelta(minutes=5))
        store.mark_feed_updated(stale.id, when=NOW - timedelta(hours=1))
        due = store.feeds_due(NOW, timedelta(minutes=15))
        assert {f.id for f in due} == {stale.id, never.id}

    def test_mark_updated_sets_type(self, store: FeedStore):
        feed = store.add_feed("https://a.example.com/rss")
        store.mark_feed_updated(feed.id, when=NOW, feed_type="atom")
        assert store.get_feed(feed.id).feed_type == "atom"
        assert store.get_feed(feed.id).last_update == NOW

    def test_mark_unknown_feed(self, store: FeedStore):
        with pytest.raises(KeyError):
            store.mark_feed_updated(99)

    def test_remove_feed_drops_items(self, store: FeedStore):
        feed = store.add_feed("https://a.example.com/rss")
        store.insert_item(feed.id, _entry("x"))
        assert store.remove_feed(feed.id) is True
        assert store.items() == []
        assert not store.has_item("x")
        assert store.remove_feed(feed.id) is False


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

class TestItems:
    def test_insert_and_dedupe(self, store: FeedStore):
        feed = store.add_feed("https://a.example.com/rss")
        item = store.insert_item(feed.id, _entry("x"))
        assert item is not None
        assert item.link == "https://example.com/x"
        assert item.content_raw == "<p>Body text long enough</p>"
        assert item.content_formatted is None
        assert store.insert_item(feed.id, _entry("x")) is None
        assert len(store.items(feed.id)) == 1

    def test_items_by_feed(self, store: FeedStore):
        a = store.add_feed("https://a.example.com/rss")
        b = store.add_feed("https://b.example.com/rss")
        store.insert_item(a.id, _entry("1"))
        store.insert_item(b.id, _entry("2"))
        assert [i.guid for i in store.items(b.id)] == ["2"]
        assert len(store.items()) == 2

    def test_needing_format(self, store: FeedStore):
        feed = store.add_feed("https://a.example.com/rss")
        done = store.insert_item(feed.id, _entry("done"))
        short = store.insert_item(feed.id, _entry("short"))
        pending = store.insert_item(feed.id, _entry("pending"))
        store.set_formatted(done.id, "<p>Formatted body</p>")
        store.set_formatted(short.id, "<p></p>")
        ids = [i.id for i in store.items_needing_format(min_length=10)]
        assert ids == [short.id, pending.id]

    def test_set_formatted_persisted(self, tmp_path: Path, store: FeedStore):
        feed = store.add_feed("https://a.example.com/rss")
        item = store.insert_item(feed.id, _entry("x"))
        store.set_formatted(item.id, "<p>Clean</p>")
        reopened = FeedStore(tmp_path / "data")
        assert reopened.get_item(item.id).content_formatted == "<p>Clean</p>"
        assert reopened.has_item("x")

    def test_set_formatted_unknown(self, store: FeedStore):
        with pytest.raises(KeyError):
            store.set_formatted(42, "<p>x</p>")


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

class TestFiles:
    def test_json_layout(self, tmp_path: Path, store: FeedStore):
        store.add_feed("https://a.example.com/rss")
        data = json.loads((tmp_path / "data" / "feeds.json").read_text(encoding="utf-8"))
        assert data[0]["url"] == "https://a.example.com/rss"
        assert not (tmp_path / "data" / "feeds.json.tmp").exists()

    def test_corrupt_file(self, tmp_path: Path):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "feeds.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            FeedStore(data_dir)

    def test_invalid_record(self, tmp_path: Path):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "items.json").write_text('[{"id": "x"}]', encoding="utf-8")
        with pytest.raises(StoreError):
            FeedStore(data_dir)
