"""JSON-file persistence for feeds and their items.

Layout under ``data_dir``::

    feeds.json   list of FeedSource records
    items.json   list of FeedItem records (raw and formatted bodies)

Files are rewritten atomically (temp file + rename) after every mutation.
Items are deduplicated on their feed GUID.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from feedtidy.feeds import FeedEntry
from feedtidy.items import FeedItem, FeedSource

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when a store file exists but cannot be read back."""


def _write_json(path: Path, data: dict | list) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    os.replace(tmp, path)


def _read_json(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise StoreError(f"Corrupt store file {path}: {exc}") from exc
    if not isinstance(data, list):
        raise StoreError(f"Corrupt store file {path}: expected a list")
    return data


class FeedStore:
    """Feeds and items kept in memory and mirrored to ``data_dir``."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self._feeds_path = self.data_dir / "feeds.json"
        self._items_path = self.data_dir / "items.json"
        try:
            self._feeds = [FeedSource(**r) for r in _read_json(self._feeds_path)]
            self._items = [FeedItem(**r) for r in _read_json(self._items_path)]
        except ValidationError as exc:
            raise StoreError(f"Invalid record in {self.data_dir}: {exc}") from exc
        self._guids = {item.guid for item in self._items}
        logger.debug(
            "FeedStore open: %d feed(s), %d item(s) in %s",
            len(self._feeds), len(self._items), self.data_dir,
        )

    # ------------------------------------------------------------------
    # Feeds
    # ------------------------------------------------------------------

    def feeds(self) -> list[FeedSource]:
        return list(self._feeds)

    def get_feed(self, feed_id: int) -> FeedSource | None:
        return next((f for f in self._feeds if f.id == feed_id), None)

    def add_feed(self, url: str, name: str = "") -> FeedSource:
        """Subscribe to *url*; an existing subscription is returned unchanged."""
        url = url.strip()
        for feed in self._feeds:
            if feed.url == url:
                return feed
        feed = FeedSource(id=self._next_id(self._feeds), url=url, name=name)
        self._feeds.append(feed)
        self._save_feeds()
        logger.info("Added feed %d: %s", feed.id, url)
        return feed

    def remove_feed(self, feed_id: int) -> bool:
        """Drop a feed and its items.  Returns False if it was unknown."""
        if self.get_feed(feed_id) is None:
            return False
        self._feeds = [f for f in self._feeds if f.id != feed_id]
        self._items = [i for i in self._items if i.feed_id != feed_id]
        self._guids = {i.guid for i in self._items}
        self._save_feeds()
        self._save_items()
        return True

    def feeds_due(
        self,
        now: datetime | None = None,
        stale_after: timedelta = timedelta(minutes=15),
    ) -> list[FeedSource]:
        """Feeds never polled, or last polled more than *stale_after* ago."""
        now = now or datetime.now(UTC)
        return [
            f for f in self._feeds
            if f.last_update is None or f.last_update < now - stale_after
        ]

    def mark_feed_updated(
        self,
        feed_id: int,
        when: datetime | None = None,
        feed_type: str | None = None,
    ) -> None:
        feed = self.get_feed(feed_id)
        if feed is None:
            raise KeyError(feed_id)
        feed.last_update = when or datetime.now(UTC)
        if feed_type:
            feed.feed_type = feed_type
        self._save_feeds()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def has_item(self, guid: str) -> bool:
        return guid in self._guids

    def insert_item(self, feed_id: int, entry: FeedEntry) -> FeedItem | None:
        """Persist *entry* with its raw bodies.  Returns None for a known GUID."""
        if self.has_item(entry.guid):
            return None
        item = FeedItem(
            id=self._next_id(self._items),
            feed_id=feed_id,
            guid=entry.guid,
            title=entry.title,
            link=entry.url,
            author=entry.author,
            summary_raw=entry.summary,
            content_raw=entry.content,
            published_at=entry.published_at,
            updated_at=entry.updated_at,
        )
        self._items.append(item)
        self._guids.add(item.guid)
        self._save_items()
        return item

    def items(self, feed_id: int | None = None) -> list[FeedItem]:
        if feed_id is None:
            return list(self._items)
        return [i for i in self._items if i.feed_id == feed_id]

    def get_item(self, item_id: int) -> FeedItem | None:
        return next((i for i in self._items if i.id == item_id), None)

    def items_needing_format(self, min_length: int = 10) -> list[FeedItem]:
        """Items whose formatted body is missing or no longer than *min_length*."""
        return [
            i for i in self._items
            if i.content_formatted is None or len(i.content_formatted) <= min_length
        ]

    def set_formatted(self, item_id: int, content: str) -> None:
        item = self.get_item(item_id)
        if item is None:
            raise KeyError(item_id)
        item.content_formatted = content
        self._save_items()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _next_id(records: list[FeedSource] | list[FeedItem]) -> int:
        return max((r.id for r in records), default=0) + 1

    def _save_feeds(self) -> None:
        _write_json(self._feeds_path, [f.model_dump(mode="json") for f in self._feeds])

    def _save_items(self) -> None:
        _write_json(self._items_path, [i.model_dump(mode="json") for i in self._items])
