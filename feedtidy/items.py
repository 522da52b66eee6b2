"""Pydantic models for persisted feeds and feed items."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Iterable

from pydantic import BaseModel, Field, field_validator


class FeedSource(BaseModel):
    """A subscribed RSS/Atom feed."""

    id: int
    url: str
    name: str = ""
    description: str = ""
    feed_type: str = ""  # rss|atom, set after the first successful poll
    categories: list[str] = Field(default_factory=list)
    last_update: datetime | None = None

    @field_validator("url", mode="before")
    @classmethod
    def strip_url(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


class FeedItem(BaseModel):
    """One entry of a feed, with its raw and formatted bodies."""

    id: int
    feed_id: int
    guid: str
    title: str = ""
    link: str = ""
    author: str = ""
    summary_raw: str = ""
    content_raw: str = ""
    content_formatted: str | None = None
    published_at: str | None = None
    updated_at: str | None = None
    extraction_date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    is_read: bool = False
    is_hidden: bool = False

    @field_validator("title", "author", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v or ""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_EPOCH = datetime.min.replace(tzinfo=UTC)


def _published(item: FeedItem) -> datetime:
    if not item.published_at:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(item.published_at)
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


def order_entries(items: Iterable[FeedItem]) -> list[FeedItem]:
    """Newest first: by publication date, then extraction date, then title."""
    ordered = sorted(items, key=lambda i: i.title)
    ordered.sort(key=lambda i: (_published(i), _aware(i.extraction_date)), reverse=True)
    return ordered


def unread_count(items: Iterable[FeedItem]) -> int:
    """Number of items neither read nor hidden."""
    return sum(1 for i in items if not i.is_read and not i.is_hidden)


_HOUR = timedelta(hours=1)
_DAY = timedelta(days=1)
_WEEK = timedelta(weeks=1)
_MONTH = timedelta(days=30)


def humanize_since(moment: datetime | None, now: datetime | None = None) -> str:
    """Describe how long ago *moment* was, e.g. ``"3 days ago"``."""
    if moment is None:
        return "Never"
    now = _aware(now or datetime.now(UTC))
    elapsed = now - _aware(moment)

    if elapsed > timedelta(days=365):
        return "More than a year ago"
    for months in (6, 5, 4, 3, 2):
        if elapsed > months * _MONTH:
            return f"More than {months} months ago"
    if elapsed > _MONTH:
        return "More than a month ago"
    for weeks in (3, 2):
        if elapsed > weeks * _WEEK:
            return f"More than {weeks} weeks ago"
    if elapsed > _WEEK:
        return "More than a week ago"
    if elapsed > 2 * _DAY:
        return f"{int(elapsed / _DAY)} days ago"
    if elapsed > _DAY:
        return "Yesterday"
    if elapsed > 2 * _HOUR:
        return f"{int(elapsed / _HOUR)} hours ago"
    if elapsed > _HOUR:
        return "Less than an hour ago"
    return "Just now"
