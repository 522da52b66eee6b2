"""Poll → persist → clean → rewrite → clean → persist.

Two stages, each safe to run on its own:

* :func:`fetch_all_feeds` polls every due feed and stores new items with
  their raw bodies untouched.
* :func:`clean_all_items` sanitizes each item still lacking a formatted body,
  sends it through the rewriting service and sanitizes the answer with the
  same rules before storing it.

Per-item and per-feed failures are logged and recorded in the
:class:`RunReport`; they never abort the run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from feedtidy.feeds import ParsedFeed
from feedtidy.fetch import FetchError, fetch_feed
from feedtidy.profiles import config_for_url
from feedtidy.rewrite import RewriteClient, RewriteError, load_prompt
from feedtidy.sanitizer import ParseFailure, SanitizerConfig, clean
from feedtidy.settings import Settings
from feedtidy.store import FeedStore

logger = logging.getLogger(__name__)

FeedFetcher = Callable[[str], ParsedFeed]


@dataclass
class RunReport:
    """Counters and skip reasons for one pipeline run."""

    feeds_polled: int = 0
    feeds_failed: int = 0
    items_added: int = 0
    items_duplicate: int = 0
    items_cleaned: int = 0
    items_skipped: int = 0
    skipped: list[tuple[str, str]] = field(default_factory=list)

    def skip(self, identifier: str, reason: str) -> None:
        self.skipped.append((identifier, reason))

    def merge(self, other: RunReport) -> RunReport:
        return RunReport(
            feeds_polled=self.feeds_polled + other.feeds_polled,
            feeds_failed=self.feeds_failed + other.feeds_failed,
            items_added=self.items_added + other.items_added,
            items_duplicate=self.items_duplicate + other.items_duplicate,
            items_cleaned=self.items_cleaned + other.items_cleaned,
            items_skipped=self.items_skipped + other.items_skipped,
            skipped=self.skipped + other.skipped,
        )


# ---------------------------------------------------------------------------
# Stage 1: polling
# ---------------------------------------------------------------------------

def fetch_all_feeds(
    store: FeedStore,
    settings: Settings,
    fetcher: FeedFetcher | None = None,
    now: datetime | None = None,
) -> RunReport:
    """Poll every due feed and store entries with an unseen GUID."""
    report = RunReport()
    if fetcher is None:
        def fetcher(url: str) -> ParsedFeed:
            return fetch_feed(
                url, timeout=settings.request_timeout, user_agent=settings.user_agent,
            )

    due = store.feeds_due(now, timedelta(minutes=settings.stale_after_minutes))
    if not due:
        logger.info("No feeds to fetch")
        return report

    for feed in due:
        try:
            parsed = fetcher(feed.url)
        except FetchError as exc:
            logger.warning("Error fetching feed %s: %s", feed.url, exc)
            report.feeds_failed += 1
            report.skip(feed.url, str(exc))
            continue

        for entry in parsed.entries:
            if store.insert_item(feed.id, entry) is None:
                report.items_duplicate += 1
            else:
                report.items_added += 1

        store.mark_feed_updated(feed.id, when=now, feed_type=parsed.format)
        report.feeds_polled += 1

    logger.info(
        "Fetched %d feed(s): %d new item(s), %d duplicate(s), %d failure(s)",
        report.feeds_polled, report.items_added, report.items_duplicate, report.feeds_failed,
    )
    return report


# ---------------------------------------------------------------------------
# Stage 2: cleaning + rewriting
# ---------------------------------------------------------------------------

def clean_all_items(
    store: FeedStore,
    settings: Settings,
    client: RewriteClient | None = None,
    config: SanitizerConfig | None = None,
) -> RunReport:
    """Produce the formatted body of every item that still lacks one.

    *config* forces one sanitizer config for every item; otherwise the
    profile at ``settings.profile_path`` is matched against each item's feed
    URL.

    Raises:
        ConfigurationError: when the rewriting service is not configured
            and there is work to do.
    """
    report = RunReport()
    pending = store.items_needing_format(settings.min_content_length)
    if not pending:
        logger.info("No new items to clean")
        return report

    prompt = load_prompt(settings.prompt_path)
    owns_client = client is None
    client = client or RewriteClient.from_settings(settings)
    configs: dict[int, SanitizerConfig] = {}

    try:
        for item in pending:
            ident = item.link or item.guid
            if len(item.content_raw) <= settings.min_content_length:
                logger.info("Bypassing item %d with empty content", item.id)
                report.items_skipped += 1
                report.skip(ident, "empty content")
                continue

            item_config = config
            if item_config is None:
                if item.feed_id not in configs:
                    feed = store.get_feed(item.feed_id)
                    configs[item.feed_id] = config_for_url(
                        settings.profile_path, feed.url if feed else "",
                    )
                item_config = configs[item.feed_id]

            try:
                cleaned = clean(item.content_raw, item_config)
                rewritten = client.rewrite(prompt, cleaned)
                formatted = clean(rewritten, item_config)
            except ParseFailure as exc:
                logger.warning("Item %d skipped, unparseable HTML: %s", item.id, exc)
                report.items_skipped += 1
                report.skip(ident, f"parse failure: {exc}")
                continue
            except RewriteError as exc:
                logger.warning("Item %d skipped, rewrite failed: %s", item.id, exc)
                report.items_skipped += 1
                report.skip(ident, f"rewrite failure: {exc}")
                continue

            store.set_formatted(item.id, formatted)
            report.items_cleaned += 1
            logger.info("Item %d cleaned (%s)", item.id, ident)
    finally:
        if owns_client:
            client.close()

    return report


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

def run_once(
    store: FeedStore,
    settings: Settings,
    fetcher: FeedFetcher | None = None,
    client: RewriteClient | None = None,
) -> RunReport:
    """One fetch pass followed by one clean pass."""
    logger.info("Starting the feed fetching process")
    report = fetch_all_feeds(store, settings, fetcher=fetcher)
    logger.info("Starting the item cleaning process")
    return report.merge(clean_all_items(store, settings, client=client))


def run_forever(
    store: FeedStore,
    settings: Settings,
    *,
    sleep: Callable[[float], None] = time.sleep,
    max_runs: int | None = None,
) -> None:
    """Run immediately, then every ``settings.fetch_interval`` minutes.

    A run that raises is logged and the loop carries on with the next tick.
    *max_runs* bounds the loop (None runs until interrupted).
    """
    interval = settings.fetch_interval * 60
    runs = 0
    while max_runs is None or runs < max_runs:
        started = datetime.now(UTC)
        try:
            run_once(store, settings)
        except Exception:
            logger.exception("Feed run failed")
        runs += 1
        if max_runs is not None and runs >= max_runs:
            break
        elapsed = (datetime.now(UTC) - started).total_seconds()
        sleep(max(0.0, interval - elapsed))
