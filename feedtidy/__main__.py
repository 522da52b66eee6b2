"""CLI entry point: python -m feedtidy <command> [options]"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich import box
from rich.console import Console
from rich.table import Table

from feedtidy.items import humanize_since, order_entries, unread_count
from feedtidy.pipeline import RunReport, clean_all_items, fetch_all_feeds, run_forever, run_once
from feedtidy.profiles import config_for_url
from feedtidy.rewrite import ConfigurationError
from feedtidy.sanitizer import ParseFailure, clean
from feedtidy.settings import LOG_FORMAT, Settings, get_settings
from feedtidy.store import FeedStore, StoreError

logger = logging.getLogger(__name__)

EXIT_PARSE_FAILURE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feedtidy",
        description=(
            "Poll RSS/Atom feeds and tidy article HTML into a minimal, "
            "display-ready subset."
        ),
    )
    parser.add_argument("--data-dir", default=None, metavar="DIR",
                        help="Store directory (default: $FEEDTIDY_DATA_DIR or ./data)")
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: $FEEDTIDY_LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_clean = sub.add_parser("clean", help="Clean HTML from a file or stdin")
    p_clean.add_argument("file", nargs="?", default="-",
                         help="Input file ('-' or omitted for stdin)")
    p_clean.add_argument("--profile", default=None, metavar="YAML",
                         help="Sanitizer profile (default: $FEEDTIDY_PROFILE_PATH)")
    p_clean.add_argument("--url", default="", metavar="URL",
                         help="Source URL used to pick a domain section of the profile")

    p_add = sub.add_parser("add-feed", help="Subscribe to a feed")
    p_add.add_argument("url", metavar="URL")
    p_add.add_argument("--name", default="", help="Display name")

    sub.add_parser("list-feeds", help="List subscribed feeds")
    p_items = sub.add_parser("list-items", help="List stored items, newest first")
    p_items.add_argument("--feed-id", type=int, default=None, metavar="N",
                         help="Only items of feed N")
    sub.add_parser("fetch", help="Poll due feeds once")
    sub.add_parser("format", help="Clean and rewrite pending items once")

    p_run = sub.add_parser("run", help="Poll and format every FETCH_INTERVAL minutes")
    p_run.add_argument("--once", action="store_true", default=False,
                       help="Run a single fetch + format cycle and exit")
    return parser


def _read_input(name: str) -> str:
    if name == "-":
        return sys.stdin.read()
    return Path(name).read_text(encoding="utf-8")


def _print_report(report: RunReport) -> None:
    console = Console()
    stats = Table(title="[bold cyan]Run Summary[/bold cyan]", box=box.SIMPLE_HEAVY)
    stats.add_column("Metric", style="bold")
    stats.add_column("Count", justify="right")
    stats.add_row("Feeds polled", str(report.feeds_polled))
    stats.add_row("Feeds failed", f"[red]{report.feeds_failed}[/red]")
    stats.add_row("Items added", f"[green]{report.items_added}[/green]")
    stats.add_row("Duplicates", str(report.items_duplicate))
    stats.add_row("Items cleaned", f"[green]{report.items_cleaned}[/green]")
    stats.add_row("Items skipped", f"[yellow]{report.items_skipped}[/yellow]")
    console.print(stats)

    if report.skipped:
        skipped = Table(
            title=f"[bold yellow]Skipped ({len(report.skipped)})[/bold yellow]",
            box=box.SIMPLE_HEAVY,
        )
        skipped.add_column("#", style="dim", justify="right", width=4, no_wrap=True)
        skipped.add_column("Item / feed", style="blue", max_width=60, no_wrap=True)
        skipped.add_column("Reason", style="red", max_width=60)
        for i, (ident, reason) in enumerate(report.skipped, 1):
            skipped.add_row(str(i), ident, reason)
        console.print(skipped)


def _cmd_clean(args: argparse.Namespace, settings: Settings) -> int:
    profile = args.profile or settings.profile_path
    try:
        config = config_for_url(profile, args.url)
        markup = _read_input(args.file)
    except OSError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    try:
        sys.stdout.write(clean(markup, config))
    except ParseFailure as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_PARSE_FAILURE
    sys.stdout.write("\n")
    return 0


def _cmd_list_feeds(store: FeedStore) -> int:
    for feed in store.feeds():
        items = store.items(feed.id)
        print(
            f"{feed.id:>4}  {feed.name or '-':<24}  {unread_count(items):>4} unread  "
            f"{humanize_since(feed.last_update):<24}  {feed.url}",
        )
    return 0


def _cmd_list_items(store: FeedStore, feed_id: int | None) -> int:
    # "*" marks unread; hidden items are not listed
    for item in order_entries(store.items(feed_id)):
        if item.is_hidden:
            continue
        marker = " " if item.is_read else "*"
        print(f"{item.id:>4} {marker} {item.title or '(untitled)'}  {item.link}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    updates = {}
    if args.data_dir:
        updates["data_dir"] = Path(args.data_dir)
    if args.log_level:
        updates["log_level"] = args.log_level
    if updates:
        settings = settings.model_copy(update=updates)

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    if args.command == "clean":
        return _cmd_clean(args, settings)

    try:
        store = FeedStore(settings.data_dir)
    except StoreError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    try:
        if args.command == "add-feed":
            feed = store.add_feed(args.url, name=args.name)
            print(f"{feed.id}  {feed.url}")
            return 0
        if args.command == "list-items":
            return _cmd_list_items(store, args.feed_id)
        if args.command == "list-feeds":
            return _cmd_list_feeds(store)
        if args.command == "fetch":
            _print_report(fetch_all_feeds(store, settings))
            return 0
        if args.command == "format":
            _print_report(clean_all_items(store, settings))
            return 0
        if args.command == "run":
            if args.once:
                _print_report(run_once(store, settings))
            else:
                run_forever(store, settings)
            return 0
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    except Exception:
        logger.exception("feedtidy failed")
        return 1

    parser.error(f"unknown command {args.command!r}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
