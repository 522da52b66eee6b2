"""Download feed documents over HTTP.

Plain ``urllib`` is enough for one GET per feed.  Transient failures (429,
5xx, dropped connections) are retried with jittered exponential backoff::

    from feedtidy.fetch import fetch_feed

    for entry in fetch_feed("https://example.com/feed.xml").entries:
        print(entry.guid, entry.title)
"""

from __future__ import annotations

import gzip
import logging
import random
import time
import urllib.error
import urllib.request
import zlib
from email.message import Message
from urllib.parse import urlsplit

from feedtidy.feeds import ParsedFeed, read_feed
from feedtidy.settings import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

FEED_ACCEPT = (
    "application/rss+xml,application/atom+xml,application/xml;q=0.9,"
    "text/xml;q=0.8,*/*;q=0.5"
)


class FetchError(RuntimeError):
    """A feed URL could not be downloaded.

    ``status`` is the HTTP status code, or 0 when no response arrived.
    """

    def __init__(self, message: str, url: str = "", status: int = 0) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


def _decode_body(raw: bytes, headers: Message | None, url: str) -> str:
    """Undo Content-Encoding, then decode with the declared charset."""
    coding = (headers.get("Content-Encoding", "") if headers is not None else "") or ""
    coding = coding.strip().lower()
    try:
        if coding == "gzip":
            raw = gzip.decompress(raw)
        elif coding in ("deflate", "zlib"):
            raw = zlib.decompress(raw)
    except (OSError, zlib.error) as exc:
        raise FetchError(f"cannot decompress {coding} body of {url}: {exc}", url=url) from exc

    charset = (headers.get_content_charset() if headers is not None else None) or "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except LookupError:
        logger.debug("Unknown charset %r for %s, falling back to utf-8", charset, url)
        return raw.decode("utf-8", errors="replace")


def _retry_after(exc: urllib.error.HTTPError) -> int:
    value = (exc.headers.get("Retry-After", "") if exc.headers else "") or ""
    value = value.strip()
    return int(value) if value.isdigit() else 0


def _delay(attempt: int, floor: int = 0) -> float:
    return max(floor, 2 ** attempt) + random.uniform(0, 1)


def fetch_text(
    url: str,
    *,
    timeout: int = 30,
    user_agent: str | None = None,
    max_retries: int = 3,
) -> str:
    """GET *url* and return the decoded body.

    A transient failure is retried up to *max_retries* times; ``Retry-After``
    (in seconds) raises the wait when the server sends it.

    Raises:
        FetchError: unsupported scheme, non-transient HTTP status, or every
            attempt failed.
    """
    scheme = urlsplit(url).scheme
    if scheme not in ("http", "https"):
        raise FetchError(f"cannot fetch {scheme or 'scheme-less'} URL {url!r}", url=url)

    request = urllib.request.Request(
        url,
        headers={
            "User-Agent": user_agent or DEFAULT_USER_AGENT,
            "Accept": FEED_ACCEPT,
            "Accept-Encoding": "gzip, deflate",
        },
    )

    attempt = 0
    while True:
        try:
            with urllib.request.urlopen(request, timeout=timeout) as response:
                return _decode_body(response.read(), response.headers, url)
        except urllib.error.HTTPError as exc:
            if exc.code not in TRANSIENT_STATUSES or attempt >= max_retries:
                raise FetchError(
                    f"HTTP {exc.code} for {url}: {exc.reason}", url=url, status=exc.code,
                ) from exc
            reason = f"HTTP {exc.code}"
            wait = _delay(attempt, _retry_after(exc))
        except (urllib.error.URLError, OSError) as exc:
            reason = str(getattr(exc, "reason", exc))
            if attempt >= max_retries:
                raise FetchError(f"cannot reach {url}: {reason}", url=url) from exc
            wait = _delay(attempt)

        attempt += 1
        logger.debug(
            "%s for %s, retrying in %.1fs (attempt %d/%d)",
            reason, url, wait, attempt, max_retries,
        )
        time.sleep(wait)


def fetch_feed(
    feed_url: str,
    *,
    timeout: int = 30,
    user_agent: str | None = None,
    max_retries: int = 3,
) -> ParsedFeed:
    """Download and parse one RSS/Atom feed.

    Relative entry links are resolved against *feed_url*.  A body that is
    not a feed gives ``ParsedFeed(None, [])``; only transport failures raise.

    Raises:
        FetchError: when the feed cannot be downloaded.
    """
    body = fetch_text(feed_url, timeout=timeout, user_agent=user_agent, max_retries=max_retries)
    parsed = read_feed(body, base_url=feed_url)
    if parsed.entries:
        logger.info("%s: %d %s entries", feed_url, len(parsed.entries), parsed.format)
    else:
        logger.warning("%s: no entries found", feed_url)
    return parsed
