"""Async RSS feed fetching and parsing.

This module downloads the cycling feed and converts its entries into
FeedItem objects for the pipeline.

Features:
    - SSL certificate handling with fallback
    - HTML-to-text conversion of entry summaries
    - Multiple date fields tried per entry

Error Handling Strategy:
    - The feed is the only input of a run, so every failure is fatal
    - HTTP errors, timeouts and connection errors raise FetchError
    - Content that is not a feed raises FetchError
    - SSL certificate errors trigger one retry without verification
"""

import asyncio
import logging
import re
import ssl
from datetime import datetime, timezone
from html.parser import HTMLParser
from io import StringIO

import aiohttp
import certifi
import feedparser

from errors import FetchError
from models.feed_item import FeedItem

logger = logging.getLogger(__name__)

# Browser-like User-Agent to avoid being blocked by some servers
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

_WHITESPACE = re.compile(r"\s+")


def _ssl_context(verify: bool = True) -> ssl.SSLContext:
    """Create SSL context with optional certificate verification."""
    if verify:
        return ssl.create_default_context(cafile=certifi.where())
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


class _SnippetExtractor(HTMLParser):
    """Collect the text of an HTML fragment, skipping scripts and styles."""

    SKIP_TAGS = frozenset({"script", "style"})

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self._buffer = StringIO()
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in self.SKIP_TAGS:
            self._skip_depth += 1
        elif tag in ("br", "p", "li"):
            self._buffer.write(" ")

    def handle_endtag(self, tag):
        if tag in self.SKIP_TAGS and self._skip_depth > 0:
            self._skip_depth -= 1

    def handle_data(self, data):
        if self._skip_depth == 0:
            self._buffer.write(data)

    def get_text(self) -> str:
        return self._buffer.getvalue()


def html_to_text(fragment: str) -> str:
    """Convert an HTML fragment to a single line of plain text.

    Args:
        fragment: HTML or plain text from a feed entry

    Returns:
        Text content with tags removed and whitespace collapsed
    """
    if not fragment:
        return ""
    parser = _SnippetExtractor()
    parser.feed(fragment)
    parser.close()
    return _WHITESPACE.sub(" ", parser.get_text()).strip()


def _parse_date(entry: dict) -> datetime | None:
    """Extract publication date from feed entry.

    Tries multiple date fields in order of preference:
    1. published_parsed - Standard RSS pubDate
    2. updated_parsed - Atom updated timestamp
    3. created_parsed - Less common creation date

    Args:
        entry: Parsed feed entry dictionary

    Returns:
        Datetime in UTC, or None if no valid date found
    """
    for field in ("published_parsed", "updated_parsed", "created_parsed"):
        time_tuple = entry.get(field)
        if time_tuple:
            try:
                return datetime(*time_tuple[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                continue
    return None


def _entry_snippet(entry: dict) -> str:
    """Plain-text snippet, preferring the summary over full content."""
    raw = entry.get("summary", "") or entry.get("description", "")
    if not raw:
        content = entry.get("content") or []
        if content:
            raw = content[0].get("value", "")
    return html_to_text(raw)


async def _download(
    session: aiohttp.ClientSession,
    url: str,
    timeout: int,
    verify_ssl: bool = True,
) -> str:
    """Download feed content, retrying once without SSL verification.

    Raises:
        FetchError: On HTTP errors, timeouts or connection failures
    """
    try:
        async with session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=timeout),
            headers={"User-Agent": USER_AGENT},
            ssl=_ssl_context(verify_ssl),
        ) as resp:
            if resp.status != 200:
                logger.warning("Feed %s: HTTP %d", url, resp.status)
                raise FetchError(f"RSS feed gaf HTTP {resp.status} terug ({url})")
            return await resp.text()
    except aiohttp.ClientSSLError as e:
        if verify_ssl:
            logger.debug("Feed %s: SSL error, retrying without verification", url)
            return await _download(session, url, timeout, verify_ssl=False)
        raise FetchError(f"SSL-fout bij ophalen RSS feed: {e}") from e
    except asyncio.TimeoutError as e:
        logger.warning("Feed %s: request timed out after %ds", url, timeout)
        raise FetchError(f"Time-out na {timeout}s bij ophalen RSS feed ({url})") from e
    except aiohttp.ClientError as e:
        logger.warning("Feed %s: %s: %s", url, type(e).__name__, e)
        raise FetchError(f"Netwerkfout bij ophalen RSS feed: {type(e).__name__}: {e}") from e


def parse_feed_content(content: str) -> list[FeedItem]:
    """Parse feed content into FeedItem objects.

    Every entry becomes an item: a missing title becomes "" and a missing
    date becomes published_at=None. Dropping items is left to the filter.

    Args:
        content: Raw feed content (XML/RSS/Atom)

    Returns:
        Items in feed order (may be empty for a feed without entries)

    Raises:
        FetchError: If the content cannot be parsed as a feed
    """
    feed = feedparser.parse(content)
    # A valid but empty feed still has a version; HTML or junk has neither
    if not feed.entries and (feed.bozo or not feed.version):
        reason = feed.get("bozo_exception") or "onbekend formaat"
        raise FetchError(f"RSS feed kon niet worden verwerkt: {reason}")

    items = []
    for entry in feed.entries:
        title = entry.get("title", "").strip()
        pub_date = _parse_date(entry)
        if not pub_date:
            logger.debug("Feed entry missing date | title=%s", title[:50] or "-")

        items.append(FeedItem(
            title=title,
            published_at=pub_date,
            snippet=_entry_snippet(entry),
            link=entry.get("link", ""),
        ))

    return items


async def fetch_feed(
    url: str,
    timeout: int = 30,
    session: aiohttp.ClientSession | None = None,
) -> list[FeedItem]:
    """Fetch and parse a single RSS feed.

    Args:
        url: Feed URL
        timeout: Request timeout in seconds
        session: Existing client session (a new one is created if omitted)

    Returns:
        FeedItems in feed order

    Raises:
        FetchError: On network failure or unparseable content

    Example:
        >>> items = await fetch_feed("https://feeds.nos.nl/nossportwielrennen")
        >>> len(items)
        20
    """
    if session is None:
        async with aiohttp.ClientSession() as own_session:
            content = await _download(own_session, url, timeout)
    else:
        content = await _download(session, url, timeout)

    items = parse_feed_content(content)
    undated = sum(1 for item in items if item.published_at is None)
    logger.info("Feed fetched | url=%s items=%d undated=%d", url, len(items), undated)
    return items
