import asyncio
from datetime import datetime, timezone

import aiohttp
import pytest

from conftest import FakeResponse, FakeSession
from errors import FetchError
from feeds import fetch_feed, html_to_text, parse_feed_content

RSS_SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>NOS Sport - Wielrennen</title>
    <link>https://nos.nl/sport/wielrennen</link>
    <description>Wielernieuws</description>
    <item>
      <title>Pogacar wint Ronde van Lombardije</title>
      <link>https://nos.nl/artikel/1</link>
      <pubDate>Sun, 11 Oct 2026 16:30:00 +0200</pubDate>
      <description>&lt;p&gt;Vijfde zege &lt;b&gt;op rij&lt;/b&gt; in de herfstklassieker.&lt;/p&gt;</description>
    </item>
    <item>
      <title>Transfernieuws zonder datum</title>
      <link>https://nos.nl/artikel/2</link>
      <description>Renner tekent bij nieuwe ploeg.</description>
    </item>
    <item>
      <title></title>
      <link>https://nos.nl/artikel/3</link>
      <pubDate>Sun, 11 Oct 2026 10:00:00 +0200</pubDate>
    </item>
  </channel>
</rss>"""

EMPTY_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Leeg</title><link>https://nos.nl</link>
<description>Geen items</description></channel></rss>"""

UNTITLED_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>NOS</title><link>https://nos.nl</link>
<description>Wielernieuws</description>
<item>
  <link>https://nos.nl/artikel/4</link>
  <pubDate>Sun, 18 Oct 2026 10:00:00 +0200</pubDate>
  <description>Van der Poel wint de Ronde</description>
</item>
</channel></rss>"""


class TestParseFeedContent:
    def test_parses_items_in_feed_order(self):
        items = parse_feed_content(RSS_SAMPLE)

        assert [item.title for item in items] == [
            "Pogacar wint Ronde van Lombardije",
            "Transfernieuws zonder datum",
            "",
        ]

    def test_untitled_entry_is_kept_for_the_filter(self):
        items = parse_feed_content(UNTITLED_RSS)

        assert len(items) == 1
        assert items[0].title == ""
        assert items[0].published_at == datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)
        assert items[0].snippet == "Van der Poel wint de Ronde"

    def test_dates_are_converted_to_utc(self):
        item = parse_feed_content(RSS_SAMPLE)[0]

        assert item.published_at == datetime(2026, 10, 11, 14, 30, tzinfo=timezone.utc)
        assert item.link == "https://nos.nl/artikel/1"

    def test_snippet_has_html_removed(self):
        item = parse_feed_content(RSS_SAMPLE)[0]

        assert item.snippet == "Vijfde zege op rij in de herfstklassieker."

    def test_undated_entries_are_kept_without_date(self):
        item = parse_feed_content(RSS_SAMPLE)[1]

        assert item.published_at is None
        assert item.date_label == ""

    def test_empty_feed_is_not_an_error(self):
        assert parse_feed_content(EMPTY_RSS) == []

    def test_unparseable_content_raises(self):
        with pytest.raises(FetchError):
            parse_feed_content("dit is geen feed")


def test_html_to_text_collapses_whitespace_and_skips_scripts():
    html = "<p>Eerste  regel</p>\n<script>alert(1)</script><p>tweede&amp;laatste</p>"

    assert html_to_text(html) == "Eerste regel tweede&laatste"


class TestFetchFeed:
    def test_returns_parsed_items(self):
        session = FakeSession([FakeResponse(status=200, text=RSS_SAMPLE)])

        items = asyncio.run(fetch_feed("https://feed.test/rss", timeout=5, session=session))

        assert len(items) == 3
        assert session.calls[0]["url"] == "https://feed.test/rss"
        assert "User-Agent" in session.calls[0]["headers"]

    def test_http_error_raises_fetch_error(self):
        session = FakeSession([FakeResponse(status=503)])

        with pytest.raises(FetchError, match="HTTP 503"):
            asyncio.run(fetch_feed("https://feed.test/rss", session=session))

    def test_connection_error_raises_fetch_error(self):
        session = FakeSession(error=aiohttp.ClientConnectionError("connection refused"))

        with pytest.raises(FetchError, match="Netwerkfout"):
            asyncio.run(fetch_feed("https://feed.test/rss", session=session))

    def test_timeout_raises_fetch_error(self):
        session = FakeSession(error=asyncio.TimeoutError())

        with pytest.raises(FetchError, match="Time-out"):
            asyncio.run(fetch_feed("https://feed.test/rss", timeout=7, session=session))
