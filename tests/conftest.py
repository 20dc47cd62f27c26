from datetime import datetime, timedelta, timezone

import pytest

from config import Config
from models.feed_item import FeedItem

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_item(
    title: str,
    hours_ago: float | None = 1,
    snippet: str = "",
    link: str = "",
) -> FeedItem:
    """Build a FeedItem published hours_ago before NOW (None = undated)."""
    published_at = None if hours_ago is None else NOW - timedelta(hours=hours_ago)
    return FeedItem(
        title=title,
        published_at=published_at,
        snippet=snippet or f"Snippet van {title}",
        link=link or f"https://nos.nl/artikel/{abs(hash(title)) % 10000}",
    )


class FakeResponse:
    """Stand-in for an aiohttp response used as an async context manager."""

    def __init__(self, status: int = 200, text: str = "", json_body=None):
        self.status = status
        self._text = text
        self._json = json_body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def text(self) -> str:
        return self._text

    async def json(self, content_type="application/json"):
        if self._json is None:
            raise ValueError("response has no JSON body")
        return self._json


class FakeSession:
    """Stand-in for aiohttp.ClientSession that replays canned responses."""

    def __init__(self, responses=None, error: Exception | None = None):
        self.responses = list(responses or [])
        self.error = error
        self.calls: list[dict] = []

    def _next(self, **call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def get(self, url, **kwargs):
        return self._next(method="GET", url=url, **kwargs)

    def request(self, method, url, **kwargs):
        return self._next(method=method, url=url, **kwargs)


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        cerebras_api_key="test-cerebras",
        primary_model="primary",
        fallback_models=[],
        notion_api_key="test-notion",
        notion_database_id="db-123",
        log_dir=tmp_path / "log",
    )
