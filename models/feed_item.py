"""Feed item model for RSS entries.

A FeedItem is one entry of the cycling RSS feed, reduced to the fields the
pipeline needs. Items are immutable and live for a single pipeline run.

Undated entries are represented with published_at=None rather than a guessed
timestamp, so the filter can decide what to do with them.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FeedItem(BaseModel):
    """A news item fetched from the RSS feed.

    Attributes:
        title: Article headline
        published_at: Publication timestamp in UTC, None if the entry has no date
        snippet: Plain-text summary (HTML stripped)
        link: URL of the article

    Example:
        >>> item = FeedItem(
        ...     title="Pogacar wint Lombardije",
        ...     published_at=datetime(2026, 10, 11, 16, 30, tzinfo=timezone.utc),
        ...     snippet="Vijfde zege op rij in de herfstklassieker.",
        ...     link="https://nos.nl/artikel/1",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(description="Article headline")
    published_at: datetime | None = Field(default=None, description="Publication timestamp (UTC)")
    snippet: str = Field(default="", description="Plain-text summary from the feed entry")
    link: str = Field(default="", description="URL of the article")

    @property
    def date_label(self) -> str:
        """ISO timestamp for rendering, empty when undated."""
        return self.published_at.isoformat() if self.published_at else ""

    def __str__(self) -> str:
        """Human-readable representation for logging."""
        return f"FeedItem('{self.title[:50]}', {self.date_label or 'undated'})"
