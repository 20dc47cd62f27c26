"""Recency and topic filtering of feed items.

The filter is a pure function: it does not log to the run log and does not
touch the network. An item survives when it is dated, newer than the cutoff,
and free of excluded keywords in both its title and snippet.

Undated items are always dropped because they cannot be compared with the
cutoff.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from config import IGNORED_KEYWORDS
from models.feed_item import FeedItem


@dataclass(frozen=True)
class FilterCriteria:
    """Rules applied to one run's items.

    Attributes:
        cutoff: Exclusive lower bound for publication time (UTC)
        excluded_keywords: Lower-cased keywords that disqualify an item
    """

    cutoff: datetime
    excluded_keywords: frozenset[str]

    @classmethod
    def for_days_back(
        cls,
        days_back: int,
        keywords: Iterable[str] = IGNORED_KEYWORDS,
        now: datetime | None = None,
    ) -> "FilterCriteria":
        """Build criteria with cutoff = now - days_back days.

        Args:
            days_back: Size of the look-back window in days (positive)
            keywords: Topics to exclude
            now: Reference time, defaults to the current UTC time

        Raises:
            ValueError: If days_back is not positive
        """
        if days_back <= 0:
            raise ValueError(f"days_back must be positive, got {days_back}")
        now = now or datetime.now(timezone.utc)
        return cls(
            cutoff=now - timedelta(days=days_back),
            excluded_keywords=frozenset(k.lower() for k in keywords if k),
        )

    def mentions_excluded(self, text: str) -> bool:
        """True if any excluded keyword occurs in text (case-insensitive)."""
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.excluded_keywords)

    def accepts(self, item: FeedItem) -> bool:
        """Check a single item against all rules."""
        if item.published_at is None:
            return False
        if item.published_at <= self.cutoff:
            return False
        return not (self.mentions_excluded(item.title) or self.mentions_excluded(item.snippet))


def filter_items(items: Iterable[FeedItem], criteria: FilterCriteria) -> list[FeedItem]:
    """Keep the items accepted by criteria, preserving input order."""
    return [item for item in items if criteria.accepts(item)]
