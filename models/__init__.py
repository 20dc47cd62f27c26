"""Data models for the Peloton pipeline.

FeedItem:
    RSS entry with title, publication time, plain-text snippet and link.

SynthesisResult:
    Narrative text plus the model that wrote it.

ReportRecord:
    Report page as stored in Notion (title, run date, chunked body).

RunLog / RunResult:
    Human-readable trail and terminal outcome of a pipeline run.

Example:
    >>> from models import FeedItem, RunLog
    >>> log = RunLog()
    >>> log.add("Starten met ophalen nieuws (6 dagen terug)...")
"""

from models.feed_item import FeedItem
from models.report import ReportRecord, SynthesisResult
from models.run import LogEntry, RunLog, RunResult

__all__ = [
    "FeedItem",
    "SynthesisResult",
    "ReportRecord",
    "LogEntry",
    "RunLog",
    "RunResult",
]
