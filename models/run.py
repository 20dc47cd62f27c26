"""Run log and run result for a single pipeline execution.

The run log is the human-readable trail shown to whoever triggered the run.
It is created by the orchestrator and handed to the stages that report
progress, instead of living in shared module state.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEntry:
    """One line of the run log."""

    timestamp: datetime
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class RunLog:
    """Append-only, ordered collection of run log messages.

    Every message is also echoed to the application logger so scheduled
    runs leave the same trail in the log files.

    Example:
        >>> log = RunLog()
        >>> log.add("RSS opgehaald: 12 items gevonden.")
        >>> log.messages
        ['RSS opgehaald: 12 items gevonden.']
    """

    entries: list[LogEntry] = field(default_factory=list)

    def add(self, message: str) -> None:
        """Append a message to the log."""
        self.entries.append(LogEntry(timestamp=datetime.now(timezone.utc), message=message))
        logger.info("%s", message)

    @property
    def messages(self) -> list[str]:
        """Messages in the order they were added."""
        return [entry.message for entry in self.entries]

    @property
    def last(self) -> str | None:
        """Most recent message, or None for an empty log."""
        return self.entries[-1].message if self.entries else None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.messages)


@dataclass
class RunResult:
    """Terminal result of one pipeline run.

    Attributes:
        success: True when the run completed (including the "no news" exit)
        logs: Run log collected during the run
        content: Generated narrative if any, otherwise a fixed placeholder
    """

    success: bool
    logs: RunLog
    content: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "logs": self.logs.messages,
            "content": self.content,
        }
