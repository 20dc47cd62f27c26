"""Logging infrastructure for the Peloton pipeline.

setup_logging:
    Console + rotating file handlers, text or JSON output.

set_run_context / clear_context:
    Attach a run ID to every log line of a pipeline run.

Example:
    >>> from observability import setup_logging
    >>> setup_logging(config, verbose=True)
"""

from observability.logging import clear_context, set_run_context, setup_logging

__all__ = [
    "setup_logging",
    "set_run_context",
    "clear_context",
]
