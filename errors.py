"""Error taxonomy for the Peloton pipeline.

Each pipeline stage raises exactly one of these types. The orchestrator in
pipeline.py is the only place they are caught; there they are turned into a
failed RunResult with the message appended to the run log.

Messages are Dutch because they end up verbatim in the run log shown to users.
"""


class PipelineError(Exception):
    """Base class for stage failures that end a run."""


class FetchError(PipelineError):
    """The RSS feed could not be downloaded or parsed."""


class SynthesisError(PipelineError):
    """Every configured model failed to produce a narrative."""


class PersistError(PipelineError):
    """The Notion API rejected or never received the new page."""
