"""Models for the synthesized narrative and the stored report."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class SynthesisResult(BaseModel):
    """Output of one successful model call."""

    text: str = Field(description="Narrative exactly as returned by the model")
    model_used: str = Field(description="Model identifier that produced the text")
    input_tokens: int = Field(default=0, description="Prompt tokens reported by the API")
    output_tokens: int = Field(default=0, description="Completion tokens reported by the API")


class ReportRecord(BaseModel):
    """A report page as it is written to Notion.

    The body is kept twice: as the full text and as the ordered chunks that
    respect Notion's per-element size limit. Joining the chunks gives back
    the full body.
    """

    model_config = ConfigDict(frozen=True)

    title_label: str = Field(description="Page title, e.g. 'Wielernieuws tm 19 okt'")
    date_field: date = Field(description="Run date (not the date of any feed item)")
    body_chunks: list[str] = Field(default_factory=list, description="Size-bounded body segments")
    full_body: str = Field(default="", description="Complete narrative")
