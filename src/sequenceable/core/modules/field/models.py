"""Sequenceable field definitions."""

from pydantic import BaseModel, Field

from sequenceable.core.modules.sequence.models import GenerationOptions

# Default value of a sequenceable field until a sequence has been generated for it
SEQUENCE_PLACEHOLDER = "sequence"


class SequenceFieldDefinition(BaseModel):
    """A record field whose value is generated from a counter."""

    path: str = Field(..., min_length=1, description="Field name on the record")
    options: GenerationOptions = Field(default_factory=GenerationOptions)
    message: str | None = Field(None, description="Failure template with {value} and {path} placeholders")
