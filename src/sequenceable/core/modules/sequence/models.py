"""Generation options, call context and results of sequence generation."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sequenceable.core.modules.counter.models import Counter

# Read-only view of the record requesting a sequence
type RecordView = Mapping[str, Any]
# Derives a prefix or suffix from the calling record
type Resolver = Callable[[RecordView], str]


class FormatContext(BaseModel):
    """Everything a formatter may use to render a sequence."""

    namespace: str
    prefix: str
    sequence: int
    suffix: str | None
    length: int
    pad: str
    separator: str
    timestamp: datetime

    model_config = ConfigDict(frozen=True)


type Formatter = Callable[[FormatContext], str]


class SequenceDefaults(BaseModel):
    """Configured fallbacks used when an option is not given per call."""

    namespace: str = "Sequence"
    year_format: str = "%y"
    start: int = 1
    increment: int = Field(1, gt=0)
    length: int = Field(4, ge=0)
    pad: str = Field("0", min_length=1)
    separator: str = ""


class RetryPolicy(BaseModel):
    """Bounded exponential backoff applied to conflicting allocations."""

    max_attempts: int = Field(10, ge=1)
    min_wait: float = Field(0.01, ge=0)
    max_wait: float = Field(1.0, ge=0)
    multiplier: float = Field(0.01, ge=0)
    timeout: float | None = Field(None, gt=0, description="Overall deadline in seconds")


class GenerationOptions(BaseModel):
    """Per-call generation options. Unset values fall back to SequenceDefaults."""

    namespace: str | None = None
    prefix: str | Resolver | None = None
    suffix: str | Resolver | None = None
    increment: int | None = Field(None, gt=0)
    length: int | None = Field(None, ge=0)
    pad: str | None = Field(None, min_length=1)
    separator: str | None = None
    format: Formatter | None = None

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class SequenceContext:
    """Explicit view of the record on whose behalf a sequence is generated."""

    record_type: str | None = None
    fields: RecordView = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.fields, MappingProxyType):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


class ResolvedOptions(BaseModel):
    """Options after fallback resolution; the counter key is fully determined."""

    namespace: str
    prefix: str
    suffix: str
    increment: int
    length: int
    pad: str
    separator: str


class SequenceResult(BaseModel):
    """Formatted sequence plus the counter snapshot it was derived from."""

    value: str = Field(..., description="Formatted sequence, e.g. 'TZ210001'")
    counter: Counter
