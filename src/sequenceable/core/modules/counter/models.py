"""Atomic counters backing sequence generation."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sequenceable.core.db import MongoModel


class CounterKey(BaseModel):
    """Composite identity of a counter. Parts are trimmed and an empty suffix is stored as null."""

    namespace: str = Field(..., min_length=1, description="Logical domain, usually the record type")
    prefix: str = Field(..., min_length=1, description="Time bucket or category tag, e.g. '21' or 'TZ'")
    suffix: str | None = Field(None, description="Optional secondary tag")

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("suffix")
    @classmethod
    def empty_suffix_is_none(cls, value: str | None) -> str | None:
        return value or None

    def to_query(self) -> dict[str, Any]:
        """Equality filter matching exactly this key (a null suffix only matches null/missing)."""
        return {"namespace": self.namespace, "prefix": self.prefix, "suffix": self.suffix}


class Counter(MongoModel):
    """Latest issued sequence for one composite key.

    Uses MongoDB atomic operations to prevent duplicates.
    Indexed on (namespace, prefix, suffix) - unique.
    """

    namespace: str
    prefix: str
    suffix: str | None = None
    sequence: int = Field(..., description="Latest allocated value")

    @property
    def key(self) -> CounterKey:
        return CounterKey(namespace=self.namespace, prefix=self.prefix, suffix=self.suffix)
