"""Validation hooks a record framework calls to fill sequenceable fields."""

from collections.abc import Iterable, MutableMapping
from typing import Any

import structlog

from sequenceable.core.modules.field.models import SEQUENCE_PLACEHOLDER, SequenceFieldDefinition
from sequenceable.core.modules.sequence.formatting import resolve_prefix
from sequenceable.core.modules.sequence.models import SequenceContext
from sequenceable.core.modules.sequence.service import SequenceService
from sequenceable.errors import SequenceError, ValidationFailure
from sequenceable.utils import now

logger = structlog.get_logger(__name__)


class SequenceableField:
    """Generates a field value from a counter when the record is validated.

    The record framework assigns default() when the record is created and calls
    before_validate() on every validation pass. Values already carrying the
    resolved prefix are left alone, so repeated validation never re-generates.
    """

    def __init__(self, generator: SequenceService, definition: SequenceFieldDefinition) -> None:
        self.generator = generator
        self.definition = definition

    @property
    def path(self) -> str:
        return self.definition.path

    def default(self) -> str:
        return SEQUENCE_PLACEHOLDER

    @staticmethod
    def is_generated(value: Any, prefix: str) -> bool:
        """Whether value is a real sequence (not the placeholder) for the given prefix."""
        return isinstance(value, str) and value != SEQUENCE_PLACEHOLDER and value.startswith(prefix)

    async def before_validate(
        self, record: MutableMapping[str, Any], record_type: str | None = None
    ) -> ValidationFailure | None:
        """Ensure record[path] holds a generated sequence.

        Returns:
            None when the field is valid, otherwise a ValidationFailure for the field.
            Generation errors never propagate; the field is cleared and reported instead.
        """
        options = self.definition.options
        original = record.get(self.path)
        context = SequenceContext(record_type=record_type, fields=record)

        try:
            prefix = resolve_prefix(options, context, self.generator.defaults, now())
            if self.is_generated(original, prefix):
                return None
            result = await self.generator.generate(options, context)
        except SequenceError as e:
            logger.warning("sequence_field_failed", path=self.path, record_type=record_type, error=str(e))
            record[self.path] = None
        else:
            record[self.path] = result.value

        if not record.get(self.path):
            return ValidationFailure(self.path, original, self.definition.message)
        return None


async def run_before_validate(
    fields: Iterable[SequenceableField], record: MutableMapping[str, Any], record_type: str | None = None
) -> list[ValidationFailure]:
    """Run every sequenceable field hook on record and collect their failures."""
    failures = []
    for field in fields:
        failure = await field.before_validate(record, record_type)
        if failure is not None:
            failures.append(failure)
    return failures
