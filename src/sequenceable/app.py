from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sequenceable.config import Config
from sequenceable.core.core import Core
from sequenceable.core.modules.counter.models import Counter, CounterKey
from sequenceable.core.modules.field.hooks import SequenceableField
from sequenceable.core.modules.field.models import SequenceFieldDefinition
from sequenceable.core.modules.sequence.models import GenerationOptions, SequenceContext, SequenceResult
from sequenceable.errors import NotFoundError


class App:
    """Facade for all application operations, used by the HTTP layer and embedding code."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def generate_sequence(
        self, options: GenerationOptions, record_type: str | None = None, deadline: float | None = None
    ) -> SequenceResult:
        """Allocate and format the next sequence for the resolved key."""
        context = SequenceContext(record_type=record_type)
        return await self._core.services.sequence.generate(options, context, deadline)

    def sequenceable_field(self, definition: SequenceFieldDefinition) -> SequenceableField:
        """Build a validation hook for a record field backed by this app's counters."""
        return SequenceableField(self._core.services.sequence, definition)

    async def get_counter(self, key: CounterKey) -> Counter:
        """Get counter state without allocating."""
        counter = await self._core.services.counter.get_counter(key)
        if counter is None:
            raise NotFoundError(f"Counter not found: {key.namespace}/{key.prefix}/{key.suffix or ''}")
        return counter

    async def list_counters(self, namespace: str | None = None) -> list[Counter]:
        return await self._core.services.counter.list_counters(namespace)

    async def seed_counter(self, key: CounterKey, start: int | None = None) -> Counter:
        """Create counter starting at start unless it already exists."""
        return await self._core.services.counter.seed(key, start)

    async def reset_counter(self, key: CounterKey, start: int | None = None) -> Counter:
        """Rewind counter so the next allocation starts at start."""
        return await self._core.services.counter.reset(key, start)

    async def clear_counter(self, key: CounterKey) -> None:
        """Delete counter."""
        if not await self._core.services.counter.clear(key):
            raise NotFoundError(f"Counter not found: {key.namespace}/{key.prefix}/{key.suffix or ''}")

    async def clear_namespace(self, namespace: str) -> int:
        """Delete all counters in namespace."""
        return await self._core.services.counter.delete_counters_by_namespace(namespace)
