from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from sequenceable.config import Config
from sequenceable.core.core import Service
from sequenceable.core.modules.counter.models import Counter, CounterKey
from sequenceable.core.modules.counter.service import CounterService
from sequenceable.core.modules.sequence.formatting import resolve_formatter, resolve_options
from sequenceable.core.modules.sequence.models import (
    FormatContext,
    GenerationOptions,
    RetryPolicy,
    SequenceContext,
    SequenceDefaults,
    SequenceResult,
)
from sequenceable.core.retry import retry_conflicts
from sequenceable.utils import now

logger = structlog.get_logger(__name__)

class SequenceService(Service):
    """Public entry point: resolves options, allocates with retry and formats the result."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]], config: Config) -> None:
        super().__init__(database, config)
        self.defaults: SequenceDefaults = config.sequence_defaults()
        self.retry_policy: RetryPolicy = config.retry_policy()

    @property
    def counters(self) -> CounterService:
        return self.core.services.counter

    async def generate(
        self,
        options: GenerationOptions | None = None,
        context: SequenceContext | None = None,
        deadline: float | None = None,
    ) -> SequenceResult:
        """Allocate the next sequence for the resolved key and format it.

        Args:
            options: Per-call options; unset values fall back to configured defaults
            context: Calling record view used for namespace fallback and prefix/suffix resolvers
            deadline: Seconds to keep retrying conflicts; defaults to the configured allocation timeout

        Returns:
            Formatted value and the counter snapshot

        Raises:
            ConfigurationError: options resolved to an unusable key, nothing was allocated
            AllocationTimeoutError: conflicts persisted past max attempts or the deadline
            StoreError: the store failed for a non-transient reason
        """
        options = options or GenerationOptions()
        context = context or SequenceContext()
        resolved = resolve_options(options, context, self.defaults, now())
        key = CounterKey(namespace=resolved.namespace, prefix=resolved.prefix, suffix=resolved.suffix)

        counter = await self.allocate(key, resolved.increment, deadline)

        format_context = FormatContext(
            namespace=counter.namespace,
            prefix=counter.prefix,
            sequence=counter.sequence,
            suffix=counter.suffix,
            length=resolved.length,
            pad=resolved.pad,
            separator=resolved.separator,
            timestamp=now(),
        )
        value = resolve_formatter(options)(format_context)
        logger.debug("generate", key=key, sequence=counter.sequence, value=value)
        return SequenceResult(value=value, counter=counter)

    async def allocate(self, key: CounterKey, increment: int, deadline: float | None = None) -> Counter:
        """Allocate from the counter store, retrying conflicts until attempts or the deadline run out."""
        return await retry_conflicts(
            self.retry_policy,
            f"allocate sequence for {key.namespace}/{key.prefix}",
            lambda: self.counters.allocate(key, increment),
            deadline,
        )
