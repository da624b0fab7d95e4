from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from pymongo import ASCENDING, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConnectionFailure, DuplicateKeyError, OperationFailure, PyMongoError

from sequenceable.config import Config
from sequenceable.core.core import Service
from sequenceable.core.modules.counter.models import Counter, CounterKey
from sequenceable.core.retry import retry_conflicts
from sequenceable.errors import ConflictError, StoreError

logger = structlog.get_logger(__name__)

WRITE_CONFLICT_CODE = 112
TRANSIENT_LABELS = ("TransientTransactionError", "RetryableWriteError")


def is_transient(error: PyMongoError) -> bool:
    """Whether a driver error left the counter untouched and the call may simply be repeated."""
    if isinstance(error, DuplicateKeyError | ConnectionFailure):
        return True
    if isinstance(error, OperationFailure) and error.code == WRITE_CONFLICT_CODE:
        return True
    return any(error.has_error_label(label) for label in TRANSIENT_LABELS)


@contextmanager
def translate_errors(operation: str, key: CounterKey | None = None) -> Iterator[None]:
    """Convert pymongo errors into ConflictError (retryable) or StoreError."""
    try:
        yield
    except PyMongoError as e:
        if is_transient(e):
            logger.debug("counter_conflict", operation=operation, key=key, error=str(e))
            raise ConflictError(f"{operation} conflicted: {e}") from e
        logger.exception("counter_store_failure", operation=operation, key=key)
        raise StoreError(f"{operation} failed: {e}") from e


class CounterService(Service):
    """Owns the counters collection and its atomic allocate-and-increment operation."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]], config: Config) -> None:
        super().__init__(database, config)
        self._collection = database.get_collection(config.collection_name)
        self.retry_policy = config.retry_policy()

    async def on_start(self) -> None:
        """Create indexes on startup."""
        # One counter document per composite key
        await self._collection.create_index(
            [("namespace", ASCENDING), ("prefix", ASCENDING), ("suffix", ASCENDING)], unique=True
        )

    def _base(self, start: int | None = None) -> int:
        """Stored value of a counter whose next allocation of increment i yields start - 1 + i."""
        return (self.config.start if start is None else start) - 1

    async def allocate(self, key: CounterKey, increment: int) -> Counter:
        """Atomically create-or-increment the counter for key and return the post-increment document.

        The default value and the increment are applied in a single pipeline update,
        so a freshly created counter is never observed without its first increment.
        Runs once; SequenceService retries ConflictError under the caller's deadline.

        Raises:
            ConflictError: transient contention (e.g. two first-inserts racing), nothing was written
            StoreError: any other store failure
        """
        update = [
            {
                "$set": {
                    "sequence": {"$add": [{"$ifNull": ["$sequence", self._base()]}, increment]},
                }
            }
        ]
        with translate_errors("allocate", key):
            doc = await self._collection.find_one_and_update(
                key.to_query(),
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise StoreError(f"allocate returned no document for {key}")

        counter = Counter.from_mongo(doc)
        logger.debug("allocate", key=key, increment=increment, sequence=counter.sequence)
        return counter

    async def get_counter(self, key: CounterKey) -> Counter | None:
        """Get the counter for key without incrementing it."""

        async def find() -> dict[str, Any] | None:
            with translate_errors("get_counter", key):
                return await self._collection.find_one(key.to_query())

        doc = await retry_conflicts(self.retry_policy, f"read counter {key.namespace}/{key.prefix}", find)
        return Counter.from_mongo(doc) if doc else None

    async def list_counters(self, namespace: str | None = None) -> list[Counter]:
        """List counters, optionally limited to one namespace."""
        query = {"namespace": namespace} if namespace else {}

        async def find() -> list[Counter]:
            with translate_errors("list_counters"):
                cursor = self._collection.find(query).sort(
                    [("namespace", ASCENDING), ("prefix", ASCENDING), ("suffix", ASCENDING)]
                )
                return await Counter.list_cursor(cursor)

        return await retry_conflicts(self.retry_policy, "list counters", find)

    async def _upsert(self, operation: str, key: CounterKey, update: dict[str, Any]) -> Counter:
        """Apply update to the counter for key, creating it when missing.

        Two first-inserts racing on the unique index surface as ConflictError; the
        loser is repeated and then matches the winner's document.
        """

        async def write() -> dict[str, Any] | None:
            with translate_errors(operation, key):
                return await self._collection.find_one_and_update(
                    key.to_query(), update, upsert=True, return_document=ReturnDocument.AFTER
                )

        doc = await retry_conflicts(self.retry_policy, f"{operation} counter {key.namespace}/{key.prefix}", write)
        if doc is None:
            raise StoreError(f"{operation} returned no document for {key}")
        return Counter.from_mongo(doc)

    async def seed(self, key: CounterKey, start: int | None = None) -> Counter:
        """Create the counter if missing so its first allocation starts at start; existing counters are kept."""
        return await self._upsert("seed", key, {"$setOnInsert": {"sequence": self._base(start)}})

    async def reset(self, key: CounterKey, start: int | None = None) -> Counter:
        """Rewind (or create) the counter so its next allocation starts at start."""
        counter = await self._upsert("reset", key, {"$set": {"sequence": self._base(start)}})
        logger.info("counter_reset", key=key, sequence=counter.sequence)
        return counter

    async def clear(self, key: CounterKey) -> bool:
        """Delete the counter for key. Returns False when it did not exist."""

        async def delete() -> int:
            with translate_errors("clear", key):
                result = await self._collection.delete_one(key.to_query())
            return result.deleted_count

        return await retry_conflicts(self.retry_policy, f"clear counter {key.namespace}/{key.prefix}", delete) > 0

    async def delete_counters_by_namespace(self, namespace: str) -> int:
        """Delete all counters in a namespace and return count of deleted counters."""

        async def delete() -> int:
            with translate_errors("delete_counters_by_namespace"):
                result = await self._collection.delete_many({"namespace": namespace})
            return result.deleted_count

        return await retry_conflicts(self.retry_policy, f"clear namespace {namespace}", delete)
