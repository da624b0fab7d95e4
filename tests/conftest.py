"""Shared pytest fixtures."""

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

from sequenceable.config import Config
from sequenceable.core.core import Services


def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    # Equality only; None matches a missing field like MongoDB does
    return all(doc.get(field) == value for field, value in query.items())


def _evaluate(expr: Any, doc: dict[str, Any]) -> Any:
    if isinstance(expr, str) and expr.startswith("$"):
        return doc.get(expr[1:])
    if isinstance(expr, dict) and "$add" in expr:
        return sum(_evaluate(arg, doc) for arg in expr["$add"])
    if isinstance(expr, dict) and "$ifNull" in expr:
        value, fallback = expr["$ifNull"]
        result = _evaluate(value, doc)
        return _evaluate(fallback, doc) if result is None else result
    return expr


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    def sort(self, keys: list[tuple[str, int]]) -> "FakeCursor":
        for field, direction in reversed(keys):
            self._docs.sort(key=lambda d, f=field: d.get(f) or "", reverse=direction < 0)
        return self

    def __aiter__(self) -> "FakeCursor":
        self._iter = iter(self._docs)
        return self

    async def __anext__(self) -> dict[str, Any]:
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration from None


class FakeCollection:
    """In-memory stand-in for an AsyncCollection, atomic per operation like a single MongoDB document update."""

    def __init__(self) -> None:
        self.docs: list[dict[str, Any]] = []
        self.indexes: list[tuple[list[tuple[str, int]], dict[str, Any]]] = []
        self.errors: list[Exception] = []  # Raised (in order) by the next operations, before any mutation
        self.delay = 0.0
        self.write_calls = 0

    async def create_index(self, keys: list[tuple[str, int]], **kwargs: Any) -> str:
        self.indexes.append((keys, kwargs))
        return "_".join(f"{field}_{direction}" for field, direction in keys)

    async def find_one_and_update(
        self, query: dict[str, Any], update: Any, upsert: bool = False, return_document: Any = None
    ) -> dict[str, Any] | None:
        self.write_calls += 1
        # Yield so concurrent callers interleave between operations
        await asyncio.sleep(self.delay)
        if self.errors:
            raise self.errors.pop(0)

        doc = next((d for d in self.docs if _matches(d, query)), None)
        inserted = doc is None
        if inserted:
            if not upsert:
                return None
            doc = {"_id": len(self.docs) + 1, **query}

        if isinstance(update, list):
            for stage in update:
                for field, expr in stage["$set"].items():
                    doc[field] = _evaluate(expr, doc)
        else:
            doc.update(update.get("$set", {}))
            if inserted:
                doc.update(update.get("$setOnInsert", {}))

        if inserted:
            self.docs.append(doc)
        return dict(doc)

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        if self.errors:
            raise self.errors.pop(0)
        doc = next((d for d in self.docs if _matches(d, query)), None)
        return dict(doc) if doc else None

    def find(self, query: dict[str, Any]) -> FakeCursor:
        return FakeCursor([dict(d) for d in self.docs if _matches(d, query)])

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        self.write_calls += 1
        if self.errors:
            raise self.errors.pop(0)
        for doc in self.docs:
            if _matches(doc, query):
                self.docs.remove(doc)
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query: dict[str, Any]) -> SimpleNamespace:
        self.write_calls += 1
        if self.errors:
            raise self.errors.pop(0)
        before = len(self.docs)
        self.docs = [d for d in self.docs if not _matches(d, query)]
        return SimpleNamespace(deleted_count=before - len(self.docs))


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def config():
    """Config with instant retries so conflict tests do not sleep."""
    return Config(
        database_url="mongodb://localhost:27017/sequenceable_test",
        max_attempts=5,
        retry_min_wait=0,
        retry_max_wait=0,
        retry_multiplier=0,
        allocation_timeout=None,
    )


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def collection(database, config):
    return database.get_collection(config.collection_name)


@pytest.fixture
def services(database, config):
    """Real services wired to the in-memory database."""
    services = Services(database, config)
    services.set_core(SimpleNamespace(config=config, services=services))
    return services
