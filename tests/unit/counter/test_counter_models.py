"""Tests for counter key and document models."""

import pytest
from pydantic import ValidationError

from sequenceable.core.modules.counter.models import Counter, CounterKey


def test_empty_suffix_is_stored_as_none():
    assert CounterKey(namespace="Ticket", prefix="21", suffix="").suffix is None


def test_query_matches_exact_key():
    key = CounterKey(namespace="Ticket", prefix="21", suffix="TZ")
    assert key.to_query() == {"namespace": "Ticket", "prefix": "21", "suffix": "TZ"}


def test_key_requires_namespace_and_prefix():
    with pytest.raises(ValidationError):
        CounterKey(namespace="", prefix="21")
    with pytest.raises(ValidationError):
        CounterKey(namespace="Ticket", prefix="")


def test_counter_from_mongo_drops_object_id():
    counter = Counter.from_mongo({"_id": "665f1c", "namespace": "Ticket", "prefix": "21", "suffix": None, "sequence": 7})
    assert counter.sequence == 7
    assert counter.key == CounterKey(namespace="Ticket", prefix="21")
    assert "_id" not in counter.to_mongo()


def test_key_parts_are_trimmed():
    key = CounterKey(namespace=" Ticket", prefix="TZ ", suffix="  ")
    assert key == CounterKey(namespace="Ticket", prefix="TZ")
    assert key.suffix is None


def test_blank_prefix_is_rejected():
    with pytest.raises(ValidationError):
        CounterKey(namespace="Ticket", prefix="   ")
