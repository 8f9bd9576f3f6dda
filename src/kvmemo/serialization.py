"""Serialization protocols and the default get/set strategies.

A get strategy is ``(store, key) -> value | MISSING``; a set strategy is
``(store, key, value, ttl) -> None``. Either may be sync or async. The
defaults built here never raise: read failures become a miss and write
failures are logged and dropped.

Usage:
    serializer = JsonSerializer()
    cached_str = serializer.serialize({"a": 1})
    value = serializer.deserialize(cached_str)

    wrap = configure(ttl=300, get=make_getter(StringSerializer()))
"""

from __future__ import annotations

import json
import logging
import math
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

from kvmemo._async import maybe_await
from kvmemo.protocol import MISSING

if TYPE_CHECKING:
    from kvmemo.protocol import GetStrategy, KVStore, SetStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Serializer(Protocol[T]):
    """Protocol for serializing and deserializing values for cache storage."""

    def serialize(self, value: T) -> str:
        """Convert a value to a string for cache storage."""
        ...

    def deserialize(self, data: str) -> T:
        """Convert a cached string back to the original value."""
        ...


class JsonSerializer(Generic[T]):
    """Generic JSON serializer for simple types.

    Works with any JSON-serializable type (dicts, lists, primitives, None).
    Tuples come back as lists.
    """

    def __init__(self, *, sort_keys: bool = False) -> None:
        self._sort_keys = sort_keys

    def serialize(self, value: T) -> str:
        """Convert a value to JSON string."""
        return json.dumps(value, sort_keys=self._sort_keys)

    def deserialize(self, data: str) -> T:
        """Convert a JSON string back to the original type."""
        return json.loads(data)


class StringSerializer:
    """Passthrough serializer for string values."""

    def serialize(self, value: str) -> str:
        """Return the string unchanged."""
        if not isinstance(value, str):
            raise TypeError(f"StringSerializer can only store str, got {type(value).__name__}")
        return value

    def deserialize(self, data: str) -> str:
        """Return the string unchanged."""
        return data


def make_getter(serializer: Serializer[Any]) -> GetStrategy:
    """Build a get strategy that reads text from the store and deserializes it.

    A store miss (``None``), a store failure and undecodable text all report
    ``MISSING``.
    """

    async def get(store: KVStore, key: str) -> Any:
        try:
            text = await maybe_await(store.get(key))
        except Exception as e:
            logger.warning("Cache read failed for key %s: %s", key, e)
            return MISSING
        if text is None:
            logger.debug("Cache miss [key=%s]", key)
            return MISSING
        try:
            value = serializer.deserialize(text)
        except Exception as e:
            logger.warning("Failed to deserialize cached value for key %s: %s", key, e)
            return MISSING
        logger.debug("Cache hit [key=%s]", key)
        return value

    return get


def make_setter(serializer: Serializer[Any]) -> SetStrategy:
    """Build a set strategy that serializes the value and writes it with a TTL.

    ``MISSING`` is never written. The TTL is floored to whole seconds.
    Serialization and store failures are logged and swallowed.
    """

    async def set_(store: KVStore, key: str, value: Any, ttl: float) -> None:
        if value is MISSING:
            return
        ttl_seconds = math.floor(ttl)
        try:
            text = serializer.serialize(value)
            await maybe_await(store.put(key, text, ttl_seconds))
        except Exception as e:
            logger.warning("Failed to cache value for key %s: %s", key, e)
            return
        logger.debug("Cached value [key=%s, ttl=%ds]", key, ttl_seconds)

    return set_


default_get: GetStrategy = make_getter(JsonSerializer())
default_set: SetStrategy = make_setter(JsonSerializer())
