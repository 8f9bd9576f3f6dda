"""Store capability protocol and sentinels.

A store is anything exposing ``get``, ``put`` and ``delete``. Each method may
be a plain function or a coroutine function; the wrapper awaits whatever is
awaitable.

Usage:
    value = await cached_fn.get(user_id)
    if value is MISSING:
        ...

    def key(user_id: str) -> str | type[BYPASS]:
        return BYPASS if user_id == "anonymous" else f"user:{user_id}"
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeAlias, final


@final
class MISSING:
    """Sentinel: no value present.

    Distinct from ``None``, which is a storable value (JSON ``null``).

    Note: This is a class used as a sentinel, not instantiated.
    """

    def __new__(cls) -> MISSING:
        raise TypeError("MISSING is a sentinel and should not be instantiated")


@final
class BYPASS:
    """Sentinel: skip caching for this call.

    Returned from a key function to call the wrapped function directly.

    Note: This is a class used as a sentinel, not instantiated.
    """

    def __new__(cls) -> BYPASS:
        raise TypeError("BYPASS is a sentinel and should not be instantiated")


class KVStore(Protocol):
    """Minimal key-value capability used by cached functions."""

    def get(self, key: str) -> str | None | Awaitable[str | None]: ...

    def put(self, key: str, value: str, ttl_seconds: int) -> None | Awaitable[None]: ...

    def delete(self, key: str) -> None | Awaitable[None]: ...


CacheKey: TypeAlias = str | type[BYPASS]
KeyFunction: TypeAlias = Callable[..., CacheKey | Awaitable[CacheKey]]
GetStrategy: TypeAlias = Callable[[KVStore, str], Any]
SetStrategy: TypeAlias = Callable[[KVStore, str, Any, float], Any]
BindingResolver: TypeAlias = Callable[[str], object]

REQUIRED_CAPABILITIES: tuple[str, ...] = ("get", "put", "delete")


def has_capabilities(store: object) -> bool:
    """Return True if ``store`` exposes callable ``get``, ``put`` and ``delete``."""
    return store is not None and all(callable(getattr(store, name, None)) for name in REQUIRED_CAPABILITIES)
