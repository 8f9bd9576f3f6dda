"""Memoizing wrapper for sync and async functions backed by a KV store.

Provides ``configure()``, which returns a wrap function that turns any
callable into a ``CachedFunction``. Results are stored in the store bound
under the configured binding name, keyed by a derived cache key, with a TTL.

Usage:
    cache = configure(ttl=3600, prefix="users:")

    @cache(key=lambda user_id: f"profile:{user_id}")
    async def fetch_profile(user_id: str) -> dict[str, str]:
        ...

    profile = await fetch_profile("u1")        # miss: fetches and stores
    profile = await fetch_profile("u1")        # hit: served from the store
    fresh = await fetch_profile.raw("u1")      # always calls the function
    await fetch_profile.set("u1", {"name": "x"})
    await fetch_profile.clear("u1")
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeAlias

from kvmemo._async import maybe_await
from kvmemo.bindings import StoreResolver
from kvmemo.errors import ConfigurationError
from kvmemo.keys import KeyDeriver
from kvmemo.options import merge_options
from kvmemo.protocol import BYPASS, MISSING

if TYPE_CHECKING:
    from kvmemo.options import CacheOptions
    from kvmemo.protocol import BindingResolver, CacheKey

logger = logging.getLogger(__name__)


class CachedFunction:
    """A function whose results are memoized in an external KV store.

    Every operation is a coroutine, whether the wrapped function is sync or
    async. Store read/write failures are handled by the get/set strategies;
    errors from the wrapped function propagate unchanged.

    Attributes:
        func: The original function.
        options: The validated options in effect.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        options: CacheOptions,
        resolver: BindingResolver | None = None,
    ) -> None:
        functools.update_wrapper(self, func)
        self.func = func
        self.options = options
        self._keys = KeyDeriver(options.key, options.prefix)
        self._store = StoreResolver(options.binding, resolver)

    @property
    def _name(self) -> str:
        return getattr(self.func, "__qualname__", repr(self.func))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self._name} binding={self.options.binding!r}>"

    def __get__(self, instance: object, owner: type | None = None) -> CachedFunction | BoundCachedFunction:
        if instance is None:
            return self
        return BoundCachedFunction(self, instance)

    async def cache_key(self, *args: Any, **kwargs: Any) -> CacheKey:
        """Return the prefixed cache key for these arguments, or ``BYPASS``."""
        return await self._keys.derive(args, kwargs)

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        key = await self._keys.derive(args, kwargs)
        if key is BYPASS:
            return await maybe_await(self.func(*args, **kwargs))

        store = await self._store()
        value = await maybe_await(self.options.get(store, key))
        if value is not MISSING:
            return value

        logger.debug("Cache miss for %s [key=%s], calling function", self._name, key)
        result = await maybe_await(self.func(*args, **kwargs))
        await maybe_await(self.options.set(store, key, result, self.options.ttl))
        return result

    async def raw(self, *args: Any, **kwargs: Any) -> Any:
        """Call the original function, ignoring the cache entirely."""
        return await maybe_await(self.func(*args, **kwargs))

    async def get(self, *args: Any, **kwargs: Any) -> Any:
        """Return the cached value for these arguments, or ``MISSING``."""
        key = await self._keys.derive(args, kwargs)
        if key is BYPASS:
            return MISSING
        store = await self._store()
        return await maybe_await(self.options.get(store, key))

    async def set(self, *args_and_value: Any, **kwargs: Any) -> None:
        """Store a value for the given arguments.

        The last positional argument is the value; the preceding positional
        arguments (and any keyword arguments) derive the key. Nothing is
        written when the key is ``BYPASS`` or the value is ``MISSING``.
        """
        if not args_and_value:
            raise TypeError("set() requires the value to store as its last positional argument")
        *args, value = args_and_value
        key = await self._keys.derive(tuple(args), kwargs)
        if key is BYPASS or value is MISSING:
            return
        store = await self._store()
        await maybe_await(self.options.set(store, key, value, self.options.ttl))

    async def clear(self, *args: Any, **kwargs: Any) -> None:
        """Delete the cached value for these arguments."""
        key = await self._keys.derive(args, kwargs)
        if key is BYPASS:
            return
        store = await self._store()
        await maybe_await(store.delete(key))
        logger.debug("Cleared cache key %s", key)


class BoundCachedFunction:
    """A CachedFunction bound to an instance, which is passed as the first argument."""

    __slots__ = ("_cached", "_instance")

    def __init__(self, cached: CachedFunction, instance: object) -> None:
        self._cached = cached
        self._instance = instance

    def __getattr__(self, name: str) -> Any:
        return getattr(self._cached, name)

    def __repr__(self) -> str:
        return f"<bound {self._cached!r} of {self._instance!r}>"

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return await self._cached(self._instance, *args, **kwargs)

    async def cache_key(self, *args: Any, **kwargs: Any) -> CacheKey:
        return await self._cached.cache_key(self._instance, *args, **kwargs)

    async def raw(self, *args: Any, **kwargs: Any) -> Any:
        return await self._cached.raw(self._instance, *args, **kwargs)

    async def get(self, *args: Any, **kwargs: Any) -> Any:
        return await self._cached.get(self._instance, *args, **kwargs)

    async def set(self, *args_and_value: Any, **kwargs: Any) -> None:
        await self._cached.set(self._instance, *args_and_value, **kwargs)

    async def clear(self, *args: Any, **kwargs: Any) -> None:
        await self._cached.clear(self._instance, *args, **kwargs)


Wrap: TypeAlias = Callable[..., Any]


def configure(
    defaults: Mapping[str, Any] | None = None,
    /,
    *,
    resolver: BindingResolver | None = None,
    **default_options: Any,
) -> Wrap:
    """Create a wrap function with shared default options.

    Args:
        defaults: Default options as a mapping (``binding``, ``prefix``,
            ``key``, ``ttl``, ``get``, ``set``).
        resolver: Maps a binding name to a store. Defaults to the ambient
            environment (see ``init_environment``).
        **default_options: Default options as keywords; these win over
            ``defaults``.

    Returns:
        ``wrap(fn, options=None, /, **options)`` returning a CachedFunction.
        Called without ``fn`` it returns a decorator.

    Raises:
        ConfigurationError: If ``defaults`` is not a mapping.

    Example:
        cache = configure({"ttl": 60, "prefix": "p:"})
        doubled = cache(lambda x: x * 2, key="fixed")
    """
    if defaults is not None and not isinstance(defaults, Mapping):
        raise ConfigurationError("`options` must be a mapping")
    base: dict[str, Any] = {**(defaults or {}), **default_options}

    def wrap(
        fn: Callable[..., Any] | None = None,
        options: Mapping[str, Any] | None = None,
        /,
        **fn_options: Any,
    ) -> Any:
        if options is not None and not isinstance(options, Mapping):
            raise ConfigurationError("per-function options must be a mapping")
        overrides = {**(options or {}), **fn_options}
        if fn is None:

            def decorator(func: Callable[..., Any]) -> CachedFunction:
                return wrap(func, overrides)

            return decorator
        if not callable(fn):
            raise ConfigurationError(f"cannot cache non-callable {type(fn).__name__}")
        return CachedFunction(fn, merge_options(base, overrides, fn), resolver)

    return wrap
