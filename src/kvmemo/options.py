"""Option merging and validation for cached functions.

Factory-level defaults are shallow-merged with per-function options, the
per-function values winning. Validation happens once, at wrap time, and
raises ``ConfigurationError`` (a ``TypeError``) on the first violation.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from numbers import Real
from typing import TYPE_CHECKING, Any, TypeVar

from kvmemo.errors import ConfigurationError
from kvmemo.serialization import default_get, default_set

if TYPE_CHECKING:
    from kvmemo.protocol import GetStrategy, KeyFunction, SetStrategy

DEFAULT_BINDING = "KV"
MIN_TTL_SECONDS = 60

S = TypeVar("S")


@dataclass(frozen=True)
class CacheOptions:
    """Effective, validated options for one cached function.

    Attributes:
        binding: Name of the store binding to resolve.
        prefix: String prepended to every derived key.
        key: Static key string, or a function of the call arguments.
        ttl: Time-to-live in seconds, at least 60.
        get: Read strategy ``(store, key) -> value | MISSING``.
        set: Write strategy ``(store, key, value, ttl) -> None``.
    """

    binding: str
    prefix: str
    key: str | KeyFunction
    ttl: float
    get: GetStrategy
    set: SetStrategy


def normalize_prefix(prefix: object) -> str:
    """Prefix policy: anything that is not a string becomes ``""``."""
    return prefix if isinstance(prefix, str) else ""


def resolve_strategy(strategy: object, default: S) -> S:
    """Strategy policy: a callable replaces the default, anything else keeps it."""
    return strategy if callable(strategy) else default  # type: ignore[return-value]


def declared_name(fn: Callable[..., Any]) -> str | None:
    """Return ``fn.__name__`` if it is a real identifier, else ``None``.

    Lambdas (``"<lambda>"``) and objects without a name have no declared
    name, so they cannot supply a default cache key.
    """
    name = getattr(fn, "__name__", None)
    if isinstance(name, str) and name.isidentifier():
        return name
    return None


def merge_options(
    defaults: Mapping[str, Any] | None,
    overrides: Mapping[str, Any] | None,
    fn: Callable[..., Any],
) -> CacheOptions:
    """Merge ``overrides`` over ``defaults`` and validate the result for ``fn``.

    Args:
        defaults: Factory-level options.
        overrides: Per-function options; these win for identical names.
        fn: The function being wrapped; its declared name is the default key.

    Returns:
        The validated CacheOptions.

    Raises:
        ConfigurationError: If binding, key or ttl are invalid.
    """
    opts: dict[str, Any] = {**(defaults or {}), **(overrides or {})}

    # Falsy binding and key fall back to their defaults; names other than
    # the six options are ignored.
    binding = opts.get("binding") or DEFAULT_BINDING
    if not isinstance(binding, str):
        raise ConfigurationError("binding must be a non-empty string (KV binding name)")

    prefix = normalize_prefix(opts.get("prefix"))

    key = opts.get("key") or declared_name(fn)
    if not ((isinstance(key, str) and key) or callable(key)):
        raise ConfigurationError("`key` must be a non-empty string or a callable")

    ttl = opts.get("ttl")
    if isinstance(ttl, bool) or not isinstance(ttl, Real) or not math.isfinite(ttl) or ttl < MIN_TTL_SECONDS:
        raise ConfigurationError(f"ttl must be a number of seconds >= {MIN_TTL_SECONDS}, got {ttl!r}")

    return CacheOptions(
        binding=binding,
        prefix=prefix,
        key=key,
        ttl=ttl,
        get=resolve_strategy(opts.get("get"), default_get),
        set=resolve_strategy(opts.get("set"), default_set),
    )
