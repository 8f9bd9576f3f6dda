"""Cache key derivation.

A static key is fixed for every call; a key function computes one per call
from the call arguments and may return ``BYPASS`` to skip caching.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from kvmemo._async import maybe_await
from kvmemo.errors import KeyTypeError
from kvmemo.protocol import BYPASS

if TYPE_CHECKING:
    from collections.abc import Mapping

    from kvmemo.protocol import CacheKey, KeyFunction

logger = logging.getLogger(__name__)


class KeyDeriver:
    """Derive prefixed cache keys from call arguments.

    Args:
        key: A static key string, or a (possibly async) function called with
            the same arguments as the cached function.
        prefix: Prepended to every derived key.
    """

    def __init__(self, key: str | KeyFunction, prefix: str = "") -> None:
        self._key = key
        self._prefix = prefix

    @property
    def is_static(self) -> bool:
        return isinstance(self._key, str)

    async def derive(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> CacheKey:
        if isinstance(self._key, str):
            return self._prefix + self._key

        key = await maybe_await(self._key(*args, **kwargs))
        if key is BYPASS:
            logger.debug("Key function returned BYPASS, skipping cache")
            return BYPASS
        if not isinstance(key, str):
            raise KeyTypeError(f"key function must return a string or BYPASS, got {type(key).__name__}")
        return self._prefix + key
