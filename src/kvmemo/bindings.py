"""Lazy, memoized store resolution by binding name."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kvmemo._async import maybe_await
from kvmemo.context import resolve_binding
from kvmemo.errors import BindingError
from kvmemo.protocol import has_capabilities

if TYPE_CHECKING:
    from kvmemo.protocol import BindingResolver, KVStore

logger = logging.getLogger(__name__)


class StoreResolver:
    """Resolve a binding to a store handle once, then reuse it.

    The resolved handle is checked for callable ``get``, ``put`` and
    ``delete``. Failed resolutions are not remembered, so a later call can
    succeed once the binding exists. There is no lock: concurrent first
    calls may each resolve, and the last one wins.

    Args:
        binding: Binding name passed to ``resolve``.
        resolve: Maps a binding name to a store handle; may return an
            awaitable. Defaults to the ambient environment lookup.
    """

    def __init__(self, binding: str, resolve: BindingResolver | None = None) -> None:
        self.binding = binding
        self._resolve = resolve or resolve_binding
        self._store: KVStore | None = None

    @property
    def resolved(self) -> bool:
        return self._store is not None

    async def __call__(self) -> KVStore:
        if self._store is not None:
            return self._store

        store = await maybe_await(self._resolve(self.binding))
        if not has_capabilities(store):
            raise BindingError(self.binding, "expected an object with callable get, put and delete")
        logger.debug("Resolved KV binding %s to %s", self.binding, type(store).__name__)
        self._store = store  # type: ignore[assignment]
        return store  # type: ignore[return-value]
