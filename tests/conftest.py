"""Shared pytest fixtures for test modules."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

import pytest

from kvmemo.context import reset_environment
from kvmemo.errors import BindingError
from tests.fakes.kv import FakeKVStore

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


@pytest.fixture
def kv() -> FakeKVStore:
    """A recording fake store bound as ``KV`` by the ``resolver`` fixture."""
    return FakeKVStore()


@pytest.fixture
def resolver(kv: FakeKVStore) -> Callable[[str], Any]:
    """Binding resolver that knows only the ``KV`` binding.

    Usage:
        def test_something(resolver, kv) -> None:
            cache = configure(ttl=60, resolver=resolver)
    """
    bindings = {"KV": kv}

    def resolve(name: str) -> Any:
        try:
            return bindings[name]
        except KeyError:
            raise BindingError(name) from None

    return resolve


@pytest.fixture(autouse=True)
def _clean_environment() -> Generator[None]:
    """Start and finish every test with an empty ambient environment."""
    reset_environment()
    yield
    reset_environment()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all KVMEMO__ env vars so tests are isolated from the shell."""
    for key in list(os.environ):
        if key.startswith("KVMEMO__"):
            monkeypatch.delenv(key)
