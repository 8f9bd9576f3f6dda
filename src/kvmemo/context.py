"""Ambient binding environment bound to the current execution scope.

Stores are registered under binding names in an ``Environment`` held in a
ContextVar. Cached functions configured without an explicit resolver look
their binding up here on first use.

Usage:
    # Initialize at application entry
    init_environment(KV=SqliteKVStore(db_path))

    # Temporarily swap a binding (e.g. in tests)
    with new_environment(KV=MemoryKVStore()):
        await cached_fn(42)
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from types import MappingProxyType

from kvmemo.errors import BindingError, EnvironmentNotInitializedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Environment:
    """Named store bindings visible to the current execution scope.

    Attributes:
        bindings: Read-only mapping of binding name to store handle.
    """

    bindings: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    def copy(self, **overrides: object) -> Environment:
        """Create a child environment with overrides. The parent is unchanged.

        Args:
            **overrides: Bindings to add or replace in the child environment.

        Returns:
            A new Environment containing the parent's bindings plus overrides.
        """
        return Environment(bindings=MappingProxyType({**self.bindings, **overrides}))


_environment: ContextVar[Environment] = ContextVar("kvmemo_environment")


def get_environment() -> Environment:
    """Get the current environment.

    Raises:
        EnvironmentNotInitializedError: If the environment has not been initialized.
    """
    try:
        return _environment.get()
    except LookupError:
        raise EnvironmentNotInitializedError(
            "Environment not initialized. Call init_environment() at application entry."
        ) from None


def init_environment(**bindings: object) -> Environment:
    """Initialize the root environment. Call once at application entry.

    Args:
        **bindings: Store handles keyed by binding name.

    Returns:
        The initialized Environment.
    """
    env = Environment(bindings=MappingProxyType(dict(bindings)))
    _environment.set(env)
    logger.debug("Initialized environment with bindings: %s", ", ".join(sorted(bindings)) or "<none>")
    return env


@contextmanager
def new_environment(**overrides: object) -> Generator[Environment]:
    """Create a child environment with overrides for the duration of the block.

    Works whether or not a root environment was initialized.

    Example:
        with new_environment(KV=fake_store):
            await cached_fn()
    """
    try:
        current = _environment.get()
    except LookupError:
        current = Environment()
    child = current.copy(**overrides)
    token = _environment.set(child)
    try:
        yield child
    finally:
        _environment.reset(token)


def reset_environment() -> None:
    """Reset to an empty environment. Primarily for testing."""
    _environment.set(Environment())


def resolve_binding(binding: str) -> object:
    """Default binding resolver: look ``binding`` up in the ambient environment.

    Raises:
        BindingError: If no environment is active or the name is not bound.
    """
    try:
        env = get_environment()
    except EnvironmentNotInitializedError as e:
        raise BindingError(binding, str(e)) from None
    try:
        return env.bindings[binding]
    except KeyError:
        raise BindingError(binding) from None
