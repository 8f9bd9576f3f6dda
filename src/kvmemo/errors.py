"""Exception taxonomy for kvmemo.

Configuration, key and binding errors subclass ``TypeError`` so callers can
treat them as contract violations. Store failures never escape the default
get/set strategies; ``StoreError`` is what store adapters raise.
"""

from __future__ import annotations


class KVMemoError(Exception):
    """Base error for kvmemo failures."""


class ConfigurationError(KVMemoError, TypeError):
    """Raised at wrap time when the merged options are invalid."""


class KeyTypeError(KVMemoError, TypeError):
    """Raised at call time when a key function returns neither a string nor BYPASS."""


class BindingError(KVMemoError, TypeError):
    """Raised when a binding name does not resolve to a usable store.

    Attributes:
        binding: The binding name that failed to resolve.
    """

    def __init__(self, binding: str, reason: str | None = None) -> None:
        message = f"KV binding not found or invalid for name: {binding}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.binding = binding


class EnvironmentNotInitializedError(KVMemoError):
    """Raised when get_environment() is called before init_environment()."""


class StoreError(KVMemoError):
    """Raised by store adapters when the backing store reports a failure.

    Attributes:
        message: Human-readable error description.
        cause: Optional underlying exception that caused this error.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message
