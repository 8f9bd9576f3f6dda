from kvmemo.context import Environment, get_environment, init_environment, new_environment
from kvmemo.errors import (
    BindingError,
    ConfigurationError,
    EnvironmentNotInitializedError,
    KeyTypeError,
    KVMemoError,
    StoreError,
)
from kvmemo.factory import create_cache, create_environment, create_store
from kvmemo.options import CacheOptions
from kvmemo.protocol import BYPASS, MISSING, KVStore
from kvmemo.serialization import JsonSerializer, StringSerializer, make_getter, make_setter
from kvmemo.wrapper import CachedFunction, configure

__all__ = [
    "BYPASS",
    "MISSING",
    "BindingError",
    "CacheOptions",
    "CachedFunction",
    "ConfigurationError",
    "Environment",
    "EnvironmentNotInitializedError",
    "JsonSerializer",
    "KVMemoError",
    "KVStore",
    "KeyTypeError",
    "StoreError",
    "StringSerializer",
    "configure",
    "create_cache",
    "create_environment",
    "create_store",
    "get_environment",
    "init_environment",
    "make_getter",
    "make_setter",
    "new_environment",
]
