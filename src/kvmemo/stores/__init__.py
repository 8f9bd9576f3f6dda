from kvmemo.stores.cloudflare import CloudflareKVStore
from kvmemo.stores.memory import MemoryKVStore
from kvmemo.stores.sqlite import SqliteKVStore

__all__ = ["CloudflareKVStore", "MemoryKVStore", "SqliteKVStore"]
