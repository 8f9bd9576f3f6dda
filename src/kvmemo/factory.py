from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from kvmemo.config import cache_defaults, create_config
from kvmemo.context import init_environment
from kvmemo.errors import ConfigurationError
from kvmemo.stores.cloudflare import CloudflareKVStore
from kvmemo.stores.memory import MemoryKVStore
from kvmemo.stores.sqlite import SqliteKVStore
from kvmemo.wrapper import configure

if TYPE_CHECKING:
    from kvmemo.config import AppConfig
    from kvmemo.context import Environment
    from kvmemo.protocol import KVStore

logger = logging.getLogger(__name__)


def create_store(config: AppConfig | None = None) -> KVStore:
    """Build the store named by ``store.type`` in the app config."""
    if config is None:
        config = create_config()
    store_type = str(config["store.type"]).lower()
    if store_type == "sqlite":
        return SqliteKVStore(Path(str(config["store.db_path"])).expanduser())
    if store_type == "cloudflare":
        return CloudflareKVStore(
            account_id=str(config["store.account_id"]),
            namespace_id=str(config["store.namespace_id"]),
            api_token=str(config["store.api_token"]),
        )
    if store_type == "memory":
        return MemoryKVStore()
    raise ConfigurationError(f"Unknown store.type {store_type!r} (expected sqlite, cloudflare or memory)")


def create_environment(config: AppConfig | None = None) -> Environment:
    """Build the configured store and bind it under ``cache.binding``."""
    if config is None:
        config = create_config()
    binding = str(config["cache.binding"])
    store = create_store(config)
    logger.info("Binding %s store to %s", type(store).__name__, binding)
    return init_environment(**{binding: store})


def create_cache(config: AppConfig | None = None) -> Any:
    """Initialize the environment from config and return a configured wrap function."""
    if config is None:
        config = create_config()
    create_environment(config)
    return configure(cache_defaults(config))
